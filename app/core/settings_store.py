import logging
from datetime import datetime
from typing import Any, Optional

from beanie import PydanticObjectId

from app.core.catalog_store import backend_call
from app.core.errors import NotFoundError
from app.db.models import (
    AdData,
    AdItem,
    AdSnippet,
    BrandingData,
    HeroTrailer,
    HeroTrailerData,
    SiteSettings,
)

logger = logging.getLogger(__name__)

HERO_KEY = "current"
SITE_KEY = "main"


def _merge(base: dict, changes: dict) -> dict:
    merged = dict(base)
    for key, value in changes.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _ad_item(doc: AdSnippet) -> AdItem:
    return AdItem(id=str(doc.id), **doc.model_dump(exclude={"id", "revision_id"}))


class SettingsStore:
    """Singleton configuration documents plus the ad snippet collection."""

    async def get_hero_trailer(self) -> Optional[HeroTrailerData]:
        async with backend_call("fetch header trailer"):
            row = await HeroTrailer.find_one(HeroTrailer.key == HERO_KEY)
        if not row:
            return None
        return HeroTrailerData(**row.model_dump(include=set(HeroTrailerData.model_fields)))

    async def save_hero_trailer(self, data: HeroTrailerData) -> None:
        payload = data.model_dump(exclude={"updated_at"})
        async with backend_call("update header trailer"):
            row = await HeroTrailer.find_one(HeroTrailer.key == HERO_KEY)
            if not row:
                row = HeroTrailer(key=HERO_KEY)
            for key, value in payload.items():
                setattr(row, key, value)
            row.updated_at = datetime.now()
            await row.save()

    async def _site_settings(self) -> SiteSettings:
        row = await SiteSettings.find_one(SiteSettings.key == SITE_KEY)
        if not row:
            row = SiteSettings(key=SITE_KEY)
            await row.insert()
        return row

    async def get_branding(self) -> BrandingData:
        async with backend_call("fetch site settings"):
            row = await self._site_settings()
        return BrandingData(**row.model_dump(exclude={"id", "revision_id", "key"}))

    async def update_branding(self, changes: dict[str, Any]) -> BrandingData:
        async with backend_call("update site settings"):
            row = await self._site_settings()
            current = row.model_dump(exclude={"id", "revision_id", "key"})
            merged = BrandingData(**_merge(current, changes))
            for key in BrandingData.model_fields:
                setattr(row, key, getattr(merged, key))
            row.updated_at = datetime.now()
            await row.save()
        return merged

    async def list_ads(self, active_only: bool = False) -> list[AdItem]:
        async with backend_call("fetch ads"):
            query = AdSnippet.find(AdSnippet.is_active == True) if active_only else AdSnippet.find_all()
            rows = await query.sort("-created_at").to_list()
        return [_ad_item(row) for row in rows]

    async def get_ad(self, ad_id: str) -> Optional[AdItem]:
        try:
            oid = PydanticObjectId(ad_id)
        except Exception:
            return None
        async with backend_call("fetch ad"):
            row = await AdSnippet.get(oid)
        return _ad_item(row) if row else None

    async def create_ad(self, data: AdData) -> str:
        now = datetime.now()
        async with backend_call("add ad"):
            row = AdSnippet(**data.model_dump(exclude={"created_at", "updated_at"}), created_at=now, updated_at=now)
            await row.insert()
        return str(row.id)

    async def update_ad(self, ad_id: str, changes: dict[str, Any]) -> None:
        row = await self._ad_doc(ad_id)
        async with backend_call("update ad"):
            for key, value in changes.items():
                if key in AdData.model_fields and key not in ("created_at", "updated_at"):
                    setattr(row, key, value)
            row.updated_at = datetime.now()
            await row.save()

    async def delete_ad(self, ad_id: str) -> None:
        row = await self._ad_doc(ad_id)
        async with backend_call("delete ad"):
            await row.delete()

    async def _ad_doc(self, ad_id: str) -> AdSnippet:
        try:
            oid = PydanticObjectId(ad_id)
        except Exception:
            raise NotFoundError(ad_id)
        async with backend_call("fetch ad"):
            row = await AdSnippet.get(oid)
        if not row:
            raise NotFoundError(ad_id)
        return row
