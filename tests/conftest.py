"""
Shared pytest fixtures for the catalog portal.

The repositories are replaced by in-memory fakes with the same async
interface, so no MongoDB instance is needed; the FastAPI app is exercised
through TestClient without running its lifespan.
"""
import itertools
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app.core.auth_policy import ADMIN_COOKIE, AdminPolicy
from app.core.config import Settings
from app.core.download_gate import GateRegistry
from app.core.errors import BackendUnavailableError, NotFoundError
from app.core.settings_store import _merge
from app.core.state import AppState
from app.db.models import AdData, AdItem, BrandingData, CatalogItem, EntryData, HeroTrailerData

ADMIN_PASSWORD = "letmein"

_ids = itertools.count(1)


def make_item(**overrides) -> CatalogItem:
    """CatalogItem with sensible defaults and a unique 24-char hex id."""
    data = {
        "id": f"{next(_ids):024x}",
        "title": "Untitled",
        "video_url": "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "category": "movies",
    }
    data.update(overrides)
    return CatalogItem(**data)


class FakeCatalogRepository:
    """In-memory CatalogRepository; ``items`` is kept newest first."""

    def __init__(self, items=()):
        self.items: list[CatalogItem] = list(items)
        self.fail = False

    def _check(self, operation: str):
        if self.fail:
            raise BackendUnavailableError(operation, RuntimeError("connection refused"))

    def _find(self, entry_id: str) -> Optional[CatalogItem]:
        return next((item for item in self.items if item.id == entry_id), None)

    async def list_all(self, limit=None):
        self._check("fetch all videos")
        return list(self.items[:limit] if limit else self.items)

    async def get_by_id(self, entry_id):
        self._check("fetch video")
        return self._find(entry_id)

    async def list_by_category(self, category, limit):
        self._check(f"fetch videos for {category}")
        return [item for item in self.items if item.category == category][:limit]

    async def get_featured(self):
        self._check("fetch featured movie")
        return next((item for item in self.items if item.is_featured), None)

    async def list_related(self, category, exclude_id, limit):
        self._check("fetch related movies")
        if not category:
            return []
        return [i for i in self.items if i.category == category and i.id != exclude_id][:limit]

    async def count(self, category=None):
        self._check("count videos")
        return len([i for i in self.items if category is None or i.category == category])

    async def create(self, entry: EntryData) -> str:
        self._check("add video")
        item = make_item(**entry.model_dump())
        self.items.insert(0, item)
        return item.id

    async def update(self, entry_id, changes):
        self._check("update video")
        item = self._find(entry_id)
        if not item:
            raise NotFoundError(entry_id)
        for key, value in changes.items():
            setattr(item, key, value)

    async def delete(self, entry_id):
        self._check("delete video")
        item = self._find(entry_id)
        if not item:
            raise NotFoundError(entry_id)
        self.items.remove(item)

    async def increment_views(self, entry_id):
        self._check("update counters")
        item = self._find(entry_id)
        if item:
            item.view_count += 1

    async def increment_downloads(self, entry_id):
        self._check("update counters")
        item = self._find(entry_id)
        if item:
            item.download_count += 1


class FakeSettingsStore:
    def __init__(self):
        self.hero: Optional[HeroTrailerData] = None
        self.branding = BrandingData()
        self.ads: list[AdItem] = []
        self.fail = False
        self.fail_branding = False

    def _check(self, operation: str):
        if self.fail:
            raise BackendUnavailableError(operation, RuntimeError("connection refused"))

    async def get_hero_trailer(self):
        self._check("fetch header trailer")
        return self.hero

    async def save_hero_trailer(self, data):
        self._check("update header trailer")
        self.hero = data

    async def get_branding(self):
        self._check("fetch site settings")
        if self.fail_branding:
            raise BackendUnavailableError("fetch site settings")
        return self.branding

    async def update_branding(self, changes):
        self._check("update site settings")
        self.branding = BrandingData(**_merge(self.branding.model_dump(), changes))
        return self.branding

    async def list_ads(self, active_only=False):
        self._check("fetch ads")
        return [ad for ad in self.ads if ad.is_active or not active_only]

    async def get_ad(self, ad_id):
        return next((ad for ad in self.ads if ad.id == ad_id), None)

    async def create_ad(self, data: AdData):
        self._check("add ad")
        ad = AdItem(id=f"{next(_ids):024x}", **data.model_dump())
        self.ads.append(ad)
        return ad.id

    async def update_ad(self, ad_id, changes):
        ad = await self.get_ad(ad_id)
        if not ad:
            raise NotFoundError(ad_id)
        for key, value in changes.items():
            setattr(ad, key, value)

    async def delete_ad(self, ad_id):
        ad = await self.get_ad(ad_id)
        if not ad:
            raise NotFoundError(ad_id)
        self.ads.remove(ad)


@pytest.fixture
def catalog_repo() -> FakeCatalogRepository:
    now = datetime(2024, 5, 1)
    return FakeCatalogRepository([
        make_item(
            title="Inception",
            genre="Sci-Fi",
            category="movies",
            rating=8.8,
            release_year=2010,
            trailer_url="https://www.youtube.com/watch?v=YoHD9XEInc0",
            download_url="https://cdn.example.com/inception.mp4",
            tags="dream, heist",
            is_featured=True,
            created_at=now,
        ),
        make_item(
            title="Dark",
            genre="Thriller",
            category="webseries",
            rating=8.7,
            download_url="https://cdn.example.com/dark-s01.mp4",
            created_at=now - timedelta(days=1),
        ),
        make_item(
            title="The Room",
            genre="Drama",
            category="movies",
            rating=3.7,
            video_url="https://example.com/not-a-video",
            created_at=now - timedelta(days=2),
        ),
    ])


@pytest.fixture
def site_store() -> FakeSettingsStore:
    return FakeSettingsStore()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        SECRET_KEY="test-secret",
        DOWNLOAD_DELAY_SEC=0,
        TELEGRAM_CHANNEL="https://t.me/testchannel",
    )


@pytest.fixture
def portal(catalog_repo, site_store, test_settings) -> AppState:
    return AppState(
        catalog=catalog_repo,
        site=site_store,
        policy=AdminPolicy(test_settings.ADMIN_PASSWORD, test_settings.SECRET_KEY, 1),
        gates=GateRegistry(delay=test_settings.DOWNLOAD_DELAY_SEC, ttl_sec=60),
        config=test_settings,
    )


@pytest.fixture
def client(portal):
    """TestClient bound to the fake services (lifespan not started)."""
    import main

    previous = getattr(main.app.state, "portal", None)
    main.app.state.portal = portal
    try:
        yield TestClient(main.app)
    finally:
        main.app.state.portal = previous


@pytest.fixture
def admin_client(client, portal):
    client.cookies.set(ADMIN_COOKIE, portal.policy.issue_token())
    return client
