import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, AsyncIterator, Optional

from beanie import PydanticObjectId
from beanie.operators import Inc

from app.core.errors import BackendUnavailableError, NotFoundError, PortalError
from app.db.models import CatalogEntry, CatalogItem, EntryData

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset(EntryData.model_fields) - {"created_at", "updated_at", "view_count", "download_count"}


@asynccontextmanager
async def backend_call(operation: str) -> AsyncIterator[None]:
    """Convert driver failures into BackendUnavailableError, logging once."""
    try:
        yield
    except PortalError:
        raise
    except Exception as exc:
        logger.exception("Failed to %s", operation)
        raise BackendUnavailableError(operation, exc) from exc


def _cast_id(raw: str) -> Optional[PydanticObjectId]:
    try:
        return PydanticObjectId(str(raw or "").strip())
    except Exception:
        return None


def _to_item(doc: CatalogEntry) -> CatalogItem:
    data = doc.model_dump(exclude={"id", "revision_id"})
    return CatalogItem(id=str(doc.id), **data)


class CatalogRepository:
    """Query store over the ``movies`` collection, newest first everywhere."""

    async def list_all(self, limit: int | None = None) -> list[CatalogItem]:
        async with backend_call("fetch all videos"):
            query = CatalogEntry.find_all().sort("-created_at")
            if limit:
                query = query.limit(limit)
            return [_to_item(doc) for doc in await query.to_list()]

    async def get_by_id(self, entry_id: str) -> Optional[CatalogItem]:
        oid = _cast_id(entry_id)
        if oid is None:
            return None
        async with backend_call("fetch video"):
            doc = await CatalogEntry.get(oid)
        return _to_item(doc) if doc else None

    async def list_by_category(self, category: str, limit: int) -> list[CatalogItem]:
        async with backend_call(f"fetch videos for {category}"):
            rows = await CatalogEntry.find(
                CatalogEntry.category == category
            ).sort("-created_at").limit(limit).to_list()
        return [_to_item(doc) for doc in rows]

    async def get_featured(self) -> Optional[CatalogItem]:
        async with backend_call("fetch featured movie"):
            rows = await CatalogEntry.find(
                CatalogEntry.is_featured == True
            ).sort("-created_at").limit(1).to_list()
        return _to_item(rows[0]) if rows else None

    async def list_related(self, category: str | None, exclude_id: str, limit: int) -> list[CatalogItem]:
        if not category:
            return []
        query: dict[str, Any] = {"category": category}
        oid = _cast_id(exclude_id)
        if oid is not None:
            query["_id"] = {"$ne": oid}
        async with backend_call("fetch related movies"):
            rows = await CatalogEntry.find(query).sort("-created_at").limit(limit).to_list()
        return [_to_item(doc) for doc in rows]

    async def count(self, category: str | None = None) -> int:
        async with backend_call("count videos"):
            if category:
                return await CatalogEntry.find(CatalogEntry.category == category).count()
            return await CatalogEntry.count()

    async def create(self, entry: EntryData) -> str:
        now = datetime.now()
        payload = entry.model_dump(exclude={"created_at", "updated_at"})
        async with backend_call("add video"):
            doc = CatalogEntry(**payload, created_at=now, updated_at=now)
            await doc.insert()
        logger.info("Catalog entry created: %s (%s)", doc.title, doc.id)
        return str(doc.id)

    async def update(self, entry_id: str, changes: dict[str, Any]) -> None:
        oid = _cast_id(entry_id)
        if oid is None:
            raise NotFoundError(entry_id)
        async with backend_call("update video"):
            doc = await CatalogEntry.get(oid)
            if not doc:
                raise NotFoundError(entry_id)
            for key, value in changes.items():
                if key in EDITABLE_FIELDS:
                    setattr(doc, key, value)
            doc.updated_at = datetime.now()
            await doc.save()

    async def delete(self, entry_id: str) -> None:
        oid = _cast_id(entry_id)
        if oid is None:
            raise NotFoundError(entry_id)
        async with backend_call("delete video"):
            doc = await CatalogEntry.get(oid)
            if not doc:
                raise NotFoundError(entry_id)
            await doc.delete()
        logger.info("Catalog entry deleted: %s", entry_id)

    async def increment_views(self, entry_id: str) -> None:
        await self._increment(entry_id, CatalogEntry.view_count)

    async def increment_downloads(self, entry_id: str) -> None:
        await self._increment(entry_id, CatalogEntry.download_count)

    async def _increment(self, entry_id: str, field) -> None:
        oid = _cast_id(entry_id)
        if oid is None:
            return
        async with backend_call("update counters"):
            await CatalogEntry.find(CatalogEntry.id == oid).update(Inc({field: 1}))
