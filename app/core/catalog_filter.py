from dataclasses import dataclass, field
from typing import Sequence

from app.db.models import CatalogItem

ROW_LIMIT = 12
TOP_PICKS_LIMIT = 10
TOP_PICK_MIN_RATING = 8
DEFAULT_FETCH_COUNT = 20


@dataclass
class CatalogBuckets:
    latest: list[CatalogItem] = field(default_factory=list)
    webseries: list[CatalogItem] = field(default_factory=list)
    trending: list[CatalogItem] = field(default_factory=list)
    top_picks: list[CatalogItem] = field(default_factory=list)


def filter_by_search(entries: Sequence[CatalogItem], query: str | None) -> list[CatalogItem]:
    q = (query or "").strip().lower()
    if not q:
        return list(entries)
    return [
        entry for entry in entries
        if q in (entry.title or "").lower() or q in (entry.genre or "").lower()
    ]


def bucket_by_category(entries: Sequence[CatalogItem]) -> CatalogBuckets:
    return CatalogBuckets(
        latest=[e for e in entries if e.category in ("latest", "movies")][:ROW_LIMIT],
        webseries=[e for e in entries if e.category == "webseries"][:ROW_LIMIT],
        # First rows of the newest-first list, any category.
        trending=list(entries[:ROW_LIMIT]),
        top_picks=[
            e for e in entries
            if e.rating is not None and e.rating >= TOP_PICK_MIN_RATING
        ][:TOP_PICKS_LIMIT],
    )


async def fetch_by_content_type(repo, content_type: str | None, count: int | None = DEFAULT_FETCH_COUNT) -> list[CatalogItem]:
    limit = count or DEFAULT_FETCH_COUNT
    kind = (content_type or "").strip()
    if not kind or kind == "all":
        return await repo.list_all(limit=limit)
    return await repo.list_by_category(kind, limit)
