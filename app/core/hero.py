"""
Hero banner selection for the home page.

Precedence, first match wins:

1. the admin's manual trailer override (needs ``manual_override`` and a
   YouTube URL),
2. the featured entry's trailer,
3. the featured entry's main video,
4. nothing: the page shows an explicit empty state.

Backend failures produce a separate ``error`` state so the page can tell
"nothing configured" apart from "could not load".
"""
import logging
from dataclasses import dataclass
from typing import Optional

from app.core.url_resolver import HERO_EMBED, build_youtube_embed_url, extract_youtube_id

logger = logging.getLogger(__name__)

OVERRIDE = "override"
FEATURED_TRAILER = "featured_trailer"
FEATURED_VIDEO = "featured_video"
EMPTY = "empty"
ERROR = "error"


@dataclass
class HeroState:
    status: str
    source_url: str = ""
    title: str = ""
    description: str = ""
    watch_now_url: str = ""
    more_info_url: str = ""
    entry_id: Optional[str] = None
    logo_url: str = ""
    error: str = ""

    @property
    def has_content(self) -> bool:
        return self.status in (OVERRIDE, FEATURED_TRAILER, FEATURED_VIDEO)

    @property
    def video_id(self) -> Optional[str]:
        return extract_youtube_id(self.source_url)

    @property
    def invalid_source(self) -> bool:
        return self.has_content and self.video_id is None

    @property
    def embed_url(self) -> str:
        video_id = self.video_id
        return build_youtube_embed_url(video_id, HERO_EMBED) if video_id else ""


def watch_path(entry_id: str) -> str:
    return f"/watch/{entry_id}"


async def resolve_hero(catalog, settings_store) -> HeroState:
    try:
        state = await _resolve_source(catalog, settings_store)
    except Exception as exc:
        logger.exception("Hero data could not be loaded")
        return HeroState(status=ERROR, error=str(exc) or "Failed to load trailer data.")

    if state.has_content:
        try:
            branding = await settings_store.get_branding()
            state.logo_url = (branding.hero_logo_url or "").strip()
        except Exception:
            logger.warning("Hero logo unavailable; rendering hero without it.")
    return state


async def _resolve_source(catalog, settings_store) -> HeroState:
    override = await settings_store.get_hero_trailer()
    if override and override.manual_override and (override.youtube_url or "").strip():
        return HeroState(
            status=OVERRIDE,
            source_url=override.youtube_url.strip(),
            title=override.movie_title,
            description=override.description,
            watch_now_url=override.watch_now_url,
            more_info_url=override.more_info_url,
        )

    featured = await catalog.get_featured()
    if not featured:
        return HeroState(status=EMPTY)

    trailer = (featured.trailer_url or "").strip()
    video = (featured.video_url or "").strip()
    if trailer:
        status, source = FEATURED_TRAILER, trailer
    elif video:
        status, source = FEATURED_VIDEO, video
    else:
        return HeroState(status=EMPTY)

    link = watch_path(featured.id)
    return HeroState(
        status=status,
        source_url=source,
        title=featured.title,
        description=featured.description,
        watch_now_url=link,
        more_info_url=link,
        entry_id=featured.id,
    )
