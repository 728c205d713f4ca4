"""Admin form payloads -> validated data objects (nothing is written on failure)."""
from typing import Any, Mapping, Optional

from app.core.errors import ValidationError
from app.core.url_resolver import extract_youtube_id, normalize_admin_video_url
from app.db.models import (
    AD_TYPES,
    CATEGORIES,
    OBJECT_FITS,
    OVERLAY_POSITIONS,
    AdData,
    EntryData,
    HeroTrailerData,
)


def _text(form: Mapping[str, Any], key: str) -> str:
    return str(form.get(key) or "").strip()


def _optional(form: Mapping[str, Any], key: str) -> Optional[str]:
    return _text(form, key) or None


def _flag(form: Mapping[str, Any], key: str) -> bool:
    return _text(form, key).lower() in {"1", "true", "yes", "on"}


def _number(form: Mapping[str, Any], key: str, cast, label: str):
    raw = _text(form, key)
    if not raw:
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ValidationError(key, f"{label} must be a number.")


def build_entry(form: Mapping[str, Any]) -> EntryData:
    title = _text(form, "title")
    if not title:
        raise ValidationError("title", "Title is required.")

    category = _text(form, "category") or "movies"
    if category not in CATEGORIES:
        raise ValidationError("category", f"Unknown category: {category}")

    rating = _number(form, "rating", float, "Rating")
    if rating is not None and not 0 <= rating <= 10:
        raise ValidationError("rating", "Rating must be between 0 and 10.")

    release_year = _number(form, "release_year", int, "Release year")

    return EntryData(
        title=title,
        description=_text(form, "description"),
        poster_url=_optional(form, "poster_url"),
        video_url=normalize_admin_video_url(_text(form, "video_url")),
        trailer_url=_optional(form, "trailer_url"),
        download_url=_optional(form, "download_url"),
        genre=_text(form, "genre"),
        category=category,
        rating=rating,
        release_year=release_year,
        duration=_text(form, "duration"),
        language=_optional(form, "language"),
        tags=_optional(form, "tags"),
        telegram_channel=_optional(form, "telegram_channel"),
        is_featured=_flag(form, "is_featured"),
    )


def entry_changes(entry: EntryData) -> dict[str, Any]:
    return entry.model_dump(exclude={"created_at", "updated_at", "view_count", "download_count"})


def build_hero(form: Mapping[str, Any]) -> HeroTrailerData:
    youtube_url = _text(form, "youtube_url")
    manual = _flag(form, "manual_override")
    if manual and not youtube_url:
        raise ValidationError("youtube_url", "A YouTube URL is required when the override is on.")
    if youtube_url and not extract_youtube_id(youtube_url):
        raise ValidationError("youtube_url", "Enter a valid YouTube URL.")
    return HeroTrailerData(
        youtube_url=youtube_url,
        movie_title=_text(form, "movie_title"),
        description=_text(form, "description"),
        watch_now_url=_text(form, "watch_now_url"),
        more_info_url=_text(form, "more_info_url"),
        manual_override=manual,
    )


def build_ad(form: Mapping[str, Any]) -> AdData:
    title = _text(form, "title")
    code = _text(form, "code")
    if not title:
        raise ValidationError("title", "Ad title is required.")
    if not code:
        raise ValidationError("code", "Ad code is required.")
    ad_type = _text(form, "type") or "banner"
    if ad_type not in AD_TYPES:
        raise ValidationError("type", f"Unknown ad type: {ad_type}")
    interval = _number(form, "interval_minutes", int, "Interval")
    return AdData(
        title=title,
        code=code,
        type=ad_type,
        interval_minutes=interval,
        is_active=_flag(form, "is_active"),
    )


def branding_changes(form: Mapping[str, Any]) -> dict[str, Any]:
    position = _text(form, "video_overlay_position") or "top-right"
    if position not in OVERLAY_POSITIONS:
        raise ValidationError("video_overlay_position", f"Unknown overlay position: {position}")
    return {
        "site_name": _text(form, "site_name") or "Mflix Entertainment HUB",
        "site_tagline": _text(form, "site_tagline"),
        "logo_url": _text(form, "logo_url"),
        "hero_logo_url": _text(form, "hero_logo_url"),
        "favicon_url": _text(form, "favicon_url"),
        "video_overlay_logo_url": _text(form, "video_overlay_logo_url"),
        "video_overlay_position": position,
        "theme": {
            "primary_color": _text(form, "primary_color") or "#e50914",
            "secondary_color": _text(form, "secondary_color") or "#1f2937",
            "background_color": _text(form, "background_color") or "#000000",
            "text_color": _text(form, "text_color") or "#ffffff",
        },
        "footer": {
            "copyright_text": _text(form, "copyright_text"),
            "social_links": {
                name: _text(form, f"social_{name}")
                for name in ("youtube", "facebook", "instagram", "telegram", "twitter")
            },
        },
        "seo": {
            "meta_title": _text(form, "meta_title"),
            "meta_description": _text(form, "meta_description"),
            "keywords": _text(form, "keywords"),
        },
    }


def splash_changes(form: Mapping[str, Any]) -> dict[str, Any]:
    mode = _text(form, "mode") or "image"
    if mode not in ("image", "video"):
        raise ValidationError("mode", f"Unknown splash mode: {mode}")
    object_fit = _text(form, "object_fit") or "cover"
    if object_fit not in OBJECT_FITS:
        raise ValidationError("object_fit", f"Unknown object fit: {object_fit}")
    duration = _number(form, "duration", int, "Duration")
    if duration is None:
        duration = 5000
    if duration <= 0:
        raise ValidationError("duration", "Duration must be positive.")
    enabled = _flag(form, "enabled")
    media = _text(form, "video_url") if mode == "video" else _text(form, "image_url")
    if enabled and not media:
        raise ValidationError(f"{mode}_url", f"A {mode} URL is required when the splash is enabled.")
    return {
        "splash": {
            "enabled": enabled,
            "mode": mode,
            "image_url": _text(form, "image_url"),
            "video_url": _text(form, "video_url"),
            "logo_url": _text(form, "logo_url"),
            "audio_url": _text(form, "audio_url"),
            "object_fit": object_fit,
            "duration": duration,
        }
    }
