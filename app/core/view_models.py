import json
from typing import Optional

from app.db.models import BrandingData, CatalogItem

# The store keeps a single download URL; every tier points at it.
DOWNLOAD_TIERS = (
    ("480p", "450 MB"),
    ("720p", "850 MB"),
    ("1080p", "1.5 GB"),
)
RELATED_LIMIT = 6
DOWNLOAD_SECTION_LIMIT = 8
CATEGORY_LABELS = {
    "latest": "Latest",
    "trending": "Trending",
    "webseries": "Web Series",
    "movies": "Movies",
    "livetv": "Live TV",
}


def build_download_links(entry: CatalogItem) -> list[dict]:
    url = (entry.download_url or "").strip() or (entry.video_url or "").strip()
    if not url:
        return []
    return [{"quality": quality, "url": url, "size": size} for quality, size in DOWNLOAD_TIERS]


def find_download_link(entry: CatalogItem, quality: str) -> Optional[dict]:
    for link in build_download_links(entry):
        if link["quality"] == quality:
            return link
    return None


def poster_for(entry: CatalogItem, placeholder: str) -> str:
    return (entry.poster_url or "").strip() or placeholder


def split_tags(raw: str | None) -> list[str]:
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


def build_movie_jsonld(entry: CatalogItem) -> str:
    data = {
        "@context": "https://schema.org",
        "@type": "Movie",
        "name": entry.title,
        "description": entry.description,
        "image": entry.poster_url or "",
        "genre": [g.strip() for g in (entry.genre or "").split(",") if g.strip()],
    }
    if entry.release_year:
        data["datePublished"] = str(entry.release_year)
    if entry.duration:
        data["duration"] = entry.duration
    if entry.rating is not None:
        data["aggregateRating"] = {
            "@type": "AggregateRating",
            "ratingValue": entry.rating,
            "bestRating": "10",
        }
    # Embedded in a <script> tag.
    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def download_page_meta(entry: CatalogItem, site_name: str) -> dict:
    year = f" ({entry.release_year})" if entry.release_year else ""
    return {
        "title": f"{entry.title}{year} - Download HD | {site_name}",
        "description": (
            f"Download {entry.title}{year} in HD quality. Watch online or download in "
            f"480p, 720p, 1080p. {entry.description}"
        ).strip(),
        "keywords": ", ".join(
            part for part in (entry.title, "download", "HD", entry.genre, str(entry.release_year or ""), "movies") if part
        ),
    }


def should_show_splash(branding: BrandingData, already_seen: bool) -> bool:
    splash = branding.splash
    if not splash.enabled or already_seen:
        return False
    media = splash.video_url if splash.mode == "video" else splash.image_url
    return bool((media or "").strip() or (splash.logo_url or "").strip())


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, (category or "").title())
