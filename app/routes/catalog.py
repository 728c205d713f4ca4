import asyncio
import logging
import uuid

from fastapi import APIRouter, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates

from app.core.catalog_filter import bucket_by_category, fetch_by_content_type, filter_by_search, CatalogBuckets
from app.core.errors import BackendUnavailableError, NotFoundError, UnresolvableURLError
from app.core.hero import resolve_hero
from app.core.state import AppState, get_state
from app.core.url_resolver import player_source, require_player_source
from app.core.view_models import (
    DOWNLOAD_SECTION_LIMIT,
    RELATED_LIMIT,
    build_download_links,
    build_movie_jsonld,
    category_label,
    download_page_meta,
    find_download_link,
    poster_for,
    should_show_splash,
    split_tags,
)
from app.db.models import BrandingData, CatalogItem

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory="app/templates")
templates.env.globals["category_label"] = category_label

VISITOR_COOKIE = "mflix_vid"
SPLASH_COOKIE = "mflix_splash_seen"

DOWNLOAD_SECTIONS = (
    ("Download Latest Movies", "movies"),
    ("Download Web Series", "webseries"),
)


def _visitor_id(request: Request) -> tuple[str, bool]:
    raw = (request.cookies.get(VISITOR_COOKIE) or "").strip()
    try:
        return str(uuid.UUID(raw)), False
    except ValueError:
        return str(uuid.uuid4()), True


def _remember_visitor(response, visitor_id: str, is_new: bool):
    if is_new:
        response.set_cookie(key=VISITOR_COOKIE, value=visitor_id, httponly=True, samesite="lax")
    return response


async def _branding(state: AppState) -> BrandingData:
    try:
        return await state.site.get_branding()
    except BackendUnavailableError:
        return BrandingData(site_name=state.config.SITE_NAME)


async def _ads(state: AppState, *types: str) -> list:
    try:
        rows = await state.site.list_ads(active_only=True)
    except BackendUnavailableError:
        return []
    return [row for row in rows if row.type in types]


def _card(entry: CatalogItem, placeholder: str) -> dict:
    return {
        "id": entry.id,
        "title": entry.title,
        "poster": poster_for(entry, placeholder),
        "genre": entry.genre,
        "category": entry.category,
        "rating": entry.rating,
        "release_year": entry.release_year,
        "duration": entry.duration,
    }


async def _count_download(state: AppState, entry_id: str) -> None:
    try:
        await state.catalog.increment_downloads(entry_id)
    except BackendUnavailableError:
        pass


@router.get("/")
async def home_page(request: Request, q: str = ""):
    state = get_state(request)
    placeholder = state.config.PLACEHOLDER_POSTER
    branding = await _branding(state)
    search_query = (q or "").strip()
    errors: list[str] = []

    try:
        entries = await state.catalog.list_all()
    except BackendUnavailableError:
        entries = []
        errors.append("We could not load the catalog right now. Please try again shortly.")

    filtered = filter_by_search(entries, search_query)
    buckets = bucket_by_category(filtered) if not search_query else CatalogBuckets()

    hero = None
    download_sections = []
    if not search_query:
        hero = await resolve_hero(state.catalog, state.site)
        for title, content_type in DOWNLOAD_SECTIONS:
            try:
                rows = await fetch_by_content_type(state.catalog, content_type, DOWNLOAD_SECTION_LIMIT)
            except BackendUnavailableError:
                rows = []
            download_sections.append({
                "title": title,
                "content_type": content_type,
                "cards": [_card(row, placeholder) for row in rows],
            })

    seen = request.cookies.get(SPLASH_COOKIE) == "1"
    show_splash = should_show_splash(branding, seen)
    response = templates.TemplateResponse(request, "home.html", {
        "request": request,
        "site": branding,
        "hero": hero,
        "search_query": search_query,
        "search_results": [_card(e, placeholder) for e in filtered] if search_query else [],
        "rows": [
            ("Latest Releases", "latest", [_card(e, placeholder) for e in buckets.latest]),
            ("Web Series Collection", "webseries", [_card(e, placeholder) for e in buckets.webseries]),
            ("Popular Right Now", "trending", [_card(e, placeholder) for e in buckets.trending]),
            ("Top 10 Picks", "top10", [_card(e, placeholder) for e in buckets.top_picks]),
        ],
        "download_sections": download_sections,
        "banner_ads": await _ads(state, "banner"),
        "show_splash": show_splash,
        "errors": errors,
    })
    if show_splash:
        response.set_cookie(key=SPLASH_COOKIE, value="1", httponly=True, samesite="lax")
    return response


async def _load_entry(state: AppState, entry_id: str) -> CatalogItem:
    entry = await state.catalog.get_by_id(entry_id)
    if not entry:
        raise NotFoundError(entry_id)
    return entry


def _unavailable_page(request: Request, branding: BrandingData, message: str):
    return templates.TemplateResponse(request, "unavailable.html", {
        "request": request,
        "site": branding,
        "message": message,
    }, status_code=503)


@router.get("/watch/{entry_id}")
async def watch_page(request: Request, entry_id: str):
    state = get_state(request)
    branding = await _branding(state)
    try:
        entry = await _load_entry(state, entry_id)
    except BackendUnavailableError:
        return _unavailable_page(request, branding, "This title could not be loaded right now.")

    try:
        await state.catalog.increment_views(entry.id)
    except BackendUnavailableError:
        logger.warning("View counter not updated for %s", entry.id)

    player_error = ""
    try:
        player_src = require_player_source(entry.video_url)
    except UnresolvableURLError as exc:
        player_src, player_error = None, str(exc)
        logger.info("Unplayable source for %s: %r", entry.id, exc.url)

    return templates.TemplateResponse(request, "watch.html", {
        "request": request,
        "site": branding,
        "entry": entry,
        "poster": poster_for(entry, state.config.PLACEHOLDER_POSTER),
        "player_src": player_src,
        "player_error": player_error,
        "tags": split_tags(entry.tags),
        "video_ads": await _ads(state, "preroll", "midroll"),
    })


@router.get("/download/{entry_id}")
async def download_page(request: Request, entry_id: str):
    state = get_state(request)
    branding = await _branding(state)
    try:
        entry = await _load_entry(state, entry_id)
    except BackendUnavailableError:
        return _unavailable_page(request, branding, "This download page could not be loaded right now.")

    try:
        related = await state.catalog.list_related(entry.category, entry.id, RELATED_LIMIT)
    except BackendUnavailableError:
        related = []

    visitor_id, is_new = _visitor_id(request)
    runner = state.gates.get(visitor_id, entry.id)
    tiers = {row["quality"]: row for row in runner.snapshot()} if runner else {}

    response = templates.TemplateResponse(request, "download.html", {
        "request": request,
        "site": branding,
        "entry": entry,
        "poster": poster_for(entry, state.config.PLACEHOLDER_POSTER),
        "links": build_download_links(entry),
        "tiers": tiers,
        "delay": state.gates.delay,
        "watch_online_url": player_source(entry.video_url) or "",
        "telegram_channel": entry.telegram_channel or state.config.TELEGRAM_CHANNEL,
        "related": [_card(row, state.config.PLACEHOLDER_POSTER) for row in related],
        "meta": download_page_meta(entry, branding.site_name),
        "jsonld": build_movie_jsonld(entry),
    })
    return _remember_visitor(response, visitor_id, is_new)


@router.post("/download/{entry_id}/gate/{quality}")
async def start_download_gate(request: Request, entry_id: str, quality: str):
    state = get_state(request)
    try:
        entry = await _load_entry(state, entry_id)
    except BackendUnavailableError:
        return JSONResponse({"error": "Backend unavailable"}, status_code=503)

    link = find_download_link(entry, quality)
    if not link:
        raise HTTPException(status_code=404, detail="Download link not found")

    await state.gates.prune()
    visitor_id, is_new = _visitor_id(request)

    def _on_reveal(tier_quality: str, url: str) -> None:
        logger.info("Download revealed: %s [%s]", entry.id, tier_quality)
        asyncio.create_task(_count_download(state, entry.id))

    runner = state.gates.get_or_create(visitor_id, entry.id, on_reveal=_on_reveal)
    runner.start(quality, link["url"])
    response = JSONResponse({"tiers": runner.snapshot()})
    return _remember_visitor(response, visitor_id, is_new)


@router.get("/download/{entry_id}/gate")
async def download_gate_status(request: Request, entry_id: str):
    state = get_state(request)
    visitor_id, _ = _visitor_id(request)
    runner = state.gates.get(visitor_id, entry_id)
    return JSONResponse({"tiers": runner.snapshot() if runner else []})


@router.get("/api/catalog")
async def catalog_api(request: Request, content_type: str = "all", limit: int = 20):
    state = get_state(request)
    try:
        rows = await fetch_by_content_type(state.catalog, content_type, max(1, min(limit, 100)))
    except BackendUnavailableError:
        return JSONResponse({"error": "Backend unavailable", "items": []}, status_code=503)
    return {"items": [_card(row, state.config.PLACEHOLDER_POSTER) for row in rows]}
