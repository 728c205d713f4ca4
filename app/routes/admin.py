import logging
from typing import Optional

from fastapi import APIRouter, Request, HTTPException, Form
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from app.core.admin_forms import (
    branding_changes,
    build_ad,
    build_entry,
    build_hero,
    entry_changes,
    splash_changes,
)
from app.core.auth_policy import ADMIN_COOKIE
from app.core.errors import BackendUnavailableError, NotFoundError, ValidationError
from app.core.state import AppState, get_state
from app.core.view_models import category_label
from app.db.models import AD_TYPES, CATEGORIES, OBJECT_FITS, OVERLAY_POSITIONS, HeroTrailerData

logger = logging.getLogger(__name__)

router = APIRouter()
templates = Jinja2Templates(directory="app/templates")
templates.env.globals["category_label"] = category_label


def _admin_subject(request: Request) -> Optional[str]:
    state = get_state(request)
    return state.policy.subject_from_token(request.cookies.get(ADMIN_COOKIE))


def _require(request: Request, action: str):
    """Return a login redirect when signed out; raise 403 when not allowed."""
    subject = _admin_subject(request)
    if not subject:
        return RedirectResponse("/admin/login", status_code=303)
    if not get_state(request).policy.is_authorized(subject, action):
        raise HTTPException(status_code=403, detail="Not authorized.")
    return None


def _render(request: Request, name: str, ctx: dict, status_code: int = 200):
    return templates.TemplateResponse(request, name, {"request": request, **ctx}, status_code=status_code)


async def _dashboard_counts(state: AppState) -> dict:
    counts = {"total": await state.catalog.count()}
    for category in CATEGORIES:
        counts[category] = await state.catalog.count(category)
    return counts


@router.get("/admin/login")
async def admin_login_page(request: Request):
    if _admin_subject(request):
        return RedirectResponse("/admin", status_code=303)
    return _render(request, "admin_login.html", {"error": ""})


@router.post("/admin/login")
async def admin_login(request: Request, password: str = Form("")):
    policy = get_state(request).policy
    if not policy.check_password(password):
        logger.warning("Rejected admin login from %s", request.client.host if request.client else "?")
        return _render(request, "admin_login.html", {"error": "Incorrect password. Please try again."}, status_code=401)
    response = RedirectResponse("/admin", status_code=303)
    response.set_cookie(
        key=ADMIN_COOKIE,
        value=policy.issue_token(),
        httponly=True,
        samesite="lax",
        max_age=policy.session_sec,
    )
    return response


@router.get("/admin/logout")
async def admin_logout():
    response = RedirectResponse("/admin/login", status_code=303)
    response.delete_cookie(ADMIN_COOKIE)
    return response


@router.get("/admin")
async def admin_dashboard(request: Request, flash: str = ""):
    denied = _require(request, "admin:view")
    if denied:
        return denied
    state = get_state(request)
    errors: list[str] = []
    try:
        entries = await state.catalog.list_all()
        counts = await _dashboard_counts(state)
    except BackendUnavailableError:
        entries, counts = [], {}
        errors.append("Failed to fetch videos. Check the database connection.")
    return _render(request, "admin.html", {
        "entries": entries,
        "counts": counts,
        "featured_total": sum(1 for e in entries if e.is_featured),
        "errors": errors,
        "flash": flash,
    })


def _entry_form_ctx(entry=None, form: dict | None = None, error: str = "", entry_id: str = "") -> dict:
    values = dict(form or {})
    if entry is not None and not values:
        values = entry.model_dump()
    return {
        "entry_id": entry_id or (entry.id if entry is not None else ""),
        "values": values,
        "error": error,
        "categories": CATEGORIES,
    }


@router.get("/admin/entries/new")
async def new_entry_page(request: Request):
    denied = _require(request, "catalog:write")
    if denied:
        return denied
    return _render(request, "admin_entry_form.html", _entry_form_ctx())


@router.get("/admin/entries/{entry_id}/edit")
async def edit_entry_page(request: Request, entry_id: str):
    denied = _require(request, "catalog:write")
    if denied:
        return denied
    entry = await get_state(request).catalog.get_by_id(entry_id)
    if not entry:
        raise NotFoundError(entry_id)
    return _render(request, "admin_entry_form.html", _entry_form_ctx(entry))


@router.post("/admin/entries/save")
async def save_entry(request: Request):
    denied = _require(request, "catalog:write")
    if denied:
        return denied
    state = get_state(request)
    form = dict(await request.form())
    entry_id = str(form.pop("entry_id", "") or "").strip()
    try:
        entry = build_entry(form)
        if entry_id:
            await state.catalog.update(entry_id, entry_changes(entry))
            flash = "Movie updated successfully."
        else:
            await state.catalog.create(entry)
            flash = "Movie added successfully."
    except ValidationError as exc:
        return _render(request, "admin_entry_form.html", _entry_form_ctx(form=form, error=exc.message, entry_id=entry_id), status_code=400)
    except BackendUnavailableError as exc:
        return _render(request, "admin_entry_form.html", _entry_form_ctx(form=form, error=str(exc), entry_id=entry_id), status_code=503)
    return RedirectResponse(f"/admin?flash={flash}", status_code=303)


@router.post("/admin/entries/{entry_id}/delete")
async def delete_entry(request: Request, entry_id: str):
    denied = _require(request, "catalog:write")
    if denied:
        return denied
    try:
        await get_state(request).catalog.delete(entry_id)
    except BackendUnavailableError:
        return RedirectResponse("/admin?flash=Failed to delete video.", status_code=303)
    return RedirectResponse("/admin?flash=Movie deleted.", status_code=303)


@router.get("/admin/hero")
async def hero_page(request: Request, saved: int = 0):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    error = ""
    try:
        hero = await get_state(request).site.get_hero_trailer() or HeroTrailerData()
    except BackendUnavailableError as exc:
        hero, error = HeroTrailerData(), str(exc)
    return _render(request, "admin_hero.html", {"values": hero.model_dump(), "error": error, "saved": bool(saved)})


@router.post("/admin/hero")
async def save_hero(request: Request):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    form = dict(await request.form())
    try:
        await get_state(request).site.save_hero_trailer(build_hero(form))
    except (ValidationError, BackendUnavailableError) as exc:
        status = 400 if isinstance(exc, ValidationError) else 503
        return _render(request, "admin_hero.html", {"values": form, "error": str(exc), "saved": False}, status_code=status)
    return RedirectResponse("/admin/hero?saved=1", status_code=303)


async def _branding_or_error(state: AppState):
    try:
        return await state.site.get_branding(), ""
    except BackendUnavailableError as exc:
        return None, str(exc)


@router.get("/admin/site")
async def site_page(request: Request, saved: int = 0):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    branding, error = await _branding_or_error(get_state(request))
    return _render(request, "admin_site.html", {
        "site": branding,
        "error": error,
        "saved": bool(saved),
        "positions": OVERLAY_POSITIONS,
    })


@router.post("/admin/site")
async def save_site(request: Request):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    state = get_state(request)
    form = dict(await request.form())
    try:
        await state.site.update_branding(branding_changes(form))
    except (ValidationError, BackendUnavailableError) as exc:
        branding, _ = await _branding_or_error(state)
        return _render(request, "admin_site.html", {
            "site": branding,
            "error": str(exc),
            "saved": False,
            "positions": OVERLAY_POSITIONS,
        }, status_code=400 if isinstance(exc, ValidationError) else 503)
    return RedirectResponse("/admin/site?saved=1", status_code=303)


@router.get("/admin/splash")
async def splash_page(request: Request, saved: int = 0):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    branding, error = await _branding_or_error(get_state(request))
    return _render(request, "admin_splash.html", {
        "splash": branding.splash if branding else None,
        "error": error,
        "saved": bool(saved),
        "object_fits": OBJECT_FITS,
    })


@router.post("/admin/splash")
async def save_splash(request: Request):
    denied = _require(request, "settings:write")
    if denied:
        return denied
    state = get_state(request)
    form = dict(await request.form())
    try:
        await state.site.update_branding(splash_changes(form))
    except (ValidationError, BackendUnavailableError) as exc:
        branding, _ = await _branding_or_error(state)
        return _render(request, "admin_splash.html", {
            "splash": branding.splash if branding else None,
            "error": str(exc),
            "saved": False,
            "object_fits": OBJECT_FITS,
        }, status_code=400 if isinstance(exc, ValidationError) else 503)
    return RedirectResponse("/admin/splash?saved=1", status_code=303)


async def _render_ads(request: Request, error: str = "", status_code: int = 200):
    try:
        ads = await get_state(request).site.list_ads()
    except BackendUnavailableError as exc:
        ads, error = [], error or str(exc)
    return _render(request, "admin_ads.html", {"ads": ads, "error": error, "ad_types": AD_TYPES}, status_code=status_code)


@router.get("/admin/ads")
async def ads_page(request: Request):
    denied = _require(request, "ads:write")
    if denied:
        return denied
    return await _render_ads(request)


@router.post("/admin/ads/save")
async def save_ad(request: Request):
    denied = _require(request, "ads:write")
    if denied:
        return denied
    site = get_state(request).site
    form = dict(await request.form())
    ad_id = str(form.pop("ad_id", "") or "").strip()
    try:
        ad = build_ad(form)
        if ad_id:
            await site.update_ad(ad_id, ad.model_dump(exclude={"created_at", "updated_at"}))
        else:
            await site.create_ad(ad)
    except ValidationError as exc:
        return await _render_ads(request, exc.message, status_code=400)
    except BackendUnavailableError as exc:
        return await _render_ads(request, str(exc), status_code=503)
    return RedirectResponse("/admin/ads", status_code=303)


@router.post("/admin/ads/{ad_id}/toggle")
async def toggle_ad(request: Request, ad_id: str):
    denied = _require(request, "ads:write")
    if denied:
        return denied
    site = get_state(request).site
    ad = await site.get_ad(ad_id)
    if not ad:
        raise NotFoundError(ad_id)
    await site.update_ad(ad_id, {"is_active": not ad.is_active})
    return RedirectResponse("/admin/ads", status_code=303)


@router.post("/admin/ads/{ad_id}/delete")
async def delete_ad(request: Request, ad_id: str):
    denied = _require(request, "ads:write")
    if denied:
        return denied
    await get_state(request).site.delete_ad(ad_id)
    return RedirectResponse("/admin/ads", status_code=303)
