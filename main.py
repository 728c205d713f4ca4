import os
import asyncio
import logging
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from contextlib import asynccontextmanager
from typing import Awaitable, Callable

from app.core.config import settings
from app.core.errors import BackendUnavailableError, NotFoundError
from app.core.state import AppState
from app.db.models import init_db
from app.routes import admin, catalog

# Prefer uvloop for faster asyncio if available
try:
    import uvloop
    asyncio.set_event_loop_policy(uvloop.EventLoopPolicy())
except Exception:
    pass

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


async def _init_db_with_retry():
    attempts = max(1, _env_int("DB_INIT_ATTEMPTS", 5))
    delay_sec = max(0.5, _env_float("DB_INIT_DELAY_SEC", 2.0))
    for attempt in range(1, attempts + 1):
        try:
            client = await init_db()
            if attempt > 1:
                logger.info("MongoDB connected on attempt %s/%s", attempt, attempts)
            return client
        except Exception as exc:
            if attempt >= attempts:
                logger.exception("MongoDB init failed after %s attempt(s).", attempts)
                raise
            logger.warning(
                "MongoDB init attempt %s/%s failed: %s. Retrying in %.1fs.",
                attempt,
                attempts,
                exc,
                delay_sec,
            )
            await asyncio.sleep(delay_sec)


async def _safe_shutdown(name: str, fn: Callable[[], Awaitable[None]], timeout_sec: float = 15.0) -> None:
    try:
        await asyncio.wait_for(fn(), timeout=timeout_sec)
    except asyncio.TimeoutError:
        logger.warning("%s shutdown timed out after %.1fs", name, timeout_sec)
    except Exception:
        logger.exception("%s shutdown failed", name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    client = await _init_db_with_retry()
    portal = AppState.from_settings(settings)
    app.state.portal = portal
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD is not set; the admin console will reject every login.")
    try:
        yield
    finally:
        await _safe_shutdown("Download gates", portal.close)
        client.close()

app = FastAPI(title="Mflix Entertainment HUB", lifespan=lifespan)
templates = Jinja2Templates(directory="app/templates")

static_dir = "app/static"
if not os.path.exists(static_dir):
    os.makedirs(static_dir)

app.mount("/static", StaticFiles(directory=static_dir), name="static")


def _wants_json(request: Request) -> bool:
    path = request.url.path
    return path.startswith("/api/") or path.endswith("/gate") or "/gate/" in path


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    if _wants_json(request):
        return JSONResponse({"error": "Not found"}, status_code=404)
    return templates.TemplateResponse(request, "not_found.html", {"request": request}, status_code=404)


@app.exception_handler(BackendUnavailableError)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError):
    if _wants_json(request):
        return JSONResponse({"error": str(exc)}, status_code=503)
    return templates.TemplateResponse(request, "unavailable.html", {
        "request": request,
        "message": f"{exc}. Please try again shortly.",
    }, status_code=503)


@app.get('/favicon.ico', include_in_schema=False)
async def favicon(request: Request):
    portal = getattr(request.app.state, "portal", None)
    if portal:
        try:
            branding = await portal.site.get_branding()
            if branding.favicon_url:
                return RedirectResponse(branding.favicon_url)
        except BackendUnavailableError:
            pass
    icon_path = os.path.join(static_dir, "favicon.png")
    if os.path.exists(icon_path):
        return FileResponse(icon_path)
    return Response(status_code=204)

app.include_router(catalog.router)
app.include_router(admin.router)

if __name__ == "__main__":
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "").lower() in ("1", "true", "yes")
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=reload)
