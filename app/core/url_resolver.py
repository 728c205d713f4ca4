"""
Video URL normalization for the player and download pages.

Every function here is pure and never raises: when a URL cannot be made
sense of, the input comes back unchanged (or ``None`` for id extraction), so
views can render an "invalid source" state instead of failing.
"""
import re
import urllib.parse
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional

from app.core.errors import UnresolvableURLError

YOUTUBE_ID_LEN = 11
YOUTUBE_EMBED_BASE = "https://www.youtube.com/embed/"
DRIVE_VIEW_BASE = "https://drive.google.com/uc?export=view&id="
VIMEO_PLAYER_BASE = "https://player.vimeo.com/video/"
DAILYMOTION_EMBED_BASE = "https://www.dailymotion.com/embed/video/"

DIRECT_VIDEO_EXTS = (".mp4", ".m3u8", ".webm", ".ogv")

YOUTUBE_RE = re.compile(r"^.*(youtu\.be/|/v/|/u/\w/|/embed/|watch\?v=|&v=)([^#&?]*).*")
YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
DRIVE_PATH_RE = re.compile(r"/file/d/([^/?#&]+)")
DRIVE_QUERY_RE = re.compile(r"[?&]id=([^/?#&]+)")
VIMEO_RE = re.compile(r"vimeo\.com/(\d+)")
DAILYMOTION_RE = re.compile(r"dailymotion\.com/video/([^_?/#&]+)")


@dataclass(frozen=True)
class EmbedOptions:
    autoplay: bool = False
    mute: bool = False
    loop: bool = False
    controls: bool = True
    modest_branding: bool = False


HERO_EMBED = EmbedOptions(autoplay=True, mute=True, loop=True, controls=False)


def _clean(url) -> str:
    if not isinstance(url, str):
        return ""
    return url.strip()


def extract_youtube_id(url) -> Optional[str]:
    raw = _clean(url)
    if not raw:
        return None
    match = YOUTUBE_RE.match(raw)
    if not match:
        return None
    video_id = match.group(2)
    if len(video_id) != YOUTUBE_ID_LEN or not YOUTUBE_ID_RE.match(video_id):
        return None
    return video_id


def build_youtube_embed_url(video_id: str, opts: EmbedOptions | None = None) -> str:
    opts = opts or EmbedOptions()
    params: list[tuple[str, str]] = []
    if opts.autoplay:
        params.append(("autoplay", "1"))
    if opts.mute:
        params.append(("mute", "1"))
    if not opts.controls:
        params.append(("controls", "0"))
    if opts.modest_branding:
        params.append(("modestbranding", "1"))
        params.append(("rel", "0"))
    if opts.loop:
        # YouTube only loops a single video when it is also its own playlist.
        params.append(("loop", "1"))
        params.append(("playlist", video_id))
    url = YOUTUBE_EMBED_BASE + video_id
    if params:
        url += "?" + urllib.parse.urlencode(params)
    return url


def is_direct_video(url: str) -> bool:
    raw = _clean(url)
    if not raw:
        return False
    try:
        parsed = urllib.parse.urlparse(raw)
    except ValueError:
        return False
    if "googlevideo.com" in (parsed.netloc or "").lower():
        return True
    return (parsed.path or "").lower().endswith(DIRECT_VIDEO_EXTS)


def drive_file_id(url: str) -> Optional[str]:
    raw = _clean(url)
    match = DRIVE_PATH_RE.search(raw) or DRIVE_QUERY_RE.search(raw)
    return match.group(1) if match else None


def resolve_google_drive_url(url) -> str:
    raw = _clean(url)
    if not raw or is_direct_video(raw):
        return url
    file_id = drive_file_id(raw)
    if not file_id:
        return url
    return DRIVE_VIEW_BASE + file_id


def drive_preview_url(url) -> str:
    """Iframe-friendly ``/preview`` form of a Drive link (rendering only)."""
    raw = _clean(url)
    if "drive.google.com" not in raw or raw.endswith("/preview"):
        return url
    file_id = drive_file_id(raw)
    if not file_id:
        return url
    return f"https://drive.google.com/file/d/{file_id}/preview"


def resolve_vimeo_url(url) -> str:
    match = VIMEO_RE.search(_clean(url))
    if not match:
        return url
    return VIMEO_PLAYER_BASE + match.group(1)


def resolve_dailymotion_url(url) -> str:
    match = DAILYMOTION_RE.search(_clean(url))
    if not match:
        return url
    return DAILYMOTION_EMBED_BASE + match.group(1)


def resolve_youtube_url(url) -> str:
    video_id = extract_youtube_id(url)
    if not video_id:
        return url
    return YOUTUBE_EMBED_BASE + video_id


class Provider(NamedTuple):
    name: str
    matches: Callable[[str], bool]
    resolve: Callable[[str], str]


def _host_has(*needles: str) -> Callable[[str], bool]:
    def check(url: str) -> bool:
        lowered = url.lower()
        return any(needle in lowered for needle in needles)
    return check


# Evaluated top to bottom; the first matching provider wins.
PROVIDERS: tuple[Provider, ...] = (
    Provider("youtube", _host_has("youtube.com", "youtu.be"), resolve_youtube_url),
    Provider("google_drive", _host_has("drive.google.com"), resolve_google_drive_url),
    Provider("vimeo", _host_has("vimeo.com"), resolve_vimeo_url),
    Provider("dailymotion", _host_has("dailymotion.com"), resolve_dailymotion_url),
)


def detect_provider(url) -> str:
    raw = _clean(url)
    if raw:
        for provider in PROVIDERS:
            if provider.matches(raw):
                return provider.name
    return "direct"


def convert_to_embeddable(url) -> str:
    raw = _clean(url)
    if not raw:
        return url
    for provider in PROVIDERS:
        if provider.matches(raw):
            return provider.resolve(raw)
    return url


def normalize_admin_video_url(url: str) -> str:
    """Normalize a video URL typed into the admin form before it is stored."""
    raw = _clean(url)
    if not raw:
        return ""
    if "drive.google.com" in raw.lower() and raw.endswith("/preview"):
        return raw
    provider = detect_provider(raw)
    if provider in ("youtube", "google_drive"):
        return convert_to_embeddable(raw)
    return raw


def player_source(url) -> Optional[str]:
    """Return the iframe/video ``src`` for a stored URL, or ``None`` if unusable."""
    raw = _clean(url)
    if not raw:
        return None
    try:
        parsed = urllib.parse.urlparse(raw)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    provider = detect_provider(raw)
    resolved = convert_to_embeddable(raw)
    if provider == "youtube" and resolved == raw and not extract_youtube_id(raw):
        return None
    if provider == "google_drive" and not is_direct_video(resolved):
        return drive_preview_url(resolved)
    return resolved


def require_player_source(url) -> str:
    source = player_source(url)
    if source is None:
        raise UnresolvableURLError(_clean(url))
    return source
