import base64
import hashlib
import hmac
import json
import time
from typing import Any, Optional

ADMIN_COOKIE = "mflix_admin"
ADMIN_SUBJECT = "admin"

ACTIONS = frozenset({"admin:view", "catalog:write", "settings:write", "ads:write"})


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    pad = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode((data + pad).encode("ascii"))


def _now_ts() -> int:
    return int(time.time())


def sign_payload(payload: dict[str, Any], secret: str) -> str:
    body = _b64url_encode(json.dumps(payload, separators=(",", ":"), ensure_ascii=True).encode("utf-8"))
    sig = hmac.new(secret.encode("utf-8"), body.encode("ascii"), hashlib.sha256).digest()
    return f"{body}.{_b64url_encode(sig)}"


def verify_payload(token: str, secret: str) -> dict[str, Any] | None:
    raw = (token or "").strip()
    if "." not in raw:
        return None
    body_part, sig_part = raw.split(".", 1)
    try:
        calc = hmac.new(secret.encode("utf-8"), body_part.encode("ascii"), hashlib.sha256).digest()
        sig = _b64url_decode(sig_part)
    except Exception:
        return None
    if not hmac.compare_digest(calc, sig):
        return None
    try:
        payload = json.loads(_b64url_decode(body_part).decode("utf-8"))
    except Exception:
        return None
    if not isinstance(payload, dict):
        return None
    try:
        exp = int(payload.get("exp") or 0)
    except (TypeError, ValueError):
        return None
    if exp and _now_ts() > exp:
        return None
    return payload


class AdminPolicy:
    """
    Capability checks for the admin console.

    The console has a single shared password; a successful login issues a
    signed, expiring session token whose subject is granted every admin action.
    """

    def __init__(self, password: str, secret: str, session_hours: int = 12):
        self.password = password or ""
        self.secret = secret
        self.session_sec = max(1, int(session_hours)) * 3600

    def check_password(self, candidate: str) -> bool:
        if not self.password:
            return False
        return hmac.compare_digest((candidate or "").encode("utf-8"), self.password.encode("utf-8"))

    def issue_token(self, subject: str = ADMIN_SUBJECT) -> str:
        return sign_payload({"sub": subject, "exp": _now_ts() + self.session_sec}, self.secret)

    def subject_from_token(self, token: str | None) -> Optional[str]:
        payload = verify_payload(token or "", self.secret)
        if not payload:
            return None
        return str(payload.get("sub") or "") or None

    def is_authorized(self, subject: str | None, action: str) -> bool:
        return subject == ADMIN_SUBJECT and action in ACTIONS
