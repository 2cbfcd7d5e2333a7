"""Bearer session tokens: signed payload (HMAC) with expiry."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import time
from typing import Optional

from pydantic import BaseModel

from .models import User

DEFAULT_TTL_SECONDS = 24 * 3600  # 24 hours


class SessionUser(BaseModel):
    """Identity carried by a verified token."""

    id: str
    username: str
    name: str


def _b64_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64_decode(s: str) -> bytes:
    pad = 4 - (len(s) % 4)
    if pad != 4:
        s += "=" * pad
    return base64.urlsafe_b64decode(s)


def _sign(payload_bytes: bytes, secret: str) -> str:
    sig = hmac.new(secret.encode("utf-8"), payload_bytes, hashlib.sha256).digest()
    return _b64_encode(sig)


def create_token(
    user: User,
    secret: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    now: Optional[float] = None,
) -> str:
    """Build token value: base64(payload).base64(hmac)."""
    if not secret:
        raise ValueError("A signing secret is required to issue tokens")
    issued = int(now if now is not None else time.time())
    payload = {
        "id": user.id,
        "username": user.username,
        "name": user.display_name,
        "exp": issued + ttl_seconds,
    }
    payload_bytes = json.dumps(payload, sort_keys=True).encode("utf-8")
    return f"{_b64_encode(payload_bytes)}.{_sign(payload_bytes, secret)}"


def verify_token(
    token: Optional[str], secret: str, now: Optional[float] = None
) -> Optional[SessionUser]:
    """
    Verify signed token; return the session identity if valid and not expired, else None.
    """
    if not token or not secret:
        return None
    parts = token.split(".")
    if len(parts) != 2:
        return None
    try:
        payload_bytes = _b64_decode(parts[0])
        if not hmac.compare_digest(_sign(payload_bytes, secret), parts[1]):
            return None
        payload = json.loads(payload_bytes.decode("utf-8"))
        expiry = payload.get("exp")
        if expiry is None:
            return None
        current = now if now is not None else time.time()
        if int(current) > int(expiry):
            return None
        return SessionUser(
            id=payload["id"], username=payload["username"], name=payload["name"]
        )
    except (ValueError, KeyError, TypeError, AttributeError):
        return None
