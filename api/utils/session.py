from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Response, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from config import COOKIE_SECURE, SESSION_COOKIE_NAME, SESSION_MAX_AGE_SECS, SESSION_SECRET, log

_SALT = "aide.auth-token"


# =========================
# Signed app session (auth-token cookie)
# =========================
def _serializer(secret: Optional[str] = None) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret or SESSION_SECRET, salt=_SALT)


def encode_session(user: Dict[str, Any], secret: Optional[str] = None) -> str:
    payload = {
        "id": str(user.get("id") or ""),
        "email": user.get("email") or "",
        "name": user.get("name") or "",
    }
    return _serializer(secret).dumps(payload)


def decode_session(
    token: str,
    secret: Optional[str] = None,
    max_age: Optional[int] = None,
) -> Optional[Dict[str, Any]]:
    """Returns the session user, or None if the token is tampered with or too old."""
    if not token:
        return None
    try:
        payload = _serializer(secret).loads(token, max_age=max_age or SESSION_MAX_AGE_SECS)
    except SignatureExpired:
        return None
    except BadSignature:
        log.warning("[Session] rejected auth-token with bad signature")
        return None
    if not isinstance(payload, dict) or not payload.get("id"):
        return None
    return payload


def set_session_cookie(response: Response, user: Dict[str, Any]) -> Response:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        encode_session(user),
        max_age=SESSION_MAX_AGE_SECS,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="Lax",
        path="/",
    )
    return response


def clear_session_cookie(response: Response) -> Response:
    response.delete_cookie(SESSION_COOKIE_NAME, path="/", httponly=True, secure=COOKIE_SECURE, samesite="Lax")
    return response


def current_user() -> Optional[Dict[str, Any]]:
    return decode_session(request.cookies.get(SESSION_COOKIE_NAME, ""))
