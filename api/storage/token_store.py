from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional, Tuple

from config import COOKIE_SECURE, REFRESH_COOKIE_MAX_AGE

ACCESS_TOKEN_COOKIE = "google_access_token"
REFRESH_TOKEN_COOKIE = "google_refresh_token"
EXPIRES_AT_COOKIE = "google_expires_at"

TOKEN_COOKIES = (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, EXPIRES_AT_COOKIE)


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class StoredTokens:
    access_token: Optional[str]
    refresh_token: Optional[str]
    expires_at: Optional[int]  # epoch ms


def _parse_expires_at(raw: Optional[str]) -> Optional[int]:
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


class TokenStore:
    """
    Google OAuth tokens kept in three http-only cookies.

    Reads come from the incoming request cookies. Writes are staged so that
    a later get() in the same request sees them, and are copied onto the
    outgoing response by apply().
    """

    def __init__(
        self,
        cookies: Mapping[str, str],
        clock: Callable[[], int] = now_ms,
        secure: bool = COOKIE_SECURE,
    ) -> None:
        self._cookies = dict(cookies or {})
        self._clock = clock
        self._secure = secure
        # name -> (value, max_age); value None means delete
        self._pending: Dict[str, Tuple[Optional[str], int]] = {}

    def _read(self, name: str) -> Optional[str]:
        if name in self._pending:
            return self._pending[name][0]
        return self._cookies.get(name) or None

    def get(self) -> StoredTokens:
        return StoredTokens(
            access_token=self._read(ACCESS_TOKEN_COOKIE),
            refresh_token=self._read(REFRESH_TOKEN_COOKIE),
            expires_at=_parse_expires_at(self._read(EXPIRES_AT_COOKIE)),
        )

    def set(self, access_token: str, refresh_token: Optional[str], expires_in: int) -> None:
        expires_in = int(expires_in)
        expires_at = self._clock() + expires_in * 1000
        self._pending[ACCESS_TOKEN_COOKIE] = (access_token, expires_in)
        if refresh_token:
            self._pending[REFRESH_TOKEN_COOKIE] = (refresh_token, REFRESH_COOKIE_MAX_AGE)
        self._pending[EXPIRES_AT_COOKIE] = (str(expires_at), expires_in)

    def clear(self) -> None:
        for name in TOKEN_COOKIES:
            self._pending[name] = (None, 0)

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    def apply(self, response):
        """Write staged cookie changes onto a Flask/Werkzeug response."""
        for name, (value, max_age) in self._pending.items():
            if value is None:
                response.delete_cookie(name, path="/", httponly=True, secure=self._secure, samesite="Lax")
            else:
                response.set_cookie(
                    name,
                    value,
                    max_age=max_age,
                    httponly=True,
                    secure=self._secure,
                    samesite="Lax",
                    path="/",
                )
        return response
