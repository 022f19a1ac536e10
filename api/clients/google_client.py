from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote, urlencode

import requests

from config import (
    APP_URL,
    GOOGLE_AUTH_URL,
    GOOGLE_CAL_BASE,
    GOOGLE_CALENDAR_SCOPE,
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REDIRECT_PATH,
    GOOGLE_TOKEN_URL,
    HTTP_TIMEOUT_SECS,
    log,
)
from utils.errors import RefreshRevokedError, TokenExchangeError, TokenRefreshError


def _error_body(resp) -> Dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {"error": f"http_{resp.status_code}", "error_description": (resp.text or "")[:200]}
    return body if isinstance(body, dict) else {}


# =========================
# Google OAuth (token endpoint)
# =========================
class GoogleOAuthClient:
    """
    Thin wrapper over Google's OAuth 2.0 authorization + token endpoints.
    `http` is anything with a requests-style `post` (the requests module by default).
    """

    def __init__(
        self,
        http: Any = None,
        client_id: str = GOOGLE_CLIENT_ID,
        client_secret: str = GOOGLE_CLIENT_SECRET,
        redirect_uri: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT_SECS,
    ) -> None:
        self.http = http or requests
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri or f"{APP_URL}{GOOGLE_REDIRECT_PATH}"
        self.timeout = timeout

    def authorization_url(self, scope: str = GOOGLE_CALENDAR_SCOPE, state: Optional[str] = None) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": scope,
            "response_type": "code",
            "access_type": "offline",
            "prompt": "consent",
        }
        if state:
            params["state"] = state
        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    def _post_token(self, form: Dict[str, str]):
        return self.http.post(
            GOOGLE_TOKEN_URL,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=self.timeout,
        )

    def exchange_code(self, code: str) -> Dict[str, Any]:
        resp = self._post_token({
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self.redirect_uri,
        })
        if resp.status_code >= 400:
            err = _error_body(resp)
            raise TokenExchangeError(
                f"Token exchange failed: {err.get('error_description') or err.get('error')}"
            )
        return resp.json()

    def refresh(self, refresh_token: str) -> Dict[str, Any]:
        """
        Mint a new access token. Raises RefreshRevokedError on invalid_grant,
        TokenRefreshError on anything else.
        """
        try:
            resp = self._post_token({
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            })
        except requests.RequestException as e:
            raise TokenRefreshError(f"Token refresh failed: {e}") from e

        if resp.status_code >= 400:
            err = _error_body(resp)
            detail = err.get("error_description") or err.get("error")
            if err.get("error") == "invalid_grant":
                raise RefreshRevokedError(f"Token refresh failed: {detail}")
            log.warning("[Tokens] refresh rejected status=%s error=%s", resp.status_code, err.get("error"))
            raise TokenRefreshError(f"Token refresh failed: {detail}")
        return resp.json()


# =========================
# Google Calendar REST
# =========================
class GoogleCalendarClient:
    """Bearer-authenticated calls against calendar v3; returns the raw response."""

    def __init__(self, http: Any = None, base_url: str = GOOGLE_CAL_BASE, timeout: float = HTTP_TIMEOUT_SECS) -> None:
        self.http = http or requests
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @staticmethod
    def event_path(event_id: Optional[str] = None, calendar_id: str = "primary") -> str:
        path = f"/calendars/{quote(calendar_id, safe='')}/events"
        if event_id:
            path = f"{path}/{quote(event_id, safe='')}"
        return path

    def request(
        self,
        method: str,
        access_token: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ):
        headers = {"Authorization": f"Bearer {access_token}"}
        if json_body is not None:
            headers["Content-Type"] = "application/json"
        return self.http.request(
            method,
            f"{self.base_url}{path}",
            headers=headers,
            params=params,
            json=json_body,
            timeout=self.timeout,
        )
