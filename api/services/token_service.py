from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from clients.google_client import GoogleOAuthClient
from config import TOKEN_REFRESH_BUFFER_SECS, log
from storage.token_store import TokenStore, now_ms
from utils.errors import NotAuthenticatedError, RefreshRevokedError, TokenExchangeError, TokenRefreshError
from utils.debug_events import record_event
from utils.single_flight import SingleFlight

# One gate per process: concurrent requests carrying the same refresh token
# share a single call to the token endpoint.
_REFRESH_FLIGHT = SingleFlight()


@dataclass
class AuthState:
    isAuthenticated: bool
    accessToken: Optional[str]
    refreshToken: Optional[str]
    expiresAt: Optional[int]

    def public(self) -> Dict[str, Any]:
        """Connection status for the browser, without the raw token values."""
        return {
            "isAuthenticated": self.isAuthenticated,
            "expiresAt": self.expiresAt,
            "hasRefreshToken": bool(self.refreshToken),
        }


def get_auth_state(store: TokenStore, clock: Callable[[], int] = now_ms) -> AuthState:
    tokens = store.get()
    authed = bool(tokens.access_token) and (tokens.expires_at is None or tokens.expires_at > clock())
    return AuthState(
        isAuthenticated=authed,
        accessToken=tokens.access_token,
        refreshToken=tokens.refresh_token,
        expiresAt=tokens.expires_at,
    )


class TokenRefresher:
    def __init__(
        self,
        store: TokenStore,
        oauth: GoogleOAuthClient,
        flight: Optional[SingleFlight] = None,
    ) -> None:
        self.store = store
        self.oauth = oauth
        self.flight = flight or _REFRESH_FLIGHT

    def refresh(self) -> str:
        refresh_token = self.store.get().refresh_token
        if not refresh_token:
            raise NotAuthenticatedError("No refresh token available. Please reconnect Google Calendar.")

        try:
            tokens = self.flight.do(refresh_token, lambda: self.oauth.refresh(refresh_token))
        except RefreshRevokedError:
            log.warning("[Tokens] refresh token revoked; clearing stored tokens")
            self.store.clear()
            record_event("tokens", "refresh revoked", level="warn")
            raise

        access_token = tokens.get("access_token")
        if not access_token:
            raise TokenRefreshError("Token refresh failed: response had no access_token")
        # Refresh token stays as-is.
        self.store.set(access_token, None, int(tokens.get("expires_in") or 3600))
        log.info("[Tokens] access token refreshed")
        record_event("tokens", "refreshed", data={"expires_in": tokens.get("expires_in")})
        return access_token


class TokenService:
    """Google token lifecycle for one request: state, code exchange, ensure-valid."""

    def __init__(
        self,
        store: TokenStore,
        oauth: GoogleOAuthClient,
        refresher: Optional[TokenRefresher] = None,
        clock: Callable[[], int] = now_ms,
        buffer_secs: int = TOKEN_REFRESH_BUFFER_SECS,
    ) -> None:
        self.store = store
        self.oauth = oauth
        self.refresher = refresher or TokenRefresher(store, oauth)
        self.clock = clock
        self.buffer_ms = buffer_secs * 1000

    def auth_state(self) -> AuthState:
        return get_auth_state(self.store, self.clock)

    def authorization_url(self, state: Optional[str] = None) -> str:
        return self.oauth.authorization_url(state=state)

    def exchange_code(self, code: str) -> None:
        tokens = self.oauth.exchange_code(code)
        if not tokens.get("access_token"):
            raise TokenExchangeError("Token exchange failed: response had no access_token")
        self.store.set(
            tokens["access_token"],
            tokens.get("refresh_token"),
            int(tokens.get("expires_in") or 3600),
        )
        log.info("[Tokens] stored tokens from code exchange (refresh_token=%s)", bool(tokens.get("refresh_token")))

    def clear(self) -> None:
        self.store.clear()

    def refresh(self) -> str:
        return self.refresher.refresh()

    def ensure_valid_token(self) -> str:
        tokens = self.store.get()

        if not tokens.access_token and not tokens.refresh_token:
            raise NotAuthenticatedError()

        expiring = tokens.expires_at is not None and tokens.expires_at - self.clock() < self.buffer_ms
        # The access cookie ages out with the token, so a missing access
        # token next to a refresh token is the already-expired case.
        if expiring or not tokens.access_token:
            self.refresher.refresh()
            fresh = self.store.get().access_token
            if not fresh:
                raise TokenRefreshError("Failed to refresh access token")
            return fresh

        return tokens.access_token
