from typing import Any, Dict, List, Optional
from urllib.parse import unquote, urlparse

from clients.google_client import GoogleCalendarClient, GoogleOAuthClient
from services.calendar_service import CalendarService
from services.token_service import TokenRefresher, TokenService
from storage.token_store import (
    ACCESS_TOKEN_COOKIE,
    EXPIRES_AT_COOKIE,
    REFRESH_TOKEN_COOKIE,
    TokenStore,
)
from utils.single_flight import SingleFlight

NOW_MS = 1_700_000_000_000


class FakeResponse:
    def __init__(self, status_code: int, body: Any = None):
        self.status_code = status_code
        self._body = body
        self.text = "" if body is None else str(body)

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeGoogle:
    """
    In-memory stand-in for Google's token endpoint and calendar v3 events API.
    Accepts the same calls requests does (`post` and `request`).
    """

    def __init__(self):
        self.events: Dict[str, Dict[str, Any]] = {}
        self.valid_tokens = {"access-0"}
        self.refresh_calls = 0
        self.token_posts: List[Dict[str, Any]] = []
        self.api_calls: List[Dict[str, Any]] = []
        self.revoked = False
        self.force_401 = 0
        self._next_id = 0

    # token endpoint
    def post(self, url, data=None, headers=None, timeout=None):
        self.token_posts.append(dict(data or {}))
        grant = (data or {}).get("grant_type")
        if grant == "refresh_token":
            self.refresh_calls += 1
            if self.revoked:
                return FakeResponse(400, {"error": "invalid_grant", "error_description": "Token has been revoked."})
            token = f"access-{self.refresh_calls}"
            self.valid_tokens.add(token)
            return FakeResponse(200, {"access_token": token, "expires_in": 3600, "token_type": "Bearer"})
        if grant == "authorization_code":
            if data.get("code") != "good-code":
                return FakeResponse(400, {"error": "invalid_grant", "error_description": "Bad code"})
            self.valid_tokens.add("access-from-code")
            return FakeResponse(
                200,
                {"access_token": "access-from-code", "refresh_token": "refresh-from-code", "expires_in": 3599},
            )
        return FakeResponse(400, {"error": "unsupported_grant_type"})

    # calendar v3
    def request(self, method, url, headers=None, params=None, json=None, timeout=None):
        token = (headers or {}).get("Authorization", "").replace("Bearer ", "")
        self.api_calls.append({"method": method, "url": url, "token": token, "params": params, "json": json})
        if self.force_401 > 0:
            self.force_401 -= 1
            return FakeResponse(401, {"error": {"code": 401, "message": "Invalid Credentials"}})
        if token not in self.valid_tokens:
            return FakeResponse(401, {"error": {"code": 401, "message": "Invalid Credentials"}})

        parts = urlparse(url).path.split("/events")
        event_id = unquote(parts[1].lstrip("/")) if len(parts) > 1 and parts[1] else None

        if method == "GET" and not event_id:
            items = sorted(self.events.values(), key=lambda e: e["start"].get("dateTime") or e["start"].get("date") or "")
            return FakeResponse(200, {"items": items})
        if method == "POST":
            self._next_id += 1
            event = {"id": f"evt{self._next_id}", "status": "confirmed", **json}
            self.events[event["id"]] = event
            return FakeResponse(200, event)
        if event_id not in self.events:
            return FakeResponse(404, {"error": {"code": 404, "message": "Not Found"}})
        if method == "GET":
            return FakeResponse(200, self.events[event_id])
        if method == "PUT":
            self.events[event_id] = {"id": event_id, **json}
            return FakeResponse(200, self.events[event_id])
        if method == "DELETE":
            del self.events[event_id]
            return FakeResponse(204)
        return FakeResponse(405)


def make_store(
    access: Optional[str] = "access-0",
    refresh: Optional[str] = "refresh-1",
    expires_in_ms: Optional[int] = 60 * 60 * 1000,
) -> TokenStore:
    cookies = {}
    if access:
        cookies[ACCESS_TOKEN_COOKIE] = access
    if refresh:
        cookies[REFRESH_TOKEN_COOKIE] = refresh
    if expires_in_ms is not None:
        cookies[EXPIRES_AT_COOKIE] = str(NOW_MS + expires_in_ms)
    return TokenStore(cookies, clock=lambda: NOW_MS, secure=False)


def make_token_service(store: TokenStore, google: FakeGoogle) -> TokenService:
    oauth = GoogleOAuthClient(http=google, client_id="cid", client_secret="secret", redirect_uri="http://x/cb")
    return TokenService(store, oauth, refresher=TokenRefresher(store, oauth, SingleFlight()), clock=lambda: NOW_MS)


def make_calendar(store: TokenStore, google: FakeGoogle) -> CalendarService:
    return CalendarService(make_token_service(store, google), GoogleCalendarClient(http=google, base_url="https://cal.test/v3"))
