from __future__ import annotations

from flask import after_this_request, g, request

from clients.google_client import GoogleCalendarClient, GoogleOAuthClient
from config import APP_URL
from services.calendar_service import CalendarService
from services.token_service import TokenService
from storage.token_store import TokenStore


# =========================
# Per-request service construction
# =========================
def request_token_store() -> TokenStore:
    """
    One TokenStore per request, bound to the request cookies. Any staged
    cookie changes are written onto the response on the way out.
    """
    store = getattr(g, "token_store", None)
    if store is not None:
        return store

    store = TokenStore(request.cookies)
    g.token_store = store

    @after_this_request
    def _persist_token_cookies(response):
        if store.dirty:
            store.apply(response)
        return response

    return store


def build_token_service(redirect_path: str = "/api/calendar/auth/callback") -> TokenService:
    oauth = GoogleOAuthClient(redirect_uri=f"{APP_URL}{redirect_path}")
    return TokenService(request_token_store(), oauth)


def build_calendar_service() -> CalendarService:
    return CalendarService(build_token_service(), GoogleCalendarClient())
