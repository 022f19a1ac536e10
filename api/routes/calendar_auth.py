from __future__ import annotations

import requests
from flask import Blueprint, redirect, request

from config import APP_URL, log
from services.factory import build_token_service
from utils.errors import ServiceError
from utils.json_helpers import jok

calendar_auth_bp = Blueprint("calendar_auth", __name__)

DASHBOARD_CALENDAR = "/dashboard/calendar"


# =========================
# Google Calendar OAuth
# (/api/auth/google/* mirrors /api/calendar/auth/*)
# =========================
@calendar_auth_bp.get("/api/calendar/auth")
@calendar_auth_bp.get("/api/auth/google")
def auth_start():
    callback_path = f"{request.path.rstrip('/')}/callback"
    return redirect(build_token_service(callback_path).authorization_url())


@calendar_auth_bp.get("/api/calendar/auth/callback")
@calendar_auth_bp.get("/api/auth/google/callback")
def auth_callback():
    target = f"{APP_URL}{DASHBOARD_CALENDAR}"
    if request.args.get("error"):
        log.warning("[OAuth] consent error: %s", request.args.get("error"))
        return redirect(f"{target}?calendar_error=oauth_error")

    code = request.args.get("code")
    if not code:
        return redirect(f"{target}?calendar_error=no_code")

    # redirect_uri sent to the token endpoint must equal the one used at consent
    tokens = build_token_service(request.path)
    try:
        tokens.exchange_code(code)
    except (ServiceError, requests.RequestException) as e:
        log.warning("[OAuth] code exchange failed: %s", e)
        return redirect(f"{target}?calendar_error=oauth_failed")
    return redirect(f"{target}?calendar_success=connected")


@calendar_auth_bp.get("/api/calendar/auth/status")
@calendar_auth_bp.get("/api/auth/google/status")
def auth_status():
    return jok(build_token_service().auth_state().public())


@calendar_auth_bp.post("/api/calendar/auth/logout")
@calendar_auth_bp.post("/api/auth/google/logout")
def auth_logout():
    build_token_service().clear()
    return jok({"success": True})
