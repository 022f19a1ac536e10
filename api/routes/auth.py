from __future__ import annotations

from flask import Blueprint

from services.user_service import authenticate, change_password, public_user
from utils.auth_helpers import get_user_id, login_required
from utils.errors import ServiceError
from utils.json_helpers import jerror, jok, json_object
from utils.session import clear_session_cookie, current_user, set_session_cookie

auth_bp = Blueprint("auth", __name__)


# =========================
# App login (auth-token session)
# =========================
@auth_bp.post("/api/auth/login")
def login():
    data = json_object()
    email = (data.get("email") or "").strip()
    password = data.get("password") or ""
    try:
        user = authenticate(email, password)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    if not user:
        return jerror("Invalid email or password", 401, "unauthorized")

    profile = public_user(user)
    resp, status = jok({"user": {"id": profile["id"], "email": profile["email"], "name": profile["name"]}})
    set_session_cookie(resp, profile)
    return resp, status


@auth_bp.post("/api/auth/logout")
def logout():
    resp, status = jok({"success": True})
    clear_session_cookie(resp)
    return resp, status


@auth_bp.get("/api/auth/me")
def me():
    user = current_user()
    if not user:
        return jerror("Not authenticated", 401, "unauthorized")
    return jok({"user": user})


@auth_bp.post("/api/auth/change-password")
@login_required
def change_password_route():
    data = json_object()
    try:
        change_password(
            get_user_id(),
            data.get("currentPassword") or "",
            data.get("newPassword") or "",
        )
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"success": True, "message": "Password changed successfully"})
