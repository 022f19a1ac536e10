from __future__ import annotations

from flask import Blueprint

from services.user_service import list_users, seed_users
from utils.auth_helpers import login_required
from utils.errors import ServiceError
from utils.json_helpers import jerror, jok
from utils.session import current_user

pantry_bp = Blueprint("pantry", __name__)


@pantry_bp.post("/api/pantry/init")
def pantry_init():
    """
    Seed the Pantry user basket from SEED_USERS. Passwords are never returned.

    A fresh install has no users to sign in with, so an empty basket can be
    seeded without a session. Once it holds users, a session is required.
    """
    try:
        if not current_user() and list_users():
            return jerror("Not authenticated", 401, "unauthorized")
        users = seed_users()
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"message": "Pantry initialized successfully", "userCount": len(users), "users": users})


@pantry_bp.get("/api/pantry/init")
@login_required
def pantry_users():
    try:
        users = list_users()
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    return jok({"userCount": len(users), "users": users})
