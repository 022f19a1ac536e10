from __future__ import annotations

import uuid
from typing import Any, Dict, Iterable, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from config import SEED_USERS, log
from storage.pantry_store import find_user_by_email, get_users, save_users
from utils.errors import ServiceError
from utils.time_helpers import now_iso

MIN_PASSWORD_LENGTH = 6


def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(user.get("id")),
        "email": user.get("email"),
        "name": user.get("name"),
        "createdAt": user.get("createdAt"),
        "updatedAt": user.get("updatedAt"),
    }


def authenticate(email: str, password: str) -> Optional[Dict[str, Any]]:
    if not email or not password:
        raise ServiceError("Email and password are required", 400)
    user = find_user_by_email(email)
    if not user or not user.get("password_hash"):
        return None
    if not check_password_hash(user["password_hash"], password):
        return None
    return user


def change_password(user_id: str, current_password: str, new_password: str) -> None:
    if not current_password or not new_password:
        raise ServiceError("Current password and new password are required", 400)
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ServiceError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long", 400)
    if current_password == new_password:
        raise ServiceError("New password must be different from current password", 400)

    users = get_users()
    for user in users:
        if str(user.get("id")) != str(user_id):
            continue
        if not user.get("password_hash") or not check_password_hash(user["password_hash"], current_password):
            break
        user["password_hash"] = generate_password_hash(new_password)
        user["updatedAt"] = now_iso()
        if not save_users(users):
            raise ServiceError("Current password is incorrect or update failed", 400)
        log.info("[Users] password changed for user=%s", user_id)
        return

    log.info("[Users] password change rejected for user=%s", user_id)
    raise ServiceError("Current password is incorrect or update failed", 400)


def list_users() -> List[Dict[str, Any]]:
    return [public_user(u) for u in get_users()]


def seed_users(seed: Optional[Iterable[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    """
    Add configured users (SEED_USERS) whose email is not in the basket yet.
    Passwords are stored hashed.
    """
    users = get_users()
    known = {(u.get("email") or "").lower() for u in users}
    added = 0
    for entry in (SEED_USERS if seed is None else seed):
        email = (entry.get("email") or "").strip()
        password = entry.get("password") or ""
        if not email or not password or email.lower() in known:
            continue
        now = now_iso()
        users.append({
            "id": str(entry.get("id") or uuid.uuid4()),
            "email": email,
            "name": entry.get("name") or email.split("@")[0],
            "password_hash": generate_password_hash(password),
            "createdAt": now,
            "updatedAt": now,
        })
        known.add(email.lower())
        added += 1

    if added:
        if not save_users(users):
            raise ServiceError("Failed to initialize Pantry", 500)
        log.info("[Users] seeded %d users", added)
    return [public_user(u) for u in users]
