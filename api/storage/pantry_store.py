from __future__ import annotations

from typing import Any, Dict, List, Optional

import requests

from config import PANTRY_BASKET, PANTRY_ID, PANTRY_TIMEOUT_SECS, log
from utils.errors import ServiceError

PANTRY_BASE = "https://getpantry.cloud/apiv1/pantry"


def pantry_enabled() -> bool:
    return bool(PANTRY_ID)


def _basket_url() -> str:
    return f"{PANTRY_BASE}/{PANTRY_ID}/basket/{PANTRY_BASKET}"


def get_users() -> List[Dict[str, Any]]:
    """All users in the basket. A missing basket (Pantry answers 400) is an empty list."""
    if not pantry_enabled():
        raise ServiceError("Pantry not configured", 500, "no_store")
    resp = requests.get(_basket_url(), headers={"Content-Type": "application/json"}, timeout=PANTRY_TIMEOUT_SECS)
    if resp.status_code == 400:
        return []
    if resp.status_code >= 400:
        log.warning("Pantry get_users failed: %s %s", resp.status_code, resp.text)
        raise ServiceError(f"Pantry error: status {resp.status_code}", 502, "store_error")
    users = (resp.json() or {}).get("users")
    return users if isinstance(users, list) else []


def save_users(users: List[Dict[str, Any]]) -> bool:
    if not pantry_enabled():
        raise ServiceError("Pantry not configured", 500, "no_store")
    # POST replaces the whole basket.
    resp = requests.post(
        _basket_url(),
        json={"users": users},
        headers={"Content-Type": "application/json"},
        timeout=PANTRY_TIMEOUT_SECS,
    )
    if resp.status_code >= 400:
        log.warning("Pantry save_users failed: %s %s", resp.status_code, resp.text)
        return False
    return True


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    needle = (email or "").strip().lower()
    for user in get_users():
        if (user.get("email") or "").lower() == needle:
            return user
    return None
