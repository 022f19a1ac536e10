from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict

from flask import g

from utils.json_helpers import jerror
from utils.session import current_user


# =========================
# Auth helpers
# =========================
def login_required(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Reject the request with a 401 envelope unless a valid auth-token cookie is present."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = current_user()
        if not user:
            return jerror("Not authenticated", 401, "unauthorized")
        g.user = user
        return fn(*args, **kwargs)

    return wrapper


def get_user() -> Dict[str, Any]:
    return g.user


def get_user_id() -> str:
    return str(g.user["id"])
