from __future__ import annotations

import uuid
from typing import Any, Dict, Tuple

from flask import Response, g, jsonify, request


def _request_id() -> str:
    return getattr(g, "request_id", None) or request.headers.get("X-Request-Id") or str(uuid.uuid4())


def jerror(message: str, status: int = 400, code: str = "bad_request") -> Tuple[Response, int]:
    return jsonify({"ok": False, "error": {"code": code, "message": message}, "request_id": _request_id()}), status


def jok(data: Any, status: int = 200) -> Tuple[Response, int]:
    return jsonify({"ok": True, "data": data, "request_id": _request_id()}), status


def json_object() -> Dict[str, Any]:
    """Request body as a dict; anything else (list, string, invalid JSON) reads as empty."""
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}
