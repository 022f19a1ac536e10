from __future__ import annotations

import itertools
import time
from collections import deque
from threading import Lock
from typing import Any, Deque, Dict, List, Optional

from config import DEBUG_CONSOLE_ENABLED, DEBUG_EVENTS_MAX

_LOCK = Lock()
_EVENTS: Deque[Dict[str, Any]] = deque(maxlen=DEBUG_EVENTS_MAX)
_IDS = itertools.count(1)


def debug_enabled() -> bool:
    return bool(DEBUG_CONSOLE_ENABLED)


def record_event(
    category: str,
    message: str,
    *,
    data: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
    level: str = "info",
) -> Dict[str, Any]:
    """Append an event to the in-memory ring buffer behind /debug/events."""
    if not debug_enabled():
        return {}
    with _LOCK:
        event = {
            "id": next(_IDS),
            "ts": time.time(),
            "level": level,
            "category": category,
            "message": message,
            "request_id": request_id or "",
            "data": data or {},
        }
        _EVENTS.append(event)
    return event


def list_events(since_id: int = 0, category: Optional[str] = None) -> List[Dict[str, Any]]:
    with _LOCK:
        events = [e for e in _EVENTS if e["id"] > since_id]
    if category:
        events = [e for e in events if e["category"] == category]
    return events


def clear_events() -> None:
    with _LOCK:
        _EVENTS.clear()
