from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

import clients.openai_client as openai_client
from config import log

_NUMBERING_RE = re.compile(r"^\d+\.\s*")

GENERIC_SUGGESTIONS = [
    "Review your upcoming calendar events and prepare necessary materials in advance",
    "Consider blocking focused work time between meetings to maintain productivity",
    "Set up automated reminders for important deadlines and recurring tasks",
]

FILLER_SUGGESTIONS = [
    "Review and organize your workspace for optimal productivity",
    "Set up time blocks for deep work without interruptions",
    "Plan tomorrow's priorities before ending your workday",
]


def parse_suggestions(text: str, min_len: int = 10, limit: int = 3) -> List[str]:
    lines = [ln.strip() for ln in (text or "").split("\n") if ln.strip()]
    cleaned = [_NUMBERING_RE.sub("", ln).strip() for ln in lines]
    return [ln for ln in cleaned if len(ln) > min_len][:limit]


def _format_event(event: Dict[str, Any]) -> str:
    raw = event.get("date") or ""
    try:
        when = datetime.fromisoformat(str(raw).replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        when = str(raw)
    return f"{event.get('title') or 'Untitled'} on {when}"


def _build_prompt(tasks: List[str], events: List[Dict[str, Any]], preferences: Dict[str, Any], name: Optional[str]) -> str:
    who = name or "the user"
    return (
        f"You are {who}'s personal AI assistant. Generate 3 helpful and actionable productivity "
        "suggestions based on the current context.\n\n"
        f"Current Tasks: {', '.join(tasks) if tasks else 'No current tasks'}\n\n"
        f"Upcoming Events: {', '.join(_format_event(e) for e in events) if events else 'No upcoming events'}\n\n"
        f"User Preferences: {preferences if preferences else 'Standard preferences'}\n\n"
        "Each suggestion should be specific and actionable. Return one suggestion per line, numbered."
    )


def fallback_suggestions(tasks: List[str], events: List[Dict[str, Any]]) -> List[str]:
    out: List[str] = []
    if events:
        out.append("Prepare materials and agenda items for your upcoming meetings")
    if tasks:
        out.append("Prioritize your current tasks by deadline and importance")
    out.append("Schedule regular breaks to maintain focus and productivity throughout the day")
    for filler in FILLER_SUGGESTIONS:
        if len(out) >= 3:
            break
        out.append(filler)
    return out[:3]


def generate_suggestions(
    tasks: Optional[List[str]] = None,
    events: Optional[List[Dict[str, Any]]] = None,
    preferences: Optional[Dict[str, Any]] = None,
    name: Optional[str] = None,
) -> List[str]:
    tasks = [str(t) for t in (tasks or []) if str(t).strip()]
    events = [e for e in (events or []) if isinstance(e, dict)]
    preferences = preferences or {}

    if not openai_client.client:
        return fallback_suggestions(tasks, events)

    try:
        out = openai_client._chat_complete(
            [{"role": "user", "content": _build_prompt(tasks, events, preferences, name)}],
            temperature=0.8,
            max_tokens=300,
        )
    except Exception:
        log.exception("Error generating AI suggestions")
        return fallback_suggestions(tasks, events)

    return parse_suggestions(out["content"]) or list(GENERIC_SUGGESTIONS)
