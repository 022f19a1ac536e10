from __future__ import annotations

from flask import Blueprint, request
from pydantic import ValidationError

from config import log
from schemas.calendar import CreateEventData, UpdateEventData
from services.calendar_agent_service import run_calendar_agent
from services.factory import build_calendar_service
from utils.auth_helpers import login_required
from utils.errors import ServiceError
from utils.json_helpers import jerror, jok, json_object

calendar_bp = Blueprint("calendar", __name__)


def _validation_message(e: ValidationError) -> str:
    first = e.errors()[0] if e.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()))
    return f"Invalid event data: {field} {first.get('msg', '')}".strip()


# =========================
# Events
# =========================
@calendar_bp.get("/api/calendar/events")
@login_required
def events_list():
    time_min = request.args.get("timeMin") or None
    time_max = request.args.get("timeMax") or None
    try:
        events = build_calendar_service().list_events(time_min, time_max)
        return jok({"events": [e.to_dict() for e in events], "count": len(events)})
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)


@calendar_bp.post("/api/calendar/events")
@login_required
def events_create():
    data = json_object()
    try:
        payload = CreateEventData.model_validate(data)
    except ValidationError as e:
        return jerror(_validation_message(e), 400)
    try:
        event = build_calendar_service().create_event(payload)
        return jok({"event": event.to_dict()}, 201)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)


@calendar_bp.get("/api/calendar/events/<event_id>")
@login_required
def events_get(event_id: str):
    try:
        return jok({"event": build_calendar_service().get_event(event_id).to_dict()})
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)


@calendar_bp.put("/api/calendar/events/<event_id>")
@login_required
def events_update(event_id: str):
    data = json_object()
    try:
        payload = UpdateEventData.model_validate(data)
    except ValidationError as e:
        return jerror(_validation_message(e), 400)
    try:
        event = build_calendar_service().update_event(event_id, payload)
        return jok({"event": event.to_dict()})
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)


@calendar_bp.delete("/api/calendar/events/<event_id>")
@login_required
def events_delete(event_id: str):
    try:
        deleted = build_calendar_service().delete_event(event_id)
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    if not deleted:
        return jerror("Failed to delete calendar event", 502, "calendar_error")
    return jok({"success": True})


# =========================
# Calendar AI agent
# =========================
@calendar_bp.post("/api/calendar/ai")
@login_required
def calendar_ai():
    """
    Natural-language calendar assistant.
    Body: { message: string }
    """
    data = json_object()
    message = (data.get("message") or "").strip()
    if not message:
        return jerror("Missing 'message' in request body.", 400)
    try:
        return jok(run_calendar_agent(message, build_calendar_service()))
    except ServiceError as e:
        return jerror(e.message, e.status, e.code)
    except Exception:
        log.exception("calendar_ai failed")
        return jerror("Failed to process calendar request", 500, "internal_error")
