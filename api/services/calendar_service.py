from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Union

from clients.google_client import GoogleCalendarClient
from config import DEFAULT_TIMEZONE, log
from schemas.calendar import CalendarEvent, CreateEventData, UpdateEventData
from services.token_service import TokenService
from utils.debug_events import record_event
from utils.errors import CalendarApiError

LIST_MAX_RESULTS = 50

DEFAULT_REMINDERS: Dict[str, Any] = {
    "useDefault": False,
    "overrides": [
        {"method": "email", "minutes": 2880},
        {"method": "sms", "minutes": 2880},
        {"method": "email", "minutes": 1440},
        {"method": "sms", "minutes": 1440},
        {"method": "email", "minutes": 60},
        {"method": "popup", "minutes": 15},
    ],
}


# =========================
# Google <-> local event shape
# =========================
def _event_time(raw: Optional[Dict[str, Any]], default_tz: Optional[str]) -> Dict[str, Any]:
    raw = raw or {}
    return {
        "dateTime": raw.get("dateTime") or raw.get("date"),
        "timeZone": raw.get("timeZone") or default_tz,
    }


def to_calendar_event(item: Dict[str, Any], *, untitled: Optional[str] = None, default_tz: Optional[str] = None) -> CalendarEvent:
    attendees = item.get("attendees")
    return CalendarEvent(
        id=item.get("id") or "",
        title=item.get("summary") or untitled,
        description=item.get("description"),
        start=_event_time(item.get("start"), default_tz),
        end=_event_time(item.get("end"), default_tz),
        location=item.get("location"),
        attendees=[
            {"email": a.get("email"), "displayName": a.get("displayName")}
            for a in attendees
        ] if attendees else None,
        status=item.get("status"),
        created=item.get("created"),
        updated=item.get("updated"),
        reminders=item.get("reminders"),
    )


def build_google_event(data: CreateEventData) -> Dict[str, Any]:
    tz = data.timeZone or DEFAULT_TIMEZONE
    body: Dict[str, Any] = {
        "summary": data.title,
        "start": {"dateTime": data.startDateTime, "timeZone": tz},
        "end": {"dateTime": data.endDateTime, "timeZone": tz},
        "reminders": data.reminders.model_dump(exclude_none=True) if data.reminders else DEFAULT_REMINDERS,
    }
    if data.description:
        body["description"] = data.description
    if data.location:
        body["location"] = data.location
    if data.attendees:
        body["attendees"] = [{"email": email} for email in data.attendees]
    return body


def build_google_patch(data: UpdateEventData) -> Dict[str, Any]:
    """Only the fields the caller actually provided."""
    tz = data.timeZone or DEFAULT_TIMEZONE
    body: Dict[str, Any] = {}
    if data.title:
        body["summary"] = data.title
    if data.description:
        body["description"] = data.description
    if data.startDateTime:
        body["start"] = {"dateTime": data.startDateTime, "timeZone": tz}
    if data.endDateTime:
        body["end"] = {"dateTime": data.endDateTime, "timeZone": tz}
    if data.location:
        body["location"] = data.location
    if data.attendees:
        body["attendees"] = [{"email": email} for email in data.attendees]
    if data.reminders:
        body["reminders"] = data.reminders.model_dump(exclude_none=True)
    return body


def _api_error(resp, action: str) -> CalendarApiError:
    message = ""
    try:
        body = resp.json()
        if isinstance(body, dict):
            message = (body.get("error") or {}).get("message") or ""
    except ValueError:
        pass
    log.warning("[Calendar] %s failed status=%s message=%s", action, resp.status_code, message)
    text = f"HTTP error! status: {resp.status_code}"
    if message:
        text = f"{text}, message: {message}"
    return CalendarApiError(resp.status_code, text)


# =========================
# Calendar operations
# =========================
class CalendarService:
    def __init__(self, tokens: TokenService, api: GoogleCalendarClient) -> None:
        self.tokens = tokens
        self.api = api

    def _call(self, send: Callable[[str], Any]):
        """
        Run `send(access_token)` with a valid token. A 401 triggers exactly one
        refresh and one re-send; a second 401 is returned to the caller as-is.
        """
        resp = send(self.tokens.ensure_valid_token())
        if resp.status_code == 401:
            log.info("[Calendar] 401 from Google; refreshing and retrying once")
            record_event("calendar", "401 retry", level="warn")
            resp = send(self.tokens.refresh())
        return resp

    def list_events(self, time_min: Optional[str] = None, time_max: Optional[str] = None) -> List[CalendarEvent]:
        params: Dict[str, Any] = {
            "orderBy": "startTime",
            "singleEvents": "true",
            "maxResults": str(LIST_MAX_RESULTS),
        }
        if time_min:
            params["timeMin"] = time_min
        if time_max:
            params["timeMax"] = time_max

        path = self.api.event_path()
        resp = self._call(lambda token: self.api.request("GET", token, path, params=params))
        if resp.status_code >= 400:
            raise _api_error(resp, "list")

        items = resp.json().get("items") or []
        log.info("[Calendar] listed %d events", len(items))
        return [to_calendar_event(i, untitled="Untitled Event", default_tz="UTC") for i in items]

    def get_event(self, event_id: str) -> CalendarEvent:
        path = self.api.event_path(event_id)
        resp = self._call(lambda token: self.api.request("GET", token, path))
        if resp.status_code >= 400:
            raise _api_error(resp, "get")
        return to_calendar_event(resp.json(), untitled="Untitled Event", default_tz="UTC")

    def create_event(self, data: Union[CreateEventData, Dict[str, Any]]) -> CalendarEvent:
        if not isinstance(data, CreateEventData):
            data = CreateEventData.model_validate(data)
        body = build_google_event(data)
        path = self.api.event_path()
        resp = self._call(lambda token: self.api.request("POST", token, path, json_body=body))
        if resp.status_code >= 400:
            raise _api_error(resp, "create")
        created = to_calendar_event(resp.json())
        log.info("[Calendar] created event id=%s", created.id)
        return created

    def update_event(self, event_id: str, data: Union[UpdateEventData, Dict[str, Any]]) -> CalendarEvent:
        if not isinstance(data, UpdateEventData):
            data = UpdateEventData.model_validate(data)
        body = build_google_patch(data)
        path = self.api.event_path(event_id)
        resp = self._call(lambda token: self.api.request("PUT", token, path, json_body=body))
        if resp.status_code >= 400:
            raise _api_error(resp, "update")
        return to_calendar_event(resp.json())

    def delete_event(self, event_id: str) -> bool:
        path = self.api.event_path(event_id)
        resp = self._call(lambda token: self.api.request("DELETE", token, path))
        if resp.status_code == 401:
            raise _api_error(resp, "delete")
        ok = 200 <= resp.status_code < 300
        if not ok:
            log.warning("[Calendar] delete id=%s returned status=%s", event_id, resp.status_code)
        return ok
