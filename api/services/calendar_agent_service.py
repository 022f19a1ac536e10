from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError

from clients.openai_client import _chat_complete
from config import log
from schemas.calendar import CalendarAction, CreateEventData
from services.calendar_service import CalendarService
from utils.errors import ServiceError
from utils.time_helpers import iso_utc

NOT_UNDERSTOOD = (
    "I'm sorry, I didn't understand that. Please try asking me to create, update, delete, "
    "or list calendar events."
)


def _analysis_prompt(now: datetime) -> str:
    return (
        "You are a calendar AI assistant. Analyze the user's message and determine what calendar "
        "action they want to perform.\n\n"
        "IMPORTANT: You must respond with a valid JSON object containing:\n"
        "{\n"
        '  "action": "create" | "update" | "delete" | "list" | "none",\n'
        '  "eventId": "string (only for update/delete)",\n'
        '  "eventData": {\n'
        '    "title": "string",\n'
        '    "description": "string (optional)",\n'
        '    "startDateTime": "ISO string",\n'
        '    "endDateTime": "ISO string",\n'
        '    "location": "string (optional)",\n'
        '    "attendees": ["email1", "email2"] (optional)\n'
        "  },\n"
        '  "timeRange": {"start": "ISO string (for list)", "end": "ISO string (for list)"},\n'
        '  "response": "Natural language response to user"\n'
        "}\n\n"
        "For date/time parsing: \"tomorrow\" is the next day, \"next week\" is 7 days from now. "
        "Default duration is 1 hour and default time is 9:00 AM if not specified.\n\n"
        f"Current date/time: {iso_utc(now)}\n"
        "Return only JSON. No prose, no backticks."
    )


def parse_action(text: str) -> CalendarAction:
    raw = (text or "").strip()
    if raw.startswith("```"):
        raw = raw.strip("`")
        if raw.lower().startswith("json"):
            raw = raw[4:]
    try:
        return CalendarAction.model_validate(json.loads(raw))
    except (ValueError, ValidationError):
        log.info("[CalendarAgent] unparseable analysis output")
        return CalendarAction(action="none", response=NOT_UNDERSTOOD)


def _format_when(value: Optional[str]) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%a %b %d, %Y %I:%M %p")
    except ValueError:
        return value


def execute_action(action: CalendarAction, calendar: CalendarService, now: datetime) -> str:
    """Run the decided action. Failures come back as text, never as exceptions."""
    try:
        if action.action == "create":
            if not action.eventData:
                return "❌ I need more details to create the event. Please specify at least a title and time."
            try:
                data = CreateEventData.model_validate(action.eventData.model_dump(exclude_none=True))
            except ValidationError:
                return "❌ I need more details to create the event. Please specify at least a title and time."
            event = calendar.create_event(data)
            return f"✅ Event \"{event.title}\" created successfully for {_format_when(event.start.dateTime)}"

        if action.action == "update":
            if not action.eventId or not action.eventData:
                return (
                    "❌ To update an event, I need you to specify which event and what changes to make. "
                    "You can say something like 'Update my 2pm meeting to 3pm'"
                )
            event = calendar.update_event(action.eventId, action.eventData)
            return f"✅ Event \"{event.title}\" updated successfully"

        if action.action == "delete":
            if not action.eventId:
                return (
                    "❌ To delete an event, I need you to specify which event. "
                    "You can say something like 'Delete my 2pm meeting today'"
                )
            if not calendar.delete_event(action.eventId):
                return "❌ Sorry, I couldn't delete that event."
            return "✅ Event deleted successfully"

        if action.action == "list":
            if action.timeRange:
                start, end = action.timeRange.start, action.timeRange.end
            else:
                start, end = iso_utc(now), iso_utc(now + timedelta(hours=24))
            events = calendar.list_events(start, end)
            if not events:
                return "📅 No events found for the specified time period."
            lines = []
            for ev in events:
                line = f"• **{ev.title}**\n  {_format_when(ev.start.dateTime)}"
                if ev.location:
                    line += f"\n  📍 {ev.location}"
                lines.append(line)
            return f"📅 Found {len(events)} event(s):\n\n" + "\n\n".join(lines)

        return action.response or "I can help you create, update, delete, or list calendar events. What would you like to do?"

    except ServiceError as e:
        log.warning("[CalendarAgent] action=%s failed: %s", action.action, e.message)
        return f"❌ Sorry, I encountered an error: {e.message}"


def run_calendar_agent(message: str, calendar: CalendarService, now: Optional[datetime] = None) -> Dict[str, Any]:
    text = (message or "").strip()
    if not text:
        raise ServiceError("Missing 'message' in request body.", 400)
    now = now or datetime.now(timezone.utc)

    analysis = _chat_complete(
        [
            {"role": "system", "content": _analysis_prompt(now)},
            {"role": "user", "content": text},
        ],
        temperature=0.3,
    )
    action = parse_action(analysis["content"])
    action_result = execute_action(action, calendar, now)
    log.info("[CalendarAgent] action=%s", action.action)

    final = _chat_complete(
        [
            {
                "role": "system",
                "content": (
                    "You are a helpful calendar AI assistant. Based on the action result, provide a natural, "
                    "conversational response to the user. Keep it concise but friendly.\n\n"
                    "If the action was successful, acknowledge it positively.\n"
                    "If there was an error, be helpful and suggest what the user can try instead.\n"
                    "If you need more information, ask specific questions.\n\n"
                    f"Action performed: {action.action}\nResult: {action_result}"
                ),
            },
            {"role": "user", "content": f'User said: "{text}"\nAction result: {action_result}'},
        ],
        temperature=0.7,
    )

    return {
        "response": final["content"] if not final["offline"] else action_result,
        "action": action.action,
        "actionResult": action_result,
    }
