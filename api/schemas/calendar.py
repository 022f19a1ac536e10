from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class ReminderOverride(BaseModel):
    method: Literal["email", "sms", "popup"]
    minutes: int = Field(ge=0)


class Reminders(BaseModel):
    useDefault: bool = False
    overrides: Optional[List[ReminderOverride]] = None


class EventTime(BaseModel):
    dateTime: Optional[str] = None
    timeZone: Optional[str] = None


class Attendee(BaseModel):
    email: Optional[str] = None
    displayName: Optional[str] = None


class CalendarEvent(BaseModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    start: EventTime
    end: EventTime
    location: Optional[str] = None
    attendees: Optional[List[Attendee]] = None
    status: Optional[str] = None
    created: Optional[str] = None
    updated: Optional[str] = None
    reminders: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CreateEventData(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    startDateTime: str = Field(min_length=1)
    endDateTime: str = Field(min_length=1)
    location: Optional[str] = None
    attendees: Optional[List[str]] = None
    timeZone: Optional[str] = None
    reminders: Optional[Reminders] = None


class UpdateEventData(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    startDateTime: Optional[str] = None
    endDateTime: Optional[str] = None
    location: Optional[str] = None
    attendees: Optional[List[str]] = None
    timeZone: Optional[str] = None
    reminders: Optional[Reminders] = None


class TimeRange(BaseModel):
    start: str
    end: str


class CalendarAction(BaseModel):
    """What the calendar agent's analysis step decided to do."""

    action: Literal["create", "update", "delete", "list", "none"] = "none"
    eventId: Optional[str] = None
    eventData: Optional[UpdateEventData] = None
    timeRange: Optional[TimeRange] = None
    response: str = ""
