"""Google integration Pydantic schemas.

Normalized shapes are the app's provider-agnostic view of Google events and
tasks. Passthrough fields (``recurrence``, ``attendees``, ``reminders``,
``visibility``, ``colorId``, task ``links``) are name-checked but typed as
opaque JSON: they are mirrored, never interpreted.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, JsonValue, StrictBool, computed_field

UNTITLED = "Untitled"
DEFAULT_CALENDAR_ID = "primary"
DEFAULT_TASKLIST_ID = "@default"


class EventTime(BaseModel):
    """Start or end of an event: ``date`` (all-day) or ``dateTime``.

    Unknown keys are kept so the value round-trips unchanged.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    date: Optional[str] = None
    date_time: Optional[str] = Field(default=None, alias="dateTime")
    time_zone: Optional[str] = Field(default=None, alias="timeZone")

    @property
    def is_date_only(self) -> bool:
        return bool(self.date) and not self.date_time


class NormalizedEvent(BaseModel):
    """Application-side calendar event."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str = Field(default=UNTITLED, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    recurrence: Optional[JsonValue] = None
    attendees: Optional[JsonValue] = None
    reminders: Optional[JsonValue] = None
    visibility: Optional[JsonValue] = None
    color_id: Optional[JsonValue] = Field(default=None, alias="colorId")

    @computed_field(alias="allDay")  # type: ignore[prop-decorator]
    @property
    def all_day(self) -> bool:
        return self.start is not None and self.start.is_date_only


class EventPatch(BaseModel):
    """Partial event update; unset fields are left untouched at Google."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    recurrence: Optional[JsonValue] = None
    attendees: Optional[JsonValue] = None
    reminders: Optional[JsonValue] = None
    visibility: Optional[JsonValue] = None
    color_id: Optional[JsonValue] = Field(default=None, alias="colorId")


class NormalizedTask(BaseModel):
    """Application-side Google task."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    title: str = Field(default=UNTITLED, min_length=1)
    notes: Optional[str] = None
    status: Optional[str] = None
    due: Optional[str] = None
    completed: Optional[str] = None
    parent: Optional[str] = None
    position: Optional[str] = None
    links: Optional[JsonValue] = None

    @computed_field(alias="isCompleted")  # type: ignore[prop-decorator]
    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class TaskWrite(BaseModel):
    """Writable task fields for create requests."""

    title: str = Field(default=UNTITLED, min_length=1)
    notes: Optional[str] = None
    status: Optional[Literal["needsAction", "completed"]] = None
    due: Optional[str] = None
    completed: Optional[str] = None


class TaskPatch(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    notes: Optional[str] = None
    status: Optional[Literal["needsAction", "completed"]] = None
    due: Optional[str] = None
    completed: Optional[str] = None


class TaskList(BaseModel):
    id: str
    title: str = UNTITLED
    updated: Optional[str] = None


# ==================== Request bodies ====================


class ConnectCallbackRequest(BaseModel):
    code: Optional[str] = None
    state: Optional[str] = None


class CalendarSelectionUpdate(BaseModel):
    gcal_id: Optional[str] = None
    selected: StrictBool


class EventListParams(BaseModel):
    """Query parameters for listing events."""

    model_config = ConfigDict(populate_by_name=True)

    gcal_id: str = DEFAULT_CALENDAR_ID
    time_min: Optional[str] = Field(default=None, alias="timeMin")
    time_max: Optional[str] = Field(default=None, alias="timeMax")
    q: Optional[str] = None


class EventCreateRequest(BaseModel):
    gcal_id: str = DEFAULT_CALENDAR_ID
    event: NormalizedEvent


class EventUpdateRequest(BaseModel):
    gcal_id: str = DEFAULT_CALENDAR_ID
    gcal_event_id: Optional[str] = None
    event: EventPatch = Field(default_factory=EventPatch)


class SyncRequest(BaseModel):
    gcal_id: str = DEFAULT_CALENDAR_ID


class TaskCreateRequest(BaseModel):
    tasklist_id: str = DEFAULT_TASKLIST_ID
    task: TaskWrite


class TaskUpdateRequest(BaseModel):
    tasklist_id: str = DEFAULT_TASKLIST_ID
    task_id: Optional[str] = None
    task: TaskPatch = Field(default_factory=TaskPatch)


__all__ = [
    "UNTITLED",
    "DEFAULT_CALENDAR_ID",
    "DEFAULT_TASKLIST_ID",
    "EventTime",
    "NormalizedEvent",
    "EventPatch",
    "NormalizedTask",
    "TaskWrite",
    "TaskPatch",
    "TaskList",
    "ConnectCallbackRequest",
    "CalendarSelectionUpdate",
    "EventListParams",
    "EventCreateRequest",
    "EventUpdateRequest",
    "SyncRequest",
    "TaskCreateRequest",
    "TaskUpdateRequest",
]
