"""Conversions between Google's native JSON and the normalized shapes.

All functions here are pure: no I/O, no app context.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from classmate.domains.google.schemas import (
    UNTITLED,
    EventPatch,
    NormalizedEvent,
    NormalizedTask,
    TaskPatch,
    TaskWrite,
)

# Google event keys mirrored verbatim (``summary`` is handled separately).
EVENT_VERBATIM_FIELDS = (
    "id",
    "description",
    "location",
    "start",
    "end",
    "recurrence",
    "attendees",
    "reminders",
    "visibility",
    "colorId",
)

TASK_VERBATIM_FIELDS = (
    "id",
    "notes",
    "status",
    "due",
    "completed",
    "parent",
    "position",
    "links",
)

TASK_WRITABLE_FIELDS = ("title", "notes", "status", "due", "completed")


def _project(model, *, exclude: tuple = ()) -> Dict[str, Any]:
    """Dump a model by alias, dropping absent fields.

    Opaque JSON values are copied as-is so ``None`` inside them survives.
    """
    data: Dict[str, Any] = {}
    for name, field in type(model).model_fields.items():
        key = field.alias or name
        if key in exclude:
            continue
        value = getattr(model, name)
        if value is None:
            continue
        if hasattr(value, "model_dump"):
            value = value.model_dump(by_alias=True, exclude_none=True)
        data[key] = value
    return data


def normalize_event(raw: Dict[str, Any]) -> NormalizedEvent:
    """Google event resource -> :class:`NormalizedEvent`."""
    payload = {key: raw[key] for key in EVENT_VERBATIM_FIELDS if raw.get(key) is not None}
    payload["title"] = raw.get("summary") or UNTITLED
    return NormalizedEvent.model_validate(payload)


def denormalize_event(event: Union[NormalizedEvent, EventPatch]) -> Dict[str, Any]:
    """Normalized event (or partial patch) -> Google request body.

    Never emits ``id`` or ``allDay``; ``title`` becomes ``summary``.
    """
    body = _project(event, exclude=("id",))
    if "title" in body:
        body["summary"] = body.pop("title")
    return body


def event_to_json(event: NormalizedEvent) -> Dict[str, Any]:
    """Normalized event as returned to API callers."""
    data = _project(event)
    data["allDay"] = event.all_day
    return data


def normalize_task(raw: Dict[str, Any]) -> NormalizedTask:
    payload = {key: raw[key] for key in TASK_VERBATIM_FIELDS if raw.get(key) is not None}
    payload["title"] = raw.get("title") or UNTITLED
    return NormalizedTask.model_validate(payload)


def denormalize_task(task: Union[NormalizedTask, TaskWrite, TaskPatch]) -> Dict[str, Any]:
    """Only writable task fields are sent back to Google."""
    body = _project(task)
    return {key: body[key] for key in TASK_WRITABLE_FIELDS if key in body}


def task_to_json(task: NormalizedTask) -> Dict[str, Any]:
    data = _project(task)
    data["isCompleted"] = task.is_completed
    return data


def calendar_entry(raw: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Pick the mirrored fields from a calendarList entry."""
    gcal_id = raw.get("id")
    if not gcal_id:
        return None
    return {
        "gcal_id": gcal_id,
        "summary": raw.get("summary") or UNTITLED,
        "time_zone": raw.get("timeZone"),
        "primary": bool(raw.get("primary")),
    }


def tasklist_to_json(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": raw.get("id"),
        "title": raw.get("title") or UNTITLED,
        "updated": raw.get("updated"),
    }
