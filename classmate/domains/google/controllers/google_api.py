"""Google integration API controllers."""

from __future__ import annotations

from typing import Any, Dict, Type, TypeVar

from flask import Blueprint, g, jsonify, request
from pydantic import BaseModel, ValidationError

from classmate.core.utils.decorators import identity_required
from classmate.domains.google.errors import BadRequest
from classmate.domains.google.schemas import (
    DEFAULT_CALENDAR_ID,
    DEFAULT_TASKLIST_ID,
    CalendarSelectionUpdate,
    ConnectCallbackRequest,
    EventCreateRequest,
    EventListParams,
    EventUpdateRequest,
    SyncRequest,
    TaskCreateRequest,
    TaskUpdateRequest,
)
from classmate.domains.google.services import calendar_gateway, tasks_gateway, token_service
from classmate.extensions import limiter

google_api_bp = Blueprint("google_api", __name__)

M = TypeVar("M", bound=BaseModel)


def _body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _query_and_body() -> Dict[str, Any]:
    """DELETE callers may send ids in the query string or the body."""
    merged = request.args.to_dict()
    merged.update(_body())
    return merged


def _parse(model: Type[M], payload: Dict[str, Any]) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        raise BadRequest(details) from e


# ==================== Connection ====================


@google_api_bp.post("/connect/start")
@identity_required
@limiter.limit("20/minute")
def connect_start():
    """Return the Google consent URL for the current user."""
    url = token_service.get_authorization_url(g.user_id)
    return jsonify({"authorization_url": url}), 200


@google_api_bp.post("/connect/callback")
@identity_required
@limiter.limit("20/minute")
def connect_callback():
    """Exchange the one-time code from Google's redirect for stored tokens."""
    data = _parse(ConnectCallbackRequest, _body())
    result = token_service.complete_connection(g.user_id, data.code, data.state)
    return jsonify(result), 200


@google_api_bp.get("/status")
@identity_required
@limiter.limit("120/minute")
def status():
    return jsonify(token_service.get_connection_status(g.user_id)), 200


@google_api_bp.post("/disconnect")
@identity_required
@limiter.limit("20/minute")
def disconnect():
    return jsonify(token_service.disconnect(g.user_id)), 200


# ==================== Calendars ====================


@google_api_bp.get("/calendars")
@identity_required
@limiter.limit("120/minute")
def list_calendars():
    calendars = calendar_gateway.list_calendars(g.user_id)
    return jsonify({"calendars": calendars}), 200


@google_api_bp.patch("/calendars")
@identity_required
@limiter.limit("120/minute")
def update_calendar_selection():
    """Toggle whether a calendar's events show up in the schedule view."""
    data = _parse(CalendarSelectionUpdate, _body())
    result = calendar_gateway.set_calendar_selected(g.user_id, data.gcal_id, data.selected)
    return jsonify(result), 200


# ==================== Events ====================


@google_api_bp.get("/events")
@identity_required
@limiter.limit("240/minute")
def list_events():
    """
    List events of one calendar.

    Query Parameters:
    - gcal_id: calendar id (default "primary")
    - timeMin / timeMax: RFC 3339 bounds (optional)
    - q: free-text search (optional)
    """
    params = _parse(EventListParams, request.args.to_dict())
    events = calendar_gateway.list_events(g.user_id, params)
    return jsonify({"events": events}), 200


@google_api_bp.post("/events")
@identity_required
@limiter.limit("60/minute")
def create_event():
    data = _parse(EventCreateRequest, _body())
    event = calendar_gateway.create_event(g.user_id, data.gcal_id, data.event)
    return jsonify({"event": event}), 200


@google_api_bp.patch("/events")
@identity_required
@limiter.limit("60/minute")
def update_event():
    data = _parse(EventUpdateRequest, _body())
    event = calendar_gateway.update_event(g.user_id, data.gcal_id, data.gcal_event_id, data.event)
    return jsonify({"event": event}), 200


@google_api_bp.delete("/events")
@identity_required
@limiter.limit("60/minute")
def delete_event():
    payload = _query_and_body()
    result = calendar_gateway.delete_event(
        g.user_id,
        payload.get("gcal_id") or DEFAULT_CALENDAR_ID,
        payload.get("gcal_event_id"),
    )
    return jsonify(result), 200


@google_api_bp.post("/sync")
@identity_required
@limiter.limit("30/minute")
def sync():
    """Incremental pull of one calendar's events."""
    data = _parse(SyncRequest, _body())
    return jsonify(calendar_gateway.sync_calendar(g.user_id, data.gcal_id)), 200


# ==================== Tasks ====================


@google_api_bp.get("/tasklists")
@identity_required
@limiter.limit("120/minute")
def list_tasklists():
    return jsonify({"tasklists": tasks_gateway.list_tasklists(g.user_id)}), 200


@google_api_bp.get("/tasks")
@identity_required
@limiter.limit("240/minute")
def list_tasks():
    tasklist_id = request.args.get("tasklist_id") or DEFAULT_TASKLIST_ID
    return jsonify({"tasks": tasks_gateway.list_tasks(g.user_id, tasklist_id)}), 200


@google_api_bp.post("/tasks")
@identity_required
@limiter.limit("60/minute")
def create_task():
    data = _parse(TaskCreateRequest, _body())
    task = tasks_gateway.create_task(g.user_id, data.tasklist_id, data.task)
    return jsonify({"task": task}), 200


@google_api_bp.patch("/tasks")
@identity_required
@limiter.limit("60/minute")
def update_task():
    data = _parse(TaskUpdateRequest, _body())
    task = tasks_gateway.update_task(g.user_id, data.tasklist_id, data.task_id, data.task)
    return jsonify({"task": task}), 200


@google_api_bp.delete("/tasks")
@identity_required
@limiter.limit("60/minute")
def delete_task():
    payload = _query_and_body()
    result = tasks_gateway.delete_task(
        g.user_id,
        payload.get("tasklist_id") or DEFAULT_TASKLIST_ID,
        payload.get("task_id"),
    )
    return jsonify(result), 200
