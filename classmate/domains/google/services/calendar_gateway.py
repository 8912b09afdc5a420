"""Google Calendar operations on behalf of a user.

Every provider-backed call resolves the access token through
:func:`get_valid_access_token` and talks to Google through a fresh
:class:`GoogleApiClient`. Request validation happens before the token is
touched.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

from flask import current_app

from classmate.core.utils.timeutil import isoformat_z, utcnow
from classmate.domains.google.errors import BadRequest, ProviderError
from classmate.domains.google.models import GoogleCalendar
from classmate.domains.google.schemas import EventListParams, EventPatch, NormalizedEvent
from classmate.domains.google.services.normalizer import (
    calendar_entry,
    denormalize_event,
    event_to_json,
    normalize_event,
)
from classmate.domains.google.services.provider_client import GoogleApiClient
from classmate.domains.google.services.token_service import get_valid_access_token
from classmate.extensions import db

logger = logging.getLogger(__name__)


def client_for(user_id: int) -> GoogleApiClient:
    token = get_valid_access_token(user_id)
    return GoogleApiClient(token, timeout=current_app.config.get("GOOGLE_HTTP_TIMEOUT", 30))


def require_value(value: Optional[str], name: str) -> str:
    if not value:
        raise BadRequest(f"Missing {name}")
    return value


# ==================== Calendars ====================


def list_calendars(user_id: int) -> List[Dict[str, Any]]:
    """
    Fetch the user's calendar list and mirror it locally.

    Summary and time zone are refreshed on every fetch. ``selected`` is kept
    for known calendars; a newly seen calendar starts selected only if Google
    marks it primary.
    """
    data = client_for(user_id).list_calendar_list()

    existing = {c.gcal_id: c for c in GoogleCalendar.query.filter_by(user_id=user_id).all()}
    for raw in data.get("items", []):
        entry = calendar_entry(raw)
        if entry is None:
            continue
        row = existing.get(entry["gcal_id"])
        if row is None:
            row = GoogleCalendar(
                user_id=user_id, gcal_id=entry["gcal_id"], selected=entry["primary"]
            )
            db.session.add(row)
            existing[row.gcal_id] = row
        row.summary = entry["summary"]
        row.time_zone = entry["time_zone"]

    db.session.commit()
    return [existing[key].to_dict() for key in sorted(existing)]


def set_calendar_selected(user_id: int, gcal_id: Optional[str], selected: bool) -> Dict[str, Any]:
    """Toggle local selection; no provider call."""
    gcal_id = require_value(gcal_id, "gcal_id")

    row = GoogleCalendar.query.filter_by(user_id=user_id, gcal_id=gcal_id).first()
    if row is None:
        raise BadRequest(f"Unknown calendar: {gcal_id}")

    row.selected = selected
    db.session.commit()
    return {"success": True}


# ==================== Events ====================


def list_events(user_id: int, params: EventListParams) -> List[Dict[str, Any]]:
    query: Dict[str, Any] = {"singleEvents": "true", "orderBy": "startTime"}
    if params.time_min:
        query["timeMin"] = params.time_min
    if params.time_max:
        query["timeMax"] = params.time_max
    if params.q:
        query["q"] = params.q

    data = client_for(user_id).list_events(params.gcal_id, query)
    return [event_to_json(normalize_event(item)) for item in data.get("items", [])]


def create_event(user_id: int, gcal_id: str, event: NormalizedEvent) -> Dict[str, Any]:
    created = client_for(user_id).insert_event(gcal_id, denormalize_event(event))
    return event_to_json(normalize_event(created))


def update_event(
    user_id: int, gcal_id: str, gcal_event_id: Optional[str], patch: EventPatch
) -> Dict[str, Any]:
    gcal_event_id = require_value(gcal_event_id, "gcal_event_id")
    updated = client_for(user_id).patch_event(gcal_id, gcal_event_id, denormalize_event(patch))
    return event_to_json(normalize_event(updated))


def delete_event(user_id: int, gcal_id: str, gcal_event_id: Optional[str]) -> Dict[str, Any]:
    """Delete an event. An event Google no longer has counts as deleted."""
    gcal_event_id = require_value(gcal_event_id, "gcal_event_id")
    client_for(user_id).delete_event(gcal_id, gcal_event_id)
    return {"success": True}


# ==================== Incremental sync ====================


def _full_window() -> Dict[str, Any]:
    days = current_app.config.get("GOOGLE_SYNC_WINDOW_DAYS", 90)
    now = utcnow()
    return {
        "timeMin": isoformat_z(now - timedelta(days=days)),
        "timeMax": isoformat_z(now + timedelta(days=days)),
        "singleEvents": "true",
    }


def _fetch_all_pages(client: GoogleApiClient, gcal_id: str, base: Dict[str, Any]):
    items: List[Dict[str, Any]] = []
    next_sync_token = None
    page_token = None

    while True:
        params = dict(base)
        if page_token:
            params["pageToken"] = page_token
        data = client.list_events(gcal_id, params)
        items.extend(data.get("items", []))
        next_sync_token = data.get("nextSyncToken") or next_sync_token
        page_token = data.get("nextPageToken")
        if not page_token:
            return items, next_sync_token


def sync_calendar(user_id: int, gcal_id: str) -> Dict[str, Any]:
    """
    Pull changes for one calendar.

    Uses the stored sync token when there is one, otherwise a full window
    around now. A 410 from Google means the token was invalidated; the sync
    restarts once with a full window. Sync state is only written after every
    page has been fetched.
    """
    client = client_for(user_id)
    row = GoogleCalendar.query.filter_by(user_id=user_id, gcal_id=gcal_id).first()
    sync_token = row.sync_token if row else None

    try:
        base = {"syncToken": sync_token} if sync_token else _full_window()
        items, next_sync_token = _fetch_all_pages(client, gcal_id, base)
    except ProviderError as e:
        if e.status_code != 410 or not sync_token:
            raise
        logger.info(f"Sync token expired for user {user_id} calendar {gcal_id}, performing full sync")
        items, next_sync_token = _fetch_all_pages(client, gcal_id, _full_window())

    events = []
    cancelled_ids = []
    for item in items:
        if item.get("status") == "cancelled":
            if item.get("id"):
                cancelled_ids.append(item["id"])
            continue
        events.append(event_to_json(normalize_event(item)))

    if row is not None:
        if next_sync_token:
            row.sync_token = next_sync_token
        row.last_synced_at = utcnow()
        db.session.commit()

    logger.info(
        f"Google sync for user {user_id} calendar {gcal_id}: "
        f"{len(events)} events, {len(cancelled_ids)} cancelled"
    )
    return {
        "synced": True,
        "events_count": len(items),
        "sync_token": next_sync_token,
        "events": events,
        "cancelled_ids": cancelled_ids,
    }


def sync_selected_calendars(user_id: int, gcal_id: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
    """
    Sync every selected calendar of a user (or just ``gcal_id``).

    A provider failure on one calendar is recorded under that calendar as
    ``{"synced": False, "error": ..., "message": ...}`` and the rest still run.
    Token failures apply to every calendar and propagate.
    """
    query = GoogleCalendar.query.filter_by(user_id=user_id)
    if gcal_id:
        query = query.filter_by(gcal_id=gcal_id)
    else:
        query = query.filter_by(selected=True)

    results: Dict[str, Dict[str, Any]] = {}
    for row in query.all():
        try:
            results[row.gcal_id] = sync_calendar(user_id, row.gcal_id)
        except ProviderError as e:
            logger.warning(f"Google sync failed for user {user_id} calendar {row.gcal_id}: {e.message}")
            results[row.gcal_id] = {"synced": False, **e.to_dict()}
    return results
