"""Per-request Google REST client.

A client is built for one request with one user's access token and is
discarded afterwards; nothing about the token is kept at module level.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from classmate.domains.google.errors import ProviderError

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"
GOOGLE_TASKS_API = "https://tasks.googleapis.com/tasks/v1"

DEFAULT_TIMEOUT = 30.0


def _segment(value: str) -> str:
    # Calendar ids contain "@"; Google accepts it unescaped
    return quote(value, safe="@")


def google_error_message(response: requests.Response, default: str) -> str:
    """Extract Google's error message from a failed response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message
        description = payload.get("error_description")
        if isinstance(description, str) and description.strip():
            return description
        if isinstance(error, str) and error.strip():
            return error
    return default


class GoogleApiClient:
    """Thin authenticated wrapper over Google Calendar and Tasks REST calls."""

    def __init__(self, access_token: str, timeout: float = DEFAULT_TIMEOUT, session=None):
        self.access_token = access_token
        self.timeout = timeout
        self._http = session or requests

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        default_message: str = "Google API request failed",
        missing_ok: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """
        Issue one authenticated call.

        Returns the decoded JSON body ({} for empty responses), or None when
        ``missing_ok`` is set and Google answered 404.

        Raises:
            ProviderError: non-2xx response or transport failure
        """
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            resp = self._http.request(
                method,
                url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Google {method} {url} failed: {e}")
            raise ProviderError(f"{default_message}: {e}", status_code=502) from e

        if missing_ok and resp.status_code == 404:
            return None

        if not 200 <= resp.status_code < 300:
            message = google_error_message(resp, default_message)
            logger.warning(f"Google {method} {url} returned {resp.status_code}: {message}")
            raise ProviderError(message, status_code=resp.status_code)

        if resp.status_code == 204 or not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            logger.warning(f"Google {method} {url} returned a non-JSON body")
            raise ProviderError(f"{default_message}: invalid response from Google", status_code=502) from e

    # ==================== Calendar ====================

    def calendar_url(self, *parts: str) -> str:
        return "/".join([GOOGLE_CALENDAR_API, *(_segment(p) for p in parts)])

    def list_calendar_list(self) -> Dict[str, Any]:
        return self.request(
            "GET",
            f"{GOOGLE_CALENDAR_API}/users/me/calendarList",
            default_message="Failed to fetch calendars",
        )

    def list_events(self, gcal_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "GET",
            self.calendar_url("calendars", gcal_id, "events"),
            params=params,
            default_message="Failed to fetch events",
        )

    def insert_event(self, gcal_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "POST",
            self.calendar_url("calendars", gcal_id, "events"),
            json=body,
            default_message="Failed to create event",
        )

    def patch_event(self, gcal_id: str, event_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "PATCH",
            self.calendar_url("calendars", gcal_id, "events", event_id),
            json=body,
            default_message="Failed to update event",
        )

    def delete_event(self, gcal_id: str, event_id: str) -> None:
        self.request(
            "DELETE",
            self.calendar_url("calendars", gcal_id, "events", event_id),
            default_message="Failed to delete event",
            missing_ok=True,
        )

    # ==================== Tasks ====================

    def tasks_url(self, *parts: str) -> str:
        return "/".join([GOOGLE_TASKS_API, *(_segment(p) for p in parts)])

    def list_tasklists(self) -> Dict[str, Any]:
        return self.request(
            "GET",
            f"{GOOGLE_TASKS_API}/users/@me/lists",
            default_message="Failed to fetch task lists",
        )

    def list_tasks(self, tasklist_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "GET",
            self.tasks_url("lists", tasklist_id, "tasks"),
            params=params,
            default_message="Failed to fetch tasks",
        )

    def insert_task(self, tasklist_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "POST",
            self.tasks_url("lists", tasklist_id, "tasks"),
            json=body,
            default_message="Failed to create task",
        )

    def patch_task(self, tasklist_id: str, task_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "PATCH",
            self.tasks_url("lists", tasklist_id, "tasks", task_id),
            json=body,
            default_message="Failed to update task",
        )

    def delete_task(self, tasklist_id: str, task_id: str) -> None:
        self.request(
            "DELETE",
            self.tasks_url("lists", tasklist_id, "tasks", task_id),
            default_message="Failed to delete task",
            missing_ok=True,
        )
