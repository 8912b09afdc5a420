"""Tests for the calendar and event endpoints under /api/google."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import requests

pytestmark = pytest.mark.integration

from classmate.domains.google.models import GoogleCalendar
from classmate.extensions import db

REQUEST = "classmate.domains.google.services.provider_client.requests.request"
POST = "classmate.domains.google.services.token_service.requests.post"
TOKEN = "classmate.domains.google.services.calendar_gateway.get_valid_access_token"
EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"


# ==================== Identity ====================


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/google/calendars"),
        ("patch", "/api/google/calendars"),
        ("get", "/api/google/events"),
        ("post", "/api/google/events"),
        ("patch", "/api/google/events"),
        ("delete", "/api/google/events"),
        ("post", "/api/google/sync"),
        ("get", "/api/google/tasks"),
        ("post", "/api/google/connect/start"),
        ("get", "/api/google/status"),
    ],
)
def test_missing_identity_is_unauthorized(client, credential, method, path):
    """No caller identity short-circuits before tokens or Google are touched."""
    with patch(TOKEN) as mock_token, patch(REQUEST) as mock_request, patch(POST) as mock_post:
        resp = getattr(client, method)(path, json={"gcal_id": "primary", "gcal_event_id": "e1"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Unauthorized"
    mock_token.assert_not_called()
    mock_request.assert_not_called()
    mock_post.assert_not_called()


def test_garbage_token_is_unauthorized(client, credential):
    with patch(REQUEST) as mock_request:
        resp = client.get("/api/google/calendars", headers={"Authorization": "Bearer not-a-jwt"})

    assert resp.status_code == 401
    assert resp.get_json()["error"] == "Unauthorized"
    mock_request.assert_not_called()


def test_not_connected_is_no_credential(client, auth_headers):
    with patch(REQUEST) as mock_request:
        resp = client.get("/api/google/events", headers=auth_headers)

    assert resp.status_code == 404
    assert resp.get_json() == {"error": "NoCredential", "message": "No Google connection found"}
    mock_request.assert_not_called()


# ==================== Calendars ====================


def test_list_calendars_mirrors_and_selects_primary(client, auth_headers, credential, google_response):
    payload = {
        "items": [
            {"id": "student@example.edu", "summary": "Me", "timeZone": "America/Chicago", "primary": True},
            {"id": "holidays", "summary": "Holidays", "timeZone": "UTC"},
        ]
    }
    with patch(REQUEST, return_value=google_response(200, payload)) as mock_request:
        resp = client.get("/api/google/calendars", headers=auth_headers)

    assert resp.status_code == 200
    calendars = resp.get_json()["calendars"]
    assert [c["gcal_id"] for c in calendars] == ["holidays", "student@example.edu"]
    assert [c["selected"] for c in calendars] == [False, True]
    assert calendars[1]["time_zone"] == "America/Chicago"

    assert mock_request.call_count == 1
    args, kwargs = mock_request.call_args
    assert args == ("GET", "https://www.googleapis.com/calendar/v3/users/me/calendarList")
    assert kwargs["headers"] == {"Authorization": "Bearer A1"}


def test_list_calendars_preserves_selection(client, auth_headers, credential, make_calendar, google_response):
    make_calendar(gcal_id="holidays", summary="Old name", selected=True)
    payload = {"items": [{"id": "holidays", "summary": "Holidays in US"}]}

    with patch(REQUEST, return_value=google_response(200, payload)):
        resp = client.get("/api/google/calendars", headers=auth_headers)

    [calendar] = resp.get_json()["calendars"]
    assert calendar["selected"] is True
    assert calendar["summary"] == "Holidays in US"
    assert GoogleCalendar.query.count() == 1


def test_list_calendars_provider_error_leaves_store(client, auth_headers, credential, google_response):
    error = google_response(500, {"error": {"code": 500, "message": "Backend Error"}})
    with patch(REQUEST, return_value=error):
        resp = client.get("/api/google/calendars", headers=auth_headers)

    assert resp.status_code == 500
    assert resp.get_json() == {"error": "ProviderError", "message": "Backend Error"}
    assert GoogleCalendar.query.count() == 0


def test_list_calendars_non_json_body(client, auth_headers, credential, google_response):
    with patch(REQUEST, return_value=google_response(200, body=b"<html>proxy</html>")):
        resp = client.get("/api/google/calendars", headers=auth_headers)

    assert resp.status_code == 502
    assert resp.get_json()["error"] == "ProviderError"
    assert GoogleCalendar.query.count() == 0


def test_toggle_without_gcal_id(client, auth_headers):
    """Missing gcal_id is rejected without touching the credential store."""
    with patch(TOKEN) as mock_token, patch(REQUEST) as mock_request:
        resp = client.patch("/api/google/calendars", headers=auth_headers, json={"selected": True})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "BadRequest", "message": "Missing gcal_id"}
    mock_token.assert_not_called()
    mock_request.assert_not_called()


def test_toggle_selection(client, auth_headers, make_calendar):
    row = make_calendar(gcal_id="holidays", selected=True)

    with patch(REQUEST) as mock_request:
        resp = client.patch(
            "/api/google/calendars", headers=auth_headers, json={"gcal_id": "holidays", "selected": False}
        )

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    assert db.session.get(GoogleCalendar, row.id).selected is False
    mock_request.assert_not_called()


def test_toggle_unknown_calendar(client, auth_headers):
    resp = client.patch("/api/google/calendars", headers=auth_headers, json={"gcal_id": "nope", "selected": True})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"


def test_toggle_rejects_non_boolean(client, auth_headers, make_calendar):
    make_calendar(gcal_id="holidays")
    resp = client.patch(
        "/api/google/calendars", headers=auth_headers, json={"gcal_id": "holidays", "selected": "maybe"}
    )
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"


def test_toggle_requires_selected(client, auth_headers, make_calendar):
    row = make_calendar(gcal_id="holidays", selected=False)

    resp = client.patch("/api/google/calendars", headers=auth_headers, json={"gcal_id": "holidays"})

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"
    assert db.session.get(GoogleCalendar, row.id).selected is False


# ==================== Events ====================


def test_list_events_with_time_window(client, auth_headers, credential, google_response):
    payload = {"items": [{"id": "e1", "summary": "Midterm", "start": {"date": "2024-01-02"}}]}

    with patch(REQUEST, return_value=google_response(200, payload)) as mock_request:
        resp = client.get(
            "/api/google/events?timeMin=2024-01-01T00:00:00Z&q=midterm", headers=auth_headers
        )

    assert resp.status_code == 200
    assert resp.get_json() == {
        "events": [{"id": "e1", "title": "Midterm", "start": {"date": "2024-01-02"}, "allDay": True}]
    }
    args, kwargs = mock_request.call_args
    assert args == ("GET", EVENTS_URL)
    assert kwargs["params"] == {
        "singleEvents": "true",
        "orderBy": "startTime",
        "timeMin": "2024-01-01T00:00:00Z",
        "q": "midterm",
    }


def test_list_events_for_other_calendar(client, auth_headers, credential, google_response):
    with patch(REQUEST, return_value=google_response(200, {"items": []})) as mock_request:
        resp = client.get("/api/google/events?gcal_id=class%23cs101@group.calendar.google.com", headers=auth_headers)

    assert resp.get_json() == {"events": []}
    args, _ = mock_request.call_args
    assert args[1] == (
        "https://www.googleapis.com/calendar/v3/calendars/class%23cs101@group.calendar.google.com/events"
    )


def test_list_events_refreshes_expired_token(client, auth_headers, make_credential, google_response):
    make_credential(access_token="A1", refresh_token="R1", expires_in=-3600)

    refreshed = google_response(200, {"access_token": "A2", "expires_in": 3600})
    with patch(POST, return_value=refreshed) as mock_post, patch(
        REQUEST, return_value=google_response(200, {"items": []})
    ) as mock_request:
        resp = client.get("/api/google/events", headers=auth_headers)

    assert resp.status_code == 200
    assert mock_post.call_count == 1
    assert mock_request.call_args.kwargs["headers"] == {"Authorization": "Bearer A2"}


def test_refresh_failure_surfaces(client, auth_headers, make_credential, google_response):
    make_credential(expires_in=-3600)

    with patch(POST, return_value=google_response(400, {"error": "invalid_grant"})), patch(
        REQUEST
    ) as mock_request:
        resp = client.get("/api/google/events", headers=auth_headers)

    assert resp.status_code == 502
    assert resp.get_json() == {"error": "RefreshFailed", "message": "invalid_grant"}
    mock_request.assert_not_called()


def test_provider_error_passes_message_through(client, auth_headers, credential, google_response):
    error = google_response(403, {"error": {"code": 403, "message": "Insufficient Permission"}})
    with patch(REQUEST, return_value=error):
        resp = client.get("/api/google/events", headers=auth_headers)

    assert resp.status_code == 403
    assert resp.get_json() == {"error": "ProviderError", "message": "Insufficient Permission"}


def test_provider_unreachable(client, auth_headers, credential):
    with patch(REQUEST, side_effect=requests.Timeout("read timed out")):
        resp = client.get("/api/google/events", headers=auth_headers)

    assert resp.status_code == 502
    assert resp.get_json()["error"] == "ProviderError"


def test_create_event(client, auth_headers, credential, google_response):
    body = {
        "gcal_id": "primary",
        "event": {
            "title": "Study Session",
            "start": {"dateTime": "2024-03-01T10:00:00Z"},
            "end": {"dateTime": "2024-03-01T11:00:00Z"},
        },
    }
    created = {
        "id": "evt_123",
        "status": "confirmed",
        "summary": "Study Session",
        "start": {"dateTime": "2024-03-01T10:00:00Z"},
        "end": {"dateTime": "2024-03-01T11:00:00Z"},
    }

    with patch(REQUEST, return_value=google_response(200, created)) as mock_request:
        resp = client.post("/api/google/events", headers=auth_headers, json=body)

    assert resp.status_code == 200
    event = resp.get_json()["event"]
    assert event["id"] == "evt_123"
    assert event["title"] == "Study Session"
    assert event["allDay"] is False

    assert mock_request.call_count == 1
    args, kwargs = mock_request.call_args
    assert args == ("POST", EVENTS_URL)
    assert kwargs["json"] == {
        "summary": "Study Session",
        "start": {"dateTime": "2024-03-01T10:00:00Z"},
        "end": {"dateTime": "2024-03-01T11:00:00Z"},
    }


def test_create_event_defaults_to_primary(client, auth_headers, credential, google_response):
    with patch(REQUEST, return_value=google_response(200, {"id": "e9", "summary": "Quiz"})) as mock_request:
        resp = client.post("/api/google/events", headers=auth_headers, json={"event": {"title": "Quiz"}})

    assert resp.get_json()["event"] == {"id": "e9", "title": "Quiz", "allDay": False}
    assert mock_request.call_args.args == ("POST", EVENTS_URL)


@pytest.mark.parametrize("body", [{}, {"event": {"title": ""}}, {"event": {"start": "tomorrow"}}])
def test_create_event_rejects_invalid_body(client, auth_headers, credential, body):
    with patch(REQUEST) as mock_request:
        resp = client.post("/api/google/events", headers=auth_headers, json=body)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "BadRequest"
    mock_request.assert_not_called()


def test_update_event_sends_only_changed_fields(client, auth_headers, credential, google_response):
    updated = {"id": "evt_123", "summary": "Study Session", "location": "Library 3F"}

    with patch(REQUEST, return_value=google_response(200, updated)) as mock_request:
        resp = client.patch(
            "/api/google/events",
            headers=auth_headers,
            json={"gcal_event_id": "evt_123", "event": {"location": "Library 3F"}},
        )

    assert resp.status_code == 200
    assert resp.get_json()["event"]["location"] == "Library 3F"
    args, kwargs = mock_request.call_args
    assert args == ("PATCH", f"{EVENTS_URL}/evt_123")
    assert kwargs["json"] == {"location": "Library 3F"}


def test_update_event_requires_id(client, auth_headers, credential):
    with patch(TOKEN) as mock_token:
        resp = client.patch("/api/google/events", headers=auth_headers, json={"event": {"title": "x"}})

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "BadRequest", "message": "Missing gcal_event_id"}
    mock_token.assert_not_called()


def test_delete_event(client, auth_headers, credential, google_response):
    with patch(REQUEST, return_value=google_response(204)) as mock_request:
        resp = client.delete("/api/google/events?gcal_event_id=evt_123", headers=auth_headers)

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}
    assert mock_request.call_args.args == ("DELETE", f"{EVENTS_URL}/evt_123")


def test_delete_missing_event_is_success(client, auth_headers, credential, google_response):
    """Google answering 404 on delete means the event is already gone."""
    gone = google_response(404, {"error": {"code": 404, "message": "Not Found"}})
    with patch(REQUEST, return_value=gone):
        resp = client.delete(
            "/api/google/events", headers=auth_headers, json={"gcal_id": "primary", "gcal_event_id": "evt_old"}
        )

    assert resp.status_code == 200
    assert resp.get_json() == {"success": True}


def test_delete_other_errors_surface(client, auth_headers, credential, google_response):
    with patch(REQUEST, return_value=google_response(410, {"error": {"message": "Resource has been deleted"}})):
        resp = client.delete("/api/google/events?gcal_event_id=evt_123", headers=auth_headers)

    assert resp.status_code == 410
    assert resp.get_json()["error"] == "ProviderError"


def test_delete_requires_id(client, auth_headers, credential):
    with patch(REQUEST) as mock_request:
        resp = client.delete("/api/google/events", headers=auth_headers)

    assert resp.status_code == 400
    assert resp.get_json() == {"error": "BadRequest", "message": "Missing gcal_event_id"}
    mock_request.assert_not_called()
