import json
import sys
from datetime import timedelta
from pathlib import Path

import pytest
import requests
from flask_jwt_extended import create_access_token

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from classmate import create_app  # noqa: E402
from classmate.core.users.models import User  # noqa: E402
from classmate.core.utils.timeutil import utcnow  # noqa: E402
from classmate.domains.google.models import GoogleCalendar, GoogleCredential  # noqa: E402
from classmate.extensions import db  # noqa: E402


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


@pytest.fixture()
def app():
    """Per-test app on a fresh in-memory database."""
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()
    db.create_all()
    try:
        yield app
    finally:
        db.session.remove()
        db.drop_all()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def user(app):
    """Seed the default user for FK-dependent tests."""
    user = User(email="student@example.com", full_name="Test Student", timezone="UTC")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture()
def auth_headers(app, user):
    """JWT headers for API calls."""
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_credential(user):
    """Store a Google credential for the default user.

    ``expires_in`` is relative to now; negative values give an expired token.
    """

    def _make(access_token="A1", refresh_token="R1", expires_in=3600):
        now = utcnow()
        credential = GoogleCredential(
            user_id=user.id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=now + timedelta(seconds=expires_in),
            created_at=now,
            updated_at=now,
        )
        db.session.add(credential)
        db.session.commit()
        return credential

    return _make


@pytest.fixture()
def credential(make_credential):
    """A connected user with a still-valid access token."""
    return make_credential()


@pytest.fixture()
def make_calendar(user):
    def _make(gcal_id="primary", summary="Classes", selected=True, sync_token=None):
        row = GoogleCalendar(
            user_id=user.id,
            gcal_id=gcal_id,
            summary=summary,
            selected=selected,
            sync_token=sync_token,
        )
        db.session.add(row)
        db.session.commit()
        return row

    return _make


def fake_response(status=200, payload=None, body=None):
    """Build a real ``requests.Response`` carrying a JSON payload (or raw ``body`` bytes)."""
    resp = requests.Response()
    resp.status_code = status
    resp.url = "https://googleapis.test/"
    if body is not None:
        resp._content = body
    else:
        resp._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    resp.headers["Content-Type"] = "application/json"
    resp.encoding = "utf-8"
    return resp


@pytest.fixture()
def google_response():
    return fake_response
