"""Persistence helpers for Google OAuth credentials."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from classmate.core.utils.timeutil import utcnow
from classmate.domains.google.models import PROVIDER_GOOGLE, GoogleCalendar, GoogleCredential
from classmate.extensions import db

DEFAULT_EXPIRES_IN = 3600


def expiry_from(token_data: Dict[str, Any], now: datetime) -> datetime:
    """Absolute expiry for a token response's relative ``expires_in``."""
    expires_in = token_data.get("expires_in") or DEFAULT_EXPIRES_IN
    return now + timedelta(seconds=int(expires_in))


def get_credential(user_id: int) -> Optional[GoogleCredential]:
    return GoogleCredential.query.filter_by(user_id=user_id, provider=PROVIDER_GOOGLE).first()


def save_credential(user_id: int, token_data: Dict[str, Any]) -> GoogleCredential:
    """
    Create or replace the user's credential from a code-exchange response.

    Google omits ``refresh_token`` on repeat consents; the stored one is kept
    in that case.
    """
    now = utcnow()
    credential = get_credential(user_id)

    if credential is None:
        credential = GoogleCredential(user_id=user_id, provider=PROVIDER_GOOGLE, created_at=now)
        db.session.add(credential)

    credential.access_token = token_data["access_token"]
    credential.refresh_token = token_data.get("refresh_token") or credential.refresh_token
    credential.token_type = token_data.get("token_type") or "Bearer"
    credential.scope = token_data.get("scope") or credential.scope
    credential.expires_at = expiry_from(token_data, now)
    credential.updated_at = now

    db.session.commit()
    return credential


def update_access_token(credential: GoogleCredential, token_data: Dict[str, Any]) -> GoogleCredential:
    """Store a refreshed access token together with its new expiry."""
    now = utcnow()
    credential.access_token = token_data["access_token"]
    credential.expires_at = expiry_from(token_data, now)
    credential.updated_at = now
    if token_data.get("refresh_token"):
        credential.refresh_token = token_data["refresh_token"]
    db.session.commit()
    return credential


def delete_credential(user_id: int) -> bool:
    """Remove the credential and mirrored calendars. Returns False if none existed."""
    GoogleCalendar.query.filter_by(user_id=user_id).delete()
    deleted = GoogleCredential.query.filter_by(user_id=user_id, provider=PROVIDER_GOOGLE).delete()
    db.session.commit()
    return bool(deleted)
