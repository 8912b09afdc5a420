"""Google OAuth connect flow and access-token lifecycle."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import requests
from flask import current_app

from classmate.core.utils.timeutil import isoformat_z
from classmate.domains.google.errors import (
    BadRequest,
    ConfigurationError,
    NoCredential,
    RefreshFailed,
    TokenExchangeFailed,
)
from classmate.domains.google.models import GoogleCalendar
from classmate.domains.google.services.credential_store import (
    delete_credential,
    get_credential,
    save_credential,
    update_access_token,
)
from classmate.domains.google.services.provider_client import google_error_message

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_REVOKE_URL = "https://oauth2.googleapis.com/revoke"


def _client_settings() -> Dict[str, Any]:
    config = current_app.config
    if not config.get("GOOGLE_CLIENT_ID"):
        raise ConfigurationError("Google Client ID not configured")
    return config


def _timeout() -> float:
    return current_app.config.get("GOOGLE_HTTP_TIMEOUT", 30)


def get_authorization_url(user_id: int) -> str:
    """
    Step one of the connect flow: the consent URL to send the user to.

    ``state`` carries the user id and is checked again on callback.
    """
    config = _client_settings()

    params = {
        "client_id": config["GOOGLE_CLIENT_ID"],
        "redirect_uri": config["GOOGLE_REDIRECT_URI"],
        "response_type": "code",
        "scope": " ".join(config["GOOGLE_SCOPES"]),
        "access_type": "offline",  # Get refresh token
        "prompt": "consent",  # Force consent to get refresh token
        "state": str(user_id),
    }

    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


def exchange_code_for_tokens(code: str) -> Dict[str, Any]:
    """
    Exchange authorization code for access and refresh tokens.

    Raises:
        TokenExchangeFailed: Google rejected the code or was unreachable
    """
    config = _client_settings()

    payload = {
        "client_id": config["GOOGLE_CLIENT_ID"],
        "client_secret": config["GOOGLE_CLIENT_SECRET"],
        "redirect_uri": config["GOOGLE_REDIRECT_URI"],
        "grant_type": "authorization_code",
        "code": code,
    }

    try:
        resp = requests.post(GOOGLE_TOKEN_URL, data=payload, timeout=_timeout())
    except requests.RequestException as e:
        logger.error(f"Token exchange failed: {e}")
        raise TokenExchangeFailed(f"Failed to exchange code: {e}") from e

    if not resp.ok:
        message = google_error_message(resp, "Failed to exchange code")
        logger.warning(f"Token exchange rejected ({resp.status_code}): {message}")
        raise TokenExchangeFailed(message)

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning(f"Token exchange returned a non-JSON body ({resp.status_code})")
        raise TokenExchangeFailed("Token response was not valid JSON") from e
    if not data.get("access_token"):
        raise TokenExchangeFailed("Token response had no access_token")
    return data


def complete_connection(user_id: int, code: Optional[str], state: Optional[str]) -> Dict[str, Any]:
    """Step two of the connect flow: exchange ``code`` and store the credential."""
    if not code:
        raise BadRequest("Missing authorization code")
    if state is not None and state != str(user_id):
        raise BadRequest("State does not match the current user")

    token_data = exchange_code_for_tokens(code)
    save_credential(user_id, token_data)
    logger.info(f"Google connected for user {user_id}")
    return {"connected": True}


def refresh_access_token(credential) -> str:
    """
    Mint a new access token from the stored refresh token.

    Nothing is written unless Google accepts the refresh.

    Raises:
        RefreshFailed: no refresh token, transport failure or non-2xx answer
    """
    if not credential.can_refresh:
        raise RefreshFailed("No refresh token available; reconnect Google")

    config = current_app.config

    payload = {
        "client_id": config["GOOGLE_CLIENT_ID"],
        "client_secret": config["GOOGLE_CLIENT_SECRET"],
        "grant_type": "refresh_token",
        "refresh_token": credential.refresh_token,
    }

    try:
        resp = requests.post(GOOGLE_TOKEN_URL, data=payload, timeout=_timeout())
    except requests.RequestException as e:
        logger.error(f"Token refresh failed for user {credential.user_id}: {e}")
        raise RefreshFailed(f"Token refresh failed: {e}") from e

    if not resp.ok:
        message = google_error_message(resp, "Token refresh failed")
        logger.warning(
            f"Token refresh rejected for user {credential.user_id} ({resp.status_code}): {message}"
        )
        raise RefreshFailed(message)

    try:
        data = resp.json()
    except ValueError as e:
        logger.warning(f"Token refresh for user {credential.user_id} returned a non-JSON body")
        raise RefreshFailed("Token refresh response was not valid JSON") from e
    if not data.get("access_token"):
        raise RefreshFailed("Token refresh response had no access_token")

    update_access_token(credential, data)
    logger.info(f"Refreshed Google access token for user {credential.user_id}")
    return credential.access_token


def get_valid_access_token(user_id: int) -> str:
    """
    Return a usable access token, refreshing it first if it has expired.

    A token whose expiry is still in the future is returned without any
    network call.

    Raises:
        NoCredential: the user never connected Google
        RefreshFailed: the refresh exchange failed
    """
    credential = get_credential(user_id)
    if credential is None:
        raise NoCredential("No Google connection found")

    if not credential.is_expired():
        return credential.access_token

    return refresh_access_token(credential)


def get_connection_status(user_id: int) -> Dict[str, Any]:
    """Local view of the connection; never calls Google."""
    credential = get_credential(user_id)
    if credential is None:
        return {"connected": False, "message": "No Google connection found"}

    calendars = (
        GoogleCalendar.query.filter_by(user_id=user_id).order_by(GoogleCalendar.gcal_id).all()
    )
    return {
        "connected": True,
        "expires_at": isoformat_z(credential.expires_at),
        "updated_at": isoformat_z(credential.updated_at),
        "scope": credential.scope,
        "calendars": [c.to_dict() for c in calendars],
    }


def revoke_token(token: str) -> None:
    """Best-effort revoke; a failure here must not block disconnecting."""
    try:
        resp = requests.post(GOOGLE_REVOKE_URL, params={"token": token}, timeout=_timeout())
    except requests.RequestException as e:
        logger.warning(f"Google token revoke failed: {e}")
        return
    if not resp.ok:
        logger.warning(f"Google token revoke returned {resp.status_code}")


def disconnect(user_id: int) -> Dict[str, Any]:
    """Revoke at Google, then drop the credential and mirrored calendars."""
    credential = get_credential(user_id)
    if credential is not None:
        revoke_token(credential.refresh_token or credential.access_token)

    if delete_credential(user_id):
        logger.info(f"Google disconnected for user {user_id}")
    return {"connected": False}
