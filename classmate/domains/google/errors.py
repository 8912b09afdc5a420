"""Error taxonomy for the Google sync gateway.

Every failure a handler can report is one of these exceptions. The app-level
error handler renders them as ``{"error": kind, "message": message}`` with
``status_code``.
"""

from __future__ import annotations


class GoogleSyncError(Exception):
    """Base exception for Google gateway operations."""

    kind = "InternalError"
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class Unauthorized(GoogleSyncError):
    """No verifiable caller identity."""

    kind = "Unauthorized"
    status_code = 401


class NoCredential(GoogleSyncError):
    """The caller has never connected Google (or disconnected since)."""

    kind = "NoCredential"
    status_code = 404


class BadRequest(GoogleSyncError):
    kind = "BadRequest"
    status_code = 400


class RefreshFailed(GoogleSyncError):
    """Google rejected the refresh-token exchange; the user must reconnect."""

    kind = "RefreshFailed"
    status_code = 502


class ProviderError(GoogleSyncError):
    """Google returned a non-2xx status for a substantive call."""

    kind = "ProviderError"
    status_code = 502


class TokenExchangeFailed(GoogleSyncError):
    """Google rejected the authorization-code exchange."""

    kind = "TokenExchange"
    status_code = 400


class ConfigurationError(GoogleSyncError):
    kind = "Configuration"
    status_code = 500


__all__ = [
    "GoogleSyncError",
    "Unauthorized",
    "NoCredential",
    "BadRequest",
    "RefreshFailed",
    "ProviderError",
    "TokenExchangeFailed",
    "ConfigurationError",
]
