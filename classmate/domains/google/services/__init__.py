"""Google integration services."""

from classmate.domains.google.services import (
    calendar_gateway,
    tasks_gateway,
    token_service,
)
from classmate.domains.google.services.token_service import get_valid_access_token

__all__ = ["calendar_gateway", "tasks_gateway", "token_service", "get_valid_access_token"]
