"""Google integration models."""

# FK target; the user table must be in the metadata before these models flush.
from classmate.core.users.models import User  # noqa: F401
from classmate.domains.google.models.calendar import GoogleCalendar
from classmate.domains.google.models.credential import PROVIDER_GOOGLE, GoogleCredential

__all__ = ["GoogleCalendar", "GoogleCredential", "PROVIDER_GOOGLE"]
