"""Google integration controllers."""

from classmate.domains.google.controllers.google_api import google_api_bp

__all__ = ["google_api_bp"]
