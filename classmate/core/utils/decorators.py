"""Reusable decorators for controllers."""

from __future__ import annotations

from functools import wraps
from typing import Callable, TypeVar

from flask import g
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException

from classmate.core.users.services import ensure_user
from classmate.domains.google.errors import Unauthorized

F = TypeVar("F", bound=Callable)


def identity_required(fn: F) -> F:
    """Resolve the caller's user id from the JWT into ``g.user_id``.

    Runs before the view body, so a request without a usable identity never
    reaches token or provider code. The local user row is created the first
    time an identity is seen.
    """

    @wraps(fn)
    def wrapper(*args, **kwargs):  # type: ignore[misc]
        try:
            verify_jwt_in_request()
        except JWTExtendedException as e:
            raise Unauthorized(str(e) or "Missing or invalid token") from e
        try:
            g.user_id = int(get_jwt_identity())
        except (TypeError, ValueError) as e:
            raise Unauthorized("No user found") from e
        ensure_user(g.user_id, get_jwt().get("email"))
        return fn(*args, **kwargs)

    return wrapper  # type: ignore[return-value]
