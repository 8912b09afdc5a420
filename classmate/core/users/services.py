"""User service layer."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError

from classmate.core.users.models import User
from classmate.extensions import db

logger = logging.getLogger(__name__)


def get_user(user_id: int) -> Optional[User]:
    return db.session.get(User, user_id)


def ensure_user(user_id: int, email: Optional[str] = None) -> User:
    """
    Return the row for a JWT identity, creating it on first sight.

    Accounts live with the hosted auth provider; the local row only anchors
    per-user Google state. A concurrent first request may insert the same id,
    in which case the other request's row is returned.
    """
    user = get_user(user_id)
    if user is not None:
        return user

    user = User(id=user_id, email=email)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        user = get_user(user_id)
        if user is None:
            raise
        return user

    logger.info(f"Provisioned local user {user_id}")
    return user
