"""User model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from classmate.core.utils.timeutil import utcnow
from classmate.extensions import db


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)


class User(db.Model, TimestampMixin):
    """Owner row for per-user Google state.

    Accounts are managed by the hosted auth provider; this table only anchors
    foreign keys for the JWT ``sub`` identity and is filled on first request.
    """

    __tablename__ = "user"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str | None] = mapped_column(db.String(255), unique=True, index=True)
    full_name: Mapped[str | None] = mapped_column(db.String(255))
    timezone: Mapped[str | None] = mapped_column(db.String(64))
