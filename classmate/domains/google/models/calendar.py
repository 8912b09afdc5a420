"""Mirrored Google calendar list with local selection state."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from classmate.core.utils.timeutil import isoformat_z, utcnow
from classmate.extensions import db


class GoogleCalendar(db.Model):
    """
    One row per (user, Google calendar).

    ``summary`` and ``time_zone`` are refreshed from Google on every
    calendar-list fetch; ``selected`` is the only user-owned field.
    """

    __tablename__ = "google_calendar"
    __table_args__ = (
        db.UniqueConstraint("user_id", "gcal_id", name="uq_google_calendar_user_gcal"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )

    gcal_id: Mapped[str] = mapped_column(db.String(255), nullable=False)
    summary: Mapped[str | None] = mapped_column(db.String(255))
    time_zone: Mapped[str | None] = mapped_column(db.String(64))
    selected: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Incremental sync state
    sync_token: Mapped[str | None] = mapped_column(db.String(512))
    last_synced_at: Mapped[datetime | None] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {
            "gcal_id": self.gcal_id,
            "summary": self.summary,
            "time_zone": self.time_zone,
            "selected": self.selected,
            "last_synced_at": isoformat_z(self.last_synced_at),
        }
