"""OAuth credential storage for the Google provider."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from classmate.core.utils.timeutil import utcnow
from classmate.extensions import db

PROVIDER_GOOGLE = "google"


class GoogleCredential(db.Model):
    """
    Stores OAuth tokens for a user's Google connection.

    Each user can have one credential per provider. ``access_token`` and
    ``expires_at`` are only ever written together.
    """

    __tablename__ = "google_credential"
    __table_args__ = (
        db.UniqueConstraint("user_id", "provider", name="uq_google_credential_user_provider"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        db.ForeignKey("user.id", ondelete="CASCADE"), index=True, nullable=False
    )

    provider: Mapped[str] = mapped_column(db.String(32), nullable=False, default=PROVIDER_GOOGLE)

    # OAuth tokens (encrypted at rest in production)
    access_token: Mapped[str] = mapped_column(db.Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(db.Text)
    token_type: Mapped[str] = mapped_column(db.String(32), default="Bearer")
    scope: Mapped[str | None] = mapped_column(db.Text)

    # Absolute expiry of access_token (naive UTC)
    expires_at: Mapped[datetime | None] = mapped_column()

    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        """True unless ``expires_at`` is strictly in the future."""
        if self.expires_at is None:
            return True
        return (now or utcnow()) >= self.expires_at

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token)
