"""Persisted photo library authorization state."""
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import Mapped, mapped_column

from core.db import db
from domain.photo_library import AuthorizationStatus


class LibraryAuthorization(db.Model):
    __tablename__ = "library_authorization"

    SINGLETON_ID = 1

    id: Mapped[int] = mapped_column(db.Integer, primary_key=True)
    status: Mapped[str] = mapped_column(
        db.Enum(*(s.value for s in AuthorizationStatus), name="library_authorization_status"),
        nullable=False,
        default=AuthorizationStatus.NOT_DETERMINED.value,
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    @property
    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus(self.status)


__all__ = ["LibraryAuthorization"]
