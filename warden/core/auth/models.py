"""User and session models backing the default collaborators."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from warden.core.clock import utcnow
from warden.extensions import db


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)


class User(db.Model, TimestampMixin):
    __tablename__ = "user"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(db.String(255), unique=True, nullable=False, index=True)
    username: Mapped[str | None] = mapped_column(db.String(64), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(db.String(255), nullable=False)
    password_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)


class AuthSession(db.Model, TimestampMixin):
    __tablename__ = "auth_session"
    __table_args__ = (
        db.UniqueConstraint("session_id", name="uq_auth_session_session_id"),
        db.Index("ix_auth_session_user_state", "user_id", "lifecycle_state"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    session_id: Mapped[str] = mapped_column(db.String(128), nullable=False)
    user_id: Mapped[str] = mapped_column(db.String(64), nullable=False, index=True)
    lifecycle_state: Mapped[str] = mapped_column(db.String(32), nullable=False, default="active")
    invalidated_at: Mapped[datetime | None] = mapped_column(nullable=True)
