"""Throttle attempt model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from warden.extensions import db


class ThrottleAttempt(db.Model):
    """One failed login attempt counted against a scope key.

    Rows are append-only; a scope record is the set of rows sharing
    ``(scope, scope_key)``.
    """

    __tablename__ = "throttle_attempt"
    __table_args__ = (db.Index("ix_throttle_attempt_scope_key_created_at", "scope", "scope_key", "created_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    scope: Mapped[str] = mapped_column(db.String(16), nullable=False)
    scope_key: Mapped[str] = mapped_column(db.String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
