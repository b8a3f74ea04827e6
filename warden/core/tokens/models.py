"""Security token model shared by activations, reminders and persistences."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column

from warden.extensions import db


class SecurityToken(db.Model):
    __tablename__ = "security_token"
    __table_args__ = (
        db.UniqueConstraint("kind", "code_hash", name="uq_security_token_kind_code"),
        db.Index("ix_security_token_user_kind", "user_id", "kind"),
        db.Index("ix_security_token_kind_expires_at", "kind", "expires_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    kind: Mapped[str] = mapped_column(db.String(16), nullable=False)
    user_id: Mapped[str] = mapped_column(db.String(64), nullable=False)
    # SHA-256 of the code; the raw code is only ever handed to the caller.
    code_hash: Mapped[str] = mapped_column(db.String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    revoked_at: Mapped[datetime | None] = mapped_column(nullable=True)
