"""Clock sources used by the throttle engine and the token ledger."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in every table."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return utcnow()


class FixedClock:
    """Clock frozen at a given instant until moved with ``advance``."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or utcnow()

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = value


__all__ = ["Clock", "SystemClock", "FixedClock", "utcnow"]
