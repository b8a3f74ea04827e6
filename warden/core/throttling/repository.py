"""Storage for throttle records.

Two implementations share one contract: an SQL repository on top of the
``throttle_attempt`` table and an in-process one guarded by striped locks.
Both apply an append and its pruning as one visible unit.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import List, Optional, Tuple

from warden.core.throttling.models import ThrottleAttempt
from warden.extensions import db


@dataclass
class ThrottleRecord:
    scope: str
    key: str
    attempts: List[datetime] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.attempts)

    @property
    def last_attempt(self) -> Optional[datetime]:
        return self.attempts[-1] if self.attempts else None


class KeyedLocks:
    """Fixed pool of locks; a key maps to a stripe by its hash."""

    def __init__(self, stripes: int = 64) -> None:
        if stripes < 1:
            raise ValueError("stripes must be positive")
        self._stripes: Tuple[Lock, ...] = tuple(Lock() for _ in range(stripes))

    def __len__(self) -> int:
        return len(self._stripes)

    def for_key(self, key: Tuple[str, str]) -> Lock:
        return self._stripes[hash(key) % len(self._stripes)]


class SqlThrottleRepository:
    """Throttle records persisted as attempt rows."""

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def load(self, scope: str, key: str, since: datetime) -> ThrottleRecord:
        rows = (
            self.session.query(ThrottleAttempt.created_at)
            .filter(
                ThrottleAttempt.scope == scope,
                ThrottleAttempt.scope_key == key,
                ThrottleAttempt.created_at > since,
            )
            .order_by(ThrottleAttempt.created_at)
            .all()
        )
        return ThrottleRecord(scope=scope, key=key, attempts=[row.created_at for row in rows])

    def append(self, scope: str, key: str, at: datetime, prune_before: datetime) -> None:
        self.session.query(ThrottleAttempt).filter(
            ThrottleAttempt.scope == scope,
            ThrottleAttempt.scope_key == key,
            ThrottleAttempt.created_at < prune_before,
        ).delete(synchronize_session=False)
        self.session.add(ThrottleAttempt(scope=scope, scope_key=key, created_at=at))
        self.session.commit()

    def clear(self, scope: str, key: str) -> int:
        removed = (
            self.session.query(ThrottleAttempt)
            .filter(ThrottleAttempt.scope == scope, ThrottleAttempt.scope_key == key)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return removed

    def purge(self, scope: str, before: datetime) -> int:
        removed = (
            self.session.query(ThrottleAttempt)
            .filter(ThrottleAttempt.scope == scope, ThrottleAttempt.created_at < before)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return removed


class InMemoryThrottleRepository:
    """Process-local throttle records; suitable for a single worker or for tests."""

    def __init__(self) -> None:
        self._locks = KeyedLocks()
        self._records: defaultdict[Tuple[str, str], List[datetime]] = defaultdict(list)

    def load(self, scope: str, key: str, since: datetime) -> ThrottleRecord:
        with self._locks.for_key((scope, key)):
            attempts = [at for at in self._records.get((scope, key), []) if at > since]
        return ThrottleRecord(scope=scope, key=key, attempts=sorted(attempts))

    def append(self, scope: str, key: str, at: datetime, prune_before: datetime) -> None:
        with self._locks.for_key((scope, key)):
            kept = [existing for existing in self._records[(scope, key)] if existing >= prune_before]
            kept.append(at)
            kept.sort()
            self._records[(scope, key)] = kept

    def clear(self, scope: str, key: str) -> int:
        with self._locks.for_key((scope, key)):
            return len(self._records.pop((scope, key), []))

    def purge(self, scope: str, before: datetime) -> int:
        removed = 0
        for record_key in [k for k in list(self._records) if k[0] == scope]:
            with self._locks.for_key(record_key):
                attempts = self._records.get(record_key, [])
                kept = [at for at in attempts if at >= before]
                removed += len(attempts) - len(kept)
                if kept:
                    self._records[record_key] = kept
                else:
                    self._records.pop(record_key, None)
        return removed


__all__ = ["ThrottleRecord", "KeyedLocks", "SqlThrottleRepository", "InMemoryThrottleRepository"]
