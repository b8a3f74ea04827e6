"""Ordered checkpoint pipeline."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Iterable, Iterator, List, Mapping, Optional

from warden.core.auth.results import LoginAttempt, Rejection
from warden.core.checkpoints.base import Checkpoint
from warden.core.errors import ConfigurationError


class CheckpointChain:
    """Runs checkpoints in configured order; the first rejection wins."""

    def __init__(self, checkpoints: Iterable[Checkpoint] = ()) -> None:
        self._checkpoints: List[Checkpoint] = []
        self._local = threading.local()
        for checkpoint in checkpoints:
            self.add(checkpoint)

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        factories: Mapping[str, Callable[[], Checkpoint]],
    ) -> "CheckpointChain":
        """Resolve configured names once; unknown names fail immediately."""
        chain = cls()
        for name in names:
            factory = factories.get(name)
            if factory is None:
                raise ConfigurationError(f"Invalid checkpoint [{name}] given.")
            chain.add(factory())
        return chain

    def add(self, checkpoint: Checkpoint) -> None:
        if checkpoint.name in self.names:
            raise ConfigurationError(f"Checkpoint [{checkpoint.name}] configured twice.")
        self._checkpoints.append(checkpoint)

    @property
    def names(self) -> List[str]:
        return [checkpoint.name for checkpoint in self._checkpoints]

    def __iter__(self) -> Iterator[Checkpoint]:
        return iter(self._checkpoints)

    def __len__(self) -> int:
        return len(self._checkpoints)

    @property
    def enabled(self) -> bool:
        return not getattr(self._local, "bypass_depth", 0)

    @contextmanager
    def bypassed(self):
        """Skip every checkpoint for work done inside the block (current thread only)."""
        self._local.bypass_depth = getattr(self._local, "bypass_depth", 0) + 1
        try:
            yield self
        finally:
            self._local.bypass_depth -= 1

    def run(self, user_id: str, attempt: LoginAttempt) -> Optional[Rejection]:
        if not self.enabled:
            return None
        for checkpoint in self._checkpoints:
            rejection = checkpoint.login(user_id, attempt)
            if rejection is not None:
                rejection.checkpoint = rejection.checkpoint or checkpoint.name
                return rejection
        return None

    def check(self, user_id: str) -> Optional[Rejection]:
        if not self.enabled:
            return None
        for checkpoint in self._checkpoints:
            rejection = checkpoint.check(user_id)
            if rejection is not None:
                rejection.checkpoint = rejection.checkpoint or checkpoint.name
                return rejection
        return None

    def notify_failure(self, attempt: LoginAttempt) -> Optional[Rejection]:
        """Invoke every fail hook once, in order; return the first rejection reported."""
        if not self.enabled:
            return None
        first: Optional[Rejection] = None
        for checkpoint in self._checkpoints:
            rejection = checkpoint.fail(attempt)
            if rejection is not None and first is None:
                rejection.checkpoint = rejection.checkpoint or checkpoint.name
                first = rejection
        return first


__all__ = ["CheckpointChain"]
