"""Threshold tables and per-scope throttle policies."""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Iterable, Optional, Tuple

from warden.core.errors import ConfigurationError


class ThresholdTable:
    """Ordered (attempt_count, delay_seconds) pairs.

    The applicable delay for an observed count is the one declared for the
    greatest attempt count not exceeding it. Counts below the first entry
    carry no delay.
    """

    def __init__(self, pairs: Iterable[Tuple[int, float]]) -> None:
        ordered = sorted((int(count), float(delay)) for count, delay in pairs)
        previous_delay = 0.0
        seen: set[int] = set()
        for count, delay in ordered:
            if count < 1:
                raise ConfigurationError(f"threshold attempt count must be >= 1, got {count}")
            if count in seen:
                raise ConfigurationError(f"duplicate threshold attempt count {count}")
            if delay < 0:
                raise ConfigurationError(f"threshold delay must not be negative, got {delay}")
            if delay < previous_delay:
                raise ConfigurationError("threshold delays must not decrease as attempt counts grow")
            seen.add(count)
            previous_delay = delay
        self._counts = [count for count, _ in ordered]
        self._delays = [delay for _, delay in ordered]

    def delay_for(self, attempts: int) -> float:
        index = bisect_right(self._counts, attempts)
        if index == 0:
            return 0.0
        return self._delays[index - 1]

    def pairs(self) -> list[Tuple[int, float]]:
        return list(zip(self._counts, self._delays))

    def __bool__(self) -> bool:
        return bool(self._counts)

    def __repr__(self) -> str:
        return f"ThresholdTable({self.pairs()!r})"


@dataclass
class ScopePolicy:
    interval: float
    thresholds: ThresholdTable = field(default_factory=lambda: ThresholdTable([]))

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigurationError(f"throttle interval must be positive, got {self.interval}")

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.interval)

    @classmethod
    def from_config(cls, interval: float, thresholds) -> "ScopePolicy":
        """Accept either a mapping of counts to delays or a bare attempt count.

        A bare count ``n`` locks the scope for a whole interval once ``n``
        attempts fall inside the window.
        """
        if isinstance(thresholds, bool):
            raise ConfigurationError("thresholds must be a mapping or an attempt count")
        if isinstance(thresholds, int):
            return cls(interval=interval, thresholds=ThresholdTable([(thresholds, interval)]))
        if isinstance(thresholds, dict):
            return cls(interval=interval, thresholds=ThresholdTable(thresholds.items()))
        return cls(interval=interval, thresholds=ThresholdTable(thresholds))


def unlimited_policy(interval: Optional[float] = 900) -> ScopePolicy:
    return ScopePolicy(interval=interval or 900)


__all__ = ["ThresholdTable", "ScopePolicy", "unlimited_policy"]
