"""Named time scales and the read windows they resolve to."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

_MINUTE_MS = 60 * 1000
_HOUR_MS = 60 * _MINUTE_MS
_DAY_MS = 24 * _HOUR_MS


class TimeScale(str, Enum):
    """Time scales accepted by the history endpoint."""

    last_30m = "30m"
    last_1h = "1h"
    last_6h = "6h"
    last_24h = "24h"
    last_7d = "7d"
    last_30d = "30d"
    all = "all"

    @classmethod
    def default(cls) -> "TimeScale":
        return cls.last_24h

    @classmethod
    def parse(cls, raw: Optional[str]) -> "TimeScale":
        """Map a query token to a scale, falling back to :meth:`default`."""
        if raw is None:
            return cls.default()
        try:
            return cls(raw.strip())
        except ValueError:
            return cls.default()

    @property
    def duration_ms(self) -> Optional[int]:
        """Window length in milliseconds, or ``None`` for the unbounded scale."""
        return _DURATIONS_MS[self]


_DURATIONS_MS: Dict[TimeScale, Optional[int]] = {
    TimeScale.last_30m: 30 * _MINUTE_MS,
    TimeScale.last_1h: _HOUR_MS,
    TimeScale.last_6h: 6 * _HOUR_MS,
    TimeScale.last_24h: _DAY_MS,
    TimeScale.last_7d: 7 * _DAY_MS,
    TimeScale.last_30d: 30 * _DAY_MS,
    TimeScale.all: None,
}


@dataclass(frozen=True)
class TimeWindow:
    """Lower bound and length of a read window; both ``None`` when unbounded."""

    cutoff_ms: Optional[int]
    window_ms: Optional[int]

    @property
    def bounded(self) -> bool:
        return self.window_ms is not None


def resolve(scale: TimeScale, now_ms: int) -> TimeWindow:
    window_ms = scale.duration_ms
    if window_ms is None:
        return TimeWindow(cutoff_ms=None, window_ms=None)
    return TimeWindow(cutoff_ms=now_ms - window_ms, window_ms=window_ms)
