"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Reading:
    """A single temperature/humidity sample, or the mean of a bucket of them.

    ``timestamp`` is epoch milliseconds. For aggregated readings it is the
    bucket start and ``device_id`` may hold several comma-joined identifiers.
    """

    timestamp: int
    temperature: float
    humidity: float
    device_id: Optional[str] = None
