"""Bucket-width selection for history queries."""

from __future__ import annotations

import math
from typing import Iterable, Optional

from models.records import Reading

RAW_BUCKET_MS = 1
MIN_BUCKET_MS = 15 * 1000


def observed_span(readings: Iterable[Reading]) -> int:
    timestamps = [reading.timestamp for reading in readings]
    if not timestamps:
        return 0
    return max(timestamps) - min(timestamps)


def select_bucket_width(
    candidate_count: int,
    window_ms: Optional[int],
    limit: int,
    span_ms: Optional[int] = None,
) -> int:
    """Pick a bucket width that brings ``candidate_count`` readings near ``limit``.

    Returns :data:`RAW_BUCKET_MS` when no aggregation is needed. Unbounded
    windows (``window_ms is None``) are sized from ``span_ms``, the observed
    spread of the candidate timestamps.
    """
    if limit <= 0 or candidate_count <= limit:
        return RAW_BUCKET_MS

    reduction_factor = math.ceil(candidate_count / limit)
    base_ms = window_ms if window_ms is not None else (span_ms or 0)
    estimated = math.ceil(base_ms / limit * reduction_factor)
    return max(MIN_BUCKET_MS, estimated)
