"""Read and write orchestration for stored sensor readings."""

from __future__ import annotations

import logging
import time
from functools import lru_cache
from typing import Any, Callable, List, Mapping, Optional

from datastore.mock_kv import KeyValueStore, build_default_namespace
from models.records import Reading
from services.aggregator import Aggregator
from services.resolution import observed_span, select_bucket_width
from services.scanner import CutoffScanner
from services.window import TimeScale, resolve
from services.writer import DEFAULT_TTL_SECONDS, ReadingWriter
from settings import get_settings

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ReadingService:
    """Coordinates the scan, resolution and aggregation steps of a query."""

    def __init__(
        self,
        store: KeyValueStore,
        aggregator: Aggregator,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.store = store
        self.aggregator = aggregator
        self.scanner = CutoffScanner(store)
        self.writer = ReadingWriter(store, ttl_seconds=ttl_seconds)
        self._clock = clock

    def fetch_history(self, time_scale: TimeScale, limit: int) -> List[Reading]:
        """Return at most ``limit`` readings for the window, newest first."""
        window = resolve(time_scale, self._clock())
        readings = self.scanner.scan(window.cutoff_ms, limit)
        readings.sort(key=lambda reading: reading.timestamp, reverse=True)

        span_ms = None if window.bounded else observed_span(readings)
        bucket_ms = select_bucket_width(len(readings), window.window_ms, limit, span_ms=span_ms)
        result = self.aggregator.aggregate(readings, bucket_ms, limit)

        logger.info(
            "Served reading history",
            extra={
                "time_scale": time_scale.value,
                "limit": limit,
                "candidate_count": len(readings),
                "bucket_ms": bucket_ms,
            },
        )
        return result

    def record(self, payload: Mapping[str, Any]) -> str:
        """Validate and persist one reading; the timestamp is always server-assigned."""
        fields = {name: value for name, value in payload.items() if name != "timestamp"}
        return self.writer.write(fields, now_ms=self._clock())


@lru_cache
def build_default_service(ttl_seconds: Optional[int] = None) -> ReadingService:
    """Factory that wires the service with the default namespace."""
    settings = get_settings()
    store = build_default_namespace()
    ttl = ttl_seconds or settings.reading_ttl_seconds
    return ReadingService(store=store, aggregator=Aggregator(), ttl_seconds=ttl)
