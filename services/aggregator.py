"""Aggregation logic for sensor readings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from models.records import Reading


@dataclass
class BucketAccumulator:
    """Values collected for one bucket start while aggregating."""

    temperatures: List[float] = field(default_factory=list)
    humidities: List[float] = field(default_factory=list)
    device_ids: Dict[str, None] = field(default_factory=dict)

    def add(self, reading: Reading) -> None:
        self.temperatures.append(reading.temperature)
        self.humidities.append(reading.humidity)
        if reading.device_id:
            self.device_ids.setdefault(reading.device_id, None)

    def merged_device_id(self) -> Optional[str]:
        if not self.device_ids:
            return None
        return ",".join(self.device_ids)


def _mean(values: List[float]) -> float:
    return round(sum(values) / len(values), 2)


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def aggregate(
        self,
        readings: Iterable[Reading],
        bucket_width_ms: int,
        limit: int,
    ) -> List[Reading]:
        """Average readings into fixed-width buckets, newest bucket first.

        Device identifiers are merged in first-seen order. The result is
        truncated to ``limit`` after sorting, keeping the most recent buckets.
        """
        if bucket_width_ms <= 0 or limit <= 0:
            return []

        buckets: Dict[int, BucketAccumulator] = {}
        for reading in readings:
            bucket_start = (reading.timestamp // bucket_width_ms) * bucket_width_ms
            bucket = buckets.get(bucket_start)
            if bucket is None:
                bucket = buckets[bucket_start] = BucketAccumulator()
            bucket.add(reading)

        aggregated = [
            Reading(
                timestamp=bucket_start,
                temperature=_mean(bucket.temperatures),
                humidity=_mean(bucket.humidities),
                device_id=bucket.merged_device_id(),
            )
            for bucket_start, bucket in buckets.items()
        ]
        aggregated.sort(key=lambda reading: reading.timestamp, reverse=True)
        return aggregated[:limit]
