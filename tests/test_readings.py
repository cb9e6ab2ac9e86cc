from __future__ import annotations

import pytest

from app.schemas import ReadingRecord
from datastore.mock_kv import KVStoreError, MockKVNamespace
from models.records import Reading
from services.aggregator import Aggregator
from services.readings import ReadingService
from services.window import TimeScale

HOUR_MS = 60 * 60 * 1000
NOW_MS = 1_700_000_000_000


class Clock:
    def __init__(self, now_ms: int) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms


def _service(store: MockKVNamespace, now_ms: int = NOW_MS) -> ReadingService:
    return ReadingService(store=store, aggregator=Aggregator(), clock=Clock(now_ms))


def _seed(store: MockKVNamespace, timestamp: int, temperature: float, device_id: str | None = None) -> None:
    reading = Reading(timestamp=timestamp, temperature=temperature, humidity=50.0, device_id=device_id)
    value = ReadingRecord.from_reading(reading).model_dump_json(by_alias=True, exclude_none=True)
    store.put(f"data_{timestamp}_{device_id or 'default'}", value)


def test_write_then_read_round_trip_is_exact_in_raw_mode() -> None:
    store = MockKVNamespace(name="test")
    service = _service(store)

    service.record({"temperature": 21.53, "humidity": 55.07, "deviceId": "den"})
    history = service.fetch_history(TimeScale.last_1h, 1000)

    assert history == [Reading(timestamp=NOW_MS, temperature=21.53, humidity=55.07, device_id="den")]


def test_record_ignores_client_timestamp() -> None:
    store = MockKVNamespace(name="test")

    key = _service(store).record({"temperature": 1, "humidity": 2, "timestamp": 5})

    assert key == f"data_{NOW_MS}_default"


def test_history_excludes_readings_older_than_window() -> None:
    store = MockKVNamespace(name="test")
    _seed(store, NOW_MS - 2 * HOUR_MS, 10.0)
    _seed(store, NOW_MS - 30 * 60 * 1000, 20.0)
    _seed(store, NOW_MS - 60 * 1000, 30.0)

    history = _service(store).fetch_history(TimeScale.last_1h, 1000)

    assert [r.temperature for r in history] == [30.0, 20.0]


def test_all_scale_returns_every_reading_newest_first() -> None:
    store = MockKVNamespace(name="test")
    for offset in (5, 1, 3):
        _seed(store, NOW_MS - offset * 24 * HOUR_MS, float(offset))

    history = _service(store).fetch_history(TimeScale.all, 1000)

    assert [r.temperature for r in history] == [1.0, 3.0, 5.0]


def test_dense_window_is_aggregated_within_limit() -> None:
    store = MockKVNamespace(name="test")
    start = NOW_MS - HOUR_MS + 1
    for index in range(120):
        _seed(store, start + index * 30_000, float(index % 4), device_id="a" if index % 2 else "b")

    history = _service(store).fetch_history(TimeScale.last_1h, 10)

    assert 0 < len(history) <= 10
    timestamps = [r.timestamp for r in history]
    assert timestamps == sorted(timestamps, reverse=True)
    # ceil(120 / 10) == 12, ceil(1h / 10 * 12) == 4_320_000
    assert all(r.timestamp % 4_320_000 == 0 for r in history)
    assert {r.device_id for r in history} <= {"a,b", "b,a"}


def test_dense_unbounded_history_uses_observed_span() -> None:
    store = MockKVNamespace(name="test")
    for index in range(40):
        _seed(store, index * 60_000, 10.0)

    history = _service(store).fetch_history(TimeScale.all, 20)

    # span 39 min, ceil(40 / 20) == 2, ceil(2_340_000 / 20 * 2) == 234_000
    assert [r.timestamp for r in history] == [
        bucket for bucket in range(10 * 234_000, -1, -234_000)
    ]
    assert all(r.temperature == 10.0 for r in history)


def test_store_failure_surfaces() -> None:
    class BrokenStore(MockKVNamespace):
        def list_page(self, cursor=None):
            raise KVStoreError("unavailable")

    with pytest.raises(KVStoreError):
        _service(BrokenStore(name="test")).fetch_history(TimeScale.last_24h, 10)


def test_write_then_read_round_trip_in_aggregated_mode() -> None:
    store = MockKVNamespace(name="test")
    clock = Clock(NOW_MS - 30 * 60 * 1000)
    service = ReadingService(store=store, aggregator=Aggregator(), clock=clock)
    written: list[tuple[int, float, float]] = []
    for index in range(30):
        temperature = 20.0 + (index % 3) * 0.333
        humidity = 45.5 + (index % 7) * 0.125
        service.record({"temperature": temperature, "humidity": humidity})
        written.append((clock.now_ms, temperature, humidity))
        clock.now_ms += 10_000

    clock.now_ms = NOW_MS
    history = service.fetch_history(TimeScale.last_1h, 5)

    # ceil(30 / 5) == 6, ceil(1h / 5 * 6) == 4_320_000
    bucket_ms = 4_320_000
    assert 0 < len(history) <= 5
    for bucket in history:
        members = [item for item in written if item[0] // bucket_ms * bucket_ms == bucket.timestamp]
        assert members
        expected_temperature = sum(item[1] for item in members) / len(members)
        expected_humidity = sum(item[2] for item in members) / len(members)
        assert abs(bucket.temperature - expected_temperature) <= 0.01
        assert abs(bucket.humidity - expected_humidity) <= 0.01
    assert sum(
        1 for item in written if any(item[0] // bucket_ms * bucket_ms == b.timestamp for b in history)
    ) == len(written)
