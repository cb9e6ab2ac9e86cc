from __future__ import annotations

from models.records import Reading
from services.resolution import MIN_BUCKET_MS, RAW_BUCKET_MS, observed_span, select_bucket_width

HOUR_MS = 60 * 60 * 1000


def test_raw_mode_when_candidates_fit_the_limit() -> None:
    assert select_bucket_width(0, HOUR_MS, 10) == RAW_BUCKET_MS
    assert select_bucket_width(10, HOUR_MS, 10) == RAW_BUCKET_MS
    assert select_bucket_width(10, None, 10, span_ms=HOUR_MS) == RAW_BUCKET_MS


def test_width_scales_with_window_and_reduction_factor() -> None:
    # ceil(2500 / 1000) == 3, ceil(24h / 1000 * 3) == 259_200
    assert select_bucket_width(2500, 24 * HOUR_MS, 1000) == 259_200


def test_width_never_drops_below_floor() -> None:
    assert select_bucket_width(20, 60_000, 10) == MIN_BUCKET_MS
    assert MIN_BUCKET_MS == 15_000


def test_unbounded_window_uses_observed_span() -> None:
    # ceil(200 / 100) == 2, ceil(10h / 100 * 2) == 720_000
    assert select_bucket_width(200, None, 100, span_ms=10 * HOUR_MS) == 720_000


def test_unbounded_window_without_span_uses_floor() -> None:
    assert select_bucket_width(200, None, 100) == MIN_BUCKET_MS
    assert select_bucket_width(200, None, 100, span_ms=0) == MIN_BUCKET_MS


def test_non_positive_limit_does_not_divide_by_zero() -> None:
    assert select_bucket_width(5, HOUR_MS, 0) == RAW_BUCKET_MS


def test_observed_span() -> None:
    readings = [
        Reading(timestamp=5_000, temperature=1.0, humidity=1.0),
        Reading(timestamp=1_000, temperature=1.0, humidity=1.0),
        Reading(timestamp=9_000, temperature=1.0, humidity=1.0),
    ]

    assert observed_span(readings) == 8_000
    assert observed_span([]) == 0
