from __future__ import annotations

import pytest

from services.window import TimeScale, TimeWindow, resolve

NOW_MS = 1_700_000_000_000


@pytest.mark.parametrize(
    ("scale", "expected_ms"),
    [
        (TimeScale.last_30m, 30 * 60 * 1000),
        (TimeScale.last_1h, 60 * 60 * 1000),
        (TimeScale.last_6h, 6 * 60 * 60 * 1000),
        (TimeScale.last_24h, 24 * 60 * 60 * 1000),
        (TimeScale.last_7d, 7 * 24 * 60 * 60 * 1000),
        (TimeScale.last_30d, 30 * 24 * 60 * 60 * 1000),
    ],
)
def test_bounded_scales_resolve_to_cutoff(scale: TimeScale, expected_ms: int) -> None:
    window = resolve(scale, NOW_MS)

    assert window == TimeWindow(cutoff_ms=NOW_MS - expected_ms, window_ms=expected_ms)
    assert window.bounded is True


def test_all_scale_has_no_cutoff_or_duration() -> None:
    window = resolve(TimeScale.all, NOW_MS)

    assert window.cutoff_ms is None
    assert window.window_ms is None
    assert window.bounded is False


def test_every_scale_has_a_duration_entry() -> None:
    for scale in TimeScale:
        duration = scale.duration_ms
        assert duration is None or duration > 0


@pytest.mark.parametrize("raw", ["1h", " 1h ", "all", "30d"])
def test_parse_accepts_known_tokens(raw: str) -> None:
    assert TimeScale.parse(raw).value == raw.strip()


@pytest.mark.parametrize("raw", [None, "", "2h", "ALL", "week"])
def test_parse_falls_back_to_24h(raw) -> None:
    assert TimeScale.parse(raw) is TimeScale.last_24h
    assert TimeScale.default() is TimeScale.last_24h
