"""
Unit tests for watermeter.core.state.reading_log.ReadingLog.

These tests validate that ReadingLog behaves as a bounded history:
- consumption is computed against the newest reading (or the baseline)
- readings are kept newest-first and the oldest is evicted at capacity
- windowed views include readings at the cutoff and are restartable
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from watermeter.core.state.reading_log import DEFAULT_CAPACITY, ReadingLog

T0 = datetime(2026, 1, 1, 10, 0, 0)


def _at(s: float) -> datetime:
    return T0 + timedelta(seconds=s)


def test_first_reading_consumption_is_relative_to_baseline() -> None:
    log = ReadingLog(baseline=5.0)

    r = log.append(7.5, T0)

    assert r.cumulative_value == 7.5
    assert r.consumption_since_last == pytest.approx(2.5)
    assert log.newest() is r


def test_consumption_is_relative_to_newest_existing_reading() -> None:
    log = ReadingLog()
    log.append(1.0, _at(0))

    r = log.append(0.25, _at(10))

    assert r.consumption_since_last == pytest.approx(-0.75)


def test_readings_are_newest_first_with_unique_ids() -> None:
    log = ReadingLog()
    a = log.append(1.0, _at(0))
    b = log.append(2.0, _at(1))
    c = log.append(3.0, _at(2))

    assert list(log) == [c, b, a]
    assert log.second_newest() is b
    assert len({a.id, b.id, c.id}) == 3


def test_capacity_evicts_oldest_first() -> None:
    log = ReadingLog()
    for i in range(DEFAULT_CAPACITY + 5):
        log.append(float(i), _at(i))

    assert len(log) == DEFAULT_CAPACITY
    assert log.newest().cumulative_value == float(DEFAULT_CAPACITY + 4)
    assert log.snapshot()[-1].cumulative_value == 5.0


def test_empty_log_has_no_newest() -> None:
    log = ReadingLog()

    assert log.newest() is None
    assert log.second_newest() is None
    assert log.windowed(30, T0).is_empty()


def test_windowed_includes_reading_exactly_at_cutoff() -> None:
    log = ReadingLog()
    log.append(0.0, _at(0))
    log.append(1.0, _at(10))
    log.append(2.0, _at(20))

    window = log.windowed(20, _at(30))

    assert [r.cumulative_value for r in window] == [2.0, 1.0]
    assert window.oldest().cumulative_value == 1.0


def test_windowed_view_is_restartable_and_unaffected_by_later_appends() -> None:
    log = ReadingLog()
    log.append(0.0, _at(0))
    window = log.windowed(60, _at(5))

    log.append(1.0, _at(5))

    assert [r.cumulative_value for r in window] == [0.0]
    assert [r.cumulative_value for r in window] == [0.0]


def test_window_without_recent_readings_is_empty() -> None:
    log = ReadingLog()
    log.append(0.0, _at(0))

    window = log.windowed(30, _at(100))

    assert window.is_empty()
    assert window.oldest() is None


def test_clear_removes_all_readings() -> None:
    log = ReadingLog()
    log.append(1.0, T0)

    log.clear()

    assert len(log) == 0
