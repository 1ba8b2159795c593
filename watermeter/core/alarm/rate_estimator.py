"""
Flow-rate derivation from cumulative readings.

All functions here are pure. Any division whose denominator (elapsed time) is
not positive falls back to a defined result instead of raising: the
instantaneous rate becomes 0.0 and the windowed average becomes unavailable.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from watermeter.core.state.reading_log import ReadingLog, ReadingWindow


@dataclass(frozen=True)
class WindowStats:
    """
    Aggregates over one trailing window.

    Parameters
    ----------
    average_rate
        ``(live - oldest) / (now - oldest.timestamp)`` in m³/s.
    total_consumption
        ``live - oldest`` in m³.
    elapsed_s
        Seconds between the oldest reading in the window and ``now``.
    """

    average_rate: float
    total_consumption: float
    elapsed_s: float


def estimate_rate(log: ReadingLog, live_value: float, now: datetime) -> float:
    """
    Derive the instantaneous flow rate.

    Rules
    -----
    1) With two or more readings: slope between the two newest readings.
    2) With exactly one reading: slope between it and the live value at ``now``.
    3) Otherwise (or when the relevant time delta is not positive): 0.0.

    Parameters
    ----------
    log
        Reading history.
    live_value
        Current cumulative meter value.
    now
        Evaluation timestamp.

    Returns
    -------
    float
        Flow rate in m³/s.
    """
    newest = log.newest()
    if newest is None:
        return 0.0

    previous = log.second_newest()
    if previous is not None:
        dt = (newest.timestamp - previous.timestamp).total_seconds()
        if dt > 0:
            return (newest.cumulative_value - previous.cumulative_value) / dt
        return 0.0

    dt = (now - newest.timestamp).total_seconds()
    if dt > 0:
        return (live_value - newest.cumulative_value) / dt
    return 0.0


def window_stats(window: ReadingWindow, live_value: float, now: datetime) -> Optional[WindowStats]:
    """
    Compute the windowed average rate against the live value.

    Parameters
    ----------
    window
        Readings inside the window (newest first).
    live_value
        Current cumulative meter value.
    now
        Evaluation timestamp.

    Returns
    -------
    WindowStats or None
        None when the window is empty or no time has elapsed since its oldest
        reading.
    """
    oldest = window.oldest()
    if oldest is None:
        return None

    elapsed = (now - oldest.timestamp).total_seconds()
    if elapsed <= 0:
        return None

    total = live_value - oldest.cumulative_value
    return WindowStats(average_rate=total / elapsed, total_consumption=total, elapsed_s=elapsed)
