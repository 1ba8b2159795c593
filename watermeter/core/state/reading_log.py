from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Deque, Iterator, Optional, Tuple

from watermeter.domain.models import Reading

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100


@dataclass(frozen=True)
class ReadingWindow:
    """
    Lazy view of the readings recorded within a trailing time window.

    The view is taken over a snapshot of the log, so iterating it again (or
    after further appends) always yields the same readings. Iteration is
    newest-first and filters on the fly; an empty window means "no data".

    Parameters
    ----------
    readings
        Snapshot of the log, newest first.
    cutoff
        Oldest timestamp (inclusive) that belongs to the window.
    """

    readings: Tuple[Reading, ...]
    cutoff: datetime

    def __iter__(self) -> Iterator[Reading]:
        return (r for r in self.readings if r.timestamp >= self.cutoff)

    def is_empty(self) -> bool:
        return next(iter(self), None) is None

    def oldest(self) -> Optional[Reading]:
        """
        Return the oldest reading in the window (last in newest-first order).

        Returns
        -------
        Reading or None
            None if the window holds no readings.
        """
        last: Optional[Reading] = None
        for r in self:
            last = r
        return last


@dataclass
class ReadingLog:
    """
    Bounded, time-ordered store of cumulative readings.

    Readings are kept newest-first in a fixed-capacity ring buffer; once the
    capacity is reached the oldest reading is evicted on every append.

    Notes
    -----
    - Thread-safety is not handled here; the enclosing `MeterStateStore` is
      responsible for synchronization.
    - Appending never fails.

    Attributes
    ----------
    capacity
        Maximum number of readings retained.
    baseline
        Meter value before the first reading; used to compute the consumption
        of the first reading.
    """

    capacity: int = DEFAULT_CAPACITY
    baseline: float = 0.0
    _readings: Deque[Reading] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._readings = deque(maxlen=self.capacity)

    def append(self, value: float, timestamp: datetime) -> Reading:
        """
        Record a new cumulative reading.

        Parameters
        ----------
        value
            Cumulative meter value at ``timestamp``.
        timestamp
            Time of the reading.

        Returns
        -------
        Reading
            The stored reading.
        """
        previous = self._readings[0].cumulative_value if self._readings else self.baseline
        reading = Reading(
            timestamp=timestamp,
            cumulative_value=value,
            consumption_since_last=value - previous,
            id=str(uuid.uuid4()),
        )
        self._readings.appendleft(reading)
        logger.debug(
            "reading recorded value=%.4f",
            value,
            extra={"reading_id": reading.id},
        )
        return reading

    def windowed(self, seconds: float, now: datetime) -> ReadingWindow:
        """
        Return readings with ``timestamp >= now - seconds``, newest first.

        Parameters
        ----------
        seconds
            Window length in seconds.
        now
            Evaluation time.

        Returns
        -------
        ReadingWindow
            Restartable view; may be empty.
        """
        return ReadingWindow(readings=tuple(self._readings), cutoff=now - timedelta(seconds=seconds))

    def newest(self) -> Optional[Reading]:
        return self._readings[0] if self._readings else None

    def second_newest(self) -> Optional[Reading]:
        return self._readings[1] if len(self._readings) >= 2 else None

    def snapshot(self) -> Tuple[Reading, ...]:
        """Copy of all retained readings, newest first."""
        return tuple(self._readings)

    def clear(self) -> None:
        self._readings.clear()

    def __len__(self) -> int:
        return len(self._readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(tuple(self._readings))
