"""
Threshold evaluation contracts (context, condition results, and conditions).

This module defines the data structures that form the contract between:

- Threshold conditions (stateless predicates) producing -> class:`ConditionResult`
- The threshold detector (per-kind timer) consuming results and producing
  the next :class:`~watermeter.domain.models.ThresholdStatus`

The objects here are immutable so one context can be shared by all four
detectors of a tick without surprises.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from watermeter.core.alarm.rate_estimator import WindowStats, window_stats
from watermeter.core.state.reading_log import ReadingLog
from watermeter.domain.models import AlarmRule


@dataclass(frozen=True)
class DetectorContext:
    """
    Context passed into every condition evaluation of one tick.

    Parameters
    ----------
    now
        Evaluation timestamp for the current tick.
    live_value
        Current cumulative meter value.
    instantaneous_rate
        Flow rate derived once per tick from the two newest samples.
    log
        Reading history used for window-scoped aggregates.
    """

    now: datetime
    live_value: float
    instantaneous_rate: float
    log: ReadingLog

    def window(self, seconds: float) -> Optional[WindowStats]:
        """
        Aggregate the readings of a trailing window.

        Parameters
        ----------
        seconds
            Window length.

        Returns
        -------
        WindowStats or None
            None when the windowed average is unavailable.
        """
        return window_stats(self.log.windowed(seconds, self.now), self.live_value, self.now)


@dataclass(frozen=True)
class ConditionResult:
    """
    Result of evaluating one threshold condition for one tick.

    Parameters
    ----------
    met
        Whether the condition holds this tick.
    current_average
        Rate kept on the status for display, met or not.
    trigger_value
        Value recorded on the alarm if this tick opens one.
    """

    met: bool
    current_average: Optional[float] = None
    trigger_value: float = 0.0


class ThresholdCondition(Protocol):
    """
    Protocol interface for a per-kind threshold condition.

    Conditions are **stateless**; all timing state lives in the detector.

    Methods
    -------
    evaluate(ctx, rule)
        Decide whether the condition holds for this tick.
    """

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
        """
        Evaluate the condition.

        Parameters
        ----------
        ctx
            Tick context (timestamp, live value, instantaneous rate, history).
        rule
            Current rule for the kind (re-read every tick).

        Returns
        -------
        ConditionResult
            Met flag, display average and trigger value.
        """
        ...
