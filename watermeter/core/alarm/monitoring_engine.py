"""
Monitoring engine.

This module contains the per-tick orchestrator that turns the reading history
and the live meter value into:
- Updated `ThresholdStatus` timers (one per alarm kind) and
- Alarm records opened/closed in the `AlarmLedger`, reported as discrete
  `AlarmEvent` transitions (OPENED / CLOSED).

The engine does not implement condition logic itself; it runs the detectors and
applies their outcomes to the ledger. Time is always injected by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping

from watermeter.core.alarm.detector_base import DetectorContext
from watermeter.core.alarm.detectors import ThresholdDetector, default_detectors
from watermeter.core.alarm.rate_estimator import estimate_rate
from watermeter.core.state.alarm_ledger import AlarmLedger
from watermeter.core.state.reading_log import ReadingLog
from watermeter.domain.events import AlarmEvent
from watermeter.domain.models import Alarm, AlarmKind, AlarmRules, ThresholdStatus


def _idle_statuses() -> Dict[AlarmKind, ThresholdStatus]:
    return {kind: ThresholdStatus() for kind in AlarmKind}


@dataclass(frozen=True)
class TickResult:
    """
    Externally visible state after one tick.

    Parameters
    ----------
    active_alarms
        Alarms currently open.
    all_alarms
        Full alarm history (open and closed).
    threshold_statuses
        Status per alarm kind.
    events
        Transitions produced by this tick.
    instantaneous_rate
        Rate derived for this tick (m³/s).
    """

    active_alarms: List[Alarm]
    all_alarms: List[Alarm]
    threshold_statuses: Dict[AlarmKind, ThresholdStatus]
    events: List[AlarmEvent]
    instantaneous_rate: float


@dataclass
class MonitoringEngine:
    """
    Threshold-monitoring and alarm-lifecycle engine.

    On each tick the engine:
    1) derives the instantaneous rate once,
    2) evaluates every enabled detector against its own rule,
    3) stores the detector's new status, and
    4) asks the ledger to open/close the alarm of that kind.

    Notes
    -----
    - All four detectors run on every tick; none can short-circuit another.
    - Disabled kinds are skipped entirely: their previous status is kept and
      the ledger is not consulted, so they never open alarms.
    - Re-running a tick with the same inputs reproduces the same result.

    Parameters
    ----------
    detectors
        Detector per alarm kind.
    ledger
        Alarm history and active-alarm index.
    """

    detectors: Mapping[AlarmKind, ThresholdDetector] = field(default_factory=default_detectors)
    ledger: AlarmLedger = field(default_factory=AlarmLedger)
    _statuses: Dict[AlarmKind, ThresholdStatus] = field(default_factory=_idle_statuses)

    def tick(self, now: datetime, live_value: float, log: ReadingLog, rules: AlarmRules) -> TickResult:
        """
        Evaluate all detectors once and update alarm state.

        Parameters
        ----------
        now
            Timestamp for this evaluation.
        live_value
            Current cumulative meter value.
        log
            Reading history.
        rules
            Current alarm rules (read fresh every tick).

        Returns
        -------
        TickResult
            Active alarms, history, statuses and the events of this tick.
        """
        ctx = DetectorContext(
            now=now,
            live_value=live_value,
            instantaneous_rate=estimate_rate(log, live_value, now),
            log=log,
        )

        events: List[AlarmEvent] = []
        for kind, detector in self.detectors.items():
            rule = rules.for_kind(kind)
            if not rule.enabled:
                continue

            outcome = detector.evaluate(ctx, rule, self._statuses[kind])
            self._statuses[kind] = outcome.status

            reconciled = self.ledger.reconcile(
                kind,
                outcome.status,
                window_seconds=rule.window_seconds,
                trigger_value=outcome.trigger_value,
                now=now,
            )
            if reconciled.opened is not None:
                events.append(AlarmEvent.opened(reconciled.opened, now))
            if reconciled.closed is not None:
                events.append(AlarmEvent.closed(reconciled.closed, now))

        return TickResult(
            active_alarms=self.ledger.active_alarms(),
            all_alarms=self.ledger.all_alarms(),
            threshold_statuses=self.threshold_statuses(),
            events=events,
            instantaneous_rate=ctx.instantaneous_rate,
        )

    def threshold_statuses(self) -> Dict[AlarmKind, ThresholdStatus]:
        """
        Return a copy of the current status per kind.

        Returns
        -------
        dict[AlarmKind, ThresholdStatus]
            Status per alarm kind.
        """
        return dict(self._statuses)

    def reset(self) -> None:
        """
        Return every status to Idle and drop the alarm history.

        """
        self._statuses = _idle_statuses()
        self.ledger.clear()
