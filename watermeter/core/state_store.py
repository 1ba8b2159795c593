from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from watermeter.core.alarm.monitoring_engine import MonitoringEngine, TickResult
from watermeter.core.config.alarm_config_registry import AlarmConfigRegistry
from watermeter.core.state.reading_log import ReadingLog
from watermeter.domain.models import Alarm, AlarmKind, AlarmRule, AlarmRules, Reading, ThresholdStatus


@dataclass
class MeterStateStore:
    """
    Thread-safe facade for monitor state.

    'MeterStateStore' aggregates and coordinates access to:
    - alarm rule registry (enable flags, thresholds, windows)
    - reading history and the live meter value
    - the monitoring engine (threshold statuses + alarm ledger)

    Concurrency Model
    -----------------
    All reads/writes are guarded by a single re-entrant lock (`threading.RLock`).
    A whole engine tick runs under the lock, so the reading log, statuses and
    ledger are only ever mutated by one evaluation at a time, and UI readers
    always see a consistent snapshot.

    Design Notes
    ------------
    - Snapshot properties return copies to avoid iteration hazards such as
      "deque mutated during iteration".

    Attributes
    ----------
    configs
        Alarm rule registry; read fresh on every tick.
    readings
        Bounded reading history.
    engine
        Monitoring engine owning statuses and alarm ledger.
    """

    configs: AlarmConfigRegistry = field(default_factory=AlarmConfigRegistry)
    readings: ReadingLog = field(default_factory=ReadingLog)
    engine: MonitoringEngine = field(default_factory=MonitoringEngine)
    live_value: float = 0.0

    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    # --- Config API ---
    def set_rule(self, kind: AlarmKind, rule: AlarmRule) -> None:
        """
        Add or replace the rule of one alarm kind.

        Parameters
        ----------
        kind
            Alarm kind.
        rule
            New rule (validated by the registry).
        """
        with self._lock:
            self.configs.set_rule(kind, rule)

    def set_enabled(self, kind: AlarmKind, enabled: bool) -> None:
        with self._lock:
            self.configs.update(kind, enabled=enabled)

    @property
    def rules(self) -> AlarmRules:
        """
        Return the current alarm rules.

        Returns
        -------
        AlarmRules
            Immutable rule bundle.
        """
        with self._lock:
            return self.configs.rules()

    # --- Readings API ---
    def set_live_value(self, value: float) -> None:
        """
        Update the live cumulative meter value.

        Parameters
        ----------
        value
            Current register value.
        """
        with self._lock:
            self.live_value = float(value)

    def append_reading(self, value: float, timestamp: datetime) -> Reading:
        """
        Record a cumulative reading into the history.

        Parameters
        ----------
        value
            Cumulative value.
        timestamp
            Reading time.

        Returns
        -------
        Reading
            The stored reading.
        """
        with self._lock:
            return self.readings.append(value, timestamp)

    def get_latest_reading(self) -> Optional[Reading]:
        with self._lock:
            return self.readings.newest()

    # --- Evaluation API (used by MonitoringController) ---
    def evaluate(self, now: datetime) -> TickResult:
        """
        Run one engine tick against the current state.

        Parameters
        ----------
        now
            Evaluation timestamp.

        Returns
        -------
        TickResult
            Alarms, statuses and events of this tick.
        """
        with self._lock:
            return self.engine.tick(now, self.live_value, self.readings, self.configs.rules())

    def clear_alarm_history(self) -> None:
        """
        Reset threshold statuses and drop the alarm history.

        Notes
        -----
        This is typically triggered by a UI action (e.g., "Clear log").
        """
        with self._lock:
            self.engine.reset()

    # -------------------------
    # UI-facing snapshot properties
    # -------------------------
    @property
    def reading_history(self) -> Tuple[Reading, ...]:
        """
        Snapshot copy of the reading history.

        Returns
        -------
        tuple of Reading
            Readings newest first.
        """
        with self._lock:
            return self.readings.snapshot()

    @property
    def active_alarms(self) -> List[Alarm]:
        with self._lock:
            return self.engine.ledger.active_alarms()

    @property
    def all_alarms(self) -> List[Alarm]:
        """
        Snapshot copy of the alarm history.

        Returns
        -------
        list of Alarm
            Alarm records in opening order.
        """
        with self._lock:
            return self.engine.ledger.all_alarms()

    @property
    def threshold_statuses(self) -> Dict[AlarmKind, ThresholdStatus]:
        """
        Snapshot copy of the current threshold statuses.

        Returns
        -------
        dict[AlarmKind, ThresholdStatus]
            Status per alarm kind.
        """
        with self._lock:
            return self.engine.threshold_statuses()
