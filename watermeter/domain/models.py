"""
Domain models and enums.

This module defines the core domain-level types used across the monitor:
- Alarm kinds (leak, no-flow, burst, backflow)
- Cumulative meter readings
- Per-kind alarm rules (enable flag, threshold, window) and their bundle
- ThresholdStatus, the per-kind "continuously met since" timer
- Alarm, a single opened (and possibly closed) alarm record

These are designed as immutable (frozen) dataclasses so they can be shared
across layers and threads; state changes are expressed by replacing records.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Optional


class AlarmKind(str, Enum):
    """
    Category identifying the flow pattern that caused the alarm.

    Members
    -------
    LEAK : str
        Sustained low positive flow.
    NO_FLOW : str
        Sustained zero flow.
    BURST : str
        Sustained high flow.
    BACKFLOW : str
        Sustained reverse flow.
    """

    LEAK = "leak"
    NO_FLOW = "noFlow"
    BURST = "burst"
    BACKFLOW = "backflow"

    @property
    def has_threshold(self) -> bool:
        """Whether rules of this kind carry a threshold value (no-flow is duration-only)."""
        return self is not AlarmKind.NO_FLOW


@dataclass(frozen=True)
class Reading:
    """
    Cumulative meter reading recorded by the driver.

    Parameters
    ----------
    timestamp
        Time the reading was recorded.
    cumulative_value
        Total meter register value (m³).
    consumption_since_last
        Difference to the previously recorded reading (m³). May be negative
        for reverse flow.
    id
        Opaque unique identifier.
    """

    timestamp: datetime
    cumulative_value: float
    consumption_since_last: float
    id: str


@dataclass(frozen=True)
class AlarmRule:
    """
    Configuration for one alarm kind.

    Parameters
    ----------
    enabled
        Disabled kinds are skipped entirely by the engine.
    threshold_value
        Rate threshold (m³/s). Unused for no-flow.
    window_seconds
        Averaging window and required continuous duration, in seconds.
    """

    enabled: bool = True
    threshold_value: Optional[float] = None
    window_seconds: int = 30

    def validate(self, kind: AlarmKind) -> None:
        """
        Check the rule against the constraints of its kind.

        Raises
        ------
        ValueError
            If the window or threshold is negative, or a thresholded kind has
            no threshold value.
        """
        if self.window_seconds < 0:
            raise ValueError(f"{kind.value}: window_seconds must be >= 0, got {self.window_seconds}")
        if kind.has_threshold:
            if self.threshold_value is None:
                raise ValueError(f"{kind.value}: threshold_value is required")
            if self.threshold_value < 0:
                raise ValueError(f"{kind.value}: threshold_value must be >= 0, got {self.threshold_value}")


@dataclass(frozen=True)
class AlarmRules:
    """
    Rules for all four alarm kinds.

    The engine reads this bundle once per tick; the settings surface replaces
    it (via :meth:`with_rule`) whenever a rule changes.
    """

    leak: AlarmRule = AlarmRule(enabled=True, threshold_value=0.02, window_seconds=30)
    no_flow: AlarmRule = AlarmRule(enabled=True, threshold_value=None, window_seconds=30)
    burst: AlarmRule = AlarmRule(enabled=True, threshold_value=0.1, window_seconds=15)
    backflow: AlarmRule = AlarmRule(enabled=True, threshold_value=0.01, window_seconds=30)

    def for_kind(self, kind: AlarmKind) -> AlarmRule:
        return getattr(self, _RULE_FIELDS[kind])

    def with_rule(self, kind: AlarmKind, rule: AlarmRule) -> "AlarmRules":
        return replace(self, **{_RULE_FIELDS[kind]: rule})

    def as_dict(self) -> Dict[AlarmKind, AlarmRule]:
        return {kind: self.for_kind(kind) for kind in AlarmKind}


_RULE_FIELDS: Dict[AlarmKind, str] = {
    AlarmKind.LEAK: "leak",
    AlarmKind.NO_FLOW: "no_flow",
    AlarmKind.BURST: "burst",
    AlarmKind.BACKFLOW: "backflow",
}


@dataclass(frozen=True)
class ThresholdStatus:
    """
    Continuous-condition timer for one alarm kind.

    Invariants
    ----------
    - ``is_met is False`` implies ``duration == 0`` and ``met_since is None``.
    - ``is_met is True`` implies ``met_since is not None`` and
      ``duration == now - met_since`` for the tick that produced it.

    Parameters
    ----------
    is_met
        Whether the kind's condition held on the latest evaluated tick.
    met_since
        Tick at which the condition started holding continuously.
    duration
        Seconds the condition has held continuously.
    current_average
        Rate shown for display (windowed average, or instantaneous rate for
        no-flow). Stored whether or not the condition is met.
    """

    is_met: bool = False
    met_since: Optional[datetime] = None
    duration: float = 0.0
    current_average: Optional[float] = None


@dataclass(frozen=True)
class Alarm:
    """
    Alarm record.

    An alarm is opened once a condition has been duration-satisfied and is
    closed (``end_time`` set, ``active`` False) as soon as the condition stops
    holding. Records are never deleted.

    Parameters
    ----------
    id
        Opaque unique identifier.
    kind
        Alarm kind.
    start_time
        When the underlying condition started holding (``met_since``).
    trigger_value
        Kind-specific value captured when the alarm was opened.
    active
        Whether the alarm is currently open.
    end_time
        When the alarm was closed, if it has been.
    """

    id: str
    kind: AlarmKind
    start_time: datetime
    trigger_value: float
    active: bool = True
    end_time: Optional[datetime] = None
