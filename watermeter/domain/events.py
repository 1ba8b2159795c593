"""
Alarm event domain models.

This module defines the event-level representation of alarm lifecycle changes.
An `AlarmEvent` represents *what happened* at a specific tick, while `Alarm`
(in models.py) is the record that stays in the alarm history.

Events are typically used for:
- logging and audit trails
- the in-process event bus consumed by runtime threads
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from watermeter.domain.models import Alarm, AlarmKind


class AlarmTransition(str, Enum):
    """
    Alarm lifecycle transition.

    Members
    -------
    OPENED : str
        A duration-satisfied condition opened a new alarm.
    CLOSED : str
        The condition stopped holding and the active alarm was closed.
    """

    OPENED = "OPENED"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class AlarmEvent:
    """
    Alarm event emitted when an alarm opens or closes.

    Parameters
    ----------
    alarm_id
        Identifier of the affected alarm record.
    kind
        Alarm kind.
    transition
        OPENED or CLOSED.
    timestamp
        Tick at which the transition happened.
    trigger_value
        Trigger value captured when the alarm was opened.
    message
        Human-readable description (used in logs).
    """

    alarm_id: str
    kind: AlarmKind
    transition: AlarmTransition
    timestamp: datetime
    trigger_value: float
    message: str

    @classmethod
    def opened(cls, alarm: Alarm, ts: datetime) -> "AlarmEvent":
        return cls(
            alarm_id=alarm.id,
            kind=alarm.kind,
            transition=AlarmTransition.OPENED,
            timestamp=ts,
            trigger_value=alarm.trigger_value,
            message=f"{alarm.kind.value} alarm opened (trigger={alarm.trigger_value:.6f})",
        )

    @classmethod
    def closed(cls, alarm: Alarm, ts: datetime) -> "AlarmEvent":
        held_s = (ts - alarm.start_time).total_seconds()
        return cls(
            alarm_id=alarm.id,
            kind=alarm.kind,
            transition=AlarmTransition.CLOSED,
            timestamp=ts,
            trigger_value=alarm.trigger_value,
            message=f"{alarm.kind.value} alarm closed after {held_s:.0f}s",
        )
