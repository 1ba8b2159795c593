from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Dict, List, Optional

from watermeter.domain.models import Alarm, AlarmKind, ThresholdStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileOutcome:
    """
    Result of reconciling one alarm kind against its threshold status.

    At most one of ``opened`` / ``closed`` is set; both are None for a no-op.
    """

    opened: Optional[Alarm] = None
    closed: Optional[Alarm] = None


@dataclass
class AlarmLedger:
    """
    Authoritative alarm history and active-alarm index.

    The ledger maintains:
    - an append-only list of alarm records (open and closed)
    - an index from alarm kind to the position of its active record

    Invariants
    ----------
    - At most one active alarm per kind.
    - Records are never removed; closing replaces the record with a closed
      copy and closed records are never touched again.

    Notes
    -----
    This ledger is not thread-safe. Synchronization is handled by the
    enclosing `MeterStateStore`.
    """

    _alarms: List[Alarm] = field(default_factory=list)
    _active: Dict[AlarmKind, int] = field(default_factory=dict)

    def reconcile(
        self,
        kind: AlarmKind,
        status: ThresholdStatus,
        window_seconds: float,
        trigger_value: float,
        now: datetime,
    ) -> ReconcileOutcome:
        """
        Open or close the alarm of ``kind`` according to ``status``.

        Opening requires the condition to be met for at least
        ``window_seconds``; closing happens as soon as the condition is no
        longer met, whatever its duration was.

        Parameters
        ----------
        kind
            Alarm kind being reconciled.
        status
            Threshold status produced by this tick.
        window_seconds
            Required continuous duration.
        trigger_value
            Value recorded on a newly opened alarm.
        now
            Evaluation timestamp (used as the closing time).

        Returns
        -------
        ReconcileOutcome
            The opened or closed alarm, if any.
        """
        idx = self._active.get(kind)

        if status.is_met:
            if idx is not None or status.duration < window_seconds:
                return ReconcileOutcome()

            alarm = Alarm(
                id=str(uuid.uuid4()),
                kind=kind,
                start_time=status.met_since or now,
                trigger_value=trigger_value,
            )
            self._alarms.append(alarm)
            self._active[kind] = len(self._alarms) - 1
            logger.info(
                "%s alarm opened",
                kind.value,
                extra={
                    "alarm_type": kind.value,
                    "alarm_id": alarm.id,
                    "trigger_value": trigger_value,
                    "duration_s": status.duration,
                },
            )
            return ReconcileOutcome(opened=alarm)

        if idx is None:
            return ReconcileOutcome()

        closed = replace(self._alarms[idx], active=False, end_time=now)
        self._alarms[idx] = closed
        del self._active[kind]
        logger.info(
            "%s alarm closed",
            kind.value,
            extra={"alarm_type": kind.value, "alarm_id": closed.id},
        )
        return ReconcileOutcome(closed=closed)

    def active_for(self, kind: AlarmKind) -> Optional[Alarm]:
        idx = self._active.get(kind)
        return None if idx is None else self._alarms[idx]

    def active_alarms(self) -> List[Alarm]:
        """
        Return currently active alarms in opening order.

        Returns
        -------
        list of Alarm
            Alarms where ``active`` is True.
        """
        return [self._alarms[i] for i in sorted(self._active.values())]

    def all_alarms(self) -> List[Alarm]:
        """
        Return the full alarm history in opening order.

        Returns
        -------
        list of Alarm
            Copy of every alarm record, open and closed.
        """
        return list(self._alarms)

    def clear(self) -> None:
        """
        Drop all alarm records.

        """
        self._alarms.clear()
        self._active.clear()
