from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from queue import Full, Queue

from watermeter.domain.events import AlarmEvent

logger = logging.getLogger(__name__)


@dataclass
class EventBus:
    """
    Hand-off point between the engine tick and alarm consumers.

    The driver thread publishes every OPENED/CLOSED transition with
    :meth:`publish_alarm`; the journal thread reads :attr:`alarm_events_q`.
    ``queue.Queue`` does its own locking, so any number of threads may publish.

    Overflow
    --------
    Publishing never waits. When the queue is full the event is discarded and
    :attr:`dropped` is incremented, keeping the tick loop on schedule.

    Attributes
    ----------
    alarm_events_q
        Bounded FIFO of pending alarm events.
    dropped
        Number of events discarded because the queue was full.
    """

    alarm_events_q: "Queue[AlarmEvent]" = field(default_factory=lambda: Queue(maxsize=5000))
    dropped: int = 0

    _drop_lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def publish_alarm(self, ev: AlarmEvent) -> None:
        """
        Enqueue ``ev`` without blocking, or count it as dropped.

        Parameters
        ----------
        ev
            AlarmEvent to publish.
        """
        try:
            self.alarm_events_q.put_nowait(ev)
        except Full:
            with self._drop_lock:
                self.dropped += 1
            logger.warning(
                "alarm event dropped, bus full",
                extra={"alarm_type": ev.kind.value, "alarm_id": ev.alarm_id},
            )
