from __future__ import annotations

import logging
import threading
from queue import Empty
from typing import List

from watermeter.domain.events import AlarmEvent, AlarmTransition
from watermeter.runtime.event_bus import EventBus

logger = logging.getLogger(__name__)


class AlarmJournalThread:
    """
    Consumer thread that records alarm transitions from the event bus.

    Responsibilities
    ----------------
    - Drain `EventBus.alarm_events_q`.
    - Write each transition to the application log (WARNING when an alarm
      opens, INFO when it closes).
    - Keep the most recent events in memory for console/UI display.

    Concurrency Model
    -----------------
    - Runs as a daemon thread.
    - Polls queue with timeout to remain responsive to stop signals.
    - Any exception while journaling an event is caught and logged.

    Parameters
    ----------
    bus
        Event bus providing the AlarmEvent queue.
    stop_event
        Stop signal for the thread.
    keep_last
        Number of recent events retained in :attr:`recent`.
    """

    def __init__(self, bus: EventBus, stop_event: threading.Event, keep_last: int = 200):
        self._bus = bus
        self._stop = stop_event
        self._keep_last = keep_last
        self._recent: List[AlarmEvent] = []
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name="alarm-journal", daemon=True)

    @property
    def recent(self) -> List[AlarmEvent]:
        """Copy of the most recent journaled events, oldest first."""
        with self._lock:
            return list(self._recent)

    def start(self) -> None:
        """
        Start the journal thread if not already running.
        """
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """
        Signal the journal thread to stop.
        """
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        """
        Join the journal thread.

        Parameters
        ----------
        timeout
            Maximum time to wait for the thread to exit.
        """
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        """
        Worker loop: consume AlarmEvent and journal it.
        """
        while not self._stop.is_set():
            try:
                ev = self._bus.alarm_events_q.get(timeout=0.5)
            except Empty:
                continue

            try:
                self._journal(ev)
            except Exception:
                logger.exception("journaling alarm event failed")

    def _journal(self, ev: AlarmEvent) -> None:
        level = logging.WARNING if ev.transition is AlarmTransition.OPENED else logging.INFO
        logger.log(
            level,
            ev.message,
            extra={
                "alarm_type": ev.kind.value,
                "alarm_id": ev.alarm_id,
                "transition": ev.transition.value,
            },
        )
        with self._lock:
            self._recent.append(ev)
            del self._recent[:-self._keep_last]
