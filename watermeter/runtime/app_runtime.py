from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from watermeter.runtime.alarm_journal_thread import AlarmJournalThread
from watermeter.runtime.event_bus import EventBus
from watermeter.runtime.tick_driver_thread import TickDriverThread
from watermeter.services.controller import MonitoringController


@dataclass(frozen=True)
class AppRuntimeConfig:
    """
    Runtime configuration for thread orchestration.

    Parameters
    ----------
    tick_interval_s
        Seconds between two engine evaluations.
    journal_keep_last
        Number of recent alarm events kept by the journal.
    """

    tick_interval_s: float = 1.0
    journal_keep_last: int = 200


class AppRuntime:
    """
    Thread supervisor and composition root for the monitor runtime.

    This class owns:
    - a shared stop event
    - thread lifecycles (start/stop/join)
    - event bus integration (AlarmEvent -> journal)

    Thread Topology
    ---------------
    1) TickDriverThread (business logic)
       - invokes MonitoringController.handle_tick() once per interval
       - controller advances the meter, records readings, runs the engine
       - controller publishes AlarmEvent into EventBus

    2) AlarmJournalThread (adapter)
       - consumes AlarmEvent from EventBus queue
       - logs each transition and keeps the recent ones for display

    Notes
    -----
    - All threads are daemon threads; `stop()` still joins them for clean shutdown.
    - EventBus drops events if overloaded so evaluation never blocks.
    """

    def __init__(
        self,
        cfg: AppRuntimeConfig,
        controller: MonitoringController,
        bus: EventBus,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Parameters
        ----------
        cfg
            Runtime configuration (tick cadence, journal size).
        controller
            Orchestrates meter stepping, reading capture and evaluation.
        bus
            In-process event bus decoupling alarm generation from journaling.
        clock
            Optional source of tick timestamps.
        """
        self._cfg = cfg
        self._controller = controller
        self._bus = bus
        self._stop = threading.Event()

        self._driver = TickDriverThread(
            controller=controller,
            stop_event=self._stop,
            interval_s=cfg.tick_interval_s,
            clock=clock,
        )

        self.journal = AlarmJournalThread(
            bus=self._bus,
            stop_event=self._stop,
            keep_last=cfg.journal_keep_last,
        )

    @property
    def tick_count(self) -> int:
        return self._driver.tick_count

    def start(self) -> None:
        """
        Start all runtime threads.

        Notes
        -----
        The journal starts first so no event published by the first tick
        waits on an idle consumer.
        """
        self.journal.start()
        self._driver.start()

    def stop(self) -> None:
        """
        Stop all runtime threads and wait briefly for shutdown.

        Notes
        -----
        Stop is cooperative: threads check the shared stop event and exit.
        """
        self._driver.stop()
        self.journal.stop()

        self._driver.join(timeout=2.0)
        self.journal.join(timeout=2.0)
