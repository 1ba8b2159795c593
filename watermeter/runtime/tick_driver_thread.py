from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from watermeter.services.controller import MonitoringController

logger = logging.getLogger(__name__)


class TickDriverThread:
    """
    Periodic driver thread for the monitoring engine.

    Responsibilities
    ----------------
    - Call `MonitoringController.handle_tick(now)` once per ``interval_s``.
    - Supply ``now`` from an injectable clock so each tick is an explicit,
      timestamped call.

    Concurrency Model
    -----------------
    - Exactly one tick is in flight at a time (single driver thread).
    - The thread waits on the stop event between ticks to remain responsive
      to stop signals.
    - Exceptions in a tick are caught and logged to avoid killing the thread.

    Parameters
    ----------
    controller
        Monitoring controller invoked on every tick.
    stop_event
        Thread stop signal. When set, the driver exits its loop.
    interval_s
        Seconds between ticks.
    clock
        Source of tick timestamps; defaults to `datetime.now`.
    """

    def __init__(
        self,
        controller: MonitoringController,
        stop_event: threading.Event,
        interval_s: float = 1.0,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._controller = controller
        self._stop = stop_event
        self._interval_s = interval_s
        self._clock = clock or datetime.now
        self.tick_count = 0
        self._thread = threading.Thread(target=self._run, name="tick-driver", daemon=True)

    def start(self) -> None:
        """
        Start the driver thread if it is not already running.
        """
        if not self._thread.is_alive():
            self._thread.start()

    def stop(self) -> None:
        """
        Signal the driver thread to stop.
        """
        self._stop.set()

    def join(self, timeout: float | None = 2.0) -> None:
        """
        Join the driver thread.

        Parameters
        ----------
        timeout
            Maximum time to wait for the thread to exit.
        """
        self._thread.join(timeout=timeout)

    def _run(self) -> None:
        """
        Driver loop: tick, then wait for the next interval or a stop signal.
        """
        while not self._stop.is_set():
            try:
                self._controller.handle_tick(self._clock())
                self.tick_count += 1
            except Exception:
                logger.exception("tick failed")

            self._stop.wait(self._interval_s)
