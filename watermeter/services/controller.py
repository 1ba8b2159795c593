from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from simulator.sensors.water_meter import WaterMeterSensor
from watermeter.core.alarm.monitoring_engine import TickResult
from watermeter.core.state_store import MeterStateStore
from watermeter.runtime.event_bus import EventBus

logger = logging.getLogger(__name__)


@dataclass
class MonitoringController:
    """
    Orchestrate one driver tick: meter step, reading capture and evaluation.

    Responsibilities
    ----------------
    - Advance the simulated meter to the tick time and store the live value.
    - Record a cumulative reading on the first tick and then every
      ``reading_interval_s`` seconds.
    - Run one engine evaluation through the `MeterStateStore`.
    - Optionally publish emitted alarm events to an `EventBus`.

    Notes
    -----
    This controller contains orchestration logic only. Condition logic lives in
    the detectors, and alarm lifecycle in the engine and ledger.

    Parameters
    ----------
    store
        Thread-safe monitor state used by the engine and UI readers.
    meter
        Simulated water meter providing the live cumulative value.
    reading_interval_s
        Seconds between two recorded readings.
    bus
        Optional event bus used to publish AlarmEvents to subscribers
        (e.g., the alarm journal). If None, publishing is skipped.
    """

    store: MeterStateStore
    meter: WaterMeterSensor
    reading_interval_s: float = 10.0
    bus: Optional[EventBus] = None

    _next_reading_at: Optional[datetime] = field(default=None, init=False, repr=False)

    def handle_tick(self, now: Optional[datetime] = None) -> TickResult:
        """
        Handle one driver tick and return the evaluation result.

        Parameters
        ----------
        now
            Optional timestamp to use for this tick. If None, uses local
            current time.

        Returns
        -------
        TickResult
            Alarms, statuses and events produced by this tick.

        Side Effects
        ------------
        - Advances the meter and updates the store's live value.
        - Appends a reading when one is due.
        - If a bus is configured, publishes emitted events using `bus.publish_alarm`.
        """
        ts = now or datetime.now()

        live = self.meter.advance(ts)
        self.store.set_live_value(live)

        if self._next_reading_at is None or ts >= self._next_reading_at:
            self.store.append_reading(live, ts)
            self._next_reading_at = ts + timedelta(seconds=self.reading_interval_s)

        result = self.store.evaluate(ts)

        if self.bus is not None:
            for ev in result.events:
                self.bus.publish_alarm(ev)

        return result

    def apply_rate(self, rate: float) -> None:
        """
        Switch the meter to a constant consumption rate.

        Parameters
        ----------
        rate
            Signed flow rate in m³/s.
        """
        logger.info("applying constant rate %.6f m3/s", rate)
        self.meter.apply_rate(rate)
