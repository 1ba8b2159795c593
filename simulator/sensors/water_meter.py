from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock
from typing import Optional

from simulator.config.settings import MeterSimulatorSettings
from simulator.domain.models import FlowDirection


@dataclass
class WaterMeterSensor:
    """
    Simulated cumulative water meter.

    The model keeps a live register value and advances it on every call to
    :meth:`advance` by ``rate * elapsed``. Two consumption modes exist:

    - constant: a signed rate (m³/s) set via :meth:`apply_rate`
    - random: a fresh uniform rate in ``[0, random_max_rate)`` per step, signed
      by the configured flow direction

    Notes
    -----
    - The elapsed time credited per step is capped at ``max_step_s`` so a
      stalled driver does not produce a sudden jump.
    - The first call to :meth:`advance` only anchors the clock.
    - Thread-safe: the settings surface may change the rate while the driver
      thread advances the meter.

    Parameters
    ----------
    settings
        Initial simulator configuration.
    """

    settings: MeterSimulatorSettings = field(default_factory=MeterSimulatorSettings)

    _value: float = field(init=False, repr=False)
    _rate: float = field(init=False, repr=False)
    _use_constant_rate: bool = field(init=False, repr=False)
    _direction: FlowDirection = field(init=False, repr=False)
    _last_step: Optional[datetime] = field(default=None, init=False, repr=False)
    _rng: random.Random = field(init=False, repr=False)
    _lock: Lock = field(default_factory=Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        self._value = float(self.settings.initial_value)
        self._rate = float(self.settings.consumption_rate)
        self._use_constant_rate = bool(self.settings.use_constant_rate)
        self._direction = self.settings.flow_direction
        self._rng = random.Random(self.settings.seed)

    @property
    def value(self) -> float:
        with self._lock:
            return self._value

    @property
    def rate(self) -> float:
        """Configured constant rate (m³/s)."""
        with self._lock:
            return self._rate

    def apply_rate(self, rate: float) -> None:
        """
        Switch to constant-rate mode with the given signed rate.

        Parameters
        ----------
        rate
            Flow rate in m³/s; negative for reverse flow.
        """
        with self._lock:
            self._rate = float(rate)
            self._use_constant_rate = True

    def use_random(self, direction: Optional[FlowDirection] = None) -> None:
        """
        Switch to random-consumption mode.

        Parameters
        ----------
        direction
            Optional new flow direction; keeps the current one if None.
        """
        with self._lock:
            self._use_constant_rate = False
            if direction is not None:
                self._direction = direction

    def advance(self, now: datetime) -> float:
        """
        Advance the register to ``now`` and return the live value.

        Parameters
        ----------
        now
            Current timestamp.

        Returns
        -------
        float
            Live cumulative value after the step.
        """
        with self._lock:
            if self._last_step is None:
                self._last_step = now
                return self._value

            elapsed = (now - self._last_step).total_seconds()
            self._last_step = now
            if elapsed <= 0:
                return self._value

            elapsed = min(elapsed, float(self.settings.max_step_s))
            if self._use_constant_rate:
                rate = self._rate
            else:
                rate = self._rng.random() * float(self.settings.random_max_rate) * self._direction.sign

            self._value += rate * elapsed
            return self._value
