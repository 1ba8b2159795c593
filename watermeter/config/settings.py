from __future__ import annotations
from dataclasses import dataclass, field

from simulator.config.settings import MeterSimulatorSettings
from watermeter.domain.models import AlarmRules


@dataclass(frozen=True)
class RuntimeSettings:
    """
    Timing of the external driver.
    """

    # Evaluation cadence (one engine tick per interval)
    tick_interval_s: float = 1.0

    # How often a cumulative reading is recorded into the history
    reading_interval_s: float = 10.0


@dataclass(frozen=True)
class Settings:
    """
    Central place for built-in defaults, used when config.yaml omits a section.
    """

    log_level: str = "INFO"
    runtime: RuntimeSettings = field(default_factory=RuntimeSettings)
    meter: MeterSimulatorSettings = field(default_factory=MeterSimulatorSettings)
    alarms: AlarmRules = field(default_factory=AlarmRules)
