from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from simulator.sensors.water_meter import WaterMeterSensor
from watermeter.core.config.alarm_config_registry import AlarmConfigRegistry
from watermeter.core.config.yaml_config import AppConfig, load_app_config
from watermeter.core.state.reading_log import ReadingLog
from watermeter.core.state_store import MeterStateStore
from watermeter.logging_config import configure_logging
from watermeter.runtime.app_runtime import AppRuntime, AppRuntimeConfig
from watermeter.runtime.event_bus import EventBus
from watermeter.services.controller import MonitoringController


@dataclass(frozen=True)
class AppWiring:
    """Everything the console/UI layer needs to run the system."""
    config: AppConfig
    store: MeterStateStore
    meter: WaterMeterSensor
    controller: MonitoringController
    runtime: AppRuntime


def build_store(cfg: AppConfig) -> MeterStateStore:
    configs = AlarmConfigRegistry()
    configs.load(cfg.alarms)

    return MeterStateStore(
        configs=configs,
        readings=ReadingLog(baseline=cfg.meter.initial_value),
        live_value=cfg.meter.initial_value,
    )


def build_app_system(config_path: Optional[str] = None) -> AppWiring:
    cfg = load_app_config(config_path)

    configure_logging(cfg.log_level)

    # --- STATE ---
    store = build_store(cfg)

    # --- METER ---
    meter = WaterMeterSensor(settings=cfg.meter)

    # --- EVENT BUS ---
    bus = EventBus()

    # --- CONTROLLER ---
    controller = MonitoringController(
        store=store,
        meter=meter,
        reading_interval_s=cfg.runtime.reading_interval_s,
        bus=bus,
    )

    # --- RUNTIME ---
    runtime = AppRuntime(
        cfg=AppRuntimeConfig(tick_interval_s=cfg.runtime.tick_interval_s),
        controller=controller,
        bus=bus,
    )

    return AppWiring(config=cfg, store=store, meter=meter, controller=controller, runtime=runtime)
