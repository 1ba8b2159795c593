from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from simulator.config.settings import MeterSimulatorSettings
from simulator.domain.models import FlowDirection
from watermeter.config.settings import RuntimeSettings, Settings
from watermeter.domain.models import AlarmKind, AlarmRule, AlarmRules

# YAML keys per kind; the camelCase spelling of no-flow is accepted too
CONFIG_ENV_VAR = "APP_CONFIG"
CONFIG_FILENAME = "config.yaml"

_ALARM_KEYS: Dict[AlarmKind, tuple] = {
    AlarmKind.LEAK: ("leak",),
    AlarmKind.NO_FLOW: ("no_flow", "noFlow"),
    AlarmKind.BURST: ("burst",),
    AlarmKind.BACKFLOW: ("backflow",),
}


@dataclass(frozen=True)
class AppConfig:
    """
    Typed view of config.yaml.

    Every runtime-tunable value of the monitor (log level, driver cadence,
    meter simulation and alarm rules) is read from here.
    """
    log_level: str
    runtime: RuntimeSettings
    meter: MeterSimulatorSettings
    alarms: AlarmRules


def _load_mapping(path: Path) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: top level must be a mapping, got {type(data).__name__}")
    return data


def _default_config_path() -> Path:
    """
    Locate the config file when no explicit path is given.

    Lookup order
    ------------
    1) ``$APP_CONFIG``
    2) ``config.yaml`` beside the running interpreter or frozen executable
    3) ``config.yaml`` in the working directory (may not exist)
    """
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if override:
        return Path(override).expanduser().resolve()

    beside_exe = Path(sys.executable).resolve().with_name(CONFIG_FILENAME)
    if beside_exe.is_file():
        return beside_exe

    return Path.cwd() / CONFIG_FILENAME


def _section(raw: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError(f"'{key}' must be a mapping")
    return value


def _parse_rule(kind: AlarmKind, item: Dict[str, Any], default: AlarmRule) -> AlarmRule:
    threshold = item.get("threshold_value", default.threshold_value)
    rule = AlarmRule(
        enabled=bool(item.get("enabled", default.enabled)),
        threshold_value=None if not kind.has_threshold or threshold is None else float(threshold),
        window_seconds=int(item.get("window_seconds", default.window_seconds)),
    )
    rule.validate(kind)
    return rule


def parse_alarm_rules(raw: Dict[str, Any], defaults: Optional[AlarmRules] = None) -> AlarmRules:
    """
    Convert the ``alarms`` mapping into validated rules.

    Parameters
    ----------
    raw
        Mapping keyed by alarm kind. Missing kinds keep their defaults.
    defaults
        Rules used for omitted kinds/fields.

    Returns
    -------
    AlarmRules
        Validated rule bundle.

    Raises
    ------
    ValueError
        If a rule is malformed or violates its constraints.
    """
    rules = defaults or AlarmRules()
    for kind, keys in _ALARM_KEYS.items():
        item = next((raw[k] for k in keys if k in raw and raw[k] is not None), None)
        if item is None:
            continue
        if not isinstance(item, dict):
            raise ValueError(f"alarms.{keys[0]} must be a mapping")
        rules = rules.with_rule(kind, _parse_rule(kind, item, rules.for_kind(kind)))
    return rules


def load_app_config(path: Optional[str] = None) -> AppConfig:
    """
    Read config.yaml into an :class:`AppConfig`.

    Omitted sections and keys take the built-in defaults of
    :class:`watermeter.config.settings.Settings`.

    Parameters
    ----------
    path
        Config file to read. When None the file is located via
        ``$APP_CONFIG``, then next to the executable, then in the working
        directory.

    Returns
    -------
    AppConfig
        Typed configuration with validated alarm rules.

    Raises
    ------
    FileNotFoundError
        If the resolved file does not exist.
    ValueError
        If a value has the wrong shape or violates a rule constraint.
    """
    cfg_path = Path(path).expanduser() if path else _default_config_path()
    if not cfg_path.is_file():
        raise FileNotFoundError(f"no config file at {cfg_path}")

    raw = _load_mapping(cfg_path)
    defaults = Settings()

    # ---- runtime ----
    r = _section(raw, "runtime")
    runtime = RuntimeSettings(
        tick_interval_s=float(r.get("tick_interval_s", defaults.runtime.tick_interval_s)),
        reading_interval_s=float(r.get("reading_interval_s", defaults.runtime.reading_interval_s)),
    )
    if runtime.tick_interval_s <= 0 or runtime.reading_interval_s <= 0:
        raise ValueError("runtime intervals must be > 0")

    # ---- meter ----
    m = _section(raw, "meter")
    dm = defaults.meter
    seed = m.get("seed", dm.seed)
    meter = MeterSimulatorSettings(
        initial_value=float(m.get("initial_value", dm.initial_value)),
        consumption_rate=float(m.get("consumption_rate", dm.consumption_rate)),
        use_constant_rate=bool(m.get("use_constant_rate", dm.use_constant_rate)),
        flow_direction=FlowDirection(str(m.get("flow_direction", dm.flow_direction.value))),
        random_max_rate=float(m.get("random_max_rate", dm.random_max_rate)),
        max_step_s=float(m.get("max_step_s", dm.max_step_s)),
        seed=None if seed is None else int(seed),
    )

    # ---- alarms ----
    alarms = parse_alarm_rules(_section(raw, "alarms"), defaults.alarms)

    return AppConfig(
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
        runtime=runtime,
        meter=meter,
        alarms=alarms,
    )
