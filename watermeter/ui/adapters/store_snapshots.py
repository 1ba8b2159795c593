from __future__ import annotations

from typing import List, Tuple

from watermeter.core.state_store import MeterStateStore
from watermeter.domain.models import Alarm, AlarmKind

StatusRow = Tuple[str, str, str, str, str, str, str]
AlarmRow = Tuple[str, str, str, str, str]
ReadingRow = Tuple[str, str, str]


def format_meter_reading(value: float) -> str:
    """
    Format a register value as ``#######.####`` (12 chars, zero padded).
    """
    return f"{value:012.4f}"


def _fmt_rate(value: float | None) -> str:
    return "-" if value is None else f"{value:.6f}"


def _alarm_row(a: Alarm) -> AlarmRow:
    return (
        a.start_time.strftime("%H:%M:%S"),
        "" if a.end_time is None else a.end_time.strftime("%H:%M:%S"),
        a.kind.value,
        f"{a.trigger_value:.6f}",
        "ACTIVE" if a.active else "CLOSED",
    )


def threshold_status_rows(store: MeterStateStore) -> List[StatusRow]:
    """
    One row per alarm kind:
    kind / enabled / met / duration / window / progress / current average
    """
    rules = store.rules
    statuses = store.threshold_statuses

    rows: List[StatusRow] = []
    for kind in AlarmKind:
        rule = rules.for_kind(kind)
        st = statuses[kind]
        if rule.window_seconds > 0:
            progress = min(100.0, st.duration / rule.window_seconds * 100.0)
        else:
            progress = 100.0 if st.is_met else 0.0
        rows.append(
            (
                kind.value,
                "on" if rule.enabled else "off",
                "MET" if st.is_met else "-",
                f"{st.duration:.0f}s",
                f"{rule.window_seconds}s",
                f"{progress:.0f}%",
                _fmt_rate(st.current_average),
            )
        )
    return rows


def active_alarm_rows(store: MeterStateStore) -> List[AlarmRow]:
    """
    Build rows from active alarms, newest first.
    """
    active = sorted(store.active_alarms, key=lambda a: a.start_time, reverse=True)
    return [_alarm_row(a) for a in active]


def alarm_history_rows(store: MeterStateStore, limit: int = 200) -> List[AlarmRow]:
    rows: List[AlarmRow] = []
    for a in reversed(store.all_alarms[-limit:]):
        rows.append(_alarm_row(a))
    return rows


def reading_rows(store: MeterStateStore, limit: int = 20) -> List[ReadingRow]:
    rows: List[ReadingRow] = []
    for r in store.reading_history[:limit]:
        rows.append(
            (
                r.timestamp.strftime("%H:%M:%S"),
                format_meter_reading(r.cumulative_value),
                f"{r.consumption_since_last:+.4f}",
            )
        )
    return rows
