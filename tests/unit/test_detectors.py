"""
Unit tests for watermeter.core.alarm.detectors.

These tests validate:
- each kind's condition predicate and trigger value
- the shared Idle/Active timer of ThresholdDetector

Contexts are built directly from a ReadingLog so every case is deterministic
and independent of the engine and ledger.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Sequence, Tuple

import pytest

from watermeter.core.alarm.detector_base import ConditionResult, DetectorContext
from watermeter.core.alarm.detectors import (
    BackflowCondition,
    BurstCondition,
    LeakCondition,
    NoFlowCondition,
    ThresholdDetector,
    default_detectors,
)
from watermeter.core.alarm.rate_estimator import estimate_rate
from watermeter.core.state.reading_log import ReadingLog
from watermeter.domain.models import AlarmKind, AlarmRule, ThresholdStatus

T0 = datetime(2026, 1, 1, 10, 0, 0)


def _at(s: float) -> datetime:
    return T0 + timedelta(seconds=s)


def _ctx(samples: Sequence[Tuple[float, float]], now_s: float, live: float) -> DetectorContext:
    """
    Build a context from ``(seconds, value)`` samples in chronological order.
    """
    log = ReadingLog()
    for s, v in samples:
        log.append(v, _at(s))
    now = _at(now_s)
    return DetectorContext(now=now, live_value=live, instantaneous_rate=estimate_rate(log, live, now), log=log)


LEAK = AlarmRule(enabled=True, threshold_value=0.02, window_seconds=30)
BURST = AlarmRule(enabled=True, threshold_value=0.1, window_seconds=15)
BACKFLOW = AlarmRule(enabled=True, threshold_value=0.01, window_seconds=30)
NO_FLOW = AlarmRule(enabled=True, threshold_value=None, window_seconds=30)


# ---------------- leak ----------------

def test_leak_met_for_low_positive_flow() -> None:
    ctx = _ctx([(0, 0.0), (10, 0.005), (20, 0.010)], now_s=20, live=0.010)

    res = LeakCondition().evaluate(ctx, LEAK)

    assert res.met is True
    assert res.current_average == pytest.approx(0.0005)
    assert res.trigger_value == pytest.approx(0.010)


def test_leak_not_met_when_average_reaches_threshold() -> None:
    ctx = _ctx([(0, 0.0), (10, 0.3)], now_s=10, live=0.3)

    assert LeakCondition().evaluate(ctx, LEAK).met is False


def test_leak_not_met_when_current_flow_has_stopped() -> None:
    # average over window still positive, but the newest pair is flat
    ctx = _ctx([(0, 0.0), (10, 0.01), (20, 0.01)], now_s=20, live=0.01)

    res = LeakCondition().evaluate(ctx, LEAK)

    assert res.met is False
    assert res.current_average == pytest.approx(0.0005)


def test_leak_unavailable_average_is_not_met() -> None:
    ctx = _ctx([(0, 0.0)], now_s=0, live=0.0)

    res = LeakCondition().evaluate(ctx, LEAK)

    assert res == ConditionResult(met=False)


def test_leak_without_threshold_is_never_met() -> None:
    ctx = _ctx([(0, 0.0), (10, 0.005)], now_s=10, live=0.005)

    assert LeakCondition().evaluate(ctx, AlarmRule(True, None, 30)).met is False


# ---------------- no flow ----------------

@pytest.mark.parametrize(
    "samples, live, expected",
    [
        ([(0, 100.0), (1, 100.0)], 100.0, True),
        ([(0, 100.0), (1, 100.00005)], 100.00005, True),
        ([(0, 100.0), (1, 100.5)], 100.5, False),
        ([(0, 100.0), (1, 99.5)], 99.5, False),
        ([], 0.0, True),
    ],
)
def test_no_flow_uses_instantaneous_rate(samples, live: float, expected: bool) -> None:
    ctx = _ctx(samples, now_s=1, live=live)

    res = NoFlowCondition().evaluate(ctx, NO_FLOW)

    assert res.met is expected
    assert res.trigger_value == 0.0
    assert res.current_average == pytest.approx(ctx.instantaneous_rate)


# ---------------- burst ----------------

def test_burst_met_at_threshold_and_trigger_is_average() -> None:
    ctx = _ctx([(0, 0.0), (10, 2.0)], now_s=10, live=2.0)

    res = BurstCondition().evaluate(ctx, BURST)

    assert res.met is True
    assert res.trigger_value == pytest.approx(0.2)


def test_burst_not_met_below_threshold() -> None:
    ctx = _ctx([(0, 0.0), (10, 0.5)], now_s=10, live=0.5)

    assert BurstCondition().evaluate(ctx, BURST).met is False


def test_burst_with_zero_threshold_requires_positive_average() -> None:
    ctx = _ctx([(0, 1.0), (10, 1.0)], now_s=10, live=1.0)

    assert BurstCondition().evaluate(ctx, AlarmRule(True, 0.0, 15)).met is False


# ---------------- backflow ----------------

def test_backflow_met_for_reverse_flow_and_trigger_is_instantaneous_rate() -> None:
    ctx = _ctx([(0, 10.0), (10, 9.5), (20, 9.3)], now_s=20, live=9.3)

    res = BackflowCondition().evaluate(ctx, BACKFLOW)

    assert res.met is True
    assert res.current_average == pytest.approx(-0.035)
    assert res.trigger_value == pytest.approx(-0.02)


def test_backflow_not_met_for_small_reverse_flow() -> None:
    ctx = _ctx([(0, 10.0), (10, 9.95)], now_s=10, live=9.95)

    assert BackflowCondition().evaluate(ctx, BACKFLOW).met is False


def test_backflow_not_met_for_forward_flow() -> None:
    ctx = _ctx([(0, 0.0), (10, 1.0)], now_s=10, live=1.0)

    assert BackflowCondition().evaluate(ctx, BACKFLOW).met is False


# ---------------- timer ----------------

def _const(met: bool):
    class _Fixed:
        def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
            return ConditionResult(met=met, current_average=0.5, trigger_value=7.0)

    return _Fixed()


def test_idle_to_active_starts_timer_at_now() -> None:
    det = ThresholdDetector(AlarmKind.LEAK, _const(True))
    ctx = _ctx([], now_s=5, live=0.0)

    out = det.evaluate(ctx, LEAK, ThresholdStatus())

    assert out.status == ThresholdStatus(is_met=True, met_since=_at(5), duration=0.0, current_average=0.5)
    assert out.trigger_value == 7.0


def test_active_keeps_met_since_and_recomputes_duration() -> None:
    det = ThresholdDetector(AlarmKind.LEAK, _const(True))
    prev = ThresholdStatus(is_met=True, met_since=_at(5), duration=3.0)

    out = det.evaluate(_ctx([], now_s=17, live=0.0), LEAK, prev)

    assert out.status.met_since == _at(5)
    assert out.status.duration == pytest.approx(12.0)


def test_not_met_resets_to_idle_but_keeps_average() -> None:
    det = ThresholdDetector(AlarmKind.LEAK, _const(False))
    prev = ThresholdStatus(is_met=True, met_since=_at(5), duration=20.0)

    out = det.evaluate(_ctx([], now_s=30, live=0.0), LEAK, prev)

    assert out.status == ThresholdStatus(is_met=False, met_since=None, duration=0.0, current_average=0.5)


def test_earlier_now_never_yields_negative_duration() -> None:
    det = ThresholdDetector(AlarmKind.LEAK, _const(True))
    prev = ThresholdStatus(is_met=True, met_since=_at(10), duration=0.0)

    out = det.evaluate(_ctx([], now_s=5, live=0.0), LEAK, prev)

    assert out.status.duration == 0.0


def test_default_detectors_cover_every_kind() -> None:
    detectors = default_detectors()

    assert list(detectors) == list(AlarmKind)
    assert all(d.kind is k for k, d in detectors.items())
