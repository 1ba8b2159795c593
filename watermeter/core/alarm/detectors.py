from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from watermeter.core.alarm.detector_base import ConditionResult, DetectorContext, ThresholdCondition
from watermeter.domain.models import AlarmKind, AlarmRule, ThresholdStatus

NO_FLOW_EPSILON = 1e-4


@dataclass(frozen=True)
class DetectorOutcome:
    """
    Next status of a detector plus the trigger value computed on the same tick.
    """

    status: ThresholdStatus
    trigger_value: float


@dataclass(frozen=True)
class LeakCondition(ThresholdCondition):
    """
    Sustained low positive flow.

    Logic
    -----
    Met when the windowed average rate is positive and below the threshold
    while water is still flowing right now (instantaneous rate > 0).
    The trigger value is the total consumption over the window.
    """

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
        stats = ctx.window(rule.window_seconds)
        if stats is None:
            return ConditionResult(met=False)

        avg = stats.average_rate
        met = (
            rule.threshold_value is not None
            and avg > 0
            and avg < rule.threshold_value
            and ctx.instantaneous_rate > 0
        )
        return ConditionResult(met=met, current_average=avg, trigger_value=stats.total_consumption)


@dataclass(frozen=True)
class NoFlowCondition(ThresholdCondition):
    """
    Sustained zero flow.

    Logic
    -----
    ``abs(instantaneous_rate) < epsilon``. Duration-only: the rule carries no
    threshold and no window average is used. The trigger value is 0.
    """

    epsilon: float = NO_FLOW_EPSILON

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
        rate = ctx.instantaneous_rate
        return ConditionResult(met=abs(rate) < self.epsilon, current_average=rate, trigger_value=0.0)


@dataclass(frozen=True)
class BurstCondition(ThresholdCondition):
    """
    Sustained high forward flow.

    Logic
    -----
    Met when the windowed average rate is positive and at or above the
    threshold. The trigger value is the windowed average rate.
    """

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
        stats = ctx.window(rule.window_seconds)
        if stats is None:
            return ConditionResult(met=False)

        avg = stats.average_rate
        met = rule.threshold_value is not None and avg >= rule.threshold_value and avg > 0
        return ConditionResult(met=met, current_average=avg, trigger_value=avg)


@dataclass(frozen=True)
class BackflowCondition(ThresholdCondition):
    """
    Sustained reverse flow.

    Logic
    -----
    Met when the windowed average rate is negative and its magnitude is at or
    above the threshold. The trigger value is the instantaneous rate.
    """

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule) -> ConditionResult:
        stats = ctx.window(rule.window_seconds)
        if stats is None:
            return ConditionResult(met=False)

        avg = stats.average_rate
        met = rule.threshold_value is not None and avg < 0 and abs(avg) >= rule.threshold_value
        return ConditionResult(met=met, current_average=avg, trigger_value=ctx.instantaneous_rate)


@dataclass(frozen=True)
class ThresholdDetector:
    """
    Per-kind condition evaluator with a "continuously met since" timer.

    States
    ------
    - Idle: ``is_met`` False, no ``met_since``, duration 0.
    - Active(met_since): ``is_met`` True, ``duration = now - met_since``.

    Transitions (once per tick)
    ---------------------------
    - met and Idle    -> Active(now), duration 0
    - met and Active  -> duration recomputed, ``met_since`` unchanged
    - not met         -> Idle

    Parameters
    ----------
    kind
        Alarm kind this detector serves.
    condition
        Stateless predicate for the kind.
    """

    kind: AlarmKind
    condition: ThresholdCondition

    def evaluate(self, ctx: DetectorContext, rule: AlarmRule, prev: ThresholdStatus) -> DetectorOutcome:
        """
        Evaluate the condition and advance the timer.

        Parameters
        ----------
        ctx
            Tick context.
        rule
            Current rule for this kind.
        prev
            Status produced by the previous evaluated tick.

        Returns
        -------
        DetectorOutcome
            Next status and the trigger value for this tick.
        """
        result = self.condition.evaluate(ctx, rule)
        return DetectorOutcome(
            status=_advance(prev, result.met, result.current_average, ctx),
            trigger_value=result.trigger_value,
        )


def _advance(
    prev: ThresholdStatus,
    met: bool,
    current_average: Optional[float],
    ctx: DetectorContext,
) -> ThresholdStatus:
    if not met:
        return ThresholdStatus(is_met=False, met_since=None, duration=0.0, current_average=current_average)

    if not prev.is_met or prev.met_since is None:
        return ThresholdStatus(is_met=True, met_since=ctx.now, duration=0.0, current_average=current_average)

    # clamp: a tick with an earlier `now` must not shrink the duration below zero
    duration = max(0.0, (ctx.now - prev.met_since).total_seconds())
    return ThresholdStatus(
        is_met=True,
        met_since=prev.met_since,
        duration=duration,
        current_average=current_average,
    )


def default_detectors() -> Dict[AlarmKind, ThresholdDetector]:
    """
    Build one detector per alarm kind.

    Returns
    -------
    dict[AlarmKind, ThresholdDetector]
        Detectors keyed by kind, in evaluation order.
    """
    return {
        AlarmKind.LEAK: ThresholdDetector(AlarmKind.LEAK, LeakCondition()),
        AlarmKind.NO_FLOW: ThresholdDetector(AlarmKind.NO_FLOW, NoFlowCondition()),
        AlarmKind.BURST: ThresholdDetector(AlarmKind.BURST, BurstCondition()),
        AlarmKind.BACKFLOW: ThresholdDetector(AlarmKind.BACKFLOW, BackflowCondition()),
    }
