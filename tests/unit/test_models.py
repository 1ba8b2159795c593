"""
Unit tests for watermeter.domain.models.

These tests validate:
- alarm kinds and which of them carry a threshold
- AlarmRule validation (the configuration surface's contract)
- AlarmRules lookup/replacement by kind
- default ThresholdStatus (Idle) and Alarm records
"""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime

import pytest

from watermeter.domain.models import Alarm, AlarmKind, AlarmRule, AlarmRules, ThresholdStatus


def test_alarm_kind_values_match_display_names() -> None:
    assert [k.value for k in AlarmKind] == ["leak", "noFlow", "burst", "backflow"]


def test_only_no_flow_has_no_threshold() -> None:
    assert AlarmKind.NO_FLOW.has_threshold is False
    assert all(k.has_threshold for k in AlarmKind if k is not AlarmKind.NO_FLOW)


def test_default_rules_match_factory_settings() -> None:
    """
    Built-in rules: leak 0.02/30s, noFlow 30s, burst 0.1/15s, backflow 0.01/30s.
    """
    rules = AlarmRules()

    assert rules.for_kind(AlarmKind.LEAK) == AlarmRule(True, 0.02, 30)
    assert rules.for_kind(AlarmKind.NO_FLOW) == AlarmRule(True, None, 30)
    assert rules.for_kind(AlarmKind.BURST) == AlarmRule(True, 0.1, 15)
    assert rules.for_kind(AlarmKind.BACKFLOW) == AlarmRule(True, 0.01, 30)


def test_with_rule_returns_new_bundle_and_keeps_original() -> None:
    rules = AlarmRules()
    disabled = AlarmRule(enabled=False, threshold_value=0.02, window_seconds=30)

    updated = rules.with_rule(AlarmKind.LEAK, disabled)

    assert updated.for_kind(AlarmKind.LEAK) is disabled
    assert rules.for_kind(AlarmKind.LEAK).enabled is True
    assert updated.for_kind(AlarmKind.BURST) == rules.for_kind(AlarmKind.BURST)


def test_as_dict_contains_every_kind() -> None:
    assert set(AlarmRules().as_dict()) == set(AlarmKind)


@pytest.mark.parametrize(
    "kind, rule",
    [
        (AlarmKind.LEAK, AlarmRule(True, 0.02, -1)),
        (AlarmKind.BURST, AlarmRule(True, -0.1, 15)),
        (AlarmKind.BACKFLOW, AlarmRule(True, None, 30)),
        (AlarmKind.NO_FLOW, AlarmRule(True, None, -5)),
    ],
)
def test_invalid_rules_raise_value_error(kind: AlarmKind, rule: AlarmRule) -> None:
    with pytest.raises(ValueError):
        rule.validate(kind)


def test_no_flow_rule_without_threshold_is_valid() -> None:
    AlarmRule(enabled=True, threshold_value=None, window_seconds=30).validate(AlarmKind.NO_FLOW)


def test_zero_window_and_threshold_are_valid() -> None:
    AlarmRule(enabled=True, threshold_value=0.0, window_seconds=0).validate(AlarmKind.BURST)


def test_threshold_status_defaults_to_idle() -> None:
    st = ThresholdStatus()

    assert st.is_met is False
    assert st.met_since is None
    assert st.duration == 0.0
    assert st.current_average is None


def test_alarm_is_frozen_and_active_by_default() -> None:
    a = Alarm(id="a1", kind=AlarmKind.LEAK, start_time=datetime(2026, 1, 1), trigger_value=0.5)

    assert a.active is True
    assert a.end_time is None
    with pytest.raises(FrozenInstanceError):
        a.active = False  # type: ignore[misc]
