from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from watermeter.domain.models import AlarmKind, AlarmRule, AlarmRules


@dataclass
class AlarmConfigRegistry:
    """
    Registry for alarm rule configuration.

    This class holds the current :class:`AlarmRules` bundle. It is populated at
    startup from the YAML configuration and may be changed at any time by a
    settings surface; the engine reads :meth:`rules` fresh on every tick, so a
    change applies from the next evaluation on.

    Notes
    -----
    - Every update is validated; invalid rules raise ``ValueError`` and leave
      the registry unchanged.
    - Not thread-safe on its own; `MeterStateStore` guards access.

    Attributes
    ----------
    _rules
        Current rule bundle.
    """

    _rules: AlarmRules = field(default_factory=AlarmRules)

    def load(self, rules: AlarmRules) -> None:
        """
        Replace all rules at once.

        Parameters
        ----------
        rules
            New rule bundle. Each rule is validated against its kind.

        Raises
        ------
        ValueError
            If any rule is invalid.
        """
        for kind, rule in rules.as_dict().items():
            rule.validate(kind)
        self._rules = rules

    def set_rule(self, kind: AlarmKind, rule: AlarmRule) -> None:
        """
        Add or replace the rule of one kind.

        Parameters
        ----------
        kind
            Alarm kind.
        rule
            New rule.

        Raises
        ------
        ValueError
            If the rule is invalid for the kind.
        """
        rule.validate(kind)
        self._rules = self._rules.with_rule(kind, rule)

    def update(
        self,
        kind: AlarmKind,
        *,
        enabled: Optional[bool] = None,
        threshold_value: Optional[float] = None,
        window_seconds: Optional[int] = None,
    ) -> AlarmRule:
        """
        Change individual fields of one rule.

        Parameters
        ----------
        kind
            Alarm kind.
        enabled, threshold_value, window_seconds
            Fields to change; None keeps the current value.

        Returns
        -------
        AlarmRule
            The stored rule.
        """
        rule = self.get(kind)
        changes = {}
        if enabled is not None:
            changes["enabled"] = enabled
        if threshold_value is not None:
            changes["threshold_value"] = threshold_value
        if window_seconds is not None:
            changes["window_seconds"] = window_seconds
        new_rule = replace(rule, **changes)
        self.set_rule(kind, new_rule)
        return new_rule

    def get(self, kind: AlarmKind) -> AlarmRule:
        return self._rules.for_kind(kind)

    def rules(self) -> AlarmRules:
        """
        Return the current rule bundle.

        Returns
        -------
        AlarmRules
            Immutable snapshot of all rules.
        """
        return self._rules
