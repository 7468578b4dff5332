"""
Strategy Engine - Rule Matcher.

============================================================
PURPOSE
============================================================
Evaluates one strategy's boolean rule composition against a candidate
alert set that the caller has already restricted to one ticker and one
time window.

============================================================
ALGORITHM
============================================================
1. Index candidates by (display indicator, trigger), keeping the most
   recent alert per key
2. Test every leaf condition against the index
3. Apply each group's operator over its leaves
4. Apply the inter-group operator over the group results

A strategy with no conditions never completes.

============================================================
REPORTING
============================================================
- matched: every satisfied leaf, de-duplicated, in rule order
- missing: empty on completion; otherwise the unsatisfied leaves of
  the unsatisfied groups

============================================================
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .indicators import IndicatorNameMap
from .types import Alert, Condition, MatchResult, Strategy


AlertKey = Tuple[str, str]


class RuleMatcher:
    """Pure matcher; holds only the indicator name table."""

    def __init__(self, indicator_names: Optional[IndicatorNameMap] = None):
        self._names = indicator_names or IndicatorNameMap()

    @property
    def indicator_names(self) -> IndicatorNameMap:
        return self._names

    def display_key(self, condition: Condition) -> AlertKey:
        """Key under which a condition's alerts are indexed."""
        return (self._names.to_display(condition.indicator), condition.trigger)

    def match(self, strategy: Strategy, candidate_alerts: Iterable[Alert]) -> MatchResult:
        """
        Match a strategy's composition against candidate alerts.

        Args:
            strategy: Normalized strategy snapshot
            candidate_alerts: Alerts for one ticker inside one window

        Returns:
            MatchResult with completion flag, matched and missing leaves
        """
        index = self._index(candidate_alerts)

        matched: List[Condition] = []
        missing: List[Condition] = []
        evidence: Dict[Condition, Alert] = {}
        group_results: List[bool] = []

        for group in strategy.rule_groups:
            flags: List[bool] = []
            group_missing: List[Condition] = []

            for condition in group.conditions:
                alert = index.get(self.display_key(condition))
                flags.append(alert is not None)
                if alert is not None:
                    if condition not in evidence:
                        evidence[condition] = alert
                        matched.append(condition)
                else:
                    group_missing.append(condition)

            satisfied = group.operator.combine(flags)
            group_results.append(satisfied)
            if not satisfied:
                missing.extend(c for c in group_missing if c not in missing)

        is_complete = bool(group_results) and strategy.inter_group_operator.combine(group_results)

        return MatchResult(
            is_complete=is_complete,
            matched=tuple(matched),
            missing=() if is_complete else tuple(missing),
            evidence=evidence,
        )

    @staticmethod
    def _index(alerts: Iterable[Alert]) -> Dict[AlertKey, Alert]:
        index: Dict[AlertKey, Alert] = {}
        for alert in alerts:
            key = (alert.indicator, alert.trigger)
            current = index.get(key)
            if current is None or alert.timestamp > current.timestamp:
                index[key] = alert
        return index
