"""
Strategy Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Defines all types, enums, and data contracts for the Strategy Engine.

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures (frozen dataclasses)
- Stored rule shapes are normalized ONCE, at read time
- "Any timeframe" is an explicit value, never a magic number

============================================================
CORE CONCEPTS
============================================================
1. ALERT: A timestamped ticker/indicator/trigger event
2. CONDITION: An (indicator, trigger) leaf requirement
3. RULE GROUP: AND/OR cluster of conditions
4. STRATEGY: Rule groups + timeframe + inter-group operator
5. COMPLETION: Every group requirement satisfied inside one window

============================================================
"""

import json
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.exceptions import ValidationError


# ============================================================
# ENUMS
# ============================================================


class LogicalOperator(str, Enum):
    """Boolean operator used inside a rule group and between groups."""
    AND = "AND"
    OR = "OR"

    @classmethod
    def parse(cls, raw: Any, default: Optional["LogicalOperator"] = None) -> "LogicalOperator":
        """Parse a stored operator value (case-insensitive)."""
        if raw is None or raw == "":
            return default or cls.AND
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise ValidationError(
                f"Unknown logical operator: {raw!r}",
                field="operator",
                actual=raw,
            )

    def combine(self, values: List[bool]) -> bool:
        """Apply the operator over a list of booleans."""
        if self is LogicalOperator.AND:
            return all(values)
        return any(values)


class TradeAction(str, Enum):
    """Directional label attached to a completion."""
    BUY = "BUY"
    SELL = "SELL"


class TimeframeBucket(Enum):
    """
    Candidate windows searched for "any timeframe" strategies.

    Declared in ascending duration; iteration order is search order.
    """
    M5 = ("5m", 5)
    M15 = ("15m", 15)
    H1 = ("1h", 60)
    H4 = ("4h", 240)
    D1 = ("1d", 1440)

    def __init__(self, label: str, minutes: int):
        self.label = label
        self.minutes = minutes


# ============================================================
# TIMEFRAME LABELS
# ============================================================

_LABEL_PATTERN = re.compile(r"^(\d*)([A-Z]*)$")

_UNIT_MINUTES = {
    "": 1,
    "M": 1,
    "MIN": 1,
    "H": 60,
    "D": 1440,
    "W": 10080,
}


def timeframe_label_to_minutes(label: Optional[str]) -> Optional[int]:
    """
    Convert a chart timeframe label into minutes.

    "5m", "5 M", "5" -> 5; "1h" -> 60; "D", "1D" -> 1440; "W" -> 10080.
    Returns None when the label cannot be interpreted.
    """
    if label is None:
        return None
    normalized = re.sub(r"\s+", "", str(label)).upper()
    if not normalized:
        return None

    match = _LABEL_PATTERN.match(normalized)
    if not match:
        return None

    number, unit = match.groups()
    if unit not in _UNIT_MINUTES:
        return None
    if not number:
        # Bare unit ("D", "W") means one of it; a bare "M" is ambiguous
        if unit in ("", "M", "MIN"):
            return None
        number = "1"

    minutes = int(number) * _UNIT_MINUTES[unit]
    return minutes if minutes > 0 else None


# ============================================================
# TIMEFRAME
# ============================================================


@dataclass(frozen=True)
class Timeframe:
    """
    Strategy evaluation window.

    minutes=None is the "any timeframe" value: the strategy is searched
    across the fixed bucket set instead of one window.
    """
    minutes: Optional[int] = None

    @classmethod
    def any(cls) -> "Timeframe":
        return cls(minutes=None)

    @classmethod
    def fixed(cls, minutes: int) -> "Timeframe":
        if minutes <= 0:
            raise ValidationError(
                "Fixed timeframe must be positive",
                field="timeframe",
                actual=minutes,
            )
        return cls(minutes=minutes)

    @classmethod
    def parse(cls, raw: Any) -> "Timeframe":
        """
        Parse a stored timeframe.

        Stored rows use integer minutes with 0/NULL meaning "any";
        labels such as "15m" or "any" are accepted as well.
        """
        if raw is None or isinstance(raw, bool):
            return cls.any()
        if isinstance(raw, (int, float)):
            return cls.any() if int(raw) == 0 else cls.fixed(int(raw))

        text = str(raw).strip()
        if text.lower() in ("", "0", "any"):
            return cls.any()
        minutes = timeframe_label_to_minutes(text)
        if minutes is None:
            raise ValidationError(
                f"Unparseable timeframe: {raw!r}",
                field="timeframe",
                actual=raw,
            )
        return cls.fixed(minutes)

    @property
    def is_any(self) -> bool:
        return self.minutes is None

    @property
    def label(self) -> str:
        return "any" if self.is_any else f"{self.minutes}m"


# ============================================================
# ALERT
# ============================================================


@dataclass(frozen=True)
class Alert:
    """
    A timestamped market-signal event.

    Indicator holds the display name (e.g. "Nautilus™").
    """
    ticker: str
    indicator: str
    trigger: str
    timeframe_label: str
    timestamp: datetime
    price: Optional[float] = None
    id: Optional[str] = None

    @property
    def timeframe_minutes(self) -> Optional[int]:
        return timeframe_label_to_minutes(self.timeframe_label)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "ticker": self.ticker,
            "indicator": self.indicator,
            "trigger": self.trigger,
            "timeframe": self.timeframe_label,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================
# RULE COMPOSITION
# ============================================================


@dataclass(frozen=True)
class Condition:
    """
    Leaf requirement: an alert with this indicator and trigger.

    Indicator may be an abbreviated key ("nautilus") or a display name.
    """
    indicator: str
    trigger: str

    @property
    def key(self) -> Tuple[str, str]:
        return (self.indicator, self.trigger)

    def to_dict(self) -> Dict[str, str]:
        return {"indicator": self.indicator, "trigger": self.trigger}

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Condition":
        """Build from a legacy rule {indicator, trigger} or group alert {indicator, name}."""
        if not isinstance(record, dict):
            raise ValidationError("Condition must be an object", field="condition", actual=record)

        indicator = record.get("indicator")
        trigger = record.get("trigger") or record.get("name")
        if not indicator or not trigger:
            raise ValidationError(
                "Condition requires indicator and trigger",
                field="condition",
                actual=record,
            )
        return cls(indicator=str(indicator).strip(), trigger=str(trigger).strip())


@dataclass(frozen=True)
class RuleGroup:
    """AND/OR cluster of leaf conditions."""
    operator: LogicalOperator
    conditions: Tuple[Condition, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operator": self.operator.value,
            "conditions": [c.to_dict() for c in self.conditions],
        }


def _decode_json_list(raw: Any, field_name: str) -> List[Any]:
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(
                f"Invalid JSON in {field_name}",
                field=field_name,
                actual=raw,
                cause=e,
            )
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError(f"{field_name} must be a list", field=field_name, actual=raw)
    return raw


# ============================================================
# STRATEGY
# ============================================================


@dataclass(frozen=True)
class Strategy:
    """
    Read-only snapshot of a user-defined strategy.

    Always holds the grouped rule form; the legacy flat list is
    converted by from_record into a single AND group.
    """
    id: str
    name: str
    timeframe: Timeframe
    rule_groups: Tuple[RuleGroup, ...]
    inter_group_operator: LogicalOperator = LogicalOperator.AND
    threshold_sign: int = 0
    enabled: bool = True

    @property
    def conditions(self) -> Tuple[Condition, ...]:
        """All leaf conditions in rule order."""
        return tuple(c for group in self.rule_groups for c in group.conditions)

    @property
    def is_empty(self) -> bool:
        return not self.rule_groups

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Strategy":
        """
        Normalize a stored strategy row.

        rule_groups wins over the legacy rules list when both are present.
        Empty groups are dropped.
        """
        if record.get("id") is None or not record.get("name"):
            raise ValidationError("Strategy requires id and name", field="strategy", actual=record)

        groups: List[RuleGroup] = []
        raw_groups = _decode_json_list(record.get("rule_groups"), "rule_groups")

        if raw_groups:
            for raw_group in raw_groups:
                if not isinstance(raw_group, dict):
                    raise ValidationError("Rule group must be an object", field="rule_groups", actual=raw_group)
                raw_conditions = raw_group.get("alerts")
                if raw_conditions is None:
                    raw_conditions = raw_group.get("conditions", [])
                if not isinstance(raw_conditions, list):
                    raise ValidationError(
                        "Rule group alerts must be a list",
                        field="rule_groups",
                        actual=raw_conditions,
                    )
                conditions = tuple(Condition.from_record(c) for c in raw_conditions)
                if conditions:
                    groups.append(RuleGroup(
                        operator=LogicalOperator.parse(raw_group.get("operator")),
                        conditions=conditions,
                    ))
        else:
            legacy = tuple(
                Condition.from_record(c)
                for c in _decode_json_list(record.get("rules"), "rules")
            )
            if legacy:
                groups.append(RuleGroup(operator=LogicalOperator.AND, conditions=legacy))

        threshold = record.get("threshold") or 0
        try:
            threshold = float(threshold)
        except (TypeError, ValueError) as e:
            raise ValidationError("Threshold must be numeric", field="threshold", actual=threshold, cause=e)

        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            timeframe=Timeframe.parse(record.get("timeframe")),
            rule_groups=tuple(groups),
            inter_group_operator=LogicalOperator.parse(record.get("inter_group_operator")),
            threshold_sign=(threshold > 0) - (threshold < 0),
            enabled=bool(record.get("enabled", True)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "enabled": self.enabled,
            "timeframe": self.timeframe.label,
            "threshold_sign": self.threshold_sign,
            "inter_group_operator": self.inter_group_operator.value,
            "rule_groups": [g.to_dict() for g in self.rule_groups],
        }


# ============================================================
# EVALUATION RESULTS
# ============================================================


@dataclass(frozen=True)
class MatchResult:
    """
    Outcome of matching one composition against one candidate set.

    evidence maps each matched condition to the most recent alert
    that satisfied it (reporting only).
    """
    is_complete: bool
    matched: Tuple[Condition, ...]
    missing: Tuple[Condition, ...]
    evidence: Dict[Condition, Alert] = field(default_factory=dict, compare=False)

    @property
    def matched_count(self) -> int:
        return len(self.matched)

    @property
    def matched_triggers(self) -> List[str]:
        return [c.trigger for c in self.matched]


@dataclass(frozen=True)
class SearchResult:
    """Match result plus the window that produced it."""
    match: MatchResult
    timeframe_used: str

    @property
    def is_complete(self) -> bool:
        return self.match.is_complete

    @property
    def matched(self) -> Tuple[Condition, ...]:
        return self.match.matched

    @property
    def missing(self) -> Tuple[Condition, ...]:
        return self.match.missing


@dataclass(frozen=True)
class NotificationPayload:
    """Message handed to the notification dispatcher."""
    action: TradeAction
    ticker: str
    strategy_name: str
    matched_triggers: Tuple[str, ...]
    score: float
    timeframe_used: str
    price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "ticker": self.ticker,
            "strategy_name": self.strategy_name,
            "matched_triggers": list(self.matched_triggers),
            "score": self.score,
            "timeframe_used": self.timeframe_used,
            "price": self.price,
        }


@dataclass(frozen=True)
class CompletionResult:
    """A strategy whose full composition was satisfied in one window."""
    strategy_id: str
    strategy_name: str
    ticker: str
    timeframe_used: str
    matched_conditions: Tuple[Condition, ...]
    missing_conditions: Tuple[Condition, ...]
    score: float
    action: TradeAction
    timestamp: datetime
    price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy_id": self.strategy_id,
            "strategy_name": self.strategy_name,
            "ticker": self.ticker,
            "timeframe_used": self.timeframe_used,
            "matched": [c.to_dict() for c in self.matched_conditions],
            "missing": [c.to_dict() for c in self.missing_conditions],
            "score": self.score,
            "action": self.action.value,
            "price": self.price,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_notification_payload(self) -> NotificationPayload:
        return NotificationPayload(
            action=self.action,
            ticker=self.ticker,
            strategy_name=self.strategy_name,
            matched_triggers=tuple(c.trigger for c in self.matched_conditions),
            score=self.score,
            timeframe_used=self.timeframe_used,
            price=self.price,
        )


@dataclass(frozen=True)
class StrategyScoreRow:
    """Dashboard row: best ticker for one strategy over a window."""
    strategy_id: str
    strategy_name: str
    ticker: Optional[str]
    timeframe: str
    matched: Tuple[Condition, ...]
    missing: Tuple[Condition, ...]
    score: float
    is_complete: bool
    action: Optional[TradeAction]
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategy_id": self.strategy_id,
            "strategy": self.strategy_name,
            "ticker": self.ticker,
            "timeframe": self.timeframe,
            "alerts_found": [c.trigger for c in self.matched],
            "missing_alerts": [c.trigger for c in self.missing],
            "score": self.score,
            "is_complete": self.is_complete,
            "action": self.action.value if self.action else None,
            "timestamp": self.timestamp.isoformat(),
        }
