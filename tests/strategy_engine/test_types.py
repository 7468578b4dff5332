"""
Tests for Strategy Engine types: timeframe parsing and strategy normalization.
"""

import json

import pytest

from core.exceptions import ValidationError
from strategy_engine.types import (
    Condition,
    LogicalOperator,
    Strategy,
    Timeframe,
    TimeframeBucket,
    timeframe_label_to_minutes,
)


class TestTimeframeLabels:

    @pytest.mark.parametrize("label,minutes", [
        ("5m", 5),
        ("5 M", 5),
        ("5", 5),
        ("15min", 15),
        ("1h", 60),
        ("4H", 240),
        ("D", 1440),
        ("1D", 1440),
        ("W", 10080),
    ])
    def test_known_labels(self, label, minutes):
        assert timeframe_label_to_minutes(label) == minutes

    @pytest.mark.parametrize("label", [None, "", "M", "abc", "0", "1y"])
    def test_unparseable_labels(self, label):
        assert timeframe_label_to_minutes(label) is None

    def test_buckets_ascending(self):
        minutes = [b.minutes for b in TimeframeBucket]
        assert minutes == sorted(minutes)
        assert [b.label for b in TimeframeBucket] == ["5m", "15m", "1h", "4h", "1d"]


class TestTimeframe:

    @pytest.mark.parametrize("raw", [None, 0, "0", "any", "ANY", ""])
    def test_any_sentinels(self, raw):
        assert Timeframe.parse(raw).is_any

    def test_fixed_minutes(self):
        timeframe = Timeframe.parse(15)
        assert timeframe.minutes == 15
        assert timeframe.label == "15m"

    def test_fixed_label(self):
        assert Timeframe.parse("1h").minutes == 60

    def test_invalid(self):
        with pytest.raises(ValidationError):
            Timeframe.parse("soon")
        with pytest.raises(ValidationError):
            Timeframe.fixed(-5)


class TestStrategyFromRecord:

    def test_legacy_rules_become_one_and_group(self):
        strategy = Strategy.from_record({
            "id": 7,
            "name": "Legacy",
            "timeframe": 15,
            "rules": [
                {"indicator": "nautilus", "trigger": "Oversold"},
                {"indicator": "market_core", "trigger": "Bullish BOS"},
            ],
        })

        assert strategy.id == "7"
        assert len(strategy.rule_groups) == 1
        assert strategy.rule_groups[0].operator is LogicalOperator.AND
        assert strategy.conditions == (
            Condition("nautilus", "Oversold"),
            Condition("market_core", "Bullish BOS"),
        )

    def test_rule_groups_json_string(self):
        groups = [
            {"operator": "or", "alerts": [
                {"indicator": "nautilus", "name": "Oversold"},
                {"indicator": "extreme_zones", "name": "Discount Zone"},
            ]},
            {"operator": "AND", "alerts": []},
        ]
        strategy = Strategy.from_record({
            "id": "s1",
            "name": "Grouped",
            "timeframe": 0,
            "rule_groups": json.dumps(groups),
            "rules": [{"indicator": "ignored", "trigger": "ignored"}],
            "inter_group_operator": "OR",
        })

        assert strategy.timeframe.is_any
        assert strategy.inter_group_operator is LogicalOperator.OR
        # Empty group dropped; legacy rules ignored when groups exist
        assert len(strategy.rule_groups) == 1
        assert strategy.rule_groups[0].operator is LogicalOperator.OR
        assert strategy.conditions[1] == Condition("extreme_zones", "Discount Zone")

    def test_threshold_sign(self):
        base = {"id": "s", "name": "n", "rules": []}
        assert Strategy.from_record({**base, "threshold": 2.5}).threshold_sign == 1
        assert Strategy.from_record({**base, "threshold": -1}).threshold_sign == -1
        assert Strategy.from_record({**base, "threshold": None}).threshold_sign == 0

    def test_no_rules_is_empty(self):
        strategy = Strategy.from_record({"id": "s", "name": "n"})
        assert strategy.is_empty

    @pytest.mark.parametrize("record", [
        {"name": "no id"},
        {"id": "s", "name": "bad json", "rule_groups": "{not json"},
        {"id": "s", "name": "bad condition", "rules": [{"indicator": "nautilus"}]},
        {"id": "s", "name": "alerts not a list", "rule_groups": [{"operator": "AND", "alerts": 5}]},
        {"id": "s", "name": "alerts as text", "rule_groups": [{"operator": "AND", "alerts": "Oversold"}]},
        {"id": "s", "name": "bad operator", "rule_groups": [{"operator": "XOR", "alerts": [
            {"indicator": "nautilus", "name": "Oversold"},
        ]}]},
    ])
    def test_malformed_records(self, record):
        with pytest.raises(ValidationError):
            Strategy.from_record(record)
