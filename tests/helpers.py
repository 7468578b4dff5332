"""
In-memory collaborators and builders shared by the test suites.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from core.clock import MockClock
from core.exceptions import StoreLookupError
from strategy_engine.interfaces import (
    AlertStore,
    CompletionSink,
    NotificationDispatcher,
    StrategyRegistry,
    WeightProvider,
)
from strategy_engine.types import (
    Alert,
    CompletionResult,
    Condition,
    LogicalOperator,
    NotificationPayload,
    RuleGroup,
    Strategy,
    Timeframe,
)


NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


def make_clock() -> MockClock:
    return MockClock(NOW)


def make_alert(
    clock: MockClock,
    indicator: str,
    trigger: str,
    timeframe: str = "15m",
    minutes_ago: float = 1,
    ticker: str = "BTC",
    price: Optional[float] = None,
) -> Alert:
    return Alert(
        ticker=ticker,
        indicator=indicator,
        trigger=trigger,
        timeframe_label=timeframe,
        timestamp=clock.now() - timedelta(minutes=minutes_ago),
        price=price,
    )


def make_strategy(
    name: str = "Test Strategy",
    groups: Sequence[Tuple[str, Sequence[Tuple[str, str]]]] = (),
    timeframe: Optional[int] = 15,
    inter_group_operator: LogicalOperator = LogicalOperator.AND,
    strategy_id: str = "s1",
    threshold_sign: int = 0,
) -> Strategy:
    """groups: [(operator, [(indicator, trigger), ...]), ...]"""
    return Strategy(
        id=strategy_id,
        name=name,
        timeframe=Timeframe.any() if timeframe is None else Timeframe.fixed(timeframe),
        rule_groups=tuple(
            RuleGroup(
                operator=LogicalOperator(op),
                conditions=tuple(Condition(i, t) for i, t in conditions),
            )
            for op, conditions in groups
        ),
        inter_group_operator=inter_group_operator,
        threshold_sign=threshold_sign,
    )


class InMemoryAlertStore(AlertStore):
    def __init__(self, alerts: Optional[List[Alert]] = None, fail: bool = False):
        self.alerts: List[Alert] = list(alerts or [])
        self.fail = fail
        self.queries: List[Tuple[Optional[str], datetime]] = []

    async def query_alerts(self, ticker: str, since: datetime) -> List[Alert]:
        self.queries.append((ticker, since))
        if self.fail:
            raise StoreLookupError("store down", source="alerts")
        rows = [a for a in self.alerts if a.ticker == ticker and a.timestamp >= since]
        return sorted(rows, key=lambda a: a.timestamp, reverse=True)

    async def query_alerts_since(self, since: datetime) -> List[Alert]:
        self.queries.append((None, since))
        if self.fail:
            raise StoreLookupError("store down", source="alerts")
        rows = [a for a in self.alerts if a.timestamp >= since]
        return sorted(rows, key=lambda a: a.timestamp, reverse=True)

    async def add_alert(self, alert: Alert) -> Alert:
        stored = Alert(
            ticker=alert.ticker,
            indicator=alert.indicator,
            trigger=alert.trigger,
            timeframe_label=alert.timeframe_label,
            timestamp=alert.timestamp,
            price=alert.price,
            id=alert.id or f"a{len(self.alerts) + 1}",
        )
        self.alerts.append(stored)
        return stored


class InMemoryStrategyRegistry(StrategyRegistry):
    def __init__(self, strategies: Optional[List[Strategy]] = None, fail: bool = False):
        self.strategies = list(strategies or [])
        self.fail = fail

    async def list_enabled_strategies(self) -> List[Strategy]:
        if self.fail:
            raise StoreLookupError("registry down", source="strategies")
        return [s for s in self.strategies if s.enabled]


class DictWeightProvider(WeightProvider):
    def __init__(self, weights: Optional[Dict[Tuple[str, str], float]] = None):
        self.weights = dict(weights or {})
        self.lookups: List[Tuple[str, str]] = []

    async def get_weight(self, indicator: str, trigger: str) -> float:
        self.lookups.append((indicator, trigger))
        return self.weights.get((indicator, trigger), 0.0)


class RecordingSink(CompletionSink):
    def __init__(self, fail: bool = False):
        self.records: List[CompletionResult] = []
        self.fail = fail

    async def record_completion(self, result: CompletionResult) -> None:
        if self.fail:
            raise RuntimeError("sink down")
        self.records.append(result)


class RecordingNotifier(NotificationDispatcher):
    def __init__(self, fail: bool = False):
        self.payloads: List[NotificationPayload] = []
        self.fail = fail

    async def notify(self, payload: NotificationPayload) -> None:
        if self.fail:
            raise RuntimeError("notifier down")
        self.payloads.append(payload)


class SlowAlertStore(InMemoryAlertStore):
    """Delays every per-ticker query."""

    def __init__(self, delay_seconds: float, alerts: Optional[List[Alert]] = None):
        super().__init__(alerts)
        self.delay_seconds = delay_seconds

    async def query_alerts(self, ticker: str, since: datetime) -> List[Alert]:
        await asyncio.sleep(self.delay_seconds)
        return await super().query_alerts(ticker, since)
