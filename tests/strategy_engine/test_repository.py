"""
Tests for the SQL adapters, against SQLite via aiosqlite.
"""

from datetime import timedelta

import pytest
from sqlalchemy import select, update

from core.exceptions import StoreLookupError
from database.engine import (
    DatabaseConfig,
    create_all_tables,
    create_database_engine,
    create_session_factory,
    transaction_scope,
)
from strategy_engine.models import (
    AvailableAlertRecord,
    StrategyActionRecord,
    StrategyRecord,
)
from strategy_engine.engine import EvaluationOrchestrator
from strategy_engine.repository import (
    SqlAlertStore,
    SqlCompletionSink,
    SqlStrategyRegistry,
    SqlWeightProvider,
)
from strategy_engine.types import CompletionResult, Condition, TradeAction

from tests.helpers import NOW, DictWeightProvider, make_alert, make_clock


async def make_database(tmp_path):
    engine = create_database_engine(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path}/engine.db"))
    await create_all_tables(engine)
    return engine, create_session_factory(engine)


class TestSqlAlertStore:

    @pytest.mark.asyncio
    async def test_add_and_query_newest_first(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        clock = make_clock()
        store = SqlAlertStore(factory)
        try:
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=10, price=1.5))
            await store.add_alert(make_alert(clock, "Market Core Pro™", "Bullish BOS", minutes_ago=2))
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=1, ticker="ETH"))

            alerts = await store.query_alerts("BTC", NOW - timedelta(minutes=15))

            assert [a.trigger for a in alerts] == ["Bullish BOS", "Oversold"]
            assert alerts[1].price == 1.5
            assert alerts[0].id is not None
            assert alerts[0].timestamp == NOW - timedelta(minutes=2)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_since_bound_is_inclusive(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        clock = make_clock()
        store = SqlAlertStore(factory)
        try:
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=15))
            await store.add_alert(make_alert(clock, "Nautilus™", "Overbought", minutes_ago=16))

            alerts = await store.query_alerts("BTC", NOW - timedelta(minutes=15))

            assert [a.trigger for a in alerts] == ["Oversold"]
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_query_all_tickers(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        clock = make_clock()
        store = SqlAlertStore(factory)
        try:
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=30, ticker="SOL"))
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=5, ticker="ETH"))
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=90, ticker="BTC"))

            alerts = await store.query_alerts_since(NOW - timedelta(minutes=60))

            assert [a.ticker for a in alerts] == ["ETH", "SOL"]
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_missing_table_raises_lookup_error(self, tmp_path):
        engine = create_database_engine(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path}/empty.db"))
        store = SqlAlertStore(create_session_factory(engine))
        try:
            with pytest.raises(StoreLookupError):
                await store.query_alerts("BTC", NOW)
        finally:
            await engine.dispose()


class TestSqlStrategyRegistry:

    @pytest.mark.asyncio
    async def test_lists_enabled_normalized_strategies(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        try:
            async with transaction_scope(factory) as session:
                session.add_all([
                    StrategyRecord(
                        id="legacy", name="Legacy", timeframe=15,
                        rules=[{"indicator": "nautilus", "trigger": "Oversold"}],
                        created_at=NOW - timedelta(days=2),
                    ),
                    StrategyRecord(
                        id="grouped", name="Grouped", timeframe=0,
                        rule_groups=[{"operator": "OR", "alerts": [
                            {"indicator": "extreme_zones", "name": "Discount Zone"},
                        ]}],
                        inter_group_operator="AND",
                        created_at=NOW - timedelta(days=1),
                    ),
                    StrategyRecord(
                        id="disabled", name="Disabled", enabled=False,
                        rules=[{"indicator": "nautilus", "trigger": "Oversold"}],
                    ),
                    StrategyRecord(
                        id="broken", name="Broken",
                        rule_groups=[{"operator": "XOR", "alerts": [
                            {"indicator": "nautilus", "name": "Oversold"},
                        ]}],
                    ),
                ])

            strategies = await SqlStrategyRegistry(factory).list_enabled_strategies()

            assert [s.id for s in strategies] == ["legacy", "grouped"]
            assert strategies[0].timeframe.minutes == 15
            assert strategies[1].timeframe.is_any
            assert strategies[1].conditions == (Condition("extreme_zones", "Discount Zone"),)
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_unreadable_group_skips_only_its_strategy(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        clock = make_clock()
        try:
            async with transaction_scope(factory) as session:
                session.add_all([
                    StrategyRecord(
                        id="good", name="Good", timeframe=15,
                        rules=[{"indicator": "nautilus", "trigger": "Oversold"}],
                        created_at=NOW - timedelta(days=2),
                    ),
                    StrategyRecord(
                        id="bad", name="Bad", timeframe=15,
                        rule_groups=[{"operator": "AND", "alerts": 5}],
                        created_at=NOW - timedelta(days=1),
                    ),
                ])
            store = SqlAlertStore(factory)
            registry = SqlStrategyRegistry(factory)
            await store.add_alert(make_alert(clock, "Nautilus™", "Oversold", minutes_ago=1))

            strategies = await registry.list_enabled_strategies()
            orchestrator = EvaluationOrchestrator(
                alert_store=store,
                strategy_registry=registry,
                weight_provider=DictWeightProvider({("Nautilus™", "Oversold"): 1.0}),
                clock=clock,
            )
            completions = await orchestrator.on_alert_ingested("BTC")

            assert [s.id for s in strategies] == ["good"]
            assert [c.strategy_id for c in completions] == ["good"]
        finally:
            await engine.dispose()


class TestSqlWeightProvider:

    @pytest.mark.asyncio
    async def test_known_and_unknown_pairs(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        try:
            async with transaction_scope(factory) as session:
                session.add(AvailableAlertRecord(indicator="Nautilus™", name="Oversold", weight=1.5))

            provider = SqlWeightProvider(factory)

            assert await provider.get_weight("Nautilus™", "Oversold") == 1.5
            assert await provider.get_weight("Nautilus™", "Unknown") == 0.0
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_weight_edit_applies_to_next_lookup(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        try:
            async with transaction_scope(factory) as session:
                session.add(AvailableAlertRecord(indicator="Nautilus™", name="Oversold", weight=1.5))

            provider = SqlWeightProvider(factory)
            assert await provider.get_weight("Nautilus™", "Oversold") == 1.5

            async with transaction_scope(factory) as session:
                await session.execute(
                    update(AvailableAlertRecord)
                    .where(AvailableAlertRecord.name == "Oversold")
                    .values(weight=-0.5)
                )

            assert await provider.get_weight("Nautilus™", "Oversold") == -0.5
        finally:
            await engine.dispose()

    @pytest.mark.asyncio
    async def test_failure_is_zero(self, tmp_path):
        engine = create_database_engine(DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path}/empty.db"))
        try:
            provider = SqlWeightProvider(create_session_factory(engine))

            assert await provider.get_weight("Nautilus™", "Oversold") == 0.0
        finally:
            await engine.dispose()


class TestSqlCompletionSink:

    @pytest.mark.asyncio
    async def test_record_completion(self, tmp_path):
        engine, factory = await make_database(tmp_path)
        try:
            result = CompletionResult(
                strategy_id="s1",
                strategy_name="Trend",
                ticker="BTC",
                timeframe_used="15m",
                matched_conditions=(Condition("nautilus", "Oversold"),),
                missing_conditions=(),
                score=1.5,
                action=TradeAction.BUY,
                timestamp=NOW,
                price=64000.0,
            )

            await SqlCompletionSink(factory).record_completion(result)

            async with factory() as session:
                rows = (await session.execute(select(StrategyActionRecord))).scalars().all()

            assert len(rows) == 1
            assert rows[0].action == "BUY"
            assert rows[0].matched_conditions == [{"indicator": "nautilus", "trigger": "Oversold"}]
            assert rows[0].price == 64000.0
        finally:
            await engine.dispose()
