"""
Strategy Engine - Repository.

============================================================
PURPOSE
============================================================
SQL implementations of the collaborator interfaces.

- SqlAlertStore: alerts table (read by the engine, written by ingestion)
- SqlStrategyRegistry: strategies table
- SqlWeightProvider: available_alerts table
- SqlCompletionSink: strategy_actions table

Each adapter opens a short-lived session per call from the shared
session factory.

============================================================
ERROR POLICY
============================================================
- Read failures raise StoreLookupError
- Write failures raise DatabasePersistenceError
- Weight lookups never raise; failures count as 0
- Malformed strategy rows are logged and left out

============================================================
"""

import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.exceptions import StoreLookupError, ValidationError
from database.engine import DatabasePersistenceError, transaction_scope

from .interfaces import (
    AlertStore,
    CompletionSink,
    StrategyRegistry,
    WeightProvider,
)
from .models import (
    AlertRecord,
    AvailableAlertRecord,
    StrategyActionRecord,
    StrategyRecord,
)
from .types import Alert, CompletionResult, Strategy


logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive values
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_alert(record: AlertRecord) -> Alert:
    return Alert(
        id=record.id,
        ticker=record.ticker,
        indicator=record.indicator,
        trigger=record.trigger,
        timeframe_label=record.timeframe,
        timestamp=_as_utc(record.timestamp),
        price=record.price,
    )


# ============================================================
# ALERT STORE
# ============================================================


class SqlAlertStore(AlertStore):
    """Alert store backed by the alerts table."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def query_alerts(self, ticker: str, since: datetime) -> List[Alert]:
        stmt = (
            select(AlertRecord)
            .where(AlertRecord.ticker == ticker)
            .where(AlertRecord.timestamp >= since)
            .order_by(desc(AlertRecord.timestamp))
        )
        return await self._fetch(stmt)

    async def query_alerts_since(self, since: datetime) -> List[Alert]:
        stmt = (
            select(AlertRecord)
            .where(AlertRecord.timestamp >= since)
            .order_by(desc(AlertRecord.timestamp))
        )
        return await self._fetch(stmt)

    async def _fetch(self, stmt) -> List[Alert]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return [_to_alert(r) for r in result.scalars().all()]
        except SQLAlchemyError as e:
            raise StoreLookupError("Alert query failed", source="alerts", cause=e)

    async def add_alert(self, alert: Alert) -> Alert:
        record = AlertRecord(
            ticker=alert.ticker,
            indicator=alert.indicator,
            trigger=alert.trigger,
            timeframe=alert.timeframe_label,
            price=alert.price,
            timestamp=alert.timestamp,
        )
        if alert.id:
            record.id = alert.id

        try:
            async with transaction_scope(self._session_factory) as session:
                session.add(record)
                await session.flush()
        except SQLAlchemyError as e:
            raise DatabasePersistenceError(f"Failed to store alert for {alert.ticker}: {e}") from e

        logger.info(
            f"Stored alert {record.id}: {alert.ticker} {alert.indicator} "
            f"'{alert.trigger}' tf={alert.timeframe_label}"
        )
        return _to_alert(record)


# ============================================================
# STRATEGY REGISTRY
# ============================================================


class SqlStrategyRegistry(StrategyRegistry):
    """Enabled strategies from the strategies table."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def list_enabled_strategies(self) -> List[Strategy]:
        stmt = (
            select(StrategyRecord)
            .where(StrategyRecord.enabled.is_(True))
            .order_by(StrategyRecord.created_at, StrategyRecord.id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                records = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreLookupError("Strategy query failed", source="strategies", cause=e)

        strategies: List[Strategy] = []
        for record in records:
            try:
                strategies.append(Strategy.from_record(record.to_record()))
            except ValidationError as e:
                logger.warning(f"Skipping malformed strategy {record.id}: {e.to_log_format()}")
            except Exception as e:
                logger.error(f"Skipping unreadable strategy {record.id}: {e}", exc_info=True)
        return strategies


# ============================================================
# WEIGHT PROVIDER
# ============================================================


class SqlWeightProvider(WeightProvider):
    """
    One available_alerts lookup per call, so weight edits apply
    to the next evaluation.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def get_weight(self, indicator: str, trigger: str) -> float:
        try:
            return await self._load_one(indicator, trigger)
        except SQLAlchemyError as e:
            logger.warning(f"Weight lookup failed for {indicator} / '{trigger}': {e}")
            return 0.0

    async def _load_one(self, indicator: str, trigger: str) -> float:
        stmt = (
            select(AvailableAlertRecord.weight)
            .where(AvailableAlertRecord.indicator == indicator)
            .where(AvailableAlertRecord.name == trigger)
            .limit(1)
        )
        async with self._session_factory() as session:
            weight = (await session.execute(stmt)).scalar_one_or_none()
        return float(weight) if weight is not None else 0.0


# ============================================================
# COMPLETION SINK
# ============================================================


class SqlCompletionSink(CompletionSink):
    """Appends completions to the strategy_actions table."""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def record_completion(self, result: CompletionResult) -> None:
        record = StrategyActionRecord(
            strategy_id=result.strategy_id,
            strategy_name=result.strategy_name,
            ticker=result.ticker,
            action=result.action.value,
            timeframe_used=result.timeframe_used,
            score=result.score,
            price=result.price,
            matched_conditions=[c.to_dict() for c in result.matched_conditions],
            missing_conditions=[c.to_dict() for c in result.missing_conditions],
            timestamp=result.timestamp,
        )
        try:
            async with transaction_scope(self._session_factory) as session:
                session.add(record)
        except SQLAlchemyError as e:
            raise DatabasePersistenceError(
                f"Failed to record completion of '{result.strategy_name}' for {result.ticker}: {e}"
            ) from e

        logger.debug(f"Recorded completion {record.id} ({result.action.value} {result.ticker})")
