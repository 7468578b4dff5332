"""
Service wiring for the alert engine API.

Builds the store, registry, weights, sink, notifier, orchestrator
and ingestion service once per process and tears them down on exit.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from core.clock import ClockProtocol, get_clock
from data_ingestion.ingestion_service import AlertIngestionService
from database.engine import (
    DatabaseConfig,
    create_all_tables,
    create_database_engine,
    create_session_factory,
)
from monitoring.notifications import CompletionNotificationDispatcher, NotificationConfig
from strategy_engine.config import StrategyEngineConfig
from strategy_engine.engine import EvaluationOrchestrator
from strategy_engine.repository import (
    SqlAlertStore,
    SqlCompletionSink,
    SqlStrategyRegistry,
    SqlWeightProvider,
)


logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Everything the routers need."""
    orchestrator: EvaluationOrchestrator
    ingestion: AlertIngestionService
    notifier: Optional[CompletionNotificationDispatcher] = None
    engine: Optional[AsyncEngine] = None

    async def database_status(self) -> str:
        if self.engine is None:
            return "unknown"
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return "up"
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Database health check failed: {e}")
            return "down"

    def notification_stats(self) -> Dict[str, Any]:
        if self.notifier is None:
            return {"channels": []}
        return self.notifier.get_stats()

    async def close(self) -> None:
        await self.ingestion.stop()
        if self.notifier is not None:
            await self.notifier.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("Services closed")


async def build_services(
    db_config: Optional[DatabaseConfig] = None,
    engine_config: Optional[StrategyEngineConfig] = None,
    notification_config: Optional[NotificationConfig] = None,
    clock: Optional[ClockProtocol] = None,
    create_tables: bool = True,
) -> AppServices:
    """
    Wire the SQL adapters, notifier and orchestrator.

    Configuration not passed in is read from the environment.
    """
    db_config = db_config or DatabaseConfig.from_env()
    engine_config = engine_config or StrategyEngineConfig.from_env()
    notification_config = notification_config or NotificationConfig.from_env()
    clock = clock or get_clock()

    engine = create_database_engine(db_config)
    if create_tables:
        await create_all_tables(engine)
    session_factory = create_session_factory(engine)

    alert_store = SqlAlertStore(session_factory)
    notifier = CompletionNotificationDispatcher.from_config(notification_config, clock=clock)

    orchestrator = EvaluationOrchestrator(
        alert_store=alert_store,
        strategy_registry=SqlStrategyRegistry(session_factory),
        weight_provider=SqlWeightProvider(session_factory),
        completion_sink=SqlCompletionSink(session_factory),
        notifier=notifier,
        config=engine_config,
        clock=clock,
    )
    ingestion = AlertIngestionService(alert_store, orchestrator, clock=clock)

    logger.info(f"Services ready: engine={engine_config.to_dict()}")
    return AppServices(
        orchestrator=orchestrator,
        ingestion=ingestion,
        notifier=notifier,
        engine=engine,
    )
