"""
Data Ingestion - Alert Ingestion Service.

============================================================
RESPONSIBILITY
============================================================
Front door for charting webhooks.

- Parses the webhook line into an Alert
- Stores the alert
- Schedules one evaluation pass for the alert's ticker

============================================================
DESIGN PRINCIPLES
============================================================
- The caller is acknowledged once the alert is stored
- Evaluation runs as a background task; its outcome never
  reaches the webhook caller
- Background tasks are tracked until they finish

============================================================
WORKFLOW
============================================================
1. WebhookNormalizer.normalize(body) -> Alert
2. AlertStore.add_alert(alert)
3. asyncio.create_task(orchestrator.on_alert_ingested(ticker, alert))
4. Return the stored alert

============================================================
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from core.clock import ClockProtocol, get_clock
from strategy_engine.engine import EvaluationOrchestrator
from strategy_engine.interfaces import AlertStore
from strategy_engine.types import Alert, CompletionResult

from .normalizers.webhook_normalizer import WebhookNormalizer


logger = logging.getLogger(__name__)


class AlertIngestionService:
    """
    Stores webhook alerts and triggers evaluation.

    ============================================================
    USAGE
    ============================================================
        service = AlertIngestionService(store, orchestrator)
        alert = await service.ingest("BTC|15m|Nautilus™|Bullish Divergence")
        ...
        await service.drain()

    ============================================================
    """

    def __init__(
        self,
        alert_store: AlertStore,
        orchestrator: Optional[EvaluationOrchestrator] = None,
        normalizer: Optional[WebhookNormalizer] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        """
        Initialize the ingestion service.

        Args:
            alert_store: Where alerts are stored
            orchestrator: Evaluation entry point; None disables evaluation
            normalizer: Webhook parser
            clock: Time source for alert timestamps
        """
        self._store = alert_store
        self._orchestrator = orchestrator
        self._clock = clock or get_clock()
        self._normalizer = normalizer or WebhookNormalizer(clock=self._clock)

        self._pending: Set[asyncio.Task] = set()

        # Metrics
        self._received = 0
        self._stored = 0
        self._rejected = 0
        self._completions = 0
        self._last_alert_at: Optional[datetime] = None

    # =========================================================
    # INGESTION
    # =========================================================

    async def ingest(self, body: str) -> Alert:
        """
        Parse and store one webhook line, then schedule evaluation.

        Raises:
            ValidationError: malformed line
            DatabasePersistenceError: alert could not be stored
        """
        self._received += 1
        try:
            alert = self._normalizer.normalize(body)
        except Exception:
            self._rejected += 1
            raise

        stored = await self._store.add_alert(alert)
        self._stored += 1
        self._last_alert_at = stored.timestamp

        logger.info(
            f"Alert received: {stored.ticker} {stored.indicator} "
            f"'{stored.trigger}' tf={stored.timeframe_label} price={stored.price}"
        )

        self.schedule_evaluation(stored)
        return stored

    def schedule_evaluation(self, alert: Alert) -> Optional[asyncio.Task]:
        """Start an evaluation pass in the background."""
        if self._orchestrator is None:
            return None

        task = asyncio.create_task(
            self._evaluate(alert),
            name=f"evaluate-{alert.ticker}-{alert.id}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _evaluate(self, alert: Alert) -> List[CompletionResult]:
        try:
            completions = await self._orchestrator.on_alert_ingested(alert.ticker, alert)
        except Exception as e:
            logger.error(f"Evaluation pass for {alert.ticker} failed: {e}", exc_info=True)
            return []

        self._completions += len(completions)
        return completions

    async def drain(self) -> None:
        """Wait for all scheduled evaluation passes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel evaluation passes that are still running."""
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"Cancelled {len(pending)} evaluation passes")

    # =========================================================
    # HEALTH & METRICS
    # =========================================================

    @property
    def pending_evaluations(self) -> int:
        return len(self._pending)

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "received": self._received,
            "stored": self._stored,
            "rejected": self._rejected,
            "completions": self._completions,
            "pending_evaluations": self.pending_evaluations,
            "last_alert_at": self._last_alert_at.isoformat() if self._last_alert_at else None,
        }
