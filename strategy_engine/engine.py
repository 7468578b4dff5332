"""
Strategy Engine - Evaluation Orchestrator.

============================================================
PURPOSE
============================================================
Top-level entry point of the Strategy Engine.

It orchestrates, once per newly stored alert:
1. Loading enabled strategies
2. Timeframe search per strategy (bounded parallelism)
3. Scoring and action classification of completions
4. Cooldown filtering
5. Hand-off to persistence and notification

============================================================
CORE RULES
============================================================
1. Strategies are evaluated independently; one failure never
   aborts the others
2. The pass runs under a deadline; strategies still pending at the
   deadline are cancelled and emit nothing
3. Persistence and notification are best effort; their failures are
   logged and swallowed
4. Partial matches are never completions

============================================================
USAGE
============================================================
    orchestrator = EvaluationOrchestrator(
        alert_store=store,
        strategy_registry=registry,
        weight_provider=weights,
        completion_sink=sink,
        notifier=dispatcher,
    )

    completions = await orchestrator.on_alert_ingested("BTC", alert)
    rows = await orchestrator.score_all_strategies(60)

============================================================
"""

import asyncio
import logging
import time
from datetime import timedelta
from typing import Dict, List, Optional
from uuid import uuid4

from core.clock import ClockProtocol, get_clock
from core.exceptions import EngineException
from scoring_engine.weighted_score import WeightedScorer

from .classifier import ActionClassifier, create_action_classifier
from .config import StrategyEngineConfig
from .cooldown import CompletionCooldown
from .indicators import IndicatorNameMap
from .interfaces import (
    AlertStore,
    CompletionSink,
    NotificationDispatcher,
    StrategyRegistry,
    WeightProvider,
)
from .matcher import RuleMatcher
from .timeframe_search import TimeframeSearchController
from .types import (
    Alert,
    CompletionResult,
    MatchResult,
    SearchResult,
    Strategy,
    StrategyScoreRow,
)


logger = logging.getLogger(__name__)


class EvaluationOrchestrator:
    """
    Main orchestrator for strategy evaluation.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    1. Fan out enabled strategies to a bounded worker pool
    2. Assemble CompletionResults for complete strategies
    3. Forward completions to persistence and notification
    4. Serve the pull-based dashboard scores view

    ============================================================
    WHAT IT DOES NOT DO
    ============================================================
    - Parse or store incoming alerts
    - Retry failed notifications
    - Manage strategy definitions

    ============================================================
    """

    def __init__(
        self,
        alert_store: AlertStore,
        strategy_registry: StrategyRegistry,
        weight_provider: WeightProvider,
        completion_sink: Optional[CompletionSink] = None,
        notifier: Optional[NotificationDispatcher] = None,
        config: Optional[StrategyEngineConfig] = None,
        clock: Optional[ClockProtocol] = None,
        classifier: Optional[ActionClassifier] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            alert_store: Alert source
            strategy_registry: Strategy source
            weight_provider: Condition weight lookup
            completion_sink: Persistence target (optional)
            notifier: Notification dispatcher (optional)
            config: Engine configuration. Uses defaults if not provided.
            clock: Time source. Uses the process clock if not provided.
            classifier: Overrides the configured action classifier
        """
        self.config = config or StrategyEngineConfig()
        self._clock = clock or get_clock()

        self._store = alert_store
        self._registry = strategy_registry
        self._sink = completion_sink
        self._notifier = notifier

        names = IndicatorNameMap(self.config.indicator_names)
        self._matcher = RuleMatcher(names)
        self._search = TimeframeSearchController(
            alert_store=alert_store,
            matcher=self._matcher,
            clock=self._clock,
        )
        self._scorer = WeightedScorer(weight_provider, resolve_indicator=names.to_display)
        self._classifier = classifier or create_action_classifier(self.config.action_classifier)
        self._cooldown = CompletionCooldown(self.config.cooldown_seconds)

    @property
    def matcher(self) -> RuleMatcher:
        return self._matcher

    # --------------------------------------------------------
    # PUSH: EVALUATE ON INGESTION
    # --------------------------------------------------------

    async def on_alert_ingested(
        self,
        ticker: str,
        new_alert: Optional[Alert] = None,
    ) -> List[CompletionResult]:
        """
        Evaluate every enabled strategy for a ticker.

        Args:
            ticker: Ticker of the alert that was just stored
            new_alert: The stored alert (supplies price for notifications)

        Returns:
            Completions emitted in this pass
        """
        start_time = time.time()
        evaluation_id = str(uuid4())[:8]

        try:
            strategies = await self._registry.list_enabled_strategies()
        except Exception as e:
            logger.error(f"[{evaluation_id}] Cannot load strategies, skipping pass for {ticker}: {e}")
            return []

        if not strategies:
            logger.debug(f"[{evaluation_id}] No enabled strategies")
            return []

        logger.info(f"[{evaluation_id}] Evaluating {len(strategies)} enabled strategies for {ticker}")

        completions = await self._evaluate_all(strategies, ticker, new_alert, evaluation_id)

        # --------------------------------------------------
        # Cooldown and emission
        # --------------------------------------------------
        now = self._clock.now()
        emitted: List[CompletionResult] = []
        for completion in completions:
            if not self._cooldown.try_acquire(completion.strategy_id, completion.ticker, now):
                logger.info(
                    f"[{evaluation_id}] Strategy '{completion.strategy_name}' for {ticker} "
                    f"is cooling down, completion suppressed"
                )
                continue
            emitted.append(completion)

        await asyncio.gather(*(self._emit(c, evaluation_id) for c in emitted))

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{evaluation_id}] Pass for {ticker} finished: "
            f"strategies={len(strategies)} completions={len(emitted)} "
            f"duration_ms={duration_ms:.1f}"
        )
        return emitted

    async def _evaluate_all(
        self,
        strategies: List[Strategy],
        ticker: str,
        new_alert: Optional[Alert],
        evaluation_id: str,
    ) -> List[CompletionResult]:
        """Run strategies on a bounded pool under the pass deadline."""
        semaphore = asyncio.Semaphore(self.config.max_concurrency)

        async def run(strategy: Strategy) -> Optional[CompletionResult]:
            async with semaphore:
                return await self._evaluate_strategy(strategy, ticker, new_alert, evaluation_id)

        tasks = [
            asyncio.create_task(run(strategy), name=f"strategy-{strategy.id}")
            for strategy in strategies
        ]

        done, pending = await asyncio.wait(
            tasks,
            timeout=self.config.evaluation_timeout_seconds,
        )

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(
                f"[{evaluation_id}] Deadline of {self.config.evaluation_timeout_seconds}s reached, "
                f"skipped {len(pending)} of {len(tasks)} strategies for {ticker}"
            )

        completions: List[CompletionResult] = []
        for task in tasks:
            if task in done and not task.cancelled() and task.exception() is None:
                result = task.result()
                if result is not None:
                    completions.append(result)
        return completions

    async def _evaluate_strategy(
        self,
        strategy: Strategy,
        ticker: str,
        new_alert: Optional[Alert],
        evaluation_id: str,
    ) -> Optional[CompletionResult]:
        """Search, score and classify one strategy. Never raises."""
        try:
            result = await self._search.search(strategy, ticker)

            logger.info(
                f"[{evaluation_id}] Strategy '{strategy.name}' for {ticker}: "
                f"complete={result.is_complete} found={len(result.matched)} "
                f"missing={len(result.missing)} timeframe={result.timeframe_used}"
            )

            if not result.is_complete:
                return None

            return await self._build_completion(strategy, ticker, result, new_alert)

        except EngineException as e:
            logger.error(f"[{evaluation_id}] Strategy '{strategy.name}' skipped: {e.to_log_format()}")
        except Exception as e:
            logger.error(
                f"[{evaluation_id}] Error evaluating strategy '{strategy.name}': {e}",
                exc_info=True,
            )
        return None

    async def _build_completion(
        self,
        strategy: Strategy,
        ticker: str,
        result: SearchResult,
        new_alert: Optional[Alert],
    ) -> CompletionResult:
        score = await self._scorer.score(result.matched)
        action = self._classifier.classify(strategy, result.matched)

        return CompletionResult(
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            ticker=ticker,
            timeframe_used=result.timeframe_used,
            matched_conditions=result.matched,
            missing_conditions=result.missing,
            score=score,
            action=action,
            timestamp=self._clock.now(),
            price=self._completion_price(result.match, new_alert),
        )

    @staticmethod
    def _completion_price(match: MatchResult, new_alert: Optional[Alert]) -> Optional[float]:
        """Price of the triggering alert, else of the newest priced evidence."""
        if new_alert is not None and new_alert.price is not None:
            return new_alert.price
        priced = [a for a in match.evidence.values() if a.price is not None]
        if not priced:
            return None
        return max(priced, key=lambda a: a.timestamp).price

    async def _emit(self, completion: CompletionResult, evaluation_id: str) -> None:
        """Persist then notify; failures are logged and dropped."""
        logger.info(
            f"[{evaluation_id}] STRATEGY COMPLETED: {completion.action.value} {completion.ticker} "
            f"strategy='{completion.strategy_name}' score={completion.score} "
            f"timeframe={completion.timeframe_used}"
        )

        if self._sink is not None:
            try:
                await self._sink.record_completion(completion)
            except Exception as e:
                logger.error(
                    f"[{evaluation_id}] Failed to record completion for "
                    f"'{completion.strategy_name}' {completion.ticker}: {e}"
                )

        if self._notifier is not None:
            try:
                await self._notifier.notify(completion.to_notification_payload())
            except Exception as e:
                logger.error(
                    f"[{evaluation_id}] Notification failed for "
                    f"'{completion.strategy_name}' {completion.ticker}: {e}"
                )

    # --------------------------------------------------------
    # PULL: DASHBOARD SCORES
    # --------------------------------------------------------

    async def score_all_strategies(
        self,
        time_window_minutes: Optional[int] = None,
    ) -> List[StrategyScoreRow]:
        """
        One row per enabled strategy: the ticker with the most matched
        conditions over the window.

        Ties keep the first ticker encountered; the store returns alerts
        newest first, so that is the ticker with the most recent alert.

        Raises:
            StoreLookupError: registry or store unreachable
        """
        window = time_window_minutes or self.config.default_score_window_minutes
        now = self._clock.now()

        strategies = await self._registry.list_enabled_strategies()
        alerts = await self._store.query_alerts_since(now - timedelta(minutes=window))

        alerts_by_ticker: Dict[str, List[Alert]] = {}
        for alert in alerts:
            alerts_by_ticker.setdefault(alert.ticker, []).append(alert)

        logger.info(
            f"Scoring {len(strategies)} strategies over {len(alerts)} alerts "
            f"from the last {window} minutes"
        )

        rows: List[StrategyScoreRow] = []
        for strategy in strategies:
            if strategy.is_empty:
                continue
            try:
                rows.append(await self._score_strategy(strategy, alerts_by_ticker, window))
            except Exception as e:
                logger.error(f"Error scoring strategy '{strategy.name}': {e}")

        rows.sort(key=lambda row: len(row.matched), reverse=True)
        return rows

    async def _score_strategy(
        self,
        strategy: Strategy,
        alerts_by_ticker: Dict[str, List[Alert]],
        window: int,
    ) -> StrategyScoreRow:
        best_ticker: Optional[str] = None
        best: Optional[MatchResult] = None

        for ticker, ticker_alerts in alerts_by_ticker.items():
            result = self._matcher.match(strategy, ticker_alerts)
            if result.matched_count > (best.matched_count if best else 0):
                best_ticker = ticker
                best = result

        if best is None:
            return StrategyScoreRow(
                strategy_id=strategy.id,
                strategy_name=strategy.name,
                ticker=None,
                timeframe=f"{window}m",
                matched=(),
                missing=strategy.conditions,
                score=0.0,
                is_complete=False,
                action=None,
                timestamp=self._clock.now(),
            )

        return StrategyScoreRow(
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            ticker=best_ticker,
            timeframe=f"{window}m",
            matched=best.matched,
            missing=best.missing,
            score=await self._scorer.score(best.matched),
            is_complete=best.is_complete,
            action=self._classifier.classify(strategy, best.matched) if best.is_complete else None,
            timestamp=self._clock.now(),
        )
