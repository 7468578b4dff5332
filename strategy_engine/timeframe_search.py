"""
Strategy Engine - Timeframe Search Controller.

============================================================
PURPOSE
============================================================
Drives the Rule Matcher across one or more windows for a strategy.

- Fixed timeframe: one window [now - n, now], one store query
- Any timeframe: each bucket in ascending duration, one query per
  bucket, stopping at the first bucket that completes

============================================================
BUCKET MEMBERSHIP
============================================================
An alert belongs to a bucket when its chart timeframe label is the
bucket's duration AND it falls inside the bucket's window. Buckets are
matched independently; alerts from two buckets never combine.

When no bucket completes, the bucket with the most matched conditions
is kept (smallest wins ties). That result is for reporting only.

============================================================
"""

import logging
from datetime import timedelta
from typing import Optional

from core.clock import ClockProtocol, get_clock

from .interfaces import AlertStore
from .matcher import RuleMatcher
from .types import SearchResult, Strategy, TimeframeBucket


logger = logging.getLogger(__name__)


class TimeframeSearchController:
    """Selects the window a strategy is judged on."""

    def __init__(
        self,
        alert_store: AlertStore,
        matcher: RuleMatcher,
        clock: Optional[ClockProtocol] = None,
    ):
        self._store = alert_store
        self._matcher = matcher
        self._clock = clock or get_clock()

    async def search(self, strategy: Strategy, ticker: str) -> SearchResult:
        """
        Evaluate a strategy for one ticker.

        Raises:
            StoreLookupError: alert store unreachable
        """
        if strategy.timeframe.is_any:
            return await self._search_buckets(strategy, ticker)
        return await self._search_fixed(strategy, ticker)

    async def _search_fixed(self, strategy: Strategy, ticker: str) -> SearchResult:
        since = self._clock.now() - timedelta(minutes=strategy.timeframe.minutes)
        alerts = await self._store.query_alerts(ticker, since)
        result = self._matcher.match(strategy, alerts)
        return SearchResult(match=result, timeframe_used=strategy.timeframe.label)

    async def _search_buckets(self, strategy: Strategy, ticker: str) -> SearchResult:
        now = self._clock.now()
        best: Optional[SearchResult] = None

        for bucket in TimeframeBucket:
            alerts = await self._store.query_alerts(ticker, now - timedelta(minutes=bucket.minutes))
            candidates = [a for a in alerts if a.timeframe_minutes == bucket.minutes]
            result = self._matcher.match(strategy, candidates)

            logger.debug(
                f"Strategy '{strategy.name}' {ticker} bucket {bucket.label}: "
                f"candidates={len(candidates)} matched={result.matched_count} "
                f"complete={result.is_complete}"
            )

            if result.is_complete:
                return SearchResult(match=result, timeframe_used=bucket.label)

            if best is None or result.matched_count > best.match.matched_count:
                best = SearchResult(match=result, timeframe_used=bucket.label)

        return best
