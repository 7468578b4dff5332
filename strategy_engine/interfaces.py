"""
Strategy Engine - Collaborator Interfaces.

============================================================
PURPOSE
============================================================
Abstract seams between the evaluation core and the systems it reads
from and writes to. The SQL adapters live in repository.py; the
notification channels live in monitoring.notifications.

============================================================
CONTRACTS
============================================================
- AlertStore.query_alerts: newest first, lower bound inclusive
- WeightProvider.get_weight: 0.0 for unknown pairs, never raises
- CompletionSink / NotificationDispatcher: best effort

============================================================
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from scoring_engine.weighted_score import WeightProvider

from .types import Alert, CompletionResult, NotificationPayload, Strategy


class AlertStore(ABC):
    """Append-only alert source."""

    @abstractmethod
    async def query_alerts(self, ticker: str, since: datetime) -> List[Alert]:
        """Alerts for one ticker with timestamp >= since, newest first."""
        pass

    @abstractmethod
    async def query_alerts_since(self, since: datetime) -> List[Alert]:
        """Alerts for every ticker with timestamp >= since, newest first."""
        pass

    @abstractmethod
    async def add_alert(self, alert: Alert) -> Alert:
        """Store a new alert; returns it with its assigned id."""
        pass


class StrategyRegistry(ABC):
    """Source of strategy definitions."""

    @abstractmethod
    async def list_enabled_strategies(self) -> List[Strategy]:
        pass


class CompletionSink(ABC):
    """Persistence target for completion records."""

    @abstractmethod
    async def record_completion(self, result: CompletionResult) -> None:
        pass


class NotificationDispatcher(ABC):
    """Outbound delivery of completion payloads."""

    @abstractmethod
    async def notify(self, payload: NotificationPayload) -> None:
        """Deliver payload. Implementations must not raise."""
        pass


__all__ = [
    "AlertStore",
    "StrategyRegistry",
    "WeightProvider",
    "CompletionSink",
    "NotificationDispatcher",
]
