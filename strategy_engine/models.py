"""
Strategy Engine - Persistence Layer.

============================================================
PURPOSE
============================================================
ORM models for the alert store, the strategy registry, the
condition weights table and the completion log.

============================================================
MODELS
============================================================
1. AlertRecord: Append-only ingested alerts
2. StrategyRecord: User-defined strategies (rules stored as JSON)
3. AvailableAlertRecord: Known (indicator, trigger) pairs with weights
4. StrategyActionRecord: Emitted completions

============================================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from database.engine import Base


def generate_uuid() -> str:
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================
# ALERTS
# ============================================================


class AlertRecord(Base):
    """
    Ingested alert.

    Indicator is stored as the display name carried by the webhook.
    """

    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    ticker: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        comment="Ticker symbol (e.g., BTC)",
    )

    indicator: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Indicator display name",
    )

    trigger: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Trigger text",
    )

    timeframe: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default="",
        comment="Chart timeframe label as received (e.g., 15m)",
    )

    price: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    __table_args__ = (
        Index("ix_alerts_ticker_timestamp", "ticker", "timestamp"),
        Index("ix_alerts_timestamp", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<AlertRecord {self.ticker} {self.indicator} {self.trigger!r} {self.timestamp}>"


# ============================================================
# STRATEGIES
# ============================================================


class StrategyRecord(Base):
    """
    Stored strategy definition.

    timeframe holds minutes; 0 or NULL means "any timeframe".
    rule_groups wins over the legacy flat rules list when set.
    """

    __tablename__ = "strategies"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    timeframe: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        default=0,
        comment="Window in minutes; 0/NULL = any",
    )

    rules: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True,
        comment="Legacy flat AND list of {indicator, trigger}",
    )

    rule_groups: Mapped[Optional[List[Dict[str, Any]]]] = mapped_column(
        JSON,
        nullable=True,
        comment="List of {operator, alerts: [{indicator, name}]}",
    )

    inter_group_operator: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="AND",
    )

    threshold: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
    )

    enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_record(self) -> Dict[str, Any]:
        """Plain mapping accepted by Strategy.from_record."""
        return {
            "id": self.id,
            "name": self.name,
            "timeframe": self.timeframe,
            "rules": self.rules,
            "rule_groups": self.rule_groups,
            "inter_group_operator": self.inter_group_operator,
            "threshold": self.threshold,
            "enabled": self.enabled,
        }


# ============================================================
# CONDITION WEIGHTS
# ============================================================


class AvailableAlertRecord(Base):
    """Catalog of known (indicator, trigger) pairs and their weights."""

    __tablename__ = "available_alerts"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    indicator: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Indicator display name",
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Trigger text",
    )

    weight: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
    )

    __table_args__ = (
        UniqueConstraint("indicator", "name", name="uq_available_alerts_indicator_name"),
    )


# ============================================================
# COMPLETION LOG
# ============================================================


class StrategyActionRecord(Base):
    """One emitted strategy completion."""

    __tablename__ = "strategy_actions"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=generate_uuid,
    )

    strategy_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )

    strategy_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    ticker: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(4),
        nullable=False,
        comment="BUY or SELL",
    )

    timeframe_used: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
    )

    score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
    )

    price: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
    )

    matched_conditions: Mapped[List[Dict[str, str]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    missing_conditions: Mapped[List[Dict[str, str]]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )
