"""
Pydantic schemas for the alert engine API responses.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =======================
# COMMON
# =======================

class BaseResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)


# =======================
# 1. WEBHOOK
# =======================

class AlertOut(BaseModel):
    id: Optional[str] = None
    ticker: str
    indicator: str
    trigger: str
    timeframe: str
    price: Optional[float] = None
    timestamp: datetime


class WebhookResponse(BaseResponse):
    data: AlertOut


# =======================
# 2. STRATEGY SCORES
# =======================

class StrategyScore(BaseModel):
    strategy_id: str
    strategy: str
    ticker: Optional[str] = None
    timeframe: str
    alerts_found: List[str]
    missing_alerts: List[str]
    score: float
    is_complete: bool
    action: Optional[str] = None
    timestamp: datetime


class StrategyScoresResponse(BaseResponse):
    window_minutes: int
    data: List[StrategyScore]


# =======================
# 3. HEALTH
# =======================

class HealthStatus(BaseModel):
    status: str  # ok, degraded
    database: str  # up, down, unknown
    ingestion: Dict[str, Any]
    notifications: Dict[str, Any]


class HealthResponse(BaseResponse):
    data: HealthStatus
