from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from core.exceptions import StoreLookupError
from dashboard.dependencies import get_services
from dashboard.schemas import StrategyScore, StrategyScoresResponse
from dashboard.services import AppServices

router = APIRouter(tags=["Strategy Scores"])


@router.get("/scores", response_model=StrategyScoresResponse)
async def get_strategy_scores(
    window: Optional[int] = Query(None, ge=1, le=10080, description="Lookback in minutes"),
    services: AppServices = Depends(get_services),
):
    """
    Best ticker per enabled strategy over the lookback window.
    """
    orchestrator = services.orchestrator
    window_minutes = window or orchestrator.config.default_score_window_minutes
    try:
        rows = await orchestrator.score_all_strategies(window_minutes)
    except StoreLookupError as e:
        raise HTTPException(status_code=503, detail=e.to_dict())

    return StrategyScoresResponse(
        success=True,
        window_minutes=window_minutes,
        data=[StrategyScore(**row.to_dict()) for row in rows],
    )
