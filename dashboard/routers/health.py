from fastapi import APIRouter, Depends

from dashboard.dependencies import get_services
from dashboard.schemas import HealthResponse, HealthStatus
from dashboard.services import AppServices

router = APIRouter(tags=["System Health"])


@router.get("/health", response_model=HealthResponse)
async def get_health(services: AppServices = Depends(get_services)):
    """
    Liveness plus database reachability and ingestion counters.
    """
    database = await services.database_status()
    return HealthResponse(
        success=True,
        data=HealthStatus(
            status="degraded" if database == "down" else "ok",
            database=database,
            ingestion=services.ingestion.get_metrics(),
            notifications=services.notification_stats(),
        ),
    )
