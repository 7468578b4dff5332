from fastapi import APIRouter, Depends, HTTPException, Request

from core.exceptions import ValidationError
from dashboard.dependencies import get_services
from dashboard.schemas import AlertOut, WebhookResponse
from dashboard.services import AppServices
from database.engine import DatabasePersistenceError

router = APIRouter(tags=["Webhook"])


@router.post("/webhook", response_model=WebhookResponse)
async def receive_webhook(request: Request, services: AppServices = Depends(get_services)):
    """
    Receive one pipe-delimited alert line.

    Responds once the alert is stored; strategy evaluation continues
    in the background.
    """
    body = (await request.body()).decode("utf-8", errors="replace")
    try:
        alert = await services.ingestion.ingest(body)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.to_dict())
    except DatabasePersistenceError as e:
        raise HTTPException(status_code=503, detail=str(e))

    return WebhookResponse(
        success=True,
        message="Alert stored",
        data=AlertOut(**alert.to_dict()),
    )
