"""
FastAPI dependencies.
"""
from fastapi import HTTPException, Request

from dashboard.services import AppServices


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise HTTPException(status_code=503, detail="Services not initialized")
    return services
