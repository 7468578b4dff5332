from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dashboard.routers import health, scores, webhook
from dashboard.services import AppServices, build_services

logger = logging.getLogger(__name__)


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """
    Build the API application.

    When services are not supplied they are built from the environment
    at startup and closed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = services is None
        app.state.services = services or await build_services()
        logger.info("Alert engine API started")
        try:
            yield
        finally:
            if owned:
                await app.state.services.close()
            logger.info("Alert engine API stopped")

    app = FastAPI(
        title="Strategy Alert Engine API",
        description="Webhook ingestion and strategy completion scores.",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS (Allow local frontend development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(webhook.router)
    app.include_router(scores.router)
    app.include_router(health.router)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Strategy Alert Engine API is running"}

    return app


app = create_app()
