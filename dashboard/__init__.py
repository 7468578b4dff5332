"""
Dashboard Package.

HTTP surface of the alert engine.

Modules:
- main: FastAPI application factory
- routers/: webhook, scores and health endpoints
- schemas: Pydantic response models
- services: Service wiring
"""
