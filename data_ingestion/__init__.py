"""
Data Ingestion Package.

Receives charting webhooks, stores them as alerts and hands them to
the Strategy Engine. No strategy logic lives here.

Sub-packages:
- normalizers: Webhook text -> Alert

Main service:
- ingestion_service: Store then schedule evaluation
"""

from data_ingestion.ingestion_service import AlertIngestionService
from data_ingestion.normalizers import (
    DEFAULT_INDICATOR_ALIASES,
    WebhookNormalizer,
    parse_price,
)


__all__ = [
    "AlertIngestionService",
    "WebhookNormalizer",
    "DEFAULT_INDICATOR_ALIASES",
    "parse_price",
]
