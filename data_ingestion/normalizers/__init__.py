"""
Data Ingestion - Normalizers Package.

Normalizers:
- webhook_normalizer: Pipe-delimited charting webhook -> Alert
"""

from .webhook_normalizer import (
    DEFAULT_INDICATOR_ALIASES,
    WebhookNormalizer,
    parse_price,
)


__all__ = [
    "DEFAULT_INDICATOR_ALIASES",
    "WebhookNormalizer",
    "parse_price",
]
