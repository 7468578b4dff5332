"""
Alert Engine API Routers.
"""
from . import health, scores, webhook

__all__ = ["health", "scores", "webhook"]
