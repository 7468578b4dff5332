"""
Core Module Package.

This package contains the core infrastructure components
that all other modules depend on.

Components:
- clock: Unified time abstraction
- exceptions: Custom exception hierarchy
- logging_setup: Process logging configuration
"""

from .clock import ClockProtocol, SystemClock, MockClock, get_clock, set_clock
from .exceptions import (
    Severity,
    EngineException,
    ConfigurationError,
    ValidationError,
    StoreLookupError,
    ScoringError,
)
from .logging_setup import setup_logging


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "get_clock",
    "set_clock",
    "Severity",
    "EngineException",
    "ConfigurationError",
    "ValidationError",
    "StoreLookupError",
    "ScoringError",
    "setup_logging",
]
