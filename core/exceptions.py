"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the alert strategy engine.

- Provides clear exception hierarchy
- Enables specific error handling per evaluation stage
- Includes context for debugging

============================================================
EXCEPTION HIERARCHY
============================================================
EngineException (base)
├── ConfigurationError
├── ValidationError
├── StoreLookupError
└── ScoringError

============================================================
PROPAGATION POLICY
============================================================
- ValidationError: rejected to the caller before evaluation
- StoreLookupError: logged, affected strategy skipped for this pass
- ScoringError: logged, weight treated as 0
- ConfigurationError: raised at startup

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for logging."""

    LOW = "low"
    """Minor issue, informational."""

    MEDIUM = "medium"
    """Moderate issue, requires attention."""

    HIGH = "high"
    """Serious issue, evaluation results are incomplete."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class EngineException(Exception):
    """
    Base exception for all engine errors.

    All exceptions carry:
    - severity: for logging
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/API responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_log_format(self) -> str:
        """Format exception for structured logging."""
        ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        line = f"[{self.severity.value.upper()}] {type(self).__name__}: {self.message}"
        if ctx_str:
            line += f" | {ctx_str}"
        return line


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(EngineException):
    """Environment or file configuration is invalid."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


# ============================================================
# DATA ERRORS
# ============================================================

class ValidationError(EngineException):
    """Malformed alert line or strategy record."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        actual: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if field:
            context["field"] = field
        if actual is not None:
            context["actual"] = str(actual)[:100]

        super().__init__(message, context=context, **kwargs)


class StoreLookupError(EngineException):
    """Alert store or strategy registry could not be read."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if source:
            context["source"] = source

        super().__init__(message, context=context, **kwargs)


class ScoringError(EngineException):
    """Weight provider failed. Non-fatal: the weight counts as 0."""

    default_severity = Severity.LOW

    def __init__(
        self,
        message: str,
        indicator: Optional[str] = None,
        trigger: Optional[str] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if indicator:
            context["indicator"] = indicator
        if trigger:
            context["trigger"] = trigger

        super().__init__(message, context=context, **kwargs)


__all__ = [
    "Severity",
    "EngineException",
    "ConfigurationError",
    "ValidationError",
    "StoreLookupError",
    "ScoringError",
]
