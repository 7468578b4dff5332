"""
Core Module - Environment Access.

Typed readers for environment variables. ``.env`` is loaded once on
import, so every config object sees the same values.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError


load_dotenv()


def env_str(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer",
            config_key=name,
            actual_value=raw,
        )


def env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number",
            config_key=name,
            actual_value=raw,
        )


def env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def env_list(name: str, default: Optional[List[str]] = None) -> List[str]:
    """Comma-separated list; blanks dropped."""
    raw = os.getenv(name)
    if raw is None:
        return list(default or [])
    return [item.strip() for item in raw.split(",") if item.strip()]
