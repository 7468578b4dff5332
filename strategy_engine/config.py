"""
Strategy Engine - Configuration.

============================================================
PURPOSE
============================================================
Defines all configuration for the Strategy Engine.

- Indicator key <-> display name table
- Evaluation concurrency and deadline
- Completion cooldown
- Action classifier selection

============================================================
CONFIGURATION PHILOSOPHY
============================================================
- Defaults match the production alert service
- Immutable configurations
- Environment overrides validated at startup

============================================================
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict

from core.env import env_float, env_int, env_str
from core.exceptions import ConfigurationError

from .indicators import DEFAULT_INDICATOR_NAMES


CLASSIFIER_HEURISTIC = "heuristic"
CLASSIFIER_THRESHOLD_SIGN = "threshold_sign"

SUPPORTED_CLASSIFIERS = (CLASSIFIER_HEURISTIC, CLASSIFIER_THRESHOLD_SIGN)


@dataclass(frozen=True)
class StrategyEngineConfig:
    """
    Complete Strategy Engine configuration.

    ============================================================
    FIELDS
    ============================================================
    max_concurrency: Strategies evaluated at once per pass
    evaluation_timeout_seconds: Deadline for one pass
    cooldown_seconds: 0 = re-fire on every reconfirming alert
    action_classifier: "heuristic" or "threshold_sign"

    ============================================================
    """

    indicator_names: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_INDICATOR_NAMES)
    )

    max_concurrency: int = 4
    evaluation_timeout_seconds: float = 10.0
    cooldown_seconds: float = 0.0
    action_classifier: str = CLASSIFIER_HEURISTIC

    # Dashboard window when the caller gives none
    default_score_window_minutes: int = 60

    def __post_init__(self) -> None:
        if self.max_concurrency < 1:
            raise ConfigurationError(
                "max_concurrency must be at least 1",
                config_key="max_concurrency",
                actual_value=self.max_concurrency,
            )
        if self.evaluation_timeout_seconds <= 0:
            raise ConfigurationError(
                "evaluation_timeout_seconds must be positive",
                config_key="evaluation_timeout_seconds",
                actual_value=self.evaluation_timeout_seconds,
            )
        if self.cooldown_seconds < 0:
            raise ConfigurationError(
                "cooldown_seconds cannot be negative",
                config_key="cooldown_seconds",
                actual_value=self.cooldown_seconds,
            )
        if self.action_classifier not in SUPPORTED_CLASSIFIERS:
            raise ConfigurationError(
                f"action_classifier must be one of {SUPPORTED_CLASSIFIERS}",
                config_key="action_classifier",
                actual_value=self.action_classifier,
            )

    @classmethod
    def from_env(cls) -> "StrategyEngineConfig":
        """
        Build configuration from environment variables.

        ENGINE_INDICATOR_NAMES       JSON object {key: display name}
        ENGINE_MAX_CONCURRENCY
        ENGINE_EVALUATION_TIMEOUT_SECONDS
        ENGINE_COOLDOWN_SECONDS
        ENGINE_ACTION_CLASSIFIER
        ENGINE_SCORE_WINDOW_MINUTES
        """
        defaults = cls()

        indicator_names = defaults.indicator_names
        raw_names = env_str("ENGINE_INDICATOR_NAMES")
        if raw_names:
            try:
                indicator_names = dict(json.loads(raw_names))
            except (ValueError, TypeError) as e:
                raise ConfigurationError(
                    "ENGINE_INDICATOR_NAMES must be a JSON object",
                    config_key="ENGINE_INDICATOR_NAMES",
                    actual_value=raw_names,
                    cause=e,
                )

        return cls(
            indicator_names=indicator_names,
            max_concurrency=env_int("ENGINE_MAX_CONCURRENCY", defaults.max_concurrency),
            evaluation_timeout_seconds=env_float(
                "ENGINE_EVALUATION_TIMEOUT_SECONDS", defaults.evaluation_timeout_seconds
            ),
            cooldown_seconds=env_float("ENGINE_COOLDOWN_SECONDS", defaults.cooldown_seconds),
            action_classifier=env_str("ENGINE_ACTION_CLASSIFIER", defaults.action_classifier),
            default_score_window_minutes=env_int(
                "ENGINE_SCORE_WINDOW_MINUTES", defaults.default_score_window_minutes
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indicator_names": dict(self.indicator_names),
            "max_concurrency": self.max_concurrency,
            "evaluation_timeout_seconds": self.evaluation_timeout_seconds,
            "cooldown_seconds": self.cooldown_seconds,
            "action_classifier": self.action_classifier,
            "default_score_window_minutes": self.default_score_window_minutes,
        }


def get_default_config() -> StrategyEngineConfig:
    """Get default Strategy Engine configuration."""
    return StrategyEngineConfig()
