"""
Strategy Engine Package.

============================================================
PURPOSE
============================================================
Decides, each time a new alert is stored, which user-defined
strategies are now fully satisfied for that ticker, scores and
labels them, and hands them to persistence and notification.

============================================================
MODULES
============================================================
- types: Alerts, conditions, strategies and results
- indicators: Indicator key <-> display name table
- matcher: Boolean rule composition over a candidate set
- timeframe_search: Fixed window or smallest-bucket search
- classifier: Buy/Sell labelling
- cooldown: Optional repeat suppression
- engine: Evaluation orchestrator
- repository: SQL adapters

============================================================
"""

from .classifier import (
    ActionClassifier,
    HeuristicActionClassifier,
    ThresholdSignActionClassifier,
    create_action_classifier,
)
from .config import StrategyEngineConfig, get_default_config
from .cooldown import CompletionCooldown
from .engine import EvaluationOrchestrator
from .indicators import DEFAULT_INDICATOR_NAMES, IndicatorNameMap
from .interfaces import (
    AlertStore,
    CompletionSink,
    NotificationDispatcher,
    StrategyRegistry,
    WeightProvider,
)
from .matcher import RuleMatcher
from .timeframe_search import TimeframeSearchController
from .types import (
    Alert,
    CompletionResult,
    Condition,
    LogicalOperator,
    MatchResult,
    NotificationPayload,
    RuleGroup,
    SearchResult,
    Strategy,
    StrategyScoreRow,
    Timeframe,
    TimeframeBucket,
    TradeAction,
    timeframe_label_to_minutes,
)


__all__ = [
    # Types
    "Alert",
    "Condition",
    "RuleGroup",
    "Strategy",
    "Timeframe",
    "TimeframeBucket",
    "LogicalOperator",
    "TradeAction",
    "MatchResult",
    "SearchResult",
    "CompletionResult",
    "NotificationPayload",
    "StrategyScoreRow",
    "timeframe_label_to_minutes",
    # Components
    "IndicatorNameMap",
    "DEFAULT_INDICATOR_NAMES",
    "RuleMatcher",
    "TimeframeSearchController",
    "ActionClassifier",
    "HeuristicActionClassifier",
    "ThresholdSignActionClassifier",
    "create_action_classifier",
    "CompletionCooldown",
    "EvaluationOrchestrator",
    # Config
    "StrategyEngineConfig",
    "get_default_config",
    # Interfaces
    "AlertStore",
    "StrategyRegistry",
    "WeightProvider",
    "CompletionSink",
    "NotificationDispatcher",
]
