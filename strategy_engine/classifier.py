"""
Strategy Engine - Action Classifier.

============================================================
PURPOSE
============================================================
Attaches a Buy/Sell label to a completed strategy.

The orchestrator only sees the ActionClassifier interface, so the
heuristic can be swapped for explicit per-strategy direction without
touching evaluation.

============================================================
HEURISTIC PRECEDENCE
============================================================
1. Strategy name contains buy / discount / equilibrium    -> BUY
2. Matched triggers: bullish tokens and no bearish tokens -> BUY
3. No bearish token but a reversal token                  -> BUY
4. Otherwise                                              -> SELL

Bullish trigger tokens:  bullish, discount, oversold
Bearish trigger tokens:  bearish, premium, overbought

All comparisons are case-insensitive substring checks.

============================================================
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from .config import CLASSIFIER_THRESHOLD_SIGN
from .types import Condition, Strategy, TradeAction


BULLISH_NAME_TOKENS = ("buy", "discount", "equilibrium")
BULLISH_TRIGGER_TOKENS = ("bullish", "discount", "oversold")
BEARISH_TRIGGER_TOKENS = ("bearish", "premium", "overbought")
REVERSAL_TOKEN = "reversal"


def _contains_any(text: str, tokens: Iterable[str]) -> bool:
    return any(token in text for token in tokens)


class ActionClassifier(ABC):
    """Derives the directional label of a completion."""

    @abstractmethod
    def classify(self, strategy: Strategy, matched: Sequence[Condition]) -> TradeAction:
        pass


class HeuristicActionClassifier(ActionClassifier):
    """Token heuristic over strategy name and matched trigger text."""

    def classify(self, strategy: Strategy, matched: Sequence[Condition]) -> TradeAction:
        name = strategy.name.lower()
        if _contains_any(name, BULLISH_NAME_TOKENS):
            return TradeAction.BUY

        trigger_text = " ".join(c.trigger for c in matched).lower()
        bullish = _contains_any(trigger_text, BULLISH_TRIGGER_TOKENS)
        bearish = _contains_any(trigger_text, BEARISH_TRIGGER_TOKENS)

        if bullish and not bearish:
            return TradeAction.BUY
        if not bearish and REVERSAL_TOKEN in trigger_text:
            return TradeAction.BUY
        return TradeAction.SELL


class ThresholdSignActionClassifier(ActionClassifier):
    """
    Uses the strategy's explicit threshold sign.

    Positive -> BUY, negative -> SELL; zero defers to the fallback.
    """

    def __init__(self, fallback: Optional[ActionClassifier] = None):
        self._fallback = fallback or HeuristicActionClassifier()

    def classify(self, strategy: Strategy, matched: Sequence[Condition]) -> TradeAction:
        if strategy.threshold_sign > 0:
            return TradeAction.BUY
        if strategy.threshold_sign < 0:
            return TradeAction.SELL
        return self._fallback.classify(strategy, matched)


def create_action_classifier(name: str) -> ActionClassifier:
    """Build the classifier selected by configuration."""
    if name == CLASSIFIER_THRESHOLD_SIGN:
        return ThresholdSignActionClassifier()
    return HeuristicActionClassifier()
