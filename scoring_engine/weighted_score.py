"""
Scoring Engine - Weighted Score.

============================================================
RESPONSIBILITY
============================================================
Aggregates the weights of already-matched leaf conditions into one
score for a completion.

- Never re-derives matches; scores exactly what it is given
- Unknown (indicator, trigger) pairs contribute 0
- A failing weight lookup is logged and contributes 0

============================================================
ROUNDING
============================================================
Each weight is taken at its decimal value and summed as a Decimal, so
0.15 + 0.3 is exactly 0.45. The sum is rounded to one decimal, half
away from zero: 3.14 -> 3.1, 3.15 -> 3.2, -3.15 -> -3.2.

============================================================
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable, Optional, Union

from core.exceptions import ScoringError


logger = logging.getLogger(__name__)


_ONE_DECIMAL = Decimal("0.1")


class WeightProvider(ABC):
    """(indicator, trigger) -> weight lookup."""

    @abstractmethod
    async def get_weight(self, indicator: str, trigger: str) -> float:
        """Weight for the pair; 0.0 when unknown. Must not raise."""
        pass


def round_score(value: Union[float, Decimal]) -> float:
    """Round to one decimal place, half away from zero."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(value.quantize(_ONE_DECIMAL, rounding=ROUND_HALF_UP))


class WeightedScorer:
    """
    Sums condition weights.

    Conditions are any objects exposing ``indicator`` and ``trigger``.
    ``resolve_indicator`` maps a condition's indicator to the name the
    weight table is keyed by (display names).
    """

    def __init__(
        self,
        weight_provider: WeightProvider,
        resolve_indicator: Optional[Callable[[str], str]] = None,
    ):
        self._weights = weight_provider
        self._resolve = resolve_indicator or (lambda name: name)

    async def score(self, matched_conditions: Iterable[Any]) -> float:
        total = Decimal(0)
        for condition in matched_conditions:
            total += await self._weight_of(condition)
        return round_score(total)

    async def _weight_of(self, condition: Any) -> Decimal:
        indicator = self._resolve(condition.indicator)
        try:
            weight = await self._weights.get_weight(indicator, condition.trigger)
        except Exception as e:
            error = ScoringError(
                "Weight lookup failed",
                indicator=indicator,
                trigger=condition.trigger,
                cause=e,
            )
            logger.warning(error.to_log_format())
            return Decimal(0)
        return Decimal(str(float(weight or 0.0)))
