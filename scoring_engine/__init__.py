"""
Scoring Engine Package.

Computes the numeric score attached to a strategy completion.

Modules:
- weighted_score: Weight aggregation over matched conditions
"""

from .weighted_score import WeightProvider, WeightedScorer, round_score


__all__ = [
    "WeightProvider",
    "WeightedScorer",
    "round_score",
]
