"""
Strategy Engine - Indicator Name Mapping.

Strategies reference indicators by short internal keys ("nautilus") while
alerts carry the display name published by the charting side ("Nautilus™").
The table is bidirectional; names with no entry pass through unchanged.
"""

import logging
from typing import Dict, Mapping, Optional


logger = logging.getLogger(__name__)


DEFAULT_INDICATOR_NAMES: Dict[str, str] = {
    "extreme_zones": "Extreme Zones",
    "nautilus": "Nautilus™",
    "market_core": "Market Core Pro™",
    "market_waves": "Market Waves Pro™",
}


class IndicatorNameMap:
    """Bidirectional key <-> display-name lookup."""

    def __init__(self, key_to_display: Optional[Mapping[str, str]] = None):
        self._to_display: Dict[str, str] = dict(
            DEFAULT_INDICATOR_NAMES if key_to_display is None else key_to_display
        )
        self._to_key: Dict[str, str] = {v: k for k, v in self._to_display.items()}

    def to_display(self, name: str) -> str:
        """Map a strategy key to the alert display name."""
        display = self._to_display.get(name)
        if display is not None:
            return display
        if name not in self._to_key:
            logger.debug(f"No display mapping for indicator '{name}', using as-is")
        return name

    def to_dict(self) -> Dict[str, str]:
        return dict(self._to_display)

    def __len__(self) -> int:
        return len(self._to_display)
