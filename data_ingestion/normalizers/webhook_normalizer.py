"""
Data Ingestion - Webhook Normalizer.

============================================================
RESPONSIBILITY
============================================================
Turns one pipe-delimited charting webhook line into an Alert.

============================================================
WIRE FORMAT
============================================================
    TICKER|TIMEFRAME|INDICATOR|TRIGGER
    TICKER|PRICE|TIMEFRAME|INDICATOR|TRIGGER

- Fields are trimmed; the ticker is upper-cased
- The second field is a price when it is entirely numeric after
  removing a leading "$" and thousands separators, AND the line
  has at least five fields ("5" alone is a five-minute timeframe)
- A last field of exactly "TEST" after the trigger marks a test
  send from the charting side and is dropped
- Remaining fields after the trigger are rejoined with "|" into the trigger
- Charting-side indicator aliases are mapped to display names

============================================================
"""

import logging
import re
from typing import Dict, List, Mapping, Optional

from core.clock import ClockProtocol, get_clock
from core.exceptions import ValidationError
from strategy_engine.types import Alert


logger = logging.getLogger(__name__)


FIELD_SEPARATOR = "|"
MIN_FIELDS = 4
MIN_FIELDS_WITH_PRICE = 5
TEST_FLAG = "TEST"

_PRICE_PATTERN = re.compile(r"^\$?[0-9.]+$")

# Lower-cased alias -> indicator display name
DEFAULT_INDICATOR_ALIASES: Dict[str, str] = {
    "smc": "Market Core Pro™",
    "extreme": "Extreme Zones",
    "oscillator": "Nautilus™",
    "wave": "Market Waves Pro™",
}


def parse_price(raw: str) -> Optional[float]:
    """Numeric value of a price field, or None if it is not one."""
    cleaned = raw.replace(",", "")
    if not _PRICE_PATTERN.match(cleaned) or not any(ch.isdigit() for ch in cleaned):
        return None
    try:
        return float(cleaned.lstrip("$"))
    except ValueError:
        return None


class WebhookNormalizer:
    """Parses webhook text into Alert objects stamped with the clock's now."""

    def __init__(
        self,
        clock: Optional[ClockProtocol] = None,
        indicator_aliases: Optional[Mapping[str, str]] = None,
    ):
        self._clock = clock or get_clock()
        aliases = DEFAULT_INDICATOR_ALIASES if indicator_aliases is None else indicator_aliases
        self._aliases = {k.lower(): v for k, v in aliases.items()}

    def normalize_indicator(self, indicator: str) -> str:
        return self._aliases.get(indicator.lower(), indicator)

    def normalize(self, body: str) -> Alert:
        """
        Parse one webhook line.

        Raises:
            ValidationError: too few fields or an empty required field
        """
        text = (body or "").strip()
        parts: List[str] = [p.strip() for p in text.split(FIELD_SEPARATOR)]

        if len(parts) < MIN_FIELDS:
            raise ValidationError(
                "Expected TICKER|TIMEFRAME|INDICATOR|TRIGGER or TICKER|PRICE|TIMEFRAME|INDICATOR|TRIGGER",
                field="body",
                actual=text,
            )

        ticker = parts[0].upper()
        price = parse_price(parts[1]) if len(parts) >= MIN_FIELDS_WITH_PRICE else None

        rest = parts[2:] if price is not None else parts[1:]
        is_test = len(rest) > 3 and rest[-1] == TEST_FLAG
        if is_test:
            rest = rest[:-1]
        timeframe, indicator = rest[0], rest[1]
        trigger = FIELD_SEPARATOR.join(rest[2:]).strip()

        for name, value in (
            ("ticker", ticker),
            ("timeframe", timeframe),
            ("indicator", indicator),
            ("trigger", trigger),
        ):
            if not value:
                raise ValidationError(
                    f"Missing required field: {name}",
                    field=name,
                    actual=text,
                )

        alert = Alert(
            ticker=ticker,
            indicator=self.normalize_indicator(indicator),
            trigger=trigger,
            timeframe_label=timeframe,
            timestamp=self._clock.now(),
            price=price,
        )

        if is_test:
            logger.info(f"Test alert from charting side: {alert.ticker} {alert.indicator} '{alert.trigger}'")

        logger.debug(
            f"Parsed webhook: ticker={alert.ticker} price={alert.price} "
            f"timeframe={alert.timeframe_label} indicator={alert.indicator}"
        )
        return alert
