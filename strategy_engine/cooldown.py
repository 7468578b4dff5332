"""
Strategy Engine - Completion Cooldown.

Remembers when each (strategy, ticker) pair last fired. With a zero
cooldown every reconfirming alert fires again.
"""

from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple


class CompletionCooldown:
    """Last-fired bookkeeping per (strategy id, ticker)."""

    def __init__(self, cooldown_seconds: float = 0.0):
        self._window = timedelta(seconds=cooldown_seconds)
        self._last_fired: Dict[Tuple[str, str], datetime] = {}

    @property
    def enabled(self) -> bool:
        return self._window > timedelta(0)

    def last_fired(self, strategy_id: str, ticker: str) -> Optional[datetime]:
        return self._last_fired.get((strategy_id, ticker))

    def try_acquire(self, strategy_id: str, ticker: str, now: datetime) -> bool:
        """
        Claim the right to fire at ``now``.

        Returns False (and records nothing) while the pair is cooling down.
        """
        if not self.enabled:
            return True

        key = (strategy_id, ticker)
        previous = self._last_fired.get(key)
        if previous is not None and now - previous < self._window:
            return False

        self._last_fired[key] = now
        return True

    def reset(self) -> None:
        self._last_fired.clear()
