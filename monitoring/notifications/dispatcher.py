"""
Completion Notification Dispatcher.

Fans a completion payload out to every enabled channel concurrently.
Channel failures are logged; notify() never raises.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from core.clock import ClockProtocol
from strategy_engine.interfaces import NotificationDispatcher
from strategy_engine.types import NotificationPayload

from .config import NotificationConfig
from .discord import DiscordNotifier
from .telegram import TelegramNotifier


logger = logging.getLogger(__name__)


class CompletionNotificationDispatcher(NotificationDispatcher):
    """
    Sends completions to Telegram and Discord.

    Channels are any objects exposing ``enabled``,
    ``async send_completion(payload) -> bool`` and ``async close()``.
    """

    def __init__(self, channels: Sequence[Any]):
        self._channels = list(channels)
        self._sent = 0
        self._failed = 0

    @classmethod
    def from_config(
        cls,
        config: NotificationConfig,
        clock: Optional[ClockProtocol] = None,
    ) -> "CompletionNotificationDispatcher":
        channels: List[Any] = []
        if config.telegram_enabled:
            channels.append(TelegramNotifier.from_config(config, clock=clock))
        if config.discord_enabled:
            channels.append(DiscordNotifier.from_config(config, clock=clock))

        if not channels:
            logger.warning("No notification channels configured; completions will only be logged")
        return cls(channels)

    @property
    def channels(self) -> List[Any]:
        return list(self._channels)

    async def notify(self, payload: NotificationPayload) -> None:
        channels = [c for c in self._channels if c.enabled]
        if not channels:
            return

        results = await asyncio.gather(
            *(c.send_completion(payload) for c in channels),
            return_exceptions=True,
        )

        for channel, result in zip(channels, results):
            name = type(channel).__name__
            if isinstance(result, Exception):
                self._failed += 1
                logger.error(f"{name} failed for {payload.ticker} '{payload.strategy_name}': {result}")
            elif result:
                self._sent += 1
                logger.info(f"{name} delivered {payload.action.value} {payload.ticker}")
            else:
                self._failed += 1
                logger.warning(f"{name} did not deliver {payload.action.value} {payload.ticker}")

    async def close(self) -> None:
        for channel in self._channels:
            try:
                await channel.close()
            except Exception as e:
                logger.warning(f"Error closing {type(channel).__name__}: {e}")

    def get_stats(self) -> Dict[str, Any]:
        return {
            "channels": [type(c).__name__ for c in self._channels if c.enabled],
            "sent": self._sent,
            "failed": self._failed,
        }
