"""
Discord Notification Handler.

Posts strategy completions to a Discord webhook as Markdown
``content`` under the "StockAgent Alerts" username.
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from core.clock import ClockProtocol, get_clock
from strategy_engine.types import NotificationPayload

from .config import MessageTemplate, NotificationConfig
from .formatting import CompletionFormatter


logger = logging.getLogger(__name__)


WEBHOOK_USERNAME = "StockAgent Alerts"
MAX_CONTENT_LENGTH = 2000


class DiscordFormatter(CompletionFormatter):
    """Formats completions as Discord Markdown."""

    def bold(self, text: str) -> str:
        return f"**{text}**"


class DiscordNotifier:
    """Sends completion notifications to one Discord webhook. Never raises."""

    def __init__(
        self,
        webhook_url: str,
        template: Optional[MessageTemplate] = None,
        clock: Optional[ClockProtocol] = None,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._webhook_url = webhook_url
        self._formatter = DiscordFormatter(template)
        self._clock = clock or get_clock()
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        self._session = session
        self._owns_session = session is None
        self._enabled = bool(webhook_url)

        if self._enabled:
            logger.info("DiscordNotifier enabled")
        else:
            logger.warning("DiscordNotifier NOT configured - check DISCORD_WEBHOOK_URL")

    @classmethod
    def from_config(
        cls,
        config: NotificationConfig,
        clock: Optional[ClockProtocol] = None,
    ) -> "DiscordNotifier":
        return cls(
            webhook_url=config.discord_webhook_url,
            template=config.template,
            clock=clock,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def formatter(self) -> DiscordFormatter:
        return self._formatter

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send_completion(self, payload: NotificationPayload) -> bool:
        if not self._enabled:
            return False

        content = self._formatter.format(payload, timestamp=self._clock.now())
        return await self._post(content[:MAX_CONTENT_LENGTH])

    async def _post(self, content: str) -> bool:
        body = {
            "content": content,
            "username": WEBHOOK_USERNAME,
        }
        try:
            session = await self._get_session()
            async with session.post(self._webhook_url, json=body, timeout=self._timeout) as response:
                # Discord answers 204 No Content on success
                if response.status in (200, 204):
                    return True
                text = await response.text()
                logger.error(f"Discord webhook error: {response.status} - {text}")
                return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error sending Discord message: {e}")
            return False
