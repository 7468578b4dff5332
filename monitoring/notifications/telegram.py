"""
Telegram Notification Handler.

============================================================
PURPOSE
============================================================
Send strategy completions to Telegram chats.

PRINCIPLES:
- Notification-only, NO control commands
- Rate limiting to prevent spam
- HTML formatting, user text escaped

============================================================
"""

import asyncio
import html
import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import aiohttp

from core.clock import ClockProtocol, get_clock
from strategy_engine.types import NotificationPayload

from .config import MessageTemplate, NotificationConfig
from .formatting import CompletionFormatter


logger = logging.getLogger(__name__)


# ============================================================
# TELEGRAM MESSAGE FORMATTER
# ============================================================

class TelegramFormatter(CompletionFormatter):
    """Formats completions for Telegram's HTML parse mode."""

    def bold(self, text: str) -> str:
        return f"<b>{text}</b>"

    def escape(self, text: str) -> str:
        return html.escape(text, quote=False)


# ============================================================
# RATE LIMITER
# ============================================================

class TelegramRateLimiter:
    """
    Rate limiter for Telegram messages.

    Sliding one-minute and one-hour windows.
    """

    def __init__(
        self,
        max_per_minute: int = 20,
        max_per_hour: int = 100,
        clock: Optional[ClockProtocol] = None,
    ):
        self._max_per_minute = max_per_minute
        self._max_per_hour = max_per_hour
        self._clock = clock or get_clock()
        self._minute_window: List[datetime] = []
        self._hour_window: List[datetime] = []
        self._lock = asyncio.Lock()

    async def acquire(self) -> bool:
        """Try to acquire a send slot."""
        async with self._lock:
            now = self._clock.now()

            minute_ago = now - timedelta(minutes=1)
            hour_ago = now - timedelta(hours=1)

            self._minute_window = [t for t in self._minute_window if t > minute_ago]
            self._hour_window = [t for t in self._hour_window if t > hour_ago]

            if len(self._minute_window) >= self._max_per_minute:
                return False
            if len(self._hour_window) >= self._max_per_hour:
                return False

            self._minute_window.append(now)
            self._hour_window.append(now)

            return True

    @property
    def remaining_minute(self) -> int:
        """Remaining sends in current minute."""
        minute_ago = self._clock.now() - timedelta(minutes=1)
        count = sum(1 for t in self._minute_window if t > minute_ago)
        return max(0, self._max_per_minute - count)

    @property
    def remaining_hour(self) -> int:
        """Remaining sends in current hour."""
        hour_ago = self._clock.now() - timedelta(hours=1)
        count = sum(1 for t in self._hour_window if t > hour_ago)
        return max(0, self._max_per_hour - count)


# ============================================================
# TELEGRAM NOTIFIER
# ============================================================

class TelegramNotifier:
    """
    Sends completion notifications to Telegram.

    Never raises: delivery problems are logged and reported as False.
    """

    BASE_URL = "https://api.telegram.org/bot"

    def __init__(
        self,
        bot_token: str,
        chat_ids: Sequence[str],
        template: Optional[MessageTemplate] = None,
        rate_limiter: Optional[TelegramRateLimiter] = None,
        clock: Optional[ClockProtocol] = None,
        timeout_seconds: float = 10.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize Telegram notifier.

        Args:
            bot_token: Telegram bot token
            chat_ids: Chat IDs to send to
            template: Message layout
            rate_limiter: Optional rate limiter
            clock: Time source for message timestamps
            timeout_seconds: Per-request timeout
            session: Shared HTTP session (owned by the caller)
        """
        self._bot_token = bot_token
        self._chat_ids = list(chat_ids)
        self._formatter = TelegramFormatter(template)
        self._clock = clock or get_clock()
        self._rate_limiter = rate_limiter or TelegramRateLimiter(clock=self._clock)
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        self._session = session
        self._owns_session = session is None
        self._enabled = bool(self._bot_token and self._chat_ids)

        if self._enabled:
            logger.info(f"TelegramNotifier enabled with {len(self._chat_ids)} chat(s)")
        else:
            logger.warning("TelegramNotifier NOT configured - check TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID")

    @classmethod
    def from_config(
        cls,
        config: NotificationConfig,
        clock: Optional[ClockProtocol] = None,
    ) -> "TelegramNotifier":
        return cls(
            bot_token=config.telegram_bot_token,
            chat_ids=config.telegram_chat_ids,
            template=config.template,
            rate_limiter=TelegramRateLimiter(
                max_per_minute=config.telegram_max_per_minute,
                max_per_hour=config.telegram_max_per_hour,
                clock=clock,
            ),
            clock=clock,
            timeout_seconds=config.timeout_seconds,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def formatter(self) -> TelegramFormatter:
        return self._formatter

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the notifier."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send_completion(self, payload: NotificationPayload) -> bool:
        """
        Send a strategy completion.

        Returns True if every chat accepted the message.
        """
        if not self._enabled:
            return False

        message = self._formatter.format(payload, timestamp=self._clock.now())
        return await self._send_to_all(message)

    async def _send_to_all(self, message: str) -> bool:
        """Send message to all configured chats."""
        if not await self._rate_limiter.acquire():
            logger.warning("Telegram rate limit reached, message not sent")
            return False

        success = True
        for chat_id in self._chat_ids:
            if not await self._send_message(chat_id, message):
                success = False

        return success

    async def _send_message(
        self,
        chat_id: str,
        message: str,
        parse_mode: str = "HTML",
    ) -> bool:
        """Send message to a specific chat."""
        try:
            session = await self._get_session()

            url = f"{self.BASE_URL}{self._bot_token}/sendMessage"

            payload = {
                "chat_id": chat_id,
                "text": message,
                "parse_mode": parse_mode,
                "disable_web_page_preview": True,
            }

            async with session.post(url, json=payload, timeout=self._timeout) as response:
                if response.status == 200:
                    return True
                body = await response.text()
                logger.error(f"Telegram API error: {response.status} - {body}")
                return False

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error sending Telegram message: {e}")
            return False
