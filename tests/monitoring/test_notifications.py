"""
Tests for completion notifications: formatting, rate limiting,
channel fan-out and configuration.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import ConfigurationError
from monitoring.notifications.config import (
    FORMAT_COMPACT,
    FORMAT_MINIMAL,
    MessageTemplate,
    NotificationConfig,
)
from monitoring.notifications.discord import DiscordFormatter, DiscordNotifier
from monitoring.notifications.dispatcher import CompletionNotificationDispatcher
from monitoring.notifications.formatting import DIVIDER, CompletionFormatter
from monitoring.notifications.telegram import (
    TelegramFormatter,
    TelegramNotifier,
    TelegramRateLimiter,
)
from strategy_engine.types import NotificationPayload, TradeAction

from tests.helpers import make_clock


@pytest.fixture
def payload():
    return NotificationPayload(
        action=TradeAction.BUY,
        ticker="BTC",
        strategy_name="Oversold <Bounce>",
        matched_triggers=("Oversold", "Bullish BOS"),
        score=2.5,
        timeframe_used="15m",
        price=64000.0,
    )


def make_channel(result=True, enabled=True):
    channel = MagicMock()
    channel.enabled = enabled
    channel.send_completion = AsyncMock(return_value=result)
    channel.close = AsyncMock()
    return channel


# ============================================================
# FORMATTING
# ============================================================


class TestCompletionFormatter:

    def test_minimal(self, payload):
        formatter = CompletionFormatter(MessageTemplate(format=FORMAT_MINIMAL))

        assert formatter.format(payload) == "🟢 BUY BTC (+2.5)"

    def test_compact_sell(self, payload):
        formatter = CompletionFormatter(MessageTemplate(format=FORMAT_COMPACT))
        sell = NotificationPayload(
            action=TradeAction.SELL,
            ticker="ETH",
            strategy_name="Premium Fade",
            matched_triggers=("Premium Zone",),
            score=-1.5,
            timeframe_used="1h",
        )

        assert formatter.format(sell) == "🔴 SELL ETH | Premium Fade | Score: -1.5"

    def test_detailed(self, payload):
        formatter = CompletionFormatter()
        timestamp = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)

        lines = formatter.format(payload, timestamp=timestamp).split("\n")

        assert lines[0] == "🟢 BUY SIGNAL"
        assert lines[1] == DIVIDER
        assert "💎 Ticker: BTC" in lines
        assert "💵 Price: 64000" in lines
        assert "⏰ Time: 2026-03-02 12:00:00 UTC" in lines
        assert "🕒 Timeframe: 15m" in lines
        assert "🎯 Triggers: Oversold, Bullish BOS" in lines
        assert "🔥 Score: +2.5" in lines
        assert lines[-1] == DIVIDER

    def test_detailed_respects_template(self, payload):
        template = MessageTemplate(show_triggers=False, show_score=False, show_timestamp=False)
        message = CompletionFormatter(template).format(payload, timestamp=datetime.now(timezone.utc))

        assert "Triggers" not in message
        assert "Score" not in message
        assert "Time:" not in message

    def test_telegram_escapes_html(self, payload):
        message = TelegramFormatter().format(payload)

        assert "<b>BUY SIGNAL</b>" in message
        assert "Oversold &lt;Bounce&gt;" in message

    def test_discord_bold(self, payload):
        message = DiscordFormatter(MessageTemplate(format=FORMAT_COMPACT)).format(payload)

        assert message.startswith("🟢 **BUY BTC**")

    def test_unknown_format_rejected(self):
        with pytest.raises(ConfigurationError):
            MessageTemplate(format="fancy")


# ============================================================
# RATE LIMITER
# ============================================================


class TestTelegramRateLimiter:

    @pytest.mark.asyncio
    async def test_minute_limit(self):
        limiter = TelegramRateLimiter(max_per_minute=2, max_per_hour=10)

        assert await limiter.acquire()
        assert await limiter.acquire()
        assert not await limiter.acquire()
        assert limiter.remaining_minute == 0
        assert limiter.remaining_hour == 8

    @pytest.mark.asyncio
    async def test_hour_limit(self):
        limiter = TelegramRateLimiter(max_per_minute=10, max_per_hour=1)

        assert await limiter.acquire()
        assert not await limiter.acquire()

    @pytest.mark.asyncio
    async def test_minute_window_slides_with_clock(self):
        clock = make_clock()
        limiter = TelegramRateLimiter(max_per_minute=1, max_per_hour=10, clock=clock)

        assert await limiter.acquire()
        assert not await limiter.acquire()

        clock.advance(seconds=61)

        assert limiter.remaining_minute == 1
        assert await limiter.acquire()
        assert limiter.remaining_hour == 8

    @pytest.mark.asyncio
    async def test_hour_window_slides_with_clock(self):
        clock = make_clock()
        limiter = TelegramRateLimiter(max_per_minute=10, max_per_hour=1, clock=clock)

        assert await limiter.acquire()
        clock.advance(minutes=59)
        assert not await limiter.acquire()

        clock.advance(minutes=2)

        assert await limiter.acquire()


# ============================================================
# CHANNELS
# ============================================================


class TestTelegramNotifier:

    @pytest.mark.asyncio
    async def test_disabled_without_credentials(self, payload):
        notifier = TelegramNotifier(bot_token="", chat_ids=[])

        assert not notifier.enabled
        assert await notifier.send_completion(payload) is False

    @pytest.mark.asyncio
    async def test_sends_to_every_chat(self, payload):
        notifier = TelegramNotifier(bot_token="token", chat_ids=["1", "2"], clock=make_clock())
        notifier._send_message = AsyncMock(side_effect=[True, False])

        assert await notifier.send_completion(payload) is False
        assert [c.args[0] for c in notifier._send_message.await_args_list] == ["1", "2"]
        assert "<b>BUY SIGNAL</b>" in notifier._send_message.await_args_list[0].args[1]

    @pytest.mark.asyncio
    async def test_rate_limited(self, payload):
        notifier = TelegramNotifier(
            bot_token="token",
            chat_ids=["1"],
            rate_limiter=TelegramRateLimiter(max_per_minute=1),
        )
        notifier._send_message = AsyncMock(return_value=True)

        assert await notifier.send_completion(payload) is True
        assert await notifier.send_completion(payload) is False
        assert notifier._send_message.await_count == 1


class TestDiscordNotifier:

    @pytest.mark.asyncio
    async def test_posts_formatted_message(self, payload):
        notifier = DiscordNotifier(webhook_url="https://discord.test/hook", clock=make_clock())
        notifier._post = AsyncMock(return_value=True)

        assert await notifier.send_completion(payload) is True
        content = notifier._post.await_args.args[0]
        assert content.startswith("🟢 **BUY SIGNAL**")

    @pytest.mark.asyncio
    async def test_disabled_without_url(self, payload):
        notifier = DiscordNotifier(webhook_url="")

        assert await notifier.send_completion(payload) is False


# ============================================================
# DISPATCHER
# ============================================================


class TestCompletionNotificationDispatcher:

    @pytest.mark.asyncio
    async def test_fans_out_to_enabled_channels(self, payload):
        first, second, disabled = make_channel(), make_channel(), make_channel(enabled=False)
        dispatcher = CompletionNotificationDispatcher([first, second, disabled])

        await dispatcher.notify(payload)

        first.send_completion.assert_awaited_once_with(payload)
        second.send_completion.assert_awaited_once_with(payload)
        disabled.send_completion.assert_not_awaited()
        assert dispatcher.get_stats()["sent"] == 2

    @pytest.mark.asyncio
    async def test_channel_errors_never_raise(self, payload):
        broken = make_channel()
        broken.send_completion = AsyncMock(side_effect=RuntimeError("boom"))
        working = make_channel()
        undelivered = make_channel(result=False)
        dispatcher = CompletionNotificationDispatcher([broken, working, undelivered])

        await dispatcher.notify(payload)

        stats = dispatcher.get_stats()
        assert stats["sent"] == 1
        assert stats["failed"] == 2
        working.send_completion.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_all_channels(self):
        failing = make_channel()
        failing.close = AsyncMock(side_effect=RuntimeError("already closed"))
        other = make_channel()
        dispatcher = CompletionNotificationDispatcher([failing, other])

        await dispatcher.close()

        other.close.assert_awaited_once()

    def test_from_config_builds_enabled_channels(self):
        config = NotificationConfig(
            telegram_bot_token="token",
            telegram_chat_ids=("1",),
            discord_webhook_url="",
        )

        dispatcher = CompletionNotificationDispatcher.from_config(config)

        assert [type(c) for c in dispatcher.channels] == [TelegramNotifier]

    def test_from_config_without_channels(self):
        dispatcher = CompletionNotificationDispatcher.from_config(NotificationConfig())

        assert dispatcher.channels == []


# ============================================================
# CONFIGURATION
# ============================================================


class TestNotificationConfig:

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "secret")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "100, 200,")
        monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://discord.test/hook")
        monkeypatch.setenv("NOTIFY_FORMAT", "COMPACT")
        monkeypatch.setenv("NOTIFY_SHOW_SCORE", "false")
        monkeypatch.setenv("TELEGRAM_MAX_PER_MINUTE", "5")

        config = NotificationConfig.from_env()

        assert config.telegram_chat_ids == ("100", "200")
        assert config.telegram_enabled
        assert config.discord_enabled
        assert config.template.format == FORMAT_COMPACT
        assert config.template.show_score is False
        assert config.telegram_max_per_minute == 5

    def test_to_dict_masks_secrets(self):
        config = NotificationConfig(telegram_bot_token="secret", discord_webhook_url="https://x")

        data = config.to_dict()

        assert data["telegram_bot_token"] == "***"
        assert data["discord_webhook_url"] == "***"
        assert data["template"]["format"] == "detailed"

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("TELEGRAM_MAX_PER_HOUR", "lots")

        with pytest.raises(ConfigurationError):
            NotificationConfig.from_env()
