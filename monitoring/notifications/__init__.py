"""
Notifications Package.

Delivery of strategy completions to chat channels.
"""

from .config import (
    FORMAT_COMPACT,
    FORMAT_DETAILED,
    FORMAT_MINIMAL,
    MessageTemplate,
    NotificationConfig,
)
from .discord import DiscordFormatter, DiscordNotifier
from .dispatcher import CompletionNotificationDispatcher
from .formatting import CompletionFormatter
from .telegram import (
    TelegramFormatter,
    TelegramRateLimiter,
    TelegramNotifier,
)


__all__ = [
    "FORMAT_COMPACT",
    "FORMAT_DETAILED",
    "FORMAT_MINIMAL",
    "MessageTemplate",
    "NotificationConfig",
    "CompletionFormatter",
    "TelegramFormatter",
    "TelegramRateLimiter",
    "TelegramNotifier",
    "DiscordFormatter",
    "DiscordNotifier",
    "CompletionNotificationDispatcher",
]
