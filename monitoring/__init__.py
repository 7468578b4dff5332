"""
Monitoring Package.

============================================================
PURPOSE
============================================================
Outbound reporting of strategy completions.

PRINCIPLES:
1. OBSERVATIONAL - never changes evaluation outcomes
2. BEST EFFORT - a failed delivery is logged, never raised
3. RATE LIMITED - chat channels are protected from bursts

============================================================
"""

from .notifications import (
    CompletionNotificationDispatcher,
    DiscordNotifier,
    MessageTemplate,
    NotificationConfig,
    TelegramNotifier,
)


__all__ = [
    "CompletionNotificationDispatcher",
    "DiscordNotifier",
    "MessageTemplate",
    "NotificationConfig",
    "TelegramNotifier",
]
