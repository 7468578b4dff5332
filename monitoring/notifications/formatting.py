"""
Completion Message Formatting.

Shared layout for strategy-completion messages. Channels differ only
in how bold text and escaping are written (HTML for Telegram,
Markdown for Discord).

Formats:
- minimal:  🟢 BUY BTC (+3.5)
- compact:  🟢 *BUY BTC* | Strategy | Score: +3.5
- detailed: banner, ticker, time, strategy, triggers, score
"""

from datetime import datetime
from typing import List, Optional

from strategy_engine.types import NotificationPayload, TradeAction

from .config import FORMAT_COMPACT, FORMAT_MINIMAL, MessageTemplate


DIVIDER = "━━━━━━━━━━━━━━━"


class CompletionFormatter:
    """Plain-text layout; subclasses supply bold and escaping."""

    ACTION_ICONS = {
        TradeAction.BUY: "🟢",
        TradeAction.SELL: "🔴",
    }

    def __init__(self, template: Optional[MessageTemplate] = None):
        self._template = template or MessageTemplate()

    @property
    def template(self) -> MessageTemplate:
        return self._template

    def bold(self, text: str) -> str:
        return text

    def escape(self, text: str) -> str:
        return text

    @staticmethod
    def format_score(score: float) -> str:
        return f"+{score}" if score > 0 else f"{score}"

    def format(self, payload: NotificationPayload, timestamp: Optional[datetime] = None) -> str:
        if self._template.format == FORMAT_MINIMAL:
            return self._format_minimal(payload)
        if self._template.format == FORMAT_COMPACT:
            return self._format_compact(payload)
        return self._format_detailed(payload, timestamp)

    def _format_minimal(self, payload: NotificationPayload) -> str:
        icon = self.ACTION_ICONS[payload.action]
        message = f"{icon} {payload.action.value} {self.escape(payload.ticker)}"
        if self._template.show_score:
            message += f" ({self.format_score(payload.score)})"
        return message

    def _format_compact(self, payload: NotificationPayload) -> str:
        icon = self.ACTION_ICONS[payload.action]
        message = f"{icon} {self.bold(f'{payload.action.value} {self.escape(payload.ticker)}')}"
        if self._template.show_strategy:
            message += f" | {self.escape(payload.strategy_name)}"
        if self._template.show_score:
            message += f" | Score: {self.format_score(payload.score)}"
        return message

    def _format_detailed(self, payload: NotificationPayload, timestamp: Optional[datetime]) -> str:
        t = self._template
        icon = self.ACTION_ICONS[payload.action]
        lines: List[str] = [
            f"{icon} {self.bold(f'{payload.action.value} SIGNAL')}",
            DIVIDER,
        ]

        if t.show_ticker:
            lines.append(f"💎 {self.bold('Ticker:')} {self.escape(payload.ticker)}")
        if payload.price is not None:
            lines.append(f"💵 {self.bold('Price:')} {payload.price:g}")
        if t.show_timestamp and timestamp is not None:
            lines.append(f"⏰ {self.bold('Time:')} {timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}")
        if t.show_strategy:
            lines.append(f"🧠 {self.bold('Strategy:')} {self.escape(payload.strategy_name)}")
        lines.append(f"🕒 {self.bold('Timeframe:')} {payload.timeframe_used}")
        if t.show_triggers and payload.matched_triggers:
            triggers = ", ".join(self.escape(tr) for tr in payload.matched_triggers)
            lines.append(f"🎯 {self.bold('Triggers:')} {triggers}")
        if t.show_score:
            lines.append(f"🔥 {self.bold('Score:')} {self.format_score(payload.score)}")

        lines.append(DIVIDER)
        return "\n".join(lines)
