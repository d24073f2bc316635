"""Log unhandled bot errors and notify the administrator."""

from __future__ import annotations

import traceback

from aiogram import Bot
from aiogram.dispatcher.event.bases import UNHANDLED
from aiogram.types import ErrorEvent, Update

from moviebot.bot.utils.telegram import bot_send_with_retry
from moviebot.config import BotSettings
from moviebot.logging import logger

# Telegram messages are limited to 4096 characters.
TELEGRAM_MESSAGE_LIMIT = 3900
TRACEBACK_CHAR_LIMIT = 1800


class ErrorMonitor:
    """Async error observer for the aiogram dispatcher."""

    def __init__(self, settings: BotSettings) -> None:
        self._settings = settings

    async def handle_error(self, event: ErrorEvent, bot: Bot):
        update_type, chat_id = _describe_update(event.update)
        logger.error(
            "bot_error_captured",
            exception_type=event.exception.__class__.__name__,
            exception=str(event.exception),
            update_id=getattr(event.update, "update_id", None),
            update_type=update_type,
            chat_id=chat_id,
        )

        admin_id = self._settings.admin_telegram_id
        if admin_id is None:
            return UNHANDLED

        try:
            await bot_send_with_retry(
                bot,
                chat_id=admin_id,
                text=self._build_message(event, update_type, chat_id),
                parse_mode=None,
            )
        except Exception:
            logger.exception(
                "error_monitor_notification_failed",
                update_id=getattr(event.update, "update_id", None),
            )
        return UNHANDLED

    def _build_message(self, event: ErrorEvent, update_type: str, chat_id: int | None) -> str:
        exception = event.exception
        lines = [
            "BOT ERROR DETECTED",
            f"Environment: {self._settings.environment}",
            f"Exception: {exception.__class__.__name__}: {exception}",
            f"Update ID: {getattr(event.update, 'update_id', 'unknown')}",
            f"Update Type: {update_type}",
            f"Chat: {chat_id if chat_id is not None else 'unknown'}",
        ]
        trace = "".join(
            traceback.format_exception(exception.__class__, exception, exception.__traceback__)
        ).strip()
        if trace:
            lines.extend(["", "Traceback:", _truncate(trace, TRACEBACK_CHAR_LIMIT)])
        return _truncate("\n".join(lines), TELEGRAM_MESSAGE_LIMIT)


def _describe_update(update: Update | None) -> tuple[str, int | None]:
    if update is None:
        return "unknown", None
    for field in ("message", "edited_message", "callback_query"):
        value = getattr(update, field, None)
        if value is None:
            continue
        source = value.message if field == "callback_query" else value
        chat = getattr(source, "chat", None)
        return field, getattr(chat, "id", None)
    return "unknown", None


def _truncate(value: str, limit: int) -> str:
    value = value.strip()
    if len(value) <= limit:
        return value
    return f"{value[: limit - 15].rstrip()}\n...[truncated]"


__all__ = ["ErrorMonitor"]
