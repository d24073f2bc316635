"""Simple per-user throttle against flooding the bot with updates."""

from __future__ import annotations

import time
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, Deque, Dict

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from moviebot.config import RequestLimitSettings
from moviebot.logging import logger

LIMIT_TEXT = "Too many requests, please slow down."


class ThrottleMiddleware(BaseMiddleware):
    def __init__(self, settings: RequestLimitSettings, clock: Callable[[], float] = time.monotonic) -> None:
        self.window_seconds = settings.interval_seconds
        self.max_requests = settings.max_requests
        self._clock = clock
        self._events: Dict[int, Deque[float]] = defaultdict(deque)

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user_id = self._extract_user_id(event)
        if user_id is None or self.max_requests <= 0:
            return await handler(event, data)

        now = self._clock()
        bucket = self._events[user_id]

        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()

        if len(bucket) >= self.max_requests:
            logger.info("throttled", user_id=user_id, window_seconds=self.window_seconds)
            await self._notify_limit(event)
            return None

        bucket.append(now)
        return await handler(event, data)

    @staticmethod
    def _extract_user_id(event: TelegramObject) -> int | None:
        if isinstance(event, (Message, CallbackQuery)) and event.from_user is not None:
            return event.from_user.id
        return None

    @staticmethod
    async def _notify_limit(event: TelegramObject) -> None:
        if isinstance(event, Message):
            await event.answer(LIMIT_TEXT, parse_mode=None)
        elif isinstance(event, CallbackQuery):
            await event.answer(LIMIT_TEXT, show_alert=False)


__all__ = ["ThrottleMiddleware"]
