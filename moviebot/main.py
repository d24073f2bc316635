"""Application entrypoint."""

from __future__ import annotations

import asyncio
import contextlib

import httpx
from aiogram import Bot, Dispatcher
from aiogram.client.session.aiohttp import AiohttpSession

from moviebot.bot.middlewares import ThrottleMiddleware
from moviebot.bot.routers import setup_routers
from moviebot.bot.views import ChatSearchView
from moviebot.config import get_settings
from moviebot.logging import configure_logging, logger
from moviebot.services.error_monitor import ErrorMonitor
from moviebot.services.omdb import OmdbClient
from moviebot.services.sessions import SearchSessionRegistry


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    session = (
        AiohttpSession(proxy=settings.telegram_proxy) if settings.telegram_proxy else None
    )
    bot = Bot(token=settings.telegram_token.get_secret_value(), session=session)
    dp = Dispatcher()
    dp.include_router(setup_routers())
    error_monitor = ErrorMonitor(settings=settings)
    dp.errors.register(error_monitor.handle_error)

    throttle_middleware = ThrottleMiddleware(settings.request_limit)
    dp.message.middleware(throttle_middleware)
    dp.edited_message.middleware(throttle_middleware)
    dp.callback_query.middleware(throttle_middleware)

    async with httpx.AsyncClient() as http_client:
        omdb = OmdbClient(http_client, settings.omdb)
        searches = SearchSessionRegistry(
            omdb,
            settings.search,
            listener_factory=lambda chat_id: ChatSearchView(bot, chat_id, settings.search),
        )
        eviction = asyncio.create_task(searches.run_eviction())

        logger.info("bot_starting", environment=settings.environment)
        try:
            await dp.start_polling(bot, searches=searches)
        finally:
            eviction.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await eviction
            await searches.close_all()
            logger.info("bot_stopped", environment=settings.environment)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
