"""Telegram handlers driving the per-chat movie search."""

from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, Message

from moviebot.bot.callbacks import ModalClick, PanelAction, ResultPick, SuggestionPick
from moviebot.bot.utils.telegram import answer_with_retry
from moviebot.logging import logger
from moviebot.services.sessions import SearchSessionRegistry

router = Router()

HELP_TEXT = (
    "Send a movie title and I will suggest matches as you go.\n"
    "Press Search (or /search) for the full result list, then pick a movie for details.\n"
    "/reset clears the current search."
)


@router.message(CommandStart())
async def handle_start(message: Message, searches: SearchSessionRegistry) -> None:
    await answer_with_retry(message, HELP_TEXT, parse_mode=None)
    await searches.get(message.chat.id).refresh()


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    await answer_with_retry(message, HELP_TEXT, parse_mode=None)


@router.message(Command("search"))
async def handle_search_command(message: Message, searches: SearchSessionRegistry) -> None:
    component = searches.get(message.chat.id)
    if not component.state.query:
        await answer_with_retry(message, "Send a movie title first.", parse_mode=None)
        return
    await component.search()


@router.message(Command("reset"))
async def handle_reset(message: Message, searches: SearchSessionRegistry) -> None:
    closed = await searches.close(message.chat.id)
    text = "Search cleared." if closed else "Nothing to clear."
    await answer_with_retry(message, text, parse_mode=None)


@router.message(F.text & ~F.text.startswith("/"))
@router.edited_message(F.text & ~F.text.startswith("/"))
async def handle_query_text(message: Message, searches: SearchSessionRegistry) -> None:
    component = searches.get(message.chat.id)
    await component.set_query(message.text.strip())


@router.callback_query(PanelAction.filter(F.action == "search"))
async def handle_search_button(callback: CallbackQuery, searches: SearchSessionRegistry) -> None:
    await callback.answer()
    await searches.get(callback.message.chat.id).search()


@router.callback_query(SuggestionPick.filter())
async def handle_suggestion(
    callback: CallbackQuery,
    callback_data: SuggestionPick,
    searches: SearchSessionRegistry,
) -> None:
    component = searches.get(callback.message.chat.id)
    picked = await component.choose_suggestion(callback_data.movie_id)
    if not picked:
        logger.info("stale_suggestion_ignored", movie_id=callback_data.movie_id)
        await callback.answer("That suggestion is no longer listed.")
        return
    await callback.answer()


@router.callback_query(ResultPick.filter())
async def handle_result(
    callback: CallbackQuery,
    callback_data: ResultPick,
    searches: SearchSessionRegistry,
) -> None:
    await callback.answer()
    await searches.get(callback.message.chat.id).select(callback_data.movie_id)


@router.callback_query(ModalClick.filter())
async def handle_modal_click(
    callback: CallbackQuery,
    callback_data: ModalClick,
    searches: SearchSessionRegistry,
) -> None:
    await callback.answer()
    await searches.get(callback.message.chat.id).click_modal(callback_data.target)


__all__ = ["router"]
