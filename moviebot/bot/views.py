"""Render ``MovieSearchState`` snapshots into Telegram messages.

Each chat has three message slots: the panel (query, loading/error line,
suggestion dropdown and the Search button), the result grid, and the detail
card standing in for the modal. Slots are re-rendered from the state only when
the fields they show change.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from moviebot.bot.callbacks import SEARCH, ModalClick, ResultPick, SuggestionPick
from moviebot.bot.utils.telegram import (
    bot_delete_with_retry,
    bot_edit_text_with_retry,
    bot_send_photo_with_retry,
    bot_send_with_retry,
)
from moviebot.config import SearchSettings
from moviebot.domain.models import MovieDetail, MovieSummary, has_poster
from moviebot.logging import logger
from moviebot.services.movie_search import ModalTarget, MovieSearchState

CAPTION_LIMIT = 1024
PANEL_FIELDS = frozenset({"query", "suggestions", "loading", "error"})
IMDB_TITLE_URL = "https://www.imdb.com/title/{movie_id}/"


@dataclass(frozen=True, slots=True)
class Rendered:
    text: str
    markup: InlineKeyboardMarkup | None = None
    photo: str | None = None


def poster_url(poster: str | None, placeholder: str) -> str:
    return poster if has_poster(poster) else placeholder


def render_panel(state: MovieSearchState, settings: SearchSettings) -> Rendered:
    lines = [f"🔎 {state.query}" if state.query else "🔎 Send a movie title to start searching."]
    if state.loading:
        lines.append("Loading...")
    if state.error:
        lines.append(f"⚠️ {state.error}")

    rows = [
        [InlineKeyboardButton(text=movie.label, callback_data=SuggestionPick(movie_id=movie.id).pack())]
        for movie in state.suggestions[: settings.max_buttons]
    ]
    rows.append([InlineKeyboardButton(text="Search", callback_data=SEARCH.pack())])
    return Rendered(text="\n".join(lines), markup=InlineKeyboardMarkup(inline_keyboard=rows))


def render_results(results: tuple[MovieSummary, ...], settings: SearchSettings) -> Rendered | None:
    if not results:
        return None
    shown = results[: settings.max_buttons]
    lines = []
    for index, movie in enumerate(shown, start=1):
        lines.append(f"{index}. {movie.label}")
        lines.append(f"   Poster: {poster_url(movie.poster, settings.placeholder_poster_url)}")
    rows = [
        [InlineKeyboardButton(text=movie.label, callback_data=ResultPick(movie_id=movie.id).pack())]
        for movie in shown
    ]
    return Rendered(text="\n".join(lines), markup=InlineKeyboardMarkup(inline_keyboard=rows))


def render_detail(detail: MovieDetail, settings: SearchSettings) -> Rendered:
    caption = "\n".join(
        [
            f"{detail.title} ({detail.year})",
            "",
            f"Plot: {detail.plot or ''}",
            f"Director: {detail.director or ''}",
            f"Actors: {detail.actors or ''}",
            f"IMDb Rating: {detail.rating or ''}",
        ]
    )
    if len(caption) > CAPTION_LIMIT:
        caption = f"{caption[: CAPTION_LIMIT - 1].rstrip()}…"
    # The first row is the card's content with the close control inside it;
    # the last row stands for the area around the card.
    markup = InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text="Poster", callback_data=ModalClick(target=ModalTarget.CONTENT).pack()
                ),
                InlineKeyboardButton(text="IMDb", url=IMDB_TITLE_URL.format(movie_id=detail.id)),
                InlineKeyboardButton(
                    text="×", callback_data=ModalClick(target=ModalTarget.CLOSE).pack()
                ),
            ],
            [
                InlineKeyboardButton(
                    text="Back to results",
                    callback_data=ModalClick(target=ModalTarget.OVERLAY).pack(),
                )
            ],
        ]
    )
    return Rendered(
        text=caption,
        markup=markup,
        photo=poster_url(detail.poster, settings.placeholder_poster_url),
    )


class ChatSearchView:
    """Keeps one chat's messages in sync with its component's state."""

    def __init__(self, bot: Bot, chat_id: int, settings: SearchSettings) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._settings = settings
        self._lock = asyncio.Lock()
        self._message_ids: dict[str, int] = {}
        self._rendered: dict[str, Rendered] = {}

    async def __call__(self, state: MovieSearchState, changed: frozenset[str]) -> None:
        await self.render(state, changed)

    async def render(self, state: MovieSearchState, changed: frozenset[str] = PANEL_FIELDS) -> None:
        async with self._lock:
            if changed & PANEL_FIELDS:
                # A new query follows the user's own message, so re-send below it.
                await self._show(
                    "panel",
                    render_panel(state, self._settings),
                    resend="query" in changed,
                )
            if "results" in changed:
                await self._show("results", render_results(state.results, self._settings))
            if "selected" in changed:
                detail = (
                    render_detail(state.selected, self._settings)
                    if state.selected is not None
                    else None
                )
                await self._show("modal", detail, resend=True)

    async def aclose(self) -> None:
        """Delete every message this view still owns in the chat."""

        async with self._lock:
            for slot in list(self._message_ids):
                await self._clear(slot)

    async def _show(self, slot: str, rendered: Rendered | None, *, resend: bool = False) -> None:
        if rendered is None:
            await self._clear(slot)
            return
        if self._rendered.get(slot) == rendered and slot in self._message_ids:
            return

        message_id = self._message_ids.get(slot)
        if message_id is not None and not resend and rendered.photo is None:
            try:
                await bot_edit_text_with_retry(
                    self._bot,
                    chat_id=self._chat_id,
                    message_id=message_id,
                    text=rendered.text,
                    reply_markup=rendered.markup,
                    parse_mode=None,
                )
                self._rendered[slot] = rendered
                return
            except TelegramBadRequest as exc:
                logger.info("render_edit_failed", chat_id=self._chat_id, slot=slot, error=str(exc))

        await self._clear(slot)
        self._message_ids[slot] = await self._send(rendered)
        self._rendered[slot] = rendered

    async def _send(self, rendered: Rendered) -> int:
        if rendered.photo is not None:
            try:
                sent = await bot_send_photo_with_retry(
                    self._bot,
                    chat_id=self._chat_id,
                    photo=rendered.photo,
                    caption=rendered.text,
                    reply_markup=rendered.markup,
                    parse_mode=None,
                )
                return sent.message_id
            except TelegramBadRequest as exc:
                # Telegram could not fetch the poster URL; fall back to text.
                logger.info("render_photo_failed", chat_id=self._chat_id, error=str(exc))
        sent = await bot_send_with_retry(
            self._bot,
            chat_id=self._chat_id,
            text=rendered.text,
            reply_markup=rendered.markup,
            parse_mode=None,
        )
        return sent.message_id

    async def _clear(self, slot: str) -> None:
        self._rendered.pop(slot, None)
        message_id = self._message_ids.pop(slot, None)
        if message_id is None:
            return
        try:
            await bot_delete_with_retry(self._bot, chat_id=self._chat_id, message_id=message_id)
        except TelegramBadRequest as exc:
            logger.info("render_delete_failed", chat_id=self._chat_id, slot=slot, error=str(exc))


__all__ = [
    "ChatSearchView",
    "Rendered",
    "poster_url",
    "render_detail",
    "render_panel",
    "render_results",
]
