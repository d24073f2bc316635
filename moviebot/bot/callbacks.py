"""Callback payloads for the inline keyboards."""

from __future__ import annotations

from aiogram.filters.callback_data import CallbackData

from moviebot.services.movie_search import ModalTarget


class PanelAction(CallbackData, prefix="panel"):
    action: str


class SuggestionPick(CallbackData, prefix="sg"):
    movie_id: str


class ResultPick(CallbackData, prefix="mv"):
    movie_id: str


class ModalClick(CallbackData, prefix="modal"):
    target: ModalTarget


SEARCH = PanelAction(action="search")

__all__ = ["ModalClick", "PanelAction", "ResultPick", "SEARCH", "SuggestionPick"]
