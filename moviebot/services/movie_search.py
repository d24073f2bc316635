"""Movie search component: query state, debounced suggestions, search and detail."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Any, Awaitable, Callable

from moviebot.config import SearchSettings
from moviebot.domain.models import MovieDetail, MovieSummary
from moviebot.logging import logger
from moviebot.services.exceptions import OmdbError, SessionClosed
from moviebot.services.omdb import OmdbClient
from moviebot.utils.scheduler import DebounceTimer, Scheduler


class ModalTarget(str, Enum):
    OVERLAY = "overlay"
    CONTENT = "content"
    CLOSE = "close"


@dataclass(frozen=True, slots=True)
class MovieSearchState:
    query: str = ""
    suggestions: tuple[MovieSummary, ...] = ()
    results: tuple[MovieSummary, ...] = ()
    loading: bool = False
    error: str | None = None
    selected: MovieDetail | None = None

    @property
    def modal_open(self) -> bool:
        return self.selected is not None


STATE_FIELDS = frozenset(field.name for field in dataclasses.fields(MovieSearchState))

ChangeListener = Callable[[MovieSearchState, frozenset[str]], Awaitable[None]]


class MovieSearch:
    """State owner for one search UI.

    Every mutation produces a new ``MovieSearchState`` and, when something
    actually changed, awaits ``on_change(state, changed_fields)``. Suggestion
    fetches run from the debounce timer; ``search`` and ``select`` run in the
    caller's task.
    """

    def __init__(
        self,
        client: OmdbClient,
        settings: SearchSettings,
        *,
        scheduler: Scheduler | None = None,
        on_change: ChangeListener | None = None,
        name: str = "movie_search",
    ) -> None:
        self._client = client
        self._settings = settings
        self._scheduler = scheduler or DebounceTimer(name=f"{name}.suggestions")
        self._on_change = on_change
        self._log = logger.bind(component=name)
        self._state = MovieSearchState()
        self._sequence = 0
        self._closed = False

    @property
    def state(self) -> MovieSearchState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    async def set_query(self, value: str) -> None:
        self._ensure_open()
        if value == self._state.query:
            return

        changes: dict[str, Any] = {"query": value}
        if value:
            self._scheduler.schedule(
                self._settings.debounce_seconds,
                partial(self._fetch_suggestions, value),
            )
        else:
            self._scheduler.cancel()
            self._sequence += 1
            changes["suggestions"] = ()
        await self._update(**changes)

    async def choose_suggestion(self, movie_id: str) -> bool:
        """Copy a suggestion's title into the query, like clicking the dropdown."""

        self._ensure_open()
        for suggestion in self._state.suggestions:
            if suggestion.id == movie_id:
                await self.set_query(suggestion.title)
                return True
        return False

    async def search(self) -> None:
        self._ensure_open()
        query = self._state.query
        if not query:
            return

        self._sequence += 1
        await self._update(error=None, suggestions=(), loading=True)

        changes: dict[str, Any] = {}
        try:
            outcome = await self._client.search(query)
        except OmdbError as exc:
            self._log.warning("search_failed", query=query, error=str(exc))
            # Results from the previous search stay visible.
            changes["error"] = self._settings.failure_message
        else:
            if outcome.found:
                self._log.info("search_completed", query=query, results=len(outcome.movies))
                changes["results"] = outcome.movies
            else:
                self._log.info("search_not_found", query=query, error=outcome.message)
                changes["error"] = outcome.message
                changes["results"] = ()
        finally:
            await self._update(loading=False, **changes)

    async def select(self, movie_id: str) -> None:
        self._ensure_open()
        try:
            detail = await self._client.details(movie_id)
        except OmdbError as exc:
            self._log.info("detail_failed", imdb_id=movie_id, error=str(exc))
            detail = None
        await self._update(selected=detail)

    async def click_modal(self, target: ModalTarget) -> None:
        self._ensure_open()
        if target is ModalTarget.CONTENT:
            return
        await self.dismiss()

    async def dismiss(self) -> None:
        self._ensure_open()
        await self._update(selected=None)

    async def refresh(self) -> None:
        """Re-publish the whole state, e.g. when the UI is shown again."""

        self._ensure_open()
        if self._on_change is not None:
            await self._notify(STATE_FIELDS)

    async def aclose(self) -> None:
        """Unmount: stop the timer and any suggestion fetch still running."""

        if self._closed:
            return
        self._closed = True
        await self._scheduler.aclose()

    async def _fetch_suggestions(self, query: str) -> None:
        self._sequence += 1
        token = self._sequence
        try:
            outcome = await self._client.search(query)
        except OmdbError as exc:
            self._log.debug("suggestions_failed", query=query, error=str(exc))
            suggestions: tuple[MovieSummary, ...] = ()
        else:
            suggestions = outcome.movies if outcome.found else ()

        if self._closed:
            return
        if self._settings.discard_stale_suggestions and token != self._sequence:
            self._log.debug("suggestions_discarded", query=query, token=token, latest=self._sequence)
            return
        self._log.debug("suggestions_fetched", query=query, count=len(suggestions))
        await self._update(suggestions=suggestions)

    async def _update(self, **changes: Any) -> None:
        if self._closed:
            return
        changed = frozenset(
            key for key, value in changes.items() if getattr(self._state, key) != value
        )
        if not changed:
            return
        self._state = dataclasses.replace(self._state, **{key: changes[key] for key in changed})
        await self._notify(changed)

    async def _notify(self, changed: frozenset[str]) -> None:
        if self._on_change is None:
            return
        try:
            await self._on_change(self._state, changed)
        except Exception:
            self._log.exception("state_listener_failed", changed=sorted(changed))

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosed("Search session has been closed.")


__all__ = ["ChangeListener", "ModalTarget", "MovieSearch", "MovieSearchState", "STATE_FIELDS"]
