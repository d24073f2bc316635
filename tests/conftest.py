"""Shared fixtures: OMDb payloads, a scripted OMDb client and a manual scheduler."""

from __future__ import annotations

import asyncio

import pytest
from pydantic import SecretStr

from moviebot.config import OmdbSettings, SearchSettings
from moviebot.domain.models import MovieDetail, MovieSummary, SearchOutcome
from moviebot.services.exceptions import OmdbError

INCEPTION = {"Title": "Inception", "Year": "2010", "imdbID": "tt1375666", "Poster": "N/A"}
INTERSTELLAR = {
    "Title": "Interstellar",
    "Year": "2014",
    "imdbID": "tt0816692",
    "Poster": "https://m.media-amazon.com/images/interstellar.jpg",
}
INCEPTION_DETAIL = {
    "Response": "True",
    "Title": "Inception",
    "Year": "2010",
    "imdbID": "tt1375666",
    "Poster": "https://m.media-amazon.com/images/inception.jpg",
    "Plot": "A thief who steals corporate secrets through dream-sharing technology.",
    "Director": "Christopher Nolan",
    "Actors": "Leonardo DiCaprio, Joseph Gordon-Levitt, Elliot Page",
    "imdbRating": "8.8",
    "Runtime": "148 min",
}
NOT_FOUND = {"Response": "False", "Error": "Movie not found!"}


def found(*items: dict) -> SearchOutcome:
    return SearchOutcome(found=True, movies=tuple(MovieSummary.model_validate(item) for item in items))


def not_found(message: str = "Movie not found!") -> SearchOutcome:
    return SearchOutcome(found=False, message=message)


class ManualScheduler:
    """Scheduler fake: actions only run when the test fires them."""

    def __init__(self) -> None:
        self.pending = None
        self.delays: list[float] = []
        self.cancelled = 0
        self.closed = False

    def schedule(self, delay, action):
        if self.pending is not None:
            self.cancelled += 1
        self.pending = action
        self.delays.append(delay)
        return None

    def cancel(self) -> None:
        if self.pending is not None:
            self.cancelled += 1
            self.pending = None

    async def fire(self) -> None:
        action, self.pending = self.pending, None
        assert action is not None, "nothing scheduled"
        await action()

    async def aclose(self) -> None:
        self.closed = True
        self.pending = None


class FakeOmdb:
    """Scripted stand-in for ``OmdbClient``; gates let a test hold a call open."""

    def __init__(self) -> None:
        self.search_calls: list[str] = []
        self.detail_calls: list[str] = []
        self.searches: dict[str, SearchOutcome | Exception] = {}
        self.details_by_id: dict[str, MovieDetail | None | Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}

    async def search(self, text: str) -> SearchOutcome:
        self.search_calls.append(text)
        gate = self.gates.get(text)
        if gate is not None:
            await gate.wait()
        result = self.searches.get(text, not_found())
        if isinstance(result, Exception):
            raise result
        return result

    async def details(self, imdb_id: str, *, plot: str = "full") -> MovieDetail | None:
        self.detail_calls.append(imdb_id)
        result = self.details_by_id.get(imdb_id)
        if isinstance(result, Exception):
            raise result
        return result


class Recorder:
    """Change listener that keeps every published snapshot."""

    def __init__(self) -> None:
        self.events = []

    async def __call__(self, state, changed) -> None:
        self.events.append((state, changed))

    @property
    def states(self):
        return [state for state, _ in self.events]


@pytest.fixture
def omdb_settings() -> OmdbSettings:
    return OmdbSettings(api_key=SecretStr("test-key"))


@pytest.fixture
def search_settings() -> SearchSettings:
    return SearchSettings()


@pytest.fixture
def fake_omdb() -> FakeOmdb:
    return FakeOmdb()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def transport_error() -> OmdbError:
    return OmdbError("OMDb request failed: connection refused")
