"""Pydantic models shared across logic/application layers."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

POSTER_UNAVAILABLE = "N/A"


class MovieSummary(BaseModel):
    """One row of an OMDb title search (used for suggestions and results)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="imdbID", min_length=1)
    title: str = Field(alias="Title")
    year: str = Field(default="", alias="Year")
    poster: str | None = Field(default=None, alias="Poster")

    @property
    def label(self) -> str:
        return f"{self.title} ({self.year})" if self.year else self.title


class MovieDetail(BaseModel):
    """Full record returned by an OMDb lookup by identifier."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="imdbID", min_length=1)
    title: str = Field(alias="Title")
    year: str = Field(default="", alias="Year")
    poster: str | None = Field(default=None, alias="Poster")
    plot: str | None = Field(default=None, alias="Plot")
    director: str | None = Field(default=None, alias="Director")
    actors: str | None = Field(default=None, alias="Actors")
    rating: str | None = Field(default=None, alias="imdbRating")


class SearchOutcome(BaseModel):
    """Result of a title search: either movies, or the API's not-found message."""

    model_config = ConfigDict(frozen=True)

    found: bool
    movies: tuple[MovieSummary, ...] = ()
    message: str | None = None


def has_poster(poster: str | None) -> bool:
    return bool(poster) and poster != POSTER_UNAVAILABLE


__all__ = [
    "MovieDetail",
    "MovieSummary",
    "POSTER_UNAVAILABLE",
    "SearchOutcome",
    "has_poster",
]
