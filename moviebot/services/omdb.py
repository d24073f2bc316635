"""OMDb REST client (title search and lookup by IMDb identifier)."""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import ValidationError

from moviebot.config import OmdbSettings
from moviebot.domain.models import MovieDetail, MovieSummary, SearchOutcome
from moviebot.logging import logger
from moviebot.services.exceptions import OmdbError

NOT_FOUND_MESSAGE = "Movie not found!"


class OmdbClient:
    """Thin async wrapper over the single OMDb endpoint.

    ``Response: "False"`` payloads are answers, not failures: ``search`` reports
    them through ``SearchOutcome.found`` and ``details`` returns ``None``. Anything
    that prevents reading an answer at all raises ``OmdbError``.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: OmdbSettings) -> None:
        self._client = http_client
        self._settings = settings

    async def search(self, text: str) -> SearchOutcome:
        data = await self._get({"s": text}, operation="omdb_search")
        if not _is_found(data):
            return SearchOutcome(found=False, message=data.get("Error") or NOT_FOUND_MESSAGE)

        items = data.get("Search")
        if not isinstance(items, list):
            raise OmdbError("OMDb search payload has no result list.")
        try:
            movies = tuple(MovieSummary.model_validate(item) for item in items)
        except ValidationError as exc:
            raise OmdbError(f"Unexpected OMDb search payload: {exc}") from exc
        return SearchOutcome(found=True, movies=movies)

    async def details(self, imdb_id: str, *, plot: str = "full") -> MovieDetail | None:
        data = await self._get({"i": imdb_id, "plot": plot}, operation="omdb_details")
        if not _is_found(data):
            logger.info("omdb_details_not_found", imdb_id=imdb_id, error=data.get("Error"))
            return None
        try:
            return MovieDetail.model_validate(data)
        except ValidationError as exc:
            raise OmdbError(f"Unexpected OMDb detail payload: {exc}") from exc

    async def _get(self, params: dict[str, str], *, operation: str) -> dict[str, Any]:
        query = {"apikey": self._settings.api_key.get_secret_value(), **params}
        try:
            response = await self._client.get(
                str(self._settings.base_url),
                params=query,
                timeout=self._settings.request_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status_code = exc.response.status_code if exc.response is not None else "unknown"
            logger.warning(f"{operation}_failed", status_code=status_code)
            raise OmdbError(f"OMDb request failed ({status_code})") from exc
        except httpx.RequestError as exc:
            logger.warning(f"{operation}_failed", error=str(exc) or exc.__class__.__name__)
            raise OmdbError(f"OMDb request failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.warning(f"{operation}_failed", error="invalid_json")
            raise OmdbError("OMDb returned a malformed response.") from exc
        if not isinstance(data, dict):
            raise OmdbError("OMDb returned a malformed response.")
        return data


def _is_found(data: dict[str, Any]) -> bool:
    return data.get("Response") == "True"


__all__ = ["NOT_FOUND_MESSAGE", "OmdbClient"]
