"""Per-chat movie search components and their lifecycle."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable

from moviebot.config import SearchSettings
from moviebot.logging import logger
from moviebot.services.movie_search import ChangeListener, MovieSearch
from moviebot.services.omdb import OmdbClient

ListenerFactory = Callable[[int], ChangeListener]


@dataclass(slots=True)
class _Session:
    component: MovieSearch
    last_used: float
    listener: ChangeListener | None = None


class SearchSessionRegistry:
    """Mounts one ``MovieSearch`` per chat on first use and unmounts idle ones.

    A listener that also defines ``aclose()`` is closed right after its
    component, so a view can take its messages down with the session.
    """

    def __init__(
        self,
        client: OmdbClient,
        settings: SearchSettings,
        *,
        listener_factory: ListenerFactory | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._settings = settings
        self._listener_factory = listener_factory
        self._clock = clock
        self._sessions: dict[int, _Session] = {}

    def __contains__(self, chat_id: int) -> bool:
        return chat_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, chat_id: int) -> MovieSearch:
        now = self._clock()
        session = self._sessions.get(chat_id)
        if session is None:
            listener = self._listener_factory(chat_id) if self._listener_factory else None
            component = MovieSearch(
                self._client,
                self._settings,
                on_change=listener,
                name=f"chat:{chat_id}",
            )
            session = _Session(component=component, last_used=now, listener=listener)
            self._sessions[chat_id] = session
            logger.info("session_mounted", chat_id=chat_id, sessions=len(self._sessions))
        session.last_used = now
        return session.component

    async def close(self, chat_id: int) -> bool:
        session = self._sessions.pop(chat_id, None)
        if session is None:
            return False
        await self._unmount(chat_id, session)
        logger.info("session_closed", chat_id=chat_id, sessions=len(self._sessions))
        return True

    async def close_all(self) -> None:
        sessions = list(self._sessions.items())
        self._sessions.clear()
        await asyncio.gather(*(self._unmount(chat_id, session) for chat_id, session in sessions))

    async def evict_idle(self, now: float | None = None) -> int:
        now = self._clock() if now is None else now
        cutoff = now - self._settings.session_idle_seconds
        idle = [chat_id for chat_id, session in self._sessions.items() if session.last_used < cutoff]
        evicted = 0
        for chat_id in idle:
            # Earlier unmounts yield to the loop; handlers may have closed or
            # touched this chat in the meantime.
            session = self._sessions.get(chat_id)
            if session is None or session.last_used >= cutoff:
                continue
            del self._sessions[chat_id]
            await self._unmount(chat_id, session)
            evicted += 1
            logger.info("session_evicted", chat_id=chat_id)
        return evicted

    async def run_eviction(self, interval_seconds: float | None = None) -> None:
        """Background loop for ``evict_idle``; cancel the task to stop it."""

        interval = interval_seconds or max(self._settings.session_idle_seconds / 4, 1.0)
        while True:
            await asyncio.sleep(interval)
            try:
                await self.evict_idle()
            except Exception:
                logger.exception("session_eviction_failed", sessions=len(self._sessions))

    async def _unmount(self, chat_id: int, session: _Session) -> None:
        await session.component.aclose()
        closer = getattr(session.listener, "aclose", None)
        if closer is None:
            return
        try:
            await closer()
        except Exception:
            logger.exception("session_view_close_failed", chat_id=chat_id)


__all__ = ["ListenerFactory", "SearchSessionRegistry"]
