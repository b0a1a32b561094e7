from __future__ import annotations
import asyncio
import secrets
from typing import Awaitable, Callable, List, Optional, Tuple

from cachetools import TTLCache

from ..ai.prompts import build_prompt
from ..clients.gemini import GeminiClient
from ..config import settings
from ..errors import FetchError
from ..models import MediaType, RecommendationItem, SearchSession
from ..utils.logging import get_logger
from . import session_state as state

logger = get_logger(__name__)

Fetcher = Callable[[str], Awaitable[List[RecommendationItem]]]


class SessionNotFound(KeyError):
    """Unknown or expired session id."""


class SessionController:
    """
    Owns one SearchSession and at most one in-flight operation for it.

    A new search cancels whatever is in flight (search or show-more) and
    restarts; results of a superseded operation are never applied.
    """

    def __init__(self, session_id: str, fetch: Fetcher) -> None:
        self.session: SearchSession = state.new_session(session_id)
        self._fetch: Fetcher = fetch
        self._task: Optional[asyncio.Task[None]] = None
        self._generation: int = 0

    @property
    def busy(self) -> bool:
        return self._task is not None and not self._task.done()

    def _cancel_in_flight(self) -> None:
        if self.busy:
            assert self._task is not None
            logger.info("Session %s: cancelling in-flight %s", self.session.session_id, self.session.status.value)
            self._task.cancel()
        self._task = None

    async def _await(self, task: "asyncio.Task[None]") -> SearchSession:
        self._task = task
        try:
            # shielded: a disconnecting caller must not leave the session half-way
            await asyncio.shield(task)
        except asyncio.CancelledError:
            if not task.cancelled():
                raise
            # superseded by a newer search
        return self.session

    async def search(self, query: str) -> SearchSession:
        self._cancel_in_flight()
        self._generation += 1
        self.session = state.start_search(self.session, query)
        logger.info("Session %s: search started for %r", self.session.session_id, query)
        task = asyncio.ensure_future(self._run_search(self._generation, query))
        return await self._await(task)

    async def show_more(self) -> SearchSession:
        if self.busy or not state.can_begin_fetch_more(self.session):
            logger.debug("Session %s: show more ignored (status=%s, can_fetch_more=%s)",
                         self.session.session_id, self.session.status.value, self.session.can_fetch_more)
            return self.session
        self.session = state.begin_fetch_more(self.session)
        media_type: MediaType = state.fetch_more_media_type(self.session)
        prompt: str = build_prompt(self.session.query, media_type, state.exclusion_titles(self.session))
        task = asyncio.ensure_future(self._run_fetch_more(self._generation, prompt))
        return await self._await(task)

    def select_tab(self, media_type: MediaType) -> SearchSession:
        self.session = state.select_tab(self.session, media_type)
        return self.session

    async def _fetch_both(self, query: str) -> Tuple[List[RecommendationItem], List[RecommendationItem]]:
        tasks = [
            asyncio.ensure_future(self._fetch(build_prompt(query, MediaType.MOVIES))),
            asyncio.ensure_future(self._fetch(build_prompt(query, MediaType.TV_SHOWS))),
        ]
        try:
            movies, tv_shows = await asyncio.gather(*tasks)
        except BaseException:
            # all or nothing: the sibling request is abandoned
            for t in tasks:
                t.cancel()
            raise
        return movies, tv_shows

    async def _run_search(self, generation: int, query: str) -> None:
        try:
            movies, tv_shows = await self._fetch_both(query)
        except FetchError as fe:
            logger.warning("Search %r failed (%s): %s", query, fe.kind.value, fe.message)
            if generation == self._generation:
                self.session = state.fail_search(self.session, fe.message)
            return
        except Exception:
            logger.exception("Search %r failed unexpectedly", query)
            if generation == self._generation:
                self.session = state.fail_search(self.session, "An unexpected error occurred.")
            raise
        if generation == self._generation:
            self.session = state.complete_search(self.session, movies, tv_shows)
            logger.info("Search %r completed: %d movies, %d TV shows", query, len(movies), len(tv_shows))

    async def _run_fetch_more(self, generation: int, prompt: str) -> None:
        try:
            items = await self._fetch(prompt)
        except FetchError as fe:
            logger.warning("Show more failed (%s): %s", fe.kind.value, fe.message)
            if generation == self._generation:
                self.session = state.fail_fetch_more(self.session, fe.message)
            return
        except Exception:
            logger.exception("Show more failed unexpectedly")
            if generation == self._generation:
                self.session = state.fail_fetch_more(self.session, "An unexpected error occurred.")
            raise
        if generation == self._generation:
            self.session = state.complete_fetch_more(self.session, items)
            logger.info("Show more appended %d items (can_fetch_more=%s)", len(items), self.session.can_fetch_more)


class SearchService:
    """
    Business service that keeps per-client search sessions in memory and
    drives them against Gemini.
    """

    def __init__(self, client: Optional[GeminiClient] = None) -> None:
        self.client: GeminiClient = client or GeminiClient()
        self.sessions: TTLCache[str, SessionController] = TTLCache(
            maxsize=settings.max_sessions, ttl=settings.session_ttl_s
        )

    def create_session(self) -> SearchSession:
        session_id: str = secrets.token_hex(8)
        controller = SessionController(session_id, self.client.fetch_recommendations)
        self.sessions[session_id] = controller
        return controller.session

    def _controller(self, session_id: str) -> SessionController:
        controller: Optional[SessionController] = self.sessions.get(session_id)
        if controller is None:
            raise SessionNotFound(session_id)
        self.sessions[session_id] = controller  # refresh ttl
        return controller

    def get_session(self, session_id: str) -> SearchSession:
        return self._controller(session_id).session

    async def search(self, session_id: str, query: str) -> SearchSession:
        return await self._controller(session_id).search(query)

    async def show_more(self, session_id: str) -> SearchSession:
        return await self._controller(session_id).show_more()

    def select_tab(self, session_id: str, media_type: MediaType) -> SearchSession:
        return self._controller(session_id).select_tab(media_type)
