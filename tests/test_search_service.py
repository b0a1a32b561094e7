"""
Tests for the search service: concurrent initial search, all-or-nothing
failure, show-more pagination and cancel-and-restart of in-flight work.

The Gemini client is replaced by AsyncMock-based fetchers.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from cinebot.errors import ApiError, RequestTimeoutError
from cinebot.models import MediaType, RecommendationItem, SessionStatus
from cinebot.services.search_service import SearchService, SessionController, SessionNotFound


def items(n, prefix="Title"):
    return [RecommendationItem(title=f"{prefix} {i}") for i in range(1, n + 1)]


def by_media(movies=None, tv_shows=None):
    """Fetcher answering movie prompts and TV prompts differently."""
    async def fetch(prompt):
        result = movies if "relevant movies" in prompt else tv_shows
        if isinstance(result, BaseException):
            raise result
        return list(result or [])
    return AsyncMock(side_effect=fetch)


# =============================================================================
# INITIAL SEARCH
# =============================================================================

class TestSearch:

    @pytest.mark.asyncio
    async def test_fetches_both_media_types(self):
        fetch = by_media(items(12, "Movie"), items(12, "Show"))
        controller = SessionController("s1", fetch)

        s = await controller.search("space opera")

        assert fetch.await_count == 2
        prompts = [c.args[0] for c in fetch.await_args_list]
        assert any("relevant movies" in p for p in prompts)
        assert any("relevant TV shows" in p for p in prompts)
        assert s.status is SessionStatus.READY
        assert len(s.movies) == 12 and len(s.tv_shows) == 12

    @pytest.mark.asyncio
    async def test_space_opera_scenario(self):
        controller = SessionController("s1", by_media(items(12, "Movie"), []))

        s = await controller.search("space opera")

        assert s.active_tab is MediaType.MOVIES
        assert len(s.movies) == 12
        assert s.tv_shows == ()

    @pytest.mark.asyncio
    async def test_one_failure_fails_whole_search(self):
        controller = SessionController("s1", by_media(items(12), ApiError("overloaded", status_code=500)))

        s = await controller.search("space opera")

        assert s.error == "overloaded"
        assert s.movies == () and s.tv_shows == ()
        assert s.has_searched is True

    @pytest.mark.asyncio
    async def test_failure_cancels_sibling_request(self):
        sibling_cancelled = asyncio.Event()

        async def fetch(prompt):
            if "relevant movies" in prompt:
                raise RequestTimeoutError()
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                sibling_cancelled.set()
                raise
            return []

        controller = SessionController("s1", fetch)
        s = await controller.search("x")
        await asyncio.wait_for(sibling_cancelled.wait(), timeout=1)

        assert "timed out" in s.error

    @pytest.mark.asyncio
    async def test_reset_precedes_network_response(self):
        gate = asyncio.Event()
        gate.set()

        async def fetch(prompt):
            await gate.wait()
            return items(12)

        controller = SessionController("s1", fetch)
        await controller.search("first")
        assert len(controller.session.movies) == 12

        pending = asyncio.ensure_future(controller.search("second"))
        gate.clear()
        await asyncio.sleep(0)
        assert controller.session.status is SessionStatus.SEARCHING
        assert controller.session.movies == () and controller.session.tv_shows == ()

        gate.set()
        s = await pending
        assert s.query == "second"
        assert len(s.movies) == 12

    @pytest.mark.asyncio
    async def test_new_search_cancels_in_flight_search(self):
        first_gate = asyncio.Event()

        async def fetch(prompt):
            if '"first"' in prompt:
                await first_gate.wait()
                return items(12, "Stale")
            return items(3, "Fresh")

        controller = SessionController("s1", fetch)
        first = asyncio.ensure_future(controller.search("first"))
        await asyncio.sleep(0)

        second = await controller.search("second")
        first_gate.set()
        superseded = await first

        assert second.query == "second"
        assert [i.title for i in second.movies] == ["Fresh 1", "Fresh 2", "Fresh 3"]
        assert superseded.query == "second"
        assert all(not i.title.startswith("Stale") for i in controller.session.movies)


# =============================================================================
# SHOW MORE
# =============================================================================

class TestShowMore:

    @pytest.mark.asyncio
    async def test_appends_and_sends_exclusions(self):
        fetch = by_media(items(12, "Movie"), items(2, "Show"))
        controller = SessionController("s1", fetch)
        await controller.search("heist")

        fetch.side_effect = None
        fetch.return_value = items(12, "More")
        s = await controller.show_more()

        prompt = fetch.await_args.args[0]
        assert "relevant movies" in prompt
        for i in range(1, 13):
            assert f"Movie {i}" in prompt
        assert "Show 1" not in prompt
        assert len(s.movies) == 24
        assert len(s.tv_shows) == 2
        assert s.can_fetch_more is True

    @pytest.mark.asyncio
    async def test_short_batch_stops_pagination(self):
        fetch = by_media(items(12), items(12))
        controller = SessionController("s1", fetch)
        await controller.search("heist")

        fetch.side_effect = None
        fetch.return_value = items(5, "More")
        s = await controller.show_more()
        assert s.can_fetch_more is False
        assert len(s.movies) == 17

        calls = fetch.await_count
        s = await controller.show_more()
        assert fetch.await_count == calls
        assert len(s.movies) == 17

    @pytest.mark.asyncio
    async def test_failure_keeps_existing_pages(self):
        fetch = by_media(items(12), items(12))
        controller = SessionController("s1", fetch)
        await controller.search("heist")

        fetch.side_effect = RequestTimeoutError()
        s = await controller.show_more()

        assert len(s.movies) == 12
        assert "timed out" in s.error
        assert s.status is SessionStatus.READY

    @pytest.mark.asyncio
    async def test_concurrent_show_more_is_ignored(self):
        gate = asyncio.Event()
        controller = SessionController("s1", by_media(items(12), items(12)))
        await controller.search("heist")

        async def slow(prompt):
            await gate.wait()
            return items(12, "More")

        fetch = AsyncMock(side_effect=slow)
        controller._fetch = fetch
        first = asyncio.ensure_future(controller.show_more())
        await asyncio.sleep(0)

        ignored = await controller.show_more()
        assert ignored.status is SessionStatus.FETCHING_MORE

        gate.set()
        s = await first
        assert fetch.await_count == 1
        assert len(s.movies) == 24

    @pytest.mark.asyncio
    async def test_new_search_cancels_in_flight_show_more(self):
        gate = asyncio.Event()
        controller = SessionController("s1", by_media(items(12, "Old"), items(12, "OldShow")))
        await controller.search("first")

        async def fetch(prompt):
            if "Do NOT include" in prompt:
                await gate.wait()
                return items(12, "Stale")
            return items(12, "Fresh")

        controller._fetch = AsyncMock(side_effect=fetch)
        pending_more = asyncio.ensure_future(controller.show_more())
        await asyncio.sleep(0)
        assert controller.session.status is SessionStatus.FETCHING_MORE

        s = await controller.search("second")
        gate.set()
        superseded = await pending_more

        assert superseded.query == "second"
        assert s.status is SessionStatus.READY
        assert controller.session.status is SessionStatus.READY
        assert [i.title for i in controller.session.movies] == [f"Fresh {i}" for i in range(1, 13)]
        assert all(not i.title.startswith("Stale") for i in controller.session.movies)
        assert controller.session.fetch_target is None

    @pytest.mark.asyncio
    async def test_show_more_before_search_is_ignored(self):
        fetch = AsyncMock(return_value=items(12))
        controller = SessionController("s1", fetch)
        s = await controller.show_more()
        assert s.status is SessionStatus.IDLE
        fetch.assert_not_awaited()


# =============================================================================
# SERVICE / SESSION REGISTRY
# =============================================================================

class TestSearchService:

    def _service(self, fetch):
        client = MagicMock()
        client.fetch_recommendations = fetch
        return SearchService(client=client)

    @pytest.mark.asyncio
    async def test_session_lifecycle(self):
        service = self._service(by_media([], items(4, "Show")))
        session = service.create_session()
        assert session.status is SessionStatus.IDLE

        s = await service.search(session.session_id, "sitcoms")
        assert s.active_tab is MediaType.TV_SHOWS

        s = service.select_tab(session.session_id, MediaType.MOVIES)
        assert s.active_tab is MediaType.MOVIES
        assert service.get_session(session.session_id) == s

    def test_sessions_are_independent(self):
        service = self._service(by_media())
        a = service.create_session()
        b = service.create_session()
        assert a.session_id != b.session_id

    def test_unknown_session(self):
        service = self._service(by_media())
        with pytest.raises(SessionNotFound):
            service.get_session("nope")
