"""
Pagination / exclusion state machine.

    idle -> searching -> ready <-> fetching_more

Every transition takes a SearchSession and returns a new one; nothing here
does I/O. The search service applies a transition only after the matching
network call has settled.
"""
from __future__ import annotations
from typing import Any, Dict, List, Sequence

from ..ai.prompts import PAGE_SIZE
from ..models import MediaType, RecommendationItem, SearchSession, SessionStatus


class InvalidTransition(Exception):
    """The requested transition is not allowed from the current state."""


def new_session(session_id: str) -> SearchSession:
    return SearchSession(session_id=session_id)


def start_search(session: SearchSession, query: str) -> SearchSession:
    """
    Reset both lists before anything is fetched. Allowed from any state;
    the caller is responsible for cancelling whatever was in flight.
    """
    return session.model_copy(update={
        "status": SessionStatus.SEARCHING,
        "query": query,
        "movies": (),
        "tv_shows": (),
        "active_tab": MediaType.MOVIES,
        "can_fetch_more": True,
        "has_searched": True,
        "error": None,
        "fetch_target": None,
    })


def complete_search(
    session: SearchSession,
    movies: Sequence[RecommendationItem],
    tv_shows: Sequence[RecommendationItem],
) -> SearchSession:
    if session.status is not SessionStatus.SEARCHING:
        raise InvalidTransition(f"complete_search from {session.status.value}")
    # TV shows only when it is the sole non-empty list
    active = MediaType.TV_SHOWS if not movies and tv_shows else MediaType.MOVIES
    return session.model_copy(update={
        "status": SessionStatus.READY,
        "movies": tuple(movies),
        "tv_shows": tuple(tv_shows),
        "active_tab": active,
    })


def fail_search(session: SearchSession, message: str) -> SearchSession:
    """All or nothing: one failed initial fetch clears both lists."""
    if session.status is not SessionStatus.SEARCHING:
        raise InvalidTransition(f"fail_search from {session.status.value}")
    return session.model_copy(update={
        "status": SessionStatus.READY,
        "movies": (),
        "tv_shows": (),
        "error": message,
    })


def can_begin_fetch_more(session: SearchSession) -> bool:
    return (
        session.status is SessionStatus.READY
        and session.can_fetch_more
        and bool(session.query)
    )


def begin_fetch_more(session: SearchSession) -> SearchSession:
    if not can_begin_fetch_more(session):
        raise InvalidTransition(
            f"fetch more not allowed (status={session.status.value}, can_fetch_more={session.can_fetch_more})"
        )
    return session.model_copy(update={
        "status": SessionStatus.FETCHING_MORE,
        "fetch_target": session.active_tab,
        "error": None,
    })


def fetch_more_media_type(session: SearchSession) -> MediaType:
    return session.fetch_target or session.active_tab


def exclusion_titles(session: SearchSession) -> List[str]:
    """Titles already held for the list being paginated."""
    return [item.title for item in session.items_for(fetch_more_media_type(session))]


def complete_fetch_more(session: SearchSession, items: Sequence[RecommendationItem]) -> SearchSession:
    if session.status is not SessionStatus.FETCHING_MORE:
        raise InvalidTransition(f"complete_fetch_more from {session.status.value}")
    # the batch belongs to the tab that was active when it was requested
    target: MediaType = fetch_more_media_type(session)
    update: Dict[str, Any] = {"status": SessionStatus.READY, "fetch_target": None}
    if items:
        field = "movies" if target is MediaType.MOVIES else "tv_shows"
        update[field] = session.items_for(target) + tuple(items)
    if len(items) < PAGE_SIZE:
        update["can_fetch_more"] = False
    return session.model_copy(update=update)


def fail_fetch_more(session: SearchSession, message: str) -> SearchSession:
    """Existing pages stay; the user may simply retry."""
    if session.status is not SessionStatus.FETCHING_MORE:
        raise InvalidTransition(f"fail_fetch_more from {session.status.value}")
    return session.model_copy(update={
        "status": SessionStatus.READY,
        "fetch_target": None,
        "error": message,
    })


def select_tab(session: SearchSession, media_type: MediaType) -> SearchSession:
    """Switch the visible list; lists and flags are untouched."""
    return session.model_copy(update={"active_tab": media_type})
