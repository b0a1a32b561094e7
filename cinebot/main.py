from __future__ import annotations
from typing import Any, Dict

from fastapi import FastAPI, HTTPException

from .ai.prompts import PAGE_SIZE
from .config import settings
from .models import SearchRequest, SearchSession, SessionView, TabRequest
from .presentation import build_session_view
from .services.search_service import SearchService, SessionNotFound

app: FastAPI = FastAPI(title=settings.app_name, version="0.1.0")
service: SearchService = SearchService()


def _view(session: SearchSession) -> SessionView:
    return build_session_view(session)


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Unknown or expired session '{session_id}'")


@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe."""
    return {"status": "ok"}


@app.get("/_debug/config")
def debug_config() -> Dict[str, Any]:
    """Non-secret view of the current configuration."""
    return {
        "gemini_api_key_present": bool(settings.gemini_api_key),
        "gemini_model": settings.gemini_model,
        "gemini_api_version": settings.gemini_api_version,
        "request_timeout_s": settings.request_timeout_s,
        "page_size": PAGE_SIZE,
        "session_ttl_s": settings.session_ttl_s,
        "active_sessions": len(service.sessions),
    }


@app.post("/sessions", response_model=SessionView, status_code=201)
def create_session() -> SessionView:
    """Start an idle session (the welcome screen)."""
    return _view(service.create_session())


@app.get("/sessions/{session_id}", response_model=SessionView)
def get_session(session_id: str) -> SessionView:
    try:
        return _view(service.get_session(session_id))
    except SessionNotFound:
        raise _not_found(session_id)


@app.post("/sessions/{session_id}/search", response_model=SessionView)
async def search(session_id: str, body: SearchRequest) -> SessionView:
    """
    Replace the session with a fresh search for movies and TV shows.
    Provider failures are reported in `error`, not as HTTP errors.
    """
    try:
        return _view(await service.search(session_id, body.query))
    except SessionNotFound:
        raise _not_found(session_id)


@app.post("/sessions/{session_id}/more", response_model=SessionView)
async def show_more(session_id: str) -> SessionView:
    """
    Fetch the next page for the active tab. Ignored while another page is
    loading or once the list is exhausted.
    """
    try:
        return _view(await service.show_more(session_id))
    except SessionNotFound:
        raise _not_found(session_id)


@app.put("/sessions/{session_id}/tab", response_model=SessionView)
def select_tab(session_id: str, body: TabRequest) -> SessionView:
    try:
        return _view(service.select_tab(session_id, body.tab))
    except SessionNotFound:
        raise _not_found(session_id)

