"""
Pytest configuration for CineBot tests.

Environment is set before any cinebot module reads settings.
"""
import json
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest

os.environ.setdefault("CINEBOT_GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("CINEBOT_LOG_LEVEL", "WARNING")


def make_recs(n: int, prefix: str = "Title") -> List[Dict[str, Any]]:
    """Raw recommendation dicts in the wire shape the model is asked for."""
    return [
        {
            "title": f"{prefix} {i}",
            "year": 2000 + i,
            "summary": f"Summary of {prefix} {i}.",
            "rating": 7.5,
            "streamingPlatforms": ["Netflix", "Hulu"],
        }
        for i in range(1, n + 1)
    ]


def gemini_envelope(text: str, finish_reason: str = "STOP") -> Dict[str, Any]:
    """A successful generateContent response carrying `text`."""
    return {
        "candidates": [{
            "content": {"role": "model", "parts": [{"text": text}]},
            "finishReason": finish_reason,
        }]
    }


def recs_envelope(recs: List[Dict[str, Any]]) -> Dict[str, Any]:
    return gemini_envelope(json.dumps({"recommendations": recs}))


@pytest.fixture
def mock_transport_factory() -> Callable[..., httpx.MockTransport]:
    """
    Build an httpx.MockTransport that answers every request with
    `status` / `body` and records requests in `transport.requests`.
    """
    def _factory(body: Any = None, status: int = 200) -> httpx.MockTransport:
        requests: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(status, json=body)

        transport = httpx.MockTransport(handler)
        transport.requests = requests  # type: ignore[attr-defined]
        return transport

    return _factory
