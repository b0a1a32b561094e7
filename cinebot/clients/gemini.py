from __future__ import annotations
import asyncio
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from ..ai.json_extract import recommendations_from_text
from ..config import settings
from ..errors import (
    ApiError,
    EmptyResponseError,
    NetworkError,
    RequestTimeoutError,
    SafetyBlockedError,
)
from ..models import RecommendationItem
from ..utils.logging import get_logger, truncate

logger = get_logger(__name__)


def build_payload(prompt: str) -> Dict[str, Any]:
    """generateContent body asking for JSON-formatted output."""
    return {
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {"responseMimeType": "application/json"},
    }


def _is_safety_block(data: Dict[str, Any], first: Optional[Dict[str, Any]]) -> bool:
    if first is not None and first.get("finishReason") == "SAFETY":
        return True
    feedback = data.get("promptFeedback")
    return isinstance(feedback, dict) and bool(feedback.get("blockReason"))


def candidate_text(data: Any) -> str:
    """
    Text of the first candidate's first part.
    Raises SafetyBlockedError / EmptyResponseError when there is none.
    """
    if not isinstance(data, dict):
        raise EmptyResponseError()
    candidates = data.get("candidates")
    first: Optional[Dict[str, Any]] = None
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        first = candidates[0]

    content = first.get("content") if first is not None else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
        if _is_safety_block(data, first):
            raise SafetyBlockedError()
        raise EmptyResponseError()

    text = parts[0].get("text")
    if not isinstance(text, str):
        raise EmptyResponseError()
    return text


def coerce_items(raw: List[Any]) -> List[RecommendationItem]:
    """Validate raw entries; entries the model botched are dropped."""
    items: List[RecommendationItem] = []
    for entry in raw:
        if not isinstance(entry, dict):
            logger.warning("Dropping non-object recommendation entry: %s", truncate(repr(entry), 80))
            continue
        try:
            items.append(RecommendationItem.model_validate(entry))
        except ValidationError as ve:
            logger.warning("Dropping invalid recommendation (%d errors): %s",
                           ve.error_count(), truncate(repr(entry), 120))
    return items


def parse_envelope(data: Any) -> List[RecommendationItem]:
    """generateContent response body -> recommendation items."""
    text: str = candidate_text(data)
    return coerce_items(recommendations_from_text(text))


class GeminiClient:
    """
    Minimal async adapter for Gemini generateContent (key as query param,
    server side only).
    """

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base: str = settings.gemini_api_base.rstrip("/")
        self.api_version: str = settings.gemini_api_version
        self.model: str = settings.gemini_model
        self.timeout_s: float = settings.request_timeout_s
        self.timeout: httpx.Timeout = httpx.Timeout(self.timeout_s)
        self.api_key: str = (settings.gemini_api_key or "").strip()
        self.transport: Optional[httpx.AsyncBaseTransport] = transport

    @property
    def url(self) -> str:
        return f"{self.base}/{self.api_version}/models/{self.model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "Accept": "application/json"}

    def _params(self) -> Dict[str, str]:
        return {"key": self.api_key}

    async def fetch_recommendations(self, prompt: str) -> List[RecommendationItem]:
        """
        One generateContent call under a fixed deadline.
        Raises a FetchError subclass on every failure path.
        """
        if not self.api_key:
            raise ApiError("Gemini API key is not configured (CINEBOT_GEMINI_API_KEY)")
        try:
            data = await asyncio.wait_for(self._post(build_payload(prompt)), timeout=self.timeout_s)
        except asyncio.TimeoutError as te:
            logger.warning("Gemini call exceeded %.0fs deadline", self.timeout_s)
            raise RequestTimeoutError() from te
        return parse_envelope(data)

    async def _post(self, payload: Dict[str, Any]) -> Any:
        async with httpx.AsyncClient(
            timeout=self.timeout, headers=self._headers(), transport=self.transport
        ) as client:
            try:
                r: httpx.Response = await client.post(self.url, params=self._params(), json=payload)
            except httpx.TimeoutException as te:
                raise RequestTimeoutError() from te
            except httpx.HTTPError as he:  # network / protocol
                logger.warning("Gemini transport error: %s", he)
                raise NetworkError(str(he) or type(he).__name__) from he

        if not r.is_success:
            msg: Optional[str] = None
            try:
                body = r.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                err = body.get("error")
                if isinstance(err, dict) and isinstance(err.get("message"), str):
                    msg = err["message"]
            logger.warning("Gemini non-2xx (%d): %s", r.status_code, msg or "no message")
            raise ApiError(msg, status_code=r.status_code)

        try:
            return r.json()
        except ValueError as ve:
            logger.warning("Gemini returned a non-JSON body: %s", truncate(r.text))
            raise EmptyResponseError() from ve
