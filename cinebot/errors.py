from __future__ import annotations
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    SAFETY_BLOCKED = "safety_blocked"
    EMPTY_RESPONSE = "empty_response"
    NO_JSON_FOUND = "no_json_found"
    MALFORMED_JSON = "malformed_json"
    NETWORK_ERROR = "network_error"


class FetchError(RuntimeError):
    """
    A single recommendation fetch failed.

    `str(err)` is the human-readable message shown to the user.
    """
    kind: ErrorKind
    default_message: str = "The recommendation request failed."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class RequestTimeoutError(FetchError):
    kind = ErrorKind.TIMEOUT
    default_message = "The request took too long and was timed out. Please try again."


class ApiError(FetchError):
    kind = ErrorKind.API_ERROR

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None) -> None:
        if not message and status_code is not None:
            message = f"API request failed with status {status_code}"
        super().__init__(message)
        self.status_code = status_code


class SafetyBlockedError(FetchError):
    kind = ErrorKind.SAFETY_BLOCKED
    default_message = "The query was blocked for safety reasons. Please try a different query."


class EmptyResponseError(FetchError):
    kind = ErrorKind.EMPTY_RESPONSE
    default_message = "The AI returned an empty or invalid response."


class NoJsonFoundError(FetchError):
    kind = ErrorKind.NO_JSON_FOUND
    default_message = "AI did not return a recognizable JSON object."


class MalformedJsonError(FetchError):
    kind = ErrorKind.MALFORMED_JSON
    default_message = "AI response was malformed and could not be repaired."


class NetworkError(FetchError):
    kind = ErrorKind.NETWORK_ERROR
    default_message = "A network error occurred while contacting the AI service."
