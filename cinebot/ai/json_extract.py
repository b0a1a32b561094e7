"""
Pull a JSON object out of free-form model text.

The model is asked for bare JSON but regularly wraps it in prose or code
fences, or emits stray braces around it. Instead of a greedy first-`{` to
last-`}` match, the text is scanned for balanced top-level `{...}` spans
(braces inside string literals are ignored) and each span is tried in order.
"""
from __future__ import annotations
import json
from typing import Any, Dict, Iterator, List, Optional

from ..errors import MalformedJsonError, NoJsonFoundError


def iter_object_spans(text: str) -> Iterator[str]:
    """
    Yield every balanced top-level `{...}` substring of `text`, left to right.

    A `{` that is never closed would swallow the rest of the text, so the
    scan resumes just after it.
    """
    pos: int = 0
    while pos < len(text):
        depth: int = 0
        start: int = -1
        in_string: bool = False
        escaped: bool = False
        for i in range(pos, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"' and depth > 0:
                in_string = True
            elif ch == "{":
                if depth == 0:
                    start = i
                depth += 1
            elif ch == "}" and depth > 0:
                depth -= 1
                if depth == 0:
                    yield text[start:i + 1]
        if depth == 0:
            return
        pos = start + 1


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise ValueError(f"invalid JSON constant {name}")


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Return the parsed object, preferring one that carries `recommendations`.

    Raises:
        NoJsonFoundError: no balanced `{...}` span in the text
        MalformedJsonError: spans exist but none parses to an object
    """
    spans: List[str] = list(iter_object_spans(text))
    if not spans:
        raise NoJsonFoundError()

    first_object: Optional[Dict[str, Any]] = None
    for span in spans:
        try:
            parsed = json.loads(span, parse_constant=_reject_constant)
        except ValueError:
            continue
        if not isinstance(parsed, dict):
            continue
        if "recommendations" in parsed:
            return parsed
        if first_object is None:
            first_object = parsed

    if first_object is None:
        raise MalformedJsonError()
    return first_object


def recommendations_from_text(text: str) -> List[Any]:
    """Raw `recommendations` array; empty when absent or not a list."""
    payload: Dict[str, Any] = extract_json_object(text)
    recs = payload.get("recommendations")
    return recs if isinstance(recs, list) else []
