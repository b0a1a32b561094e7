from __future__ import annotations
from typing import Sequence

from ..models import MediaType
from ..platforms import REFERENCE_PLATFORMS

PAGE_SIZE: int = 12

PROMPT_TEMPLATE: str = (
    "Find {count} relevant {item_type} for the query: \"{query}\".\n"
    "{exclusion}"
    "For each item, provide title, year, summary, rating, and streamingPlatforms. "
    "Use common platform names like {platforms}.\n"
    "IMPORTANT: Your response MUST be a single JSON object with one key: \"recommendations\", "
    "which is an array of the found items.\n"
    "DO NOT include any other text, notes, or markdown formatting like ```json.\n"
    "\n"
    "Example response format:\n"
    "{{\n"
    "  \"recommendations\": [\n"
    "    {{\n"
    "      \"title\": \"Example Movie\",\n"
    "      \"year\": 2023,\n"
    "      \"summary\": \"An example summary.\",\n"
    "      \"rating\": 8.5,\n"
    "      \"streamingPlatforms\": [\"Netflix\", \"Hulu\"]\n"
    "    }}\n"
    "  ]\n"
    "}}\n"
)


def build_prompt(query: str, media_type: MediaType, exclude_titles: Sequence[str] = ()) -> str:
    """
    Instruction asking for one page of `media_type` items matching `query`,
    as a bare JSON object. Titles in `exclude_titles` are listed as forbidden.
    """
    exclusion: str = ""
    if exclude_titles:
        exclusion = f"Do NOT include any of the following titles: {', '.join(exclude_titles)}.\n"
    return PROMPT_TEMPLATE.format(
        count=PAGE_SIZE,
        item_type=media_type.label,
        query=query,
        exclusion=exclusion,
        platforms=", ".join(REFERENCE_PLATFORMS),
    )
