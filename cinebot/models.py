from __future__ import annotations
import math
import re
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

_YEAR_RE = re.compile(r"\d{4}")
_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


class MediaType(str, Enum):
    """The two independently tracked result lists."""
    MOVIES = "movies"
    TV_SHOWS = "tv_shows"

    @property
    def label(self) -> str:
        """Wording used inside prompts."""
        return "movies" if self is MediaType.MOVIES else "TV shows"


class SessionStatus(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    READY = "ready"
    FETCHING_MORE = "fetching_more"


class RecommendationItem(BaseModel):
    """
    Single recommendation as returned by the model.
    Validation is lenient: the model is not a reliable JSON producer.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str = Field(min_length=1)
    year: Optional[int] = None
    summary: str = ""
    rating: Optional[float] = Field(default=None, allow_inf_nan=False)
    streaming_platforms: List[str] = Field(default_factory=list, alias="streamingPlatforms")

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        return v.strip() if isinstance(v, str) else v

    @field_validator("year", mode="before")
    @classmethod
    def _coerce_year(cls, v: Any) -> Any:
        # TV shows often come back as "2019–2023"
        if isinstance(v, str):
            m = _YEAR_RE.search(v)
            return int(m.group(0)) if m else None
        if isinstance(v, float):
            return int(v) if math.isfinite(v) else None
        return v

    @field_validator("summary", mode="before")
    @classmethod
    def _coerce_summary(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("rating", mode="before")
    @classmethod
    def _coerce_rating(cls, v: Any) -> Any:
        if isinstance(v, str):
            m = _NUMBER_RE.search(v)
            return float(m.group(0)) if m else None
        if isinstance(v, float) and not math.isfinite(v):
            return None
        return v

    @field_validator("streaming_platforms", mode="before")
    @classmethod
    def _coerce_platforms(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.split(",")
        if isinstance(v, (list, tuple)):
            return [p.strip() for p in v if isinstance(p, str) and p.strip()]
        return v


class SearchSession(BaseModel):
    """
    Immutable snapshot of one user's search.
    Only the transition functions in services.session_state produce new ones.
    """
    model_config = ConfigDict(frozen=True)

    session_id: str
    status: SessionStatus = SessionStatus.IDLE
    query: str = ""
    movies: Tuple[RecommendationItem, ...] = ()
    tv_shows: Tuple[RecommendationItem, ...] = ()
    active_tab: MediaType = MediaType.MOVIES
    can_fetch_more: bool = True
    has_searched: bool = False
    error: Optional[str] = None
    fetch_target: Optional[MediaType] = None  # tab a pending fetch-more appends to

    def items_for(self, media_type: MediaType) -> Tuple[RecommendationItem, ...]:
        return self.movies if media_type is MediaType.MOVIES else self.tv_shows

    @property
    def active_items(self) -> Tuple[RecommendationItem, ...]:
        return self.items_for(self.active_tab)


# --- API payloads ---

class SearchRequest(BaseModel):
    query: str = Field(min_length=1, max_length=200)

    @field_validator("query", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v


class TabRequest(BaseModel):
    tab: MediaType


class PlatformBadge(BaseModel):
    name: str
    logo_url: str


class Gradient(BaseModel):
    """HSL colors for the card's aurora background."""
    base: str
    primary: str
    secondary: str


class Card(BaseModel):
    """
    Display-ready recommendation card.
    """
    title: str
    year: Optional[int] = None
    summary: str = ""
    rating: Optional[float] = None
    rating_label: str
    platforms: List[PlatformBadge]
    gradient: Gradient


class SessionView(BaseModel):
    """
    Everything a client needs to render the current session.
    """
    session_id: str
    status: SessionStatus
    query: str
    has_searched: bool
    active_tab: MediaType
    can_fetch_more: bool
    error: Optional[str] = None
    counts: Dict[MediaType, int]
    items: List[Card]
    show_more: bool
    empty_message: Optional[str] = None
    end_message: Optional[str] = None

    model_config: Dict[str, Any] = {
        "json_schema_extra": {
            "examples": [{
                "session_id": "3f6c1a0e9b2d4d51",
                "status": "ready",
                "query": "space opera",
                "has_searched": True,
                "active_tab": "movies",
                "can_fetch_more": True,
                "error": None,
                "counts": {"movies": 12, "tv_shows": 0},
                "items": [{
                    "title": "Dune",
                    "year": 2021,
                    "summary": "A noble family becomes embroiled in a war for a desert planet.",
                    "rating": 8.0,
                    "rating_label": "8.0",
                    "platforms": [{"name": "Max", "logo_url": "https://img.icons8.com/color/48/hbo-max.png"}],
                    "gradient": {"base": "hsl(212, 50%, 20%)", "primary": "hsl(212, 70%, 40%)", "secondary": "hsl(272, 70%, 40%)"},
                }],
                "show_more": True,
                "empty_message": None,
                "end_message": None,
            }]
        }
    }
