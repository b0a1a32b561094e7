from __future__ import annotations
import math
from typing import List

from .models import (
    Card,
    Gradient,
    MediaType,
    PlatformBadge,
    RecommendationItem,
    SearchSession,
    SessionStatus,
    SessionView,
)
from .platforms import logo_for

EMPTY_CATEGORY_MESSAGE: str = "No results found for this category."
NO_MORE_RESULTS_MESSAGE: str = "No more results found."


def _to_int32(n: int) -> int:
    n &= 0xFFFFFFFF
    return n - 0x100000000 if n & 0x80000000 else n


def title_hash(text: str) -> int:
    """
    Classic `hash * 31 + char` string hash over UTF-16 code units, with the
    shift wrapping at 32 bits, so colors stay stable for a given title.
    """
    units = text.encode("utf-16-le")
    h: int = 0
    for i in range(0, len(units), 2):
        code: int = units[i] | (units[i + 1] << 8)
        h = code + (_to_int32(_to_int32(h) << 5) - h)
    return h


def hsl_for(text: str, saturation: int, lightness: int, offset: int = 0) -> str:
    total: int = title_hash(text) + offset
    # remainder keeps the dividend's sign; css accepts negative hues
    hue: int = abs(total) % 360
    if total < 0:
        hue = -hue
    return f"hsl({hue}, {saturation}%, {lightness}%)"


def gradient_for(title: str) -> Gradient:
    return Gradient(
        base=hsl_for(title, 50, 20, 0),
        primary=hsl_for(title, 70, 40, 0),
        secondary=hsl_for(title, 70, 40, 60),
    )


def rating_label(rating: float | None) -> str:
    if rating is None or not math.isfinite(rating):
        return "N/A"
    return f"{rating:.1f}"


def to_card(item: RecommendationItem) -> Card:
    return Card(
        title=item.title,
        year=item.year,
        summary=item.summary,
        rating=item.rating,
        rating_label=rating_label(item.rating),
        platforms=[PlatformBadge(name=p, logo_url=logo_for(p)) for p in item.streaming_platforms],
        gradient=gradient_for(item.title),
    )


def build_session_view(session: SearchSession) -> SessionView:
    """
    Everything the client renders for the active tab, including the
    empty-category and end-of-results messages.
    """
    items: List[Card] = [to_card(i) for i in session.active_items]
    settled: bool = session.has_searched and session.status in (SessionStatus.READY, SessionStatus.FETCHING_MORE)
    return SessionView(
        session_id=session.session_id,
        status=session.status,
        query=session.query,
        has_searched=session.has_searched,
        active_tab=session.active_tab,
        can_fetch_more=session.can_fetch_more,
        error=session.error,
        counts={m: len(session.items_for(m)) for m in MediaType},
        items=items,
        show_more=bool(items) and session.can_fetch_more,
        empty_message=EMPTY_CATEGORY_MESSAGE if settled and not items else None,
        end_message=NO_MORE_RESULTS_MESSAGE if items and not session.can_fetch_more else None,
    )
