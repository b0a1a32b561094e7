from __future__ import annotations
from typing import Dict, List

# Names the prompt asks the model to use; keep in sync with PLATFORM_LOGOS.
REFERENCE_PLATFORMS: List[str] = [
    "Netflix", "Hulu", "Max", "Disney+", "Amazon Prime Video", "Apple TV+",
    "Peacock", "Paramount+", "Crunchyroll", "Showtime", "Starz",
]

PLATFORM_LOGOS: Dict[str, str] = {
    "Netflix": "https://img.icons8.com/color/48/netflix.png",
    "Amazon Prime Video": "https://img.icons8.com/color/48/amazon-prime-video.png",
    "Disney+": "https://img.icons8.com/color/48/disney-plus.png",
    "Hulu": "https://img.icons8.com/color/48/hulu.png",
    "HBO Max": "https://img.icons8.com/color/48/hbo-max.png",
    "Max": "https://img.icons8.com/color/48/hbo-max.png",  # same icon as HBO Max
    "Apple TV+": "https://img.icons8.com/color/48/apple-tv.png",
    "Peacock": "https://img.icons8.com/color/48/peacock-tv.png",
    "Paramount+": "https://img.icons8.com/fluency/48/paramount-plus.png",
    "Crunchyroll": "https://img.icons8.com/color/48/crunchyroll.png",
    "Showtime": "https://img.icons8.com/color/48/showtime.png",
    "Starz": "https://img.icons8.com/color/48/starz.png",
}

DEFAULT_LOGO: str = "https://placehold.co/32x32/e2e8f0/64748b?text=?"


def logo_for(platform: str) -> str:
    """
    Exact-name lookup; anything the model invents gets the placeholder.
    """
    return PLATFORM_LOGOS.get(platform, DEFAULT_LOGO)
