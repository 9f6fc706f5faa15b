"""Envato marketplace template search with a built-in mock catalogue.

Without ENVATO_API_TOKEN the client never touches the network and serves
the mock catalogue. With a token it queries the Envato API and falls back
to the same catalogue when the request fails or is rate limited.
"""

import logging
import os
import re
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import requests

from ..core.project import (
    Layer,
    LayerKind,
    ProjectDescriptor,
    Resolution,
    SourceFormat,
)

logger = logging.getLogger("TemplateEditorMCP.marketplace.envato")

ENVATO_API_BASE = "https://api.elements.envato.com/v2"
TOKEN_ENV_VAR = "ENVATO_API_TOKEN"
DEFAULT_CATEGORY = "videohive"
DEFAULT_TEMPLATE_DURATION = 10.0

CATEGORY_TYPES = {
    "videohive": "video",
    "photodune": "photo",
    "graphicriver": "graphics",
    "audiojungle": "audio",
}

RESOLUTION_NAMES = {
    "8k": (7680, 4320),
    "4k": (3840, 2160),
    "2160p": (3840, 2160),
    "2k": (2560, 1440),
    "1440p": (2560, 1440),
    "1080p": (1920, 1080),
    "hd": (1920, 1080),
    "720p": (1280, 720),
}


@dataclass
class EnvatoTemplate:
    """A marketplace listing."""
    id: str
    name: str
    category: str  # "video", "photo", "graphics", "audio"
    thumbnail: str = ""
    preview: str = ""
    duration: str = "10s"
    resolution: str = "1080p"
    tags: list[str] = field(default_factory=list)
    downloads: int = 0
    rating: float = 4.5
    price: float = 0.0
    url: str = ""
    author: str = "Unknown"


MOCK_TEMPLATES: list[EnvatoTemplate] = [
    EnvatoTemplate(
        id="1",
        name="Modern Intro Pack",
        category="video",
        thumbnail="/placeholder.svg?height=120&width=160",
        preview="/placeholder.svg?height=720&width=1280",
        duration="5s",
        resolution="4K",
        tags=["intro", "modern", "animation"],
        downloads=1250,
        rating=4.8,
        price=29,
        url="https://videohive.net/item/1",
        author="Premium Creator",
    ),
    EnvatoTemplate(
        id="2",
        name="Cinematic Transitions",
        category="video",
        thumbnail="/placeholder.svg?height=120&width=160",
        preview="/placeholder.svg?height=720&width=1280",
        duration="2s",
        resolution="4K",
        tags=["transition", "cinematic", "smooth"],
        downloads=890,
        rating=4.9,
        price=19,
        url="https://videohive.net/item/2",
        author="Motion Designer",
    ),
    EnvatoTemplate(
        id="3",
        name="Social Media Pack",
        category="video",
        thumbnail="/placeholder.svg?height=120&width=160",
        preview="/placeholder.svg?height=720&width=1280",
        duration="15s",
        resolution="1080p",
        tags=["social", "pack", "trending"],
        downloads=2100,
        rating=4.7,
        price=39,
        url="https://videohive.net/item/3",
        author="Content Creator",
    ),
]


def mock_templates(query: str = "") -> list[EnvatoTemplate]:
    """Mock catalogue, filtered by case-insensitive name match when a query is given."""
    if query:
        return [t for t in MOCK_TEMPLATES if query.lower() in t.name.lower()]
    return list(MOCK_TEMPLATES)


def _parse_item(item: dict, category_type: str) -> EnvatoTemplate:
    rating = item.get("rating")
    price_cents = item.get("price_cents")
    return EnvatoTemplate(
        id=str(item["id"]),
        name=item.get("name") or item.get("title") or "",
        category=category_type,
        thumbnail=item.get("thumbnail_url") or "",
        preview=item.get("preview_url") or item.get("thumbnail_url") or "",
        duration=item.get("duration") or "10s",
        resolution=item.get("resolution") or "1080p",
        tags=item.get("tags") or [],
        downloads=item.get("number_of_purchases") or 0,
        rating=(rating.get("rating") if isinstance(rating, dict) else None) or 4.5,
        price=price_cents / 100 if price_cents else 0.0,
        url=item.get("url") or "",
        author=item.get("author_username") or "Unknown",
    )


@dataclass
class _CacheEntry:
    results: list[EnvatoTemplate]
    timestamp: float


class EnvatoClient:
    """Template search against the Envato API, mock-first."""

    CACHE_TTL = 900  # 15 minutes
    MAX_REQUESTS = 30  # per RATE_WINDOW
    RATE_WINDOW = 60.0

    def __init__(self, token: Optional[str] = None):
        self._token = token if token is not None else os.environ.get(TOKEN_ENV_VAR, "")
        self._request_times: deque[float] = deque()
        self._cache: dict[str, _CacheEntry] = {}

    @property
    def configured(self) -> bool:
        return bool(self._token)

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}

    def _prune_requests(self) -> None:
        cutoff = time.monotonic() - self.RATE_WINDOW
        while self._request_times and self._request_times[0] <= cutoff:
            self._request_times.popleft()

    def _reserve_request(self) -> bool:
        """Record an outgoing request unless the window is already full."""
        self._prune_requests()
        if len(self._request_times) >= self.MAX_REQUESTS:
            return False
        self._request_times.append(time.monotonic())
        return True

    @property
    def remaining_requests(self) -> int:
        self._prune_requests()
        return self.MAX_REQUESTS - len(self._request_times)

    def search_templates(self, query: str = "", category: str = DEFAULT_CATEGORY,
                         page: int = 1, per_page: int = 12) -> list[EnvatoTemplate]:
        """Search marketplace templates; mock results when unconfigured or failing."""
        if not self._token:
            logger.warning(f"{TOKEN_ENV_VAR} not configured, returning mock templates")
            return mock_templates(query)

        cache_key = f"search:{query}:{category}:{page}:{per_page}"
        cached = self._cache.get(cache_key)
        if cached and (time.time() - cached.timestamp) < self.CACHE_TTL:
            return cached.results

        if not self._reserve_request():
            logger.warning("Envato rate limit reached, returning mock templates")
            return mock_templates(query)

        try:
            resp = requests.get(
                f"{ENVATO_API_BASE}/search/search",
                params={
                    "query": query,
                    "category": category,
                    "page": page,
                    "per_page": per_page,
                },
                headers=self._headers(),
                timeout=15,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Envato API error: {e}")
            return mock_templates(query)

        category_type = CATEGORY_TYPES.get(category, "video")
        results = [_parse_item(item, category_type) for item in data.get("results", [])]
        self._cache[cache_key] = _CacheEntry(results=results, timestamp=time.time())
        return results

    def get_template_details(self, template_id: str) -> Optional[EnvatoTemplate]:
        """Fetch one listing. None when the item can't be found."""
        if not self._token:
            for t in MOCK_TEMPLATES:
                if t.id == template_id:
                    return t
            matches = mock_templates(template_id)
            return matches[0] if matches else None

        try:
            resp = requests.get(
                f"{ENVATO_API_BASE}/market/item:{DEFAULT_CATEGORY}:{template_id}",
                headers=self._headers(),
                timeout=15,
            )
            if not resp.ok:
                logger.warning(f"Envato item {template_id} lookup failed: HTTP {resp.status_code}")
                return None
            return _parse_item(resp.json(), "video")
        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error(f"Failed to fetch template details: {e}")
            return None

    def get_status(self) -> dict:
        return {
            "source": "envato",
            "configured": self.configured,
            "mock": not self.configured,
            "remaining_requests": self.remaining_requests,
        }


# ── Conversion to the project model ─────────────────────────────────────

def parse_duration(value: str) -> float:
    """Read "5s", "1:30", "90" style durations; unreadable values give the default."""
    text = (value or "").strip().lower()
    match = re.fullmatch(r"(?:(\d+):)?(\d+(?:\.\d+)?)\s*(s|sec|secs|seconds)?", text)
    if not match:
        return DEFAULT_TEMPLATE_DURATION
    minutes, seconds, _ = match.groups()
    total = float(seconds) + (int(minutes) * 60 if minutes else 0)
    return total if total > 0 else DEFAULT_TEMPLATE_DURATION


def parse_resolution(value: str) -> Resolution:
    """Read "4K", "1080p" or "1280x720"; anything else is 1920x1080."""
    text = (value or "").strip().lower()
    if text in RESOLUTION_NAMES:
        width, height = RESOLUTION_NAMES[text]
        return Resolution(width=width, height=height)
    match = re.fullmatch(r"(\d+)\s*[x×]\s*(\d+)", text)
    if match and int(match.group(1)) > 0 and int(match.group(2)) > 0:
        return Resolution(width=int(match.group(1)), height=int(match.group(2)))
    return Resolution()


def to_project(template: EnvatoTemplate) -> ProjectDescriptor:
    """Describe a marketplace listing as a single-layer project."""
    duration = parse_duration(template.duration)
    return ProjectDescriptor(
        id=f"envato-{template.id}",
        name=template.name or f"Envato {template.id}",
        source_format=SourceFormat.GENERIC,
        duration=duration,
        resolution=parse_resolution(template.resolution),
        layers=[Layer(
            id="envato-layer-1",
            name=template.name or "Template",
            kind=LayerKind.VIDEO,
            duration=duration,
            properties={"preview": template.preview},
        )],
        properties={
            "marketplace": "envato",
            "marketplace_id": template.id,
            "category": template.category,
            "url": template.url,
            "author": template.author,
            "price": template.price,
            "tags": list(template.tags),
        },
    )
