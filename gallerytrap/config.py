from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from . import __version__

DEFAULT_BASE_URL = "https://www.furaffinity.net"
DEFAULT_USER_AGENT = f"gallerytrap/{__version__}"


@dataclass(frozen=True)
class CrawlerConfig:
    """Tunables threaded through every component.

    The page ceilings and the new-creator threshold are tuned to the site's
    current behaviour; they only guard against runaway pagination."""

    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout: float = 90.0

    retry_attempts: int = 3
    retry_interval: float = 5.0

    # Site request: limit bot activity to periods with fewer than 10k
    # registered users online.
    high_user_threshold: int = 10000
    high_user_delay: float = 300.0
    default_delay: float = 1.0
    throttle: bool = True

    max_watchlist_pages: int = 100
    max_gallery_pages: int = 1000
    min_new_creators: int = 2

    impersonate: Optional[str] = None

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + path
