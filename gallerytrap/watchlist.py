from __future__ import annotations

import logging
import os
import re
from typing import List, Optional, Set

from .base import PageWalker
from .config import CrawlerConfig
from .errors import FetchError
from .models import Creator, CrawlPage

logger = logging.getLogger(__name__)

# The capture group cannot contain "/", so a crafted username can never
# reach outside its own directory.
WATCHLIST_USER_RE = re.compile(rb"/user/([^/]+)/")


class _WatchlistWalker(PageWalker):
    label = "watchlist"

    def __init__(self, transport, config: CrawlerConfig, watcher_id: str) -> None:
        super().__init__(config.max_watchlist_pages)
        self._transport = transport
        self._config = config
        self._watcher_id = watcher_id
        self._seen: Set[str] = set()

    def context(self) -> dict:
        return {"user": self._watcher_id}

    def page_url(self, page_num: int) -> str:
        return self._config.url(f"/watchlist/by/{self._watcher_id}/{page_num}")

    def fetch(self, url: str) -> bytes:
        # Watchlist pages lack the footer the load-aware delay reads.
        try:
            return self._transport.get(url)
        except FetchError as exc:
            logger.error("watchlist page fetch error", extra={"context": {"url": url, "error": str(exc)}})
            raise

    def parse(self, page_num: int, url: str, body: bytes) -> CrawlPage:
        matches = WATCHLIST_USER_RE.findall(body)
        new_ids: List[str] = []
        for raw in matches:
            creator_id = raw.decode("utf-8", errors="replace")
            if creator_id in (".", ".."):
                logger.warning("ignoring suspicious username", extra={"context": {"username": creator_id}})
                continue
            if creator_id not in self._seen:
                self._seen.add(creator_id)
                new_ids.append(creator_id)

        logger.info(
            "watchlist page processed",
            extra={
                "context": {
                    "user": self._watcher_id,
                    "page": page_num,
                    "count": len(matches),
                    "new": len(new_ids),
                }
            },
        )
        # The site repeats a long tail of old entries on every page, so an
        # empty page is not a usable end marker.
        return CrawlPage(
            page_num=page_num,
            url=url,
            ids=tuple(new_ids),
            stop=len(new_ids) < self._config.min_new_creators,
        )

    def is_last(self, page: CrawlPage) -> bool:
        return page.stop


class FollowListCrawler:
    """Expands a watcher's follow list into creator ids."""

    def __init__(self, transport, config: Optional[CrawlerConfig] = None) -> None:
        self._transport = transport
        self._config = config or CrawlerConfig()

    def list_creators(self, watcher_id: str) -> List[str]:
        """Unique creator ids in first-seen order."""
        logger.debug("listing watchlist", extra={"context": {"user": watcher_id}})
        creator_ids = _WatchlistWalker(self._transport, self._config, watcher_id).walk()
        logger.info("total watchlist entries found", extra={"context": {"user": watcher_id, "count": len(creator_ids)}})
        return creator_ids

    def creators(self, watcher_id: str, output_dir: str) -> List[Creator]:
        output_dir = os.path.normpath(output_dir)
        return [Creator.under(output_dir, creator_id) for creator_id in self.list_creators(watcher_id)]
