from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, List

from .errors import fatal_invariant
from .models import CrawlPage

logger = logging.getLogger(__name__)


class PageWalker(ABC):
    """Template for walking a numbered listing, pages 1..N.

    Subclasses decide how a page is fetched and parsed and when the walk
    stops. ``max_pages`` is a sanity ceiling: needing more pages than that
    means the listing no longer behaves as expected, so the walk aborts
    instead of returning an error that could be retried."""

    label = "listing"

    def __init__(self, max_pages: int) -> None:
        self._max_pages = max_pages

    def walk(self) -> List[Any]:
        ids: List[Any] = []
        page_num = 0
        while True:
            page_num += 1
            if page_num > self._max_pages:
                logger.error(
                    f"maximum {self.label} pages exceeded",
                    extra={"context": {"max_pages": self._max_pages, **self.context()}},
                )
                fatal_invariant(f"maximum {self.label} pages exceeded")

            url = self.page_url(page_num)
            body = self.fetch(url)
            page = self.parse(page_num, url, body)
            ids.extend(page.ids)

            logger.debug(
                f"{self.label} page processed",
                extra={"context": {"page": page_num, "count": len(page.ids), **self.context()}},
            )
            if self.is_last(page):
                return ids

    def context(self) -> dict:
        return {}

    @abstractmethod
    def page_url(self, page_num: int) -> str:
        ...

    @abstractmethod
    def fetch(self, url: str) -> bytes:
        ...

    @abstractmethod
    def parse(self, page_num: int, url: str, body: bytes) -> CrawlPage:
        ...

    @abstractmethod
    def is_last(self, page: CrawlPage) -> bool:
        ...
