from __future__ import annotations

import logging
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from .archive import is_archived
from .base import PageWalker
from .config import CrawlerConfig
from .errors import FetchError, fatal_invariant
from .models import Artifact, Creator, CrawlPage

logger = logging.getLogger(__name__)

# Thumbnails link to /view/<id>/ and wrap an <img>; navigation links to the
# same path do not.
SUBMISSION_LINK_SELECTOR = 'a[href^="/view/"]:has(img)'
VIEW_PREFIX = "/view/"
NUMERIC_ID_RE = re.compile(r"[0-9]+", re.ASCII)
MAX_ARTIFACT_ID = 2 ** 64 - 1


def parse_submission_id(href: str) -> int:
    """Numeric id from a ``/view/<id>/`` link.

    Anything else means the site's URL scheme changed under us."""
    raw = href.rstrip("/")
    if raw.startswith(VIEW_PREFIX):
        raw = raw[len(VIEW_PREFIX):]
    if not NUMERIC_ID_RE.fullmatch(raw) or int(raw) > MAX_ARTIFACT_ID:
        fatal_invariant(f"unable to extract id from {href}")
    return int(raw)


class _SectionWalker(PageWalker):
    label = "gallery"

    def __init__(
        self,
        transport,
        config: CrawlerConfig,
        creator: Creator,
        section: str,
        directory: str,
        re_crawl: bool,
    ) -> None:
        super().__init__(config.max_gallery_pages)
        self._transport = transport
        self._config = config
        self._creator = creator
        self._section = section
        self._directory = directory
        self._re_crawl = re_crawl

    def context(self) -> dict:
        return {"user": self._creator.id, "section": self._section}

    def page_url(self, page_num: int) -> str:
        return self._config.url(f"/{self._section}/{self._creator.id}/{page_num}")

    def fetch(self, url: str) -> bytes:
        try:
            return self._transport.get_with_delay(url)
        except FetchError as exc:
            logger.error("submissions page fetch error", extra={"context": {"url": url, "error": str(exc)}})
            raise

    def parse(self, page_num: int, url: str, body: bytes) -> CrawlPage:
        soup = BeautifulSoup(body, "html.parser")
        artifacts: List[Artifact] = []
        stop = False
        for link in soup.select(SUBMISSION_LINK_SELECTOR):
            href = link.get("href")
            if not isinstance(href, str):
                fatal_invariant("selected submission link has no href")
            artifact = Artifact(id=parse_submission_id(href), directory=self._directory)

            # Listings are newest first: once we reach something already
            # saved, everything after it was saved by an earlier run.
            if not self._re_crawl and is_archived(artifact.id, artifact.directory):
                logger.debug(
                    "submission already saved, stopping crawl",
                    extra={"context": {"user": self._creator.id, "id": artifact.id}},
                )
                stop = True
                break
            artifacts.append(artifact)

        return CrawlPage(page_num=page_num, url=url, ids=tuple(artifacts), stop=stop)

    def is_last(self, page: CrawlPage) -> bool:
        return not page.ids or page.stop


class GalleryCrawler:
    """Lists a creator's submissions, oldest first."""

    def __init__(self, transport, config: Optional[CrawlerConfig] = None) -> None:
        self._transport = transport
        self._config = config or CrawlerConfig()

    def list_artifacts(self, creator: Creator, include_scraps: bool = True, re_crawl: bool = False) -> List[Artifact]:
        """Gallery submissions followed by scraps (if requested).

        Without ``re_crawl`` each section stops at the first submission that
        is already archived."""
        logger.debug("getting submissions", extra={"context": {"user": creator.id, "re_crawl": re_crawl}})
        artifacts = self._crawl_section(creator, "gallery", creator.directory, re_crawl)

        if include_scraps:
            logger.debug("getting scraps", extra={"context": {"user": creator.id, "re_crawl": re_crawl}})
            artifacts.extend(self._crawl_section(creator, "scraps", creator.scraps_directory, re_crawl))

        logger.info("total submissions found", extra={"context": {"user": creator.id, "count": len(artifacts)}})
        return artifacts

    def _crawl_section(self, creator: Creator, section: str, directory: str, re_crawl: bool) -> List[Artifact]:
        walker = _SectionWalker(self._transport, self._config, creator, section, directory, re_crawl)
        artifacts = walker.walk()
        artifacts.reverse()
        return artifacts
