from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional

from .config import CrawlerConfig
from .gallery import GalleryCrawler
from .models import Creator, RunSummary
from .submission import SubmissionDownloader
from .watchlist import FollowListCrawler

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Runs one crawl: resolve creators, list their submissions, save each.

    There is no skip-and-continue: the first error stops the run. Saves are
    idempotent, so re-running after fixing the cause resumes cheaply.
    """

    def __init__(
        self,
        transport,
        output_dir: str,
        config: Optional[CrawlerConfig] = None,
        follow_list: Optional[FollowListCrawler] = None,
        gallery: Optional[GalleryCrawler] = None,
        downloader: Optional[SubmissionDownloader] = None,
    ) -> None:
        self._config = config or CrawlerConfig()
        self._output_dir = os.path.normpath(output_dir)
        self._follow_list = follow_list or FollowListCrawler(transport, self._config)
        self._gallery = gallery or GalleryCrawler(transport, self._config)
        self._downloader = downloader or SubmissionDownloader(transport, self._config)

    def resolve_creators(self, watcher_id: Optional[str], creator_ids: Iterable[str]) -> List[Creator]:
        """Watchlist entries first, then explicitly named creators."""
        creators: List[Creator] = []
        if watcher_id:
            creators.extend(self._follow_list.creators(watcher_id, self._output_dir))
        for creator_id in creator_ids:
            creators.append(Creator.under(self._output_dir, creator_id))
        return creators

    def run(
        self,
        watcher_id: Optional[str] = None,
        creator_ids: Iterable[str] = (),
        re_crawl: bool = False,
        skip_scraps: bool = False,
    ) -> RunSummary:
        creator_ids = list(creator_ids)
        logger.info(
            "crawl running with config",
            extra={
                "context": {
                    "watcher": watcher_id,
                    "artists": creator_ids,
                    "re_crawl": re_crawl,
                    "skip_scraps": skip_scraps,
                    "output_dir": self._output_dir,
                }
            },
        )

        summary = RunSummary()
        for creator in self.resolve_creators(watcher_id, creator_ids):
            summary.creators.append(creator.id)
            artifacts = self._gallery.list_artifacts(creator, include_scraps=not skip_scraps, re_crawl=re_crawl)
            summary.listed += len(artifacts)
            for artifact in artifacts:
                summary.record(self._downloader.save(artifact))

        logger.info(
            "crawl finished",
            extra={
                "context": {
                    "creators": len(summary.creators),
                    "listed": summary.listed,
                    "saved": summary.saved,
                    "already_archived": summary.already_archived,
                    "asset_missing": summary.asset_missing,
                }
            },
        )
        return summary
