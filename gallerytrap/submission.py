from __future__ import annotations

import logging
from typing import Optional, Tuple

from bs4 import BeautifulSoup

from .archive import commit_submission, ensure_directory, is_archived
from .config import CrawlerConfig
from .errors import DownloadLinkNotFoundError, NotFoundError, UnexpectedLinkFormatError
from .models import Artifact, SaveStatus

logger = logging.getLogger(__name__)

DOWNLOAD_LINK_TEXT = "Download"

# Characters Windows refuses in filenames.
_FILENAME_TRANSLATION = str.maketrans({c: "_" for c in '<>:"\\|?*'})


def sanitize_filename(filename: str) -> str:
    return filename.translate(_FILENAME_TRANSLATION)


def parse_download_link(page: bytes) -> Tuple[str, str]:
    """Find the full-resolution file on a /view/ page.

    Returns ``(download_url, filename)``. The link has no stable attribute
    to select on, so the first <a> whose text is exactly "Download" wins.
    """
    soup = BeautifulSoup(page, "html.parser")
    href = None
    for link in soup.find_all("a"):
        if link.get_text().strip() == DOWNLOAD_LINK_TEXT and link.has_attr("href"):
            href = link["href"]
            break

    if href is None:
        raise DownloadLinkNotFoundError("failed to find download link in HTML")
    if not href.startswith("//"):
        raise UnexpectedLinkFormatError(f"unexpected download link format: {href}")

    download_url = "https:" + href
    # Only the last path segment is used, so the name cannot carry a directory.
    filename = sanitize_filename(download_url.split("/")[-1])
    return download_url, filename


class SubmissionDownloader:
    """Saves one submission's file and /view/ page into its directory."""

    def __init__(self, transport, config: Optional[CrawlerConfig] = None) -> None:
        self._transport = transport
        self._config = config or CrawlerConfig()

    @staticmethod
    def is_archived(artifact_id: int, directory: str) -> bool:
        return is_archived(artifact_id, directory)

    def save(self, artifact: Artifact) -> SaveStatus:
        if is_archived(artifact.id, artifact.directory):
            logger.debug("submission already saved, skipping", extra={"context": {"id": artifact.id}})
            return SaveStatus.ALREADY_ARCHIVED

        ensure_directory(artifact.directory)

        view_url = self._config.url(f"/view/{artifact.id}")
        page = self._transport.get_with_delay(view_url)

        download_url, filename = parse_download_link(page)

        try:
            payload = self._transport.get(download_url)
        except NotFoundError:
            # The view page sometimes exists while its file 404s.
            logger.error(
                "file download 404s, skipping submission",
                extra={"context": {"id": artifact.id, "url": download_url}},
            )
            return SaveStatus.ASSET_MISSING

        file_path = commit_submission(artifact.directory, filename, artifact.id, payload, page)
        logger.info("saved submission", extra={"context": {"id": artifact.id, "file": file_path}})
        return SaveStatus.SAVED
