from __future__ import annotations

from typing import NoReturn, Optional


class GalleryTrapError(Exception):
    """Base class for every anticipated failure reported up to the run loop."""


class FetchError(GalleryTrapError):
    """A GET did not produce a usable document."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"{message}: {url}")
        self.url = url


class NotFoundError(FetchError):
    """HTTP 404. Means "does not exist", never retried."""

    def __init__(self, url: str) -> None:
        super().__init__(url, "resource not found")


class BadStatusError(FetchError):
    def __init__(self, url: str, status_code: int, reason: Optional[str] = None) -> None:
        status = f"{status_code} {reason}" if reason else str(status_code)
        super().__init__(url, f"HTTP request failed with status {status}")
        self.status_code = status_code


class TransportFailureError(FetchError):
    """Connection error, timeout, or any other request-level failure."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(url, f"GET failed ({type(cause).__name__}: {cause})")
        self.cause = cause


class LoadFigureNotFoundError(FetchError):
    """The page was fetched but the registered-users count is missing.

    The document is still available in ``body`` so a caller may choose to
    carry on without the delay decision."""

    def __init__(self, url: str, body: bytes) -> None:
        super().__init__(url, "could not find registered users count")
        self.body = body


class CookieError(GalleryTrapError):
    pass


class InvalidCookieError(CookieError):
    pass


class ExpiredCookieError(CookieError):
    """Cookie expires within a week; update the cookies.txt file."""

    def __init__(self, name: str) -> None:
        super().__init__(f"cookie is expiring, update your cookies.txt file: {name}")
        self.name = name


class DownloadLinkNotFoundError(GalleryTrapError):
    pass


class UnexpectedLinkFormatError(GalleryTrapError):
    pass


class InvalidFilePathError(GalleryTrapError):
    pass


class FatalInvariantError(BaseException):
    """The site no longer matches our structural assumptions.

    Derives from BaseException so no ``except Exception`` handler can retry
    or continue past it."""


def fatal_invariant(message: str) -> NoReturn:
    raise FatalInvariantError(message)
