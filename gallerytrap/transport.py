from __future__ import annotations

import logging
import time as _time
from typing import Any, Callable, Optional

import requests
from curl_cffi import CurlError
from curl_cffi import requests as curl_requests

from .backoff import RetryPolicy
from .config import CrawlerConfig
from .cookies import load_cookie_file
from .errors import (
    BadStatusError,
    FetchError,
    LoadFigureNotFoundError,
    NotFoundError,
    TransportFailureError,
)
from .throttle import LoadThrottle, parse_registered_users

logger = logging.getLogger(__name__)


class Transport:
    """Retrying GET against the site, with an optional load-aware delay.

    ``get`` retries bad statuses and transport failures per the RetryPolicy
    and raises the last failure once attempts run out. A 404 raises
    NotFoundError straight away.

    ``get_with_delay`` additionally reads the registered-users figure from
    the returned page and sleeps accordingly. Pages without the figure raise
    LoadFigureNotFoundError, which still carries the fetched body.
    """

    def __init__(
        self,
        config: Optional[CrawlerConfig] = None,
        retry: Optional[RetryPolicy] = None,
        throttle: Optional[LoadThrottle] = None,
        session: Any = None,
        sleep: Callable[[float], None] = _time.sleep,
    ) -> None:
        self._config = config or CrawlerConfig()
        self._retry = retry or RetryPolicy(
            attempts=self._config.retry_attempts,
            interval_seconds=self._config.retry_interval,
        )
        self._throttle = throttle or LoadThrottle(
            high_threshold=self._config.high_user_threshold,
            high_delay=self._config.high_user_delay,
            default_delay=self._config.default_delay,
            enabled=self._config.throttle,
            sleep=sleep,
        )
        self._impersonate = self._config.impersonate
        self._session = session if session is not None else self._build_session()
        self._sleep = sleep

    def _build_session(self) -> Any:
        if self._impersonate:
            return curl_requests.Session()
        return requests.Session()

    @property
    def cookies(self) -> Any:
        return self._session.cookies

    def load_cookies(self, path: str) -> int:
        """Load a cookies.txt file into the session's cookie jar."""
        records = load_cookie_file(path)
        for record in records:
            self._session.cookies.set(record.name, record.value, domain=record.domain, path=record.path)
        logger.info("loaded cookies from file", extra={"context": {"file": path, "count": len(records)}})
        return len(records)

    def get(self, url: str) -> bytes:
        logger.debug("GET", extra={"context": {"url": url}})
        attempt = 0
        while True:
            attempt += 1
            try:
                return self._get_once(url)
            except NotFoundError:
                raise
            except FetchError as exc:
                logger.info(
                    "GET failed attempt",
                    extra={"context": {"url": url, "attempt": attempt, "error": str(exc)}},
                )
                if not self._retry.should_retry(attempt):
                    logger.error("GET all attempts failed", extra={"context": {"url": url, "error": str(exc)}})
                    raise
                self._sleep(self._retry.get_sleep(attempt))

    def get_with_delay(self, url: str) -> bytes:
        body = self.get(url)

        registered_users = parse_registered_users(body)
        if registered_users is None:
            raise LoadFigureNotFoundError(url, body)

        self._throttle.wait(registered_users)
        return body

    def _get_once(self, url: str) -> bytes:
        headers = {"User-Agent": self._config.user_agent}
        try:
            if self._impersonate:
                response = self._session.get(
                    url,
                    headers=headers,
                    impersonate=self._impersonate,
                    timeout=self._config.request_timeout,
                )
            else:
                response = self._session.get(url, headers=headers, timeout=self._config.request_timeout)
        except (requests.RequestException, CurlError) as exc:
            raise TransportFailureError(url, exc) from exc

        status_code = getattr(response, "status_code", None)
        if status_code == 404:
            raise NotFoundError(url)
        if status_code != 200:
            raise BadStatusError(url, int(status_code or 0), getattr(response, "reason", None))
        return response.content
