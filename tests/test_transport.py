"""Tests for the Transport class against a local HTTP server."""

import os
import socket
import tempfile
import threading
import unittest
from collections import Counter
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import requests

from gallerytrap.backoff import RetryPolicy
from gallerytrap.config import CrawlerConfig
from gallerytrap.errors import (
    BadStatusError,
    LoadFigureNotFoundError,
    NotFoundError,
    TransportFailureError,
)
from gallerytrap.throttle import LoadThrottle
from gallerytrap.transport import Transport

from fakes import view_page

FAR_FUTURE = 4070937600


class _Handler(BaseHTTPRequestHandler):
    def do_GET(self):
        server = self.server
        server.hits[self.path] += 1

        if self.path == "/flaky" and server.failures_remaining > 0:
            server.failures_remaining -= 1
            self._reply(502, b"502 Bad Gateway")
        elif self.path == "/flaky":
            self._reply(200, b"finally")
        elif self.path == "/view/103":
            self._reply(200, view_page(103, registered=14541))
        elif self.path == "/view/104":
            self._reply(200, view_page(104, registered=900))
        elif self.path == "/view/101":
            self._reply(200, b"<html><h2>Test Submission 101</h2></html>")
        elif self.path == "/user-agent":
            self._reply(200, self.headers.get("User-Agent", "").encode())
        elif self.path == "/cookies":
            self._reply(200, self.headers.get("Cookie", "").encode())
        elif self.path == "/forbidden":
            self._reply(403, b"nope")
        else:
            self._reply(404, b"not found")

    def _reply(self, status, body):
        self.send_response(status)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class _Server(ThreadingHTTPServer):
    def __init__(self):
        super().__init__(("127.0.0.1", 0), _Handler)
        self.hits = Counter()
        self.failures_remaining = 0


class TransportTestCase(unittest.TestCase):
    """Starts a local server and a transport that records its sleeps."""

    def setUp(self):
        self.server = _Server()
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.base = f"http://127.0.0.1:{self.server.server_address[1]}"

        # Ignore proxy settings from the environment for the local server.
        session = requests.Session()
        session.trust_env = False

        self.retry_sleeps = []
        self.delay_sleeps = []
        config = CrawlerConfig(base_url=self.base, user_agent="gallerytrap-test/1.0", request_timeout=5)
        self.transport = Transport(
            config,
            retry=RetryPolicy(attempts=3, interval_seconds=5.0),
            throttle=LoadThrottle(high_threshold=10000, high_delay=300.0, default_delay=1.0,
                                  sleep=self.delay_sleeps.append),
            session=session,
            sleep=self.retry_sleeps.append,
        )

    def tearDown(self):
        self.server.shutdown()
        self.server.server_close()
        self.thread.join(timeout=5)


class TestTransportGet(TransportTestCase):
    """Verify retry and error classification of get()."""

    def test_basic_get(self):
        """A 200 response should return the body bytes."""
        body = self.transport.get(self.base + "/view/103")
        self.assertIn(b"Test Submission 103", body)

    def test_not_found_is_not_retried(self):
        """A 404 should raise NotFoundError after a single request."""
        with self.assertRaises(NotFoundError):
            self.transport.get(self.base + "/view/00000")
        self.assertEqual(self.server.hits["/view/00000"], 1)
        self.assertEqual(self.retry_sleeps, [])

    def test_flaky_server_succeeds_after_retry(self):
        """Two 502s followed by a 200 should succeed on the third attempt."""
        self.server.failures_remaining = 2
        body = self.transport.get(self.base + "/flaky")
        self.assertEqual(body, b"finally")
        self.assertEqual(self.server.hits["/flaky"], 3)
        self.assertEqual(self.retry_sleeps, [5.0, 5.0])

    def test_retries_exhausted_raises_last_failure(self):
        """Too many 502s should raise BadStatusError after all attempts."""
        self.server.failures_remaining = 5
        with self.assertRaises(BadStatusError) as ctx:
            self.transport.get(self.base + "/flaky")
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertIn("502", str(ctx.exception))
        self.assertEqual(self.server.hits["/flaky"], 3)
        self.assertEqual(len(self.retry_sleeps), 2)

    def test_other_status_is_bad_status(self):
        """Non-404 error statuses are bad statuses, retried like 5xx."""
        with self.assertRaises(BadStatusError):
            self.transport.get(self.base + "/forbidden")
        self.assertEqual(self.server.hits["/forbidden"], 3)

    def test_sends_user_agent(self):
        """Every request should carry the configured User-Agent."""
        self.assertEqual(self.transport.get(self.base + "/user-agent"), b"gallerytrap-test/1.0")

    def test_connection_failure_is_transport_failure(self):
        """A refused connection should surface as TransportFailureError."""
        sock = socket.socket()
        sock.bind(("127.0.0.1", 0))
        port = sock.getsockname()[1]
        sock.close()
        with self.assertRaises(TransportFailureError):
            self.transport.get(f"http://127.0.0.1:{port}/view/1")
        self.assertEqual(len(self.retry_sleeps), 2)


class TestTransportGetWithDelay(TransportTestCase):
    """Verify the load-aware delay after a fetch."""

    def test_high_load_triggers_cooldown(self):
        """14541 registered users is above the threshold."""
        self.transport.get_with_delay(self.base + "/view/103")
        self.assertEqual(self.delay_sleeps, [300.0])

    def test_low_load_uses_default_delay(self):
        """900 registered users only needs the short delay."""
        self.transport.get_with_delay(self.base + "/view/104")
        self.assertEqual(self.delay_sleeps, [1.0])

    def test_default_throttle_uses_injected_sleep(self):
        """Without an explicit throttle the transport's sleep covers the delay too."""
        session = requests.Session()
        session.trust_env = False
        sleeps = []
        config = CrawlerConfig(base_url=self.base, request_timeout=5)
        transport = Transport(config, session=session, sleep=sleeps.append)

        transport.get_with_delay(self.base + "/view/104")

        self.assertEqual(sleeps, [config.default_delay])

    def test_missing_figure_still_returns_body(self):
        """Without the figure an error is raised that carries the page."""
        with self.assertRaises(LoadFigureNotFoundError) as ctx:
            self.transport.get_with_delay(self.base + "/view/101")
        self.assertIn(b"Test Submission 101", ctx.exception.body)
        self.assertEqual(self.delay_sleeps, [])

    def test_fetch_errors_propagate_without_delay(self):
        """A 404 should propagate before any delay is taken."""
        with self.assertRaises(NotFoundError):
            self.transport.get_with_delay(self.base + "/view/00000")
        self.assertEqual(self.delay_sleeps, [])


class TestTransportCookies(TransportTestCase):
    """Verify cookies.txt records are sent to matching hosts."""

    def _write_cookies(self, content):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        path = os.path.join(tmp.name, "cookies.txt")
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_loaded_cookies_are_sent(self):
        """Far-future cookies for this host should appear on requests."""
        path = self._write_cookies(
            "# Netscape HTTP Cookie File\n"
            f"127.0.0.1\tTRUE\t/\tFALSE\t{FAR_FUTURE}\ttest_cookie\ttest_value\n"
            f"127.0.0.1\tTRUE\t/\tFALSE\t{FAR_FUTURE}\tanother_cookie\tanother_value\n"
        )
        self.assertEqual(self.transport.load_cookies(path), 2)

        body = self.transport.get(self.base + "/cookies")
        self.assertIn(b"test_cookie=test_value", body)
        self.assertIn(b"another_cookie=another_value", body)

    def test_cookies_for_other_domains_are_not_sent(self):
        """A cookie scoped to another domain must not leak."""
        path = self._write_cookies(f".example.org\tTRUE\t/\tFALSE\t{FAR_FUTURE}\tforeign\tvalue\n")
        self.transport.load_cookies(path)
        self.assertEqual(self.transport.get(self.base + "/cookies"), b"")


if __name__ == "__main__":
    unittest.main()
