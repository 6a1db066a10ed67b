from __future__ import annotations

import time
from typing import Iterable, List, Optional

from .errors import CookieError, ExpiredCookieError, InvalidCookieError
from .models import CookieRecord

# domain, flag, path, secure, expiration, name, value
COOKIES_TXT_FIELD_COUNT = 7

# Longest we expect to run unattended. A cookie dying mid-run would silently
# drop logged-in-only submissions, so refuse it up front.
MIN_COOKIE_LIFETIME_SECS = 7 * 24 * 60 * 60


def parse_cookie_line(line: str, now: Optional[float] = None) -> Optional[CookieRecord]:
    """Parse one cookies.txt line. Comments and blank lines yield None."""
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    parts = line.split("\t")
    if len(parts) != COOKIES_TXT_FIELD_COUNT:
        raise InvalidCookieError(f"invalid cookie format: {line}")

    domain, _flag, path, secure, expiration, name, value = parts

    try:
        expires = int(expiration)
    except ValueError:
        raise InvalidCookieError(f"invalid expiration time for cookie {name}: {expiration!r}") from None

    now = time.time() if now is None else now
    if expires < now + MIN_COOKIE_LIFETIME_SECS:
        raise ExpiredCookieError(name)

    return CookieRecord(
        domain=domain,
        path=path,
        secure=secure.upper() == "TRUE",
        expires=expires,
        name=name,
        value=value,
    )


def parse_cookie_lines(lines: Iterable[str], now: Optional[float] = None) -> List[CookieRecord]:
    records: List[CookieRecord] = []
    for line in lines:
        record = parse_cookie_line(line, now=now)
        if record is not None:
            records.append(record)
    return records


def load_cookie_file(path: str, now: Optional[float] = None) -> List[CookieRecord]:
    """Read a Netscape/Mozilla cookies.txt file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_cookie_lines(f, now=now)
    except OSError as exc:
        raise CookieError(f"failed to read cookies file {path}: {exc}") from exc
