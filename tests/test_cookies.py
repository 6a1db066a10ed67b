"""Tests for cookies.txt parsing."""

import os
import tempfile
import unittest

from gallerytrap.cookies import load_cookie_file, parse_cookie_line, parse_cookie_lines
from gallerytrap.errors import CookieError, ExpiredCookieError, InvalidCookieError

NOW = 1_700_000_000
FAR_FUTURE = 4070937600
DAY = 24 * 60 * 60


def _line(name="a", expires=FAR_FUTURE, domain=".furaffinity.net", path="/", secure="TRUE", value="v"):
    return "\t".join([domain, "TRUE", path, secure, str(expires), name, value])


class TestParseCookieLine(unittest.TestCase):
    """Verify single-record parsing and rejection rules."""

    def test_parses_all_fields(self):
        """A well-formed record should map onto CookieRecord fields."""
        record = parse_cookie_line(_line(name="b", value="xyz", path="/path", secure="FALSE"), now=NOW)
        self.assertEqual(record.domain, ".furaffinity.net")
        self.assertEqual(record.path, "/path")
        self.assertFalse(record.secure)
        self.assertEqual(record.expires, FAR_FUTURE)
        self.assertEqual(record.name, "b")
        self.assertEqual(record.value, "xyz")

    def test_comments_and_blank_lines_are_skipped(self):
        """Comment and blank lines should produce no record."""
        self.assertIsNone(parse_cookie_line("# Netscape HTTP Cookie File", now=NOW))
        self.assertIsNone(parse_cookie_line("   ", now=NOW))

    def test_wrong_field_count_is_rejected(self):
        """Records without exactly seven fields are malformed."""
        with self.assertRaises(InvalidCookieError):
            parse_cookie_line(".furaffinity.net\tTRUE\t/\tTRUE\t4070937600\tname", now=NOW)

    def test_non_numeric_expiry_is_rejected(self):
        """A non-integer expiry should be rejected, naming the cookie."""
        with self.assertRaises(InvalidCookieError) as ctx:
            parse_cookie_line(_line(name="session", expires="soon"), now=NOW)
        self.assertIn("session", str(ctx.exception))

    def test_cookie_expiring_within_a_week_is_rejected(self):
        """A cookie with under seven days left should be refused by name."""
        with self.assertRaises(ExpiredCookieError) as ctx:
            parse_cookie_line(_line(name="a_cookie", expires=NOW + 6 * DAY), now=NOW)
        self.assertIn("a_cookie", str(ctx.exception))
        self.assertEqual(ctx.exception.name, "a_cookie")

    def test_cookie_expiring_after_a_week_is_accepted(self):
        """Eight days of lifetime is enough."""
        record = parse_cookie_line(_line(expires=NOW + 8 * DAY), now=NOW)
        self.assertIsNotNone(record)

    def test_already_expired_cookie_is_rejected(self):
        """An expiry in the past is rejected too."""
        with self.assertRaises(ExpiredCookieError):
            parse_cookie_line(_line(expires=NOW - DAY), now=NOW)


class TestLoadCookieFile(unittest.TestCase):
    """Verify whole-file loading."""

    def test_loads_records_in_order(self):
        """Every record line should be loaded, comments skipped."""
        lines = ["# Netscape HTTP Cookie File", "", _line(name="a"), _line(name="b")]
        records = parse_cookie_lines(lines, now=NOW)
        self.assertEqual([r.name for r in records], ["a", "b"])

    def test_one_bad_record_fails_the_file(self):
        """A single expiring cookie should fail the whole load."""
        lines = [_line(name="good"), _line(name="bad", expires=NOW + DAY)]
        with self.assertRaises(ExpiredCookieError):
            parse_cookie_lines(lines, now=NOW)

    def test_reads_file_from_disk(self):
        """load_cookie_file should parse a real file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "cookies.txt")
            with open(path, "w", encoding="utf-8") as f:
                f.write("# Netscape HTTP Cookie File\n" + _line(name="a") + "\n")
            records = load_cookie_file(path)
        self.assertEqual(len(records), 1)

    def test_missing_file_is_a_cookie_error(self):
        """A nonexistent file should raise CookieError."""
        with self.assertRaises(CookieError):
            load_cookie_file("nonexistent-cookies.txt")


if __name__ == "__main__":
    unittest.main()
