from __future__ import annotations


class RetryPolicy:
    """Fixed-interval retry schedule.

    A GET is attempted up to ``attempts`` times with ``interval_seconds``
    between attempts; there is no sleep after the final attempt."""

    def __init__(self, attempts: int = 3, interval_seconds: float = 5.0) -> None:
        self._attempts = max(1, attempts)
        self._interval = max(0.0, interval_seconds)

    @property
    def attempts(self) -> int:
        return self._attempts

    def should_retry(self, attempt: int) -> bool:
        """Return True if another attempt is allowed after ``attempt`` failed."""
        return attempt < self._attempts

    def get_sleep(self, attempt: int) -> float:
        """Seconds to wait before the attempt following ``attempt``."""
        return self._interval
