"""SQLite-backed rate limiting for booking submissions."""

import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path

from strandly.errors import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Sliding-window request counter keyed by client identifier.

    Limits:
    - ``hourly_limit`` requests per key in the last hour
    - ``daily_limit`` requests per key in the last 24 hours
    """

    def __init__(
        self,
        db_path: str | Path = "rate_limits.db",
        hourly_limit: int = 5,
        daily_limit: int = 20,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.db_path = str(db_path)
        self.hourly_limit = hourly_limit
        self.daily_limit = daily_limit
        self._clock = clock
        # A shared connection keeps ":memory:" databases alive between calls
        self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self._init_db()

    def _init_db(self) -> None:
        """Initialize the rate limit database with required tables."""
        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS rate_limits (
                key TEXT NOT NULL,
                timestamp TEXT NOT NULL
            )
        """)
        self._conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_rate_limits_key ON rate_limits (key, timestamp)"
        )
        self._conn.commit()
        logger.info(f"Rate limit database initialized at {self.db_path}")

    def close(self) -> None:
        self._conn.close()

    def count(self, key: str, hours: int) -> int:
        """Get the number of requests for a key in the last N hours."""
        cutoff = (self._clock() - timedelta(hours=hours)).isoformat()
        cursor = self._conn.execute(
            """
            SELECT COUNT(*) FROM rate_limits
            WHERE key = ? AND timestamp > ?
        """,
            (key, cutoff),
        )
        return cursor.fetchone()[0]

    def record(self, key: str) -> None:
        timestamp = self._clock().isoformat()
        self._conn.execute(
            "INSERT INTO rate_limits (key, timestamp) VALUES (?, ?)",
            (key, timestamp),
        )
        self._conn.commit()
        logger.debug(f"Recorded request for {key} at {timestamp}")

    def cleanup_old_records(self) -> int:
        """Delete records older than 24 hours.

        Returns:
            Number of deleted rows
        """
        cutoff = (self._clock() - timedelta(hours=24)).isoformat()
        cursor = self._conn.execute(
            "DELETE FROM rate_limits WHERE timestamp < ?", (cutoff,)
        )
        self._conn.commit()

        deleted = cursor.rowcount
        if deleted > 0:
            logger.info(f"Cleaned up {deleted} old rate limit records")
        return deleted

    def check(self, key: str) -> None:
        """Count a request against the limits.

        Raises:
            RateLimitExceededError: If the hourly or daily limit is reached
        """
        self.cleanup_old_records()

        hourly_count = self.count(key, hours=1)
        if hourly_count >= self.hourly_limit:
            logger.warning(
                f"Rate limit exceeded for {key}: {hourly_count}/{self.hourly_limit} per hour"
            )
            msg = (
                f"Too many booking requests in the last hour "
                f"(limit: {self.hourly_limit}). Please try again later."
            )
            raise RateLimitExceededError(msg)

        daily_count = self.count(key, hours=24)
        if daily_count >= self.daily_limit:
            logger.warning(
                f"Rate limit exceeded for {key}: {daily_count}/{self.daily_limit} per day"
            )
            msg = (
                f"Too many booking requests today "
                f"(limit: {self.daily_limit}). Please try again tomorrow."
            )
            raise RateLimitExceededError(msg)

        self.record(key)
