"""Database module for the shortlink service.

This module handles SQLite storage of links and click events. A ``Database``
is opened once per process by the application lifespan and handed to the
services explicitly; there is no module-level instance.
"""

import sqlite3
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS links (
    id TEXT PRIMARY KEY,
    short_code TEXT NOT NULL UNIQUE,
    original_url TEXT NOT NULL,
    title TEXT,
    description TEXT,
    clicks INTEGER NOT NULL DEFAULT 0 CHECK (clicks >= 0),
    is_active INTEGER NOT NULL DEFAULT 1,
    expires_at TEXT,
    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
CREATE TABLE IF NOT EXISTS click_events (
    id TEXT PRIMARY KEY,
    link_id TEXT NOT NULL REFERENCES links(id) ON DELETE CASCADE,
    ip_address TEXT,
    user_agent TEXT,
    referer TEXT,
    device_type TEXT,
    browser TEXT,
    os TEXT,
    clicked_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
CREATE INDEX IF NOT EXISTS idx_links_created_at ON links(created_at);
CREATE INDEX IF NOT EXISTS idx_click_events_link ON click_events(link_id, clicked_at);
"""

# Columns a click summary may be grouped by
GROUPABLE_CLICK_COLUMNS = ("device_type", "browser", "os")


def to_utc(value: datetime) -> datetime:
    """Convert a datetime to aware UTC, taking naive values to be UTC.

    Raises:
        OverflowError: The UTC instant falls outside the datetime range,
            e.g. ``9999-12-31T23:59:59-05:00``.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_store_timestamp(value: datetime) -> str:
    """Format a datetime the way the store writes its own timestamps.

    Naive datetimes are taken to be UTC.

    Args:
        value: Datetime to format.

    Returns:
        ISO-8601 UTC string with millisecond precision and a ``Z`` suffix.
    """
    value = to_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _unicode_lower(value: Optional[str]) -> Optional[str]:
    # SQLite's LOWER() only folds ASCII letters
    return value.lower() if value is not None else None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Database:
    """Database class for managing the SQLite connection and operations."""

    def __init__(self, db_path: str):
        """Initialize database handle.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory database.
        """
        self.db_path = db_path
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def connect(self) -> None:
        """Open the connection and create tables if needed."""
        if self._connection is not None:
            return
        # Background click writes run on worker threads, so the connection
        # is shared across threads and serialized by ``_lock``.
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._connection.execute("PRAGMA foreign_keys = ON")
        self._connection.create_function(
            "unicode_lower", 1, _unicode_lower, deterministic=True
        )
        self.init_db()
        logger.info(f"Connected to database: {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.info("Database connection closed")

    @property
    def is_connected(self) -> bool:
        return self._connection is not None

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            raise RuntimeError("Database is not connected")
        return self._connection

    def init_db(self) -> None:
        """Initialize database tables."""
        with self._lock:
            conn = self._get_connection()
            try:
                conn.executescript(SCHEMA_SQL)
                conn.commit()
                logger.info("Database initialized successfully")
            except sqlite3.Error as e:
                logger.error(f"Database initialization failed: {e}")
                raise

    def execute(
        self, query: str, params: tuple = (), fetch: bool = False
    ) -> Optional[list[dict]]:
        """Execute a SQL statement and commit.

        Args:
            query: SQL query string.
            params: Query parameters.
            fetch: Whether to fetch results (also used with ``RETURNING``).

        Returns:
            Query results as dicts if fetch=True, None otherwise.
        """
        with self._lock:
            conn = self._get_connection()
            try:
                cursor = conn.cursor()
                cursor.execute(query, params)
                results = [dict(row) for row in cursor.fetchall()] if fetch else None
                conn.commit()
                return results
            except sqlite3.IntegrityError:
                conn.rollback()
                raise
            except sqlite3.Error as e:
                conn.rollback()
                logger.error(f"Query execution failed: {e}")
                raise

    # Links

    def short_code_exists(self, short_code: str) -> bool:
        """Check if a short code has ever been taken, deleted links included.

        Args:
            short_code: The short code.

        Returns:
            True if exists, False otherwise.
        """
        query = "SELECT 1 FROM links WHERE short_code = ?"
        results = self.execute(query, (short_code,), fetch=True)
        return bool(results)

    def create_link(
        self,
        short_code: str,
        original_url: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        expires_at: Optional[datetime] = None,
    ) -> Optional[dict]:
        """Insert a new link.

        The unique constraint on ``short_code`` is the authority on
        uniqueness; a rejected insert returns None instead of raising.

        Returns:
            Created link record, or None if the short code is taken.
        """
        query = """
        INSERT INTO links (id, short_code, original_url, title, description, expires_at)
        VALUES (?, ?, ?, ?, ?, ?)
        RETURNING *
        """
        params = (
            uuid.uuid4().hex,
            short_code,
            original_url,
            title,
            description,
            to_store_timestamp(expires_at) if expires_at else None,
        )
        try:
            results = self.execute(query, params, fetch=True)
        except sqlite3.IntegrityError as e:
            logger.warning(f"Insert rejected for short code {short_code}: {e}")
            return None
        logger.info(f"Created short link: {short_code}")
        return results[0]

    def get_link_by_code(self, short_code: str) -> Optional[dict]:
        """Get a link by short code whatever its state.

        Args:
            short_code: The short code.

        Returns:
            Link record or None if not found.
        """
        query = "SELECT * FROM links WHERE short_code = ?"
        results = self.execute(query, (short_code,), fetch=True)
        return results[0] if results else None

    def list_links(
        self, offset: int, limit: int, search: Optional[str] = None
    ) -> tuple[list[dict], int]:
        """Get a page of links, newest first, and the total match count.

        Args:
            offset: Number of rows to skip.
            limit: Page size.
            search: Case-insensitive substring of code, URL or title.

        Returns:
            Tuple of (link records, total matching links).
        """
        where = ""
        params: tuple = ()
        if search:
            pattern = f"%{_escape_like(search.lower())}%"
            where = """
            WHERE unicode_lower(short_code) LIKE ? ESCAPE '\\'
               OR unicode_lower(original_url) LIKE ? ESCAPE '\\'
               OR unicode_lower(COALESCE(title, '')) LIKE ? ESCAPE '\\'
            """
            params = (pattern, pattern, pattern)

        with self._lock:
            total = self.execute(
                f"SELECT COUNT(*) AS total FROM links {where}", params, fetch=True
            )[0]["total"]
            rows = self.execute(
                f"SELECT * FROM links {where} "
                "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
                params + (limit, offset),
                fetch=True,
            )
        return rows, total

    def deactivate_link(self, short_code: str) -> bool:
        """Soft delete a link (mark as inactive).

        Args:
            short_code: The short code.

        Returns:
            True if an active link was deactivated, False otherwise.
        """
        query = """
        UPDATE links
        SET is_active = 0, updated_at = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
        WHERE short_code = ? AND is_active = 1
        RETURNING id
        """
        deactivated = bool(self.execute(query, (short_code,), fetch=True))
        if deactivated:
            logger.info(f"Deactivated short link: {short_code}")
        return deactivated

    def increment_clicks(self, link_id: str) -> Optional[int]:
        """Atomically increment the click counter of an active link.

        Args:
            link_id: The link ID.

        Returns:
            The new click count, or None if the link is gone or inactive.
        """
        query = """
        UPDATE links
        SET clicks = clicks + 1
        WHERE id = ? AND is_active = 1
        RETURNING clicks
        """
        results = self.execute(query, (link_id,), fetch=True)
        return results[0]["clicks"] if results else None

    # Click events

    def create_click_event(
        self,
        link_id: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        device_type: Optional[str] = None,
        browser: Optional[str] = None,
        os: Optional[str] = None,
    ) -> dict:
        """Insert a click event for a link.

        Returns:
            Created click event record.
        """
        query = """
        INSERT INTO click_events
            (id, link_id, ip_address, user_agent, referer, device_type, browser, os)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        RETURNING *
        """
        params = (
            uuid.uuid4().hex,
            link_id,
            ip_address,
            user_agent,
            referer,
            device_type,
            browser,
            os,
        )
        return self.execute(query, params, fetch=True)[0]

    def _click_filter(
        self,
        link_id: str,
        start: Optional[datetime],
        end: Optional[datetime],
    ) -> tuple[str, tuple]:
        clauses = ["link_id = ?"]
        params: list = [link_id]
        if start is not None:
            clauses.append("clicked_at >= ?")
            params.append(to_store_timestamp(start))
        if end is not None:
            clauses.append("clicked_at <= ?")
            params.append(to_store_timestamp(end))
        return " AND ".join(clauses), tuple(params)

    def get_click_events(
        self,
        link_id: str,
        offset: int = 0,
        limit: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[dict]:
        """Get click events of a link, newest first.

        Args:
            link_id: The link ID.
            offset: Number of rows to skip.
            limit: Page size, or None for all events.
            start: Earliest ``clicked_at`` to include.
            end: Latest ``clicked_at`` to include.

        Returns:
            List of click event records.
        """
        where, params = self._click_filter(link_id, start, end)
        query = (
            f"SELECT * FROM click_events WHERE {where} "
            "ORDER BY clicked_at DESC, rowid DESC LIMIT ? OFFSET ?"
        )
        return self.execute(
            query, params + (-1 if limit is None else limit, offset), fetch=True
        )

    def count_click_events(
        self,
        link_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> int:
        """Count click events of a link in an optional date range."""
        where, params = self._click_filter(link_id, start, end)
        query = f"SELECT COUNT(*) AS total FROM click_events WHERE {where}"
        return self.execute(query, params, fetch=True)[0]["total"]

    def count_click_events_by(self, link_id: str, column: str) -> dict[str, int]:
        """Count click events of a link grouped by one derived column.

        Args:
            link_id: The link ID.
            column: One of ``device_type``, ``browser`` or ``os``.

        Returns:
            Mapping of column value ("Unknown" for missing) to count.
        """
        if column not in GROUPABLE_CLICK_COLUMNS:
            raise ValueError(f"Cannot group click events by {column!r}")
        query = (
            f"SELECT COALESCE({column}, 'Unknown') AS value, COUNT(*) AS total "
            f"FROM click_events WHERE link_id = ? GROUP BY value ORDER BY total DESC"
        )
        rows = self.execute(query, (link_id,), fetch=True)
        return {row["value"]: row["total"] for row in rows}
