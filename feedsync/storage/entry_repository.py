"""
Entry Repository
================

Repository pattern implementation for Entry CRUD operations with proper
error handling and data access abstraction.
"""

import sqlite3
from typing import List, Optional, Dict

from ..database.connection import DatabaseConnection
from ..database.models import Entry, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, DuplicateEntryError, ErrorCode

# Origin fields (feed_id, url, published_at) never change after insert
UPDATABLE_FIELDS = ("title", "content", "summary", "author", "thumbnail_url", "is_read")


class EntryRepository:
    """Repository for Entry CRUD operations with database abstraction."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize entry repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("entry_repository")

    def create_entry(self, entry: Entry) -> Entry:
        """Create a new entry.

        Args:
            entry: Entry model to create

        Returns:
            The stored entry, with its assigned ID

        Raises:
            DuplicateEntryError: If the URL is already stored
            DatabaseError: If creation fails
        """
        now = utc_now()
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO entries (feed_id, title, url, content, summary, author,
                                         published_at, is_read, thumbnail_url, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        entry.feed_id, entry.title, entry.url, entry.content,
                        entry.summary, entry.author, to_db_timestamp(entry.published_at),
                        entry.is_read, entry.thumbnail_url,
                        to_db_timestamp(now), to_db_timestamp(now),
                    )
                )
                entry_id = cursor.lastrowid
                conn.commit()

        except sqlite3.IntegrityError as e:
            if "entries.url" in str(e):
                raise DuplicateEntryError(
                    f"Entry URL already stored: {entry.url}", entry_url=entry.url
                ) from e
            raise DatabaseError(
                f"Failed to create entry: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to create entry: {e}",
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.debug(f"Created entry {entry_id}: {entry.url}")
        return entry.model_copy(update={"id": entry_id, "created_at": now, "updated_at": now})

    def get_entry(self, entry_id: int) -> Optional[Entry]:
        """Get entry by ID."""
        row = self._fetch_one("SELECT * FROM entries WHERE id = ?", (entry_id,))
        return self._row_to_entry(row) if row else None

    def get_entry_by_url(self, url: str) -> Optional[Entry]:
        """Get entry by its canonical URL (unique across all feeds)."""
        row = self._fetch_one("SELECT * FROM entries WHERE url = ?", (url,))
        return self._row_to_entry(row) if row else None

    def get_entries(
        self,
        feed_id: Optional[int] = None,
        is_read: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Entry]:
        """Get entries, newest first.

        Args:
            feed_id: Only entries owned by this feed
            is_read: Only read (True) or unread (False) entries
            limit: Maximum number of entries to return
            offset: Number of entries to skip (requires limit)

        Returns:
            List of Entry models
        """
        query = "SELECT * FROM entries WHERE 1=1"
        params: list = []

        if feed_id is not None:
            query += " AND feed_id = ?"
            params.append(feed_id)

        if is_read is not None:
            query += " AND is_read = ?"
            params.append(1 if is_read else 0)

        query += " ORDER BY published_at DESC, id DESC"

        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
            if offset is not None:
                query += " OFFSET ?"
                params.append(offset)

        return [self._row_to_entry(row) for row in self._fetch_all(query, tuple(params))]

    def get_entries_by_ids(self, entry_ids: List[int]) -> List[Entry]:
        """Get entries by ID, preserving the order of ``entry_ids``."""
        if not entry_ids:
            return []

        placeholders = ", ".join("?" for _ in entry_ids)
        rows = self._fetch_all(
            f"SELECT * FROM entries WHERE id IN ({placeholders})", tuple(entry_ids)
        )
        by_id = {row["id"]: self._row_to_entry(row) for row in rows}
        return [by_id[entry_id] for entry_id in entry_ids if entry_id in by_id]

    def update_entry(self, entry_id: int, **kwargs) -> Optional[Entry]:
        """Update mutable entry fields in place.

        The row keeps its ID, so favorite and pin markers survive.

        Returns:
            Updated entry, or None if no entry has that ID
        """
        fields = []
        values = []

        for field, value in kwargs.items():
            if field not in UPDATABLE_FIELDS:
                self.logger.warning(f"Ignoring non-updatable entry field: {field}")
                continue
            fields.append(f"{field} = ?")
            values.append(value)

        if not fields:
            return self.get_entry(entry_id)

        fields.append("updated_at = ?")
        values.append(to_db_timestamp(utc_now()))
        values.append(entry_id)
        query = f"UPDATE entries SET {', '.join(fields)} WHERE id = ?"

        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(query, values)
                conn.commit()
                updated = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to update entry {entry_id}: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return self.get_entry(entry_id) if updated else None

    def delete_entry(self, entry_id: int) -> bool:
        """Delete a single entry (markers cascade)."""
        return self._execute_write("DELETE FROM entries WHERE id = ?", (entry_id,)) > 0

    def delete_entries_by_feed(self, feed_id: int) -> int:
        """Delete every entry owned by a feed.

        Returns:
            Number of entries deleted
        """
        deleted = self._execute_write("DELETE FROM entries WHERE feed_id = ?", (feed_id,))
        self.logger.info(f"Deleted {deleted} entries for feed {feed_id}")
        return deleted

    def count_by_feed(self, feed_id: int) -> int:
        """Number of entries owned by a feed."""
        row = self._fetch_one("SELECT COUNT(*) AS count FROM entries WHERE feed_id = ?", (feed_id,))
        return row["count"]

    def count_unread(self, feed_id: Optional[int] = None) -> int:
        """Number of unread entries, optionally for one feed."""
        query = "SELECT COUNT(*) AS count FROM entries WHERE is_read = 0"
        params: tuple = ()
        if feed_id is not None:
            query += " AND feed_id = ?"
            params = (feed_id,)
        return self._fetch_one(query, params)["count"]

    def get_unread_counts_by_feed(self) -> Dict[int, int]:
        """Unread entry count keyed by feed ID (feeds with none are omitted)."""
        rows = self._fetch_all(
            "SELECT feed_id, COUNT(*) AS count FROM entries WHERE is_read = 0 GROUP BY feed_id",
            (),
        )
        return {row["feed_id"]: row["count"] for row in rows}

    def mark_all_read(self, feed_id: Optional[int] = None) -> int:
        """Mark unread entries as read, optionally for one feed.

        Returns:
            Number of entries changed
        """
        query = "UPDATE entries SET is_read = 1, updated_at = ? WHERE is_read = 0"
        params: list = [to_db_timestamp(utc_now())]
        if feed_id is not None:
            query += " AND feed_id = ?"
            params.append(feed_id)
        return self._execute_write(query, tuple(params))

    def _fetch_one(self, query: str, params: tuple):
        try:
            with self.db.get_connection() as conn:
                return conn.execute(query, params).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Entry query failed: {e}", query=query, error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _fetch_all(self, query: str, params: tuple):
        try:
            with self.db.get_connection() as conn:
                return conn.execute(query, params).fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Entry query failed: {e}", query=query, error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _execute_write(self, query: str, params: tuple) -> int:
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(query, params)
                conn.commit()
                return cursor.rowcount
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Entry write failed: {e}", query=query, error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _row_to_entry(self, row) -> Entry:
        """Convert database row to Entry object."""
        data = dict(row)
        data["is_read"] = bool(data["is_read"])
        return Entry(**data)
