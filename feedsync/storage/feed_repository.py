"""
Feed Repository
===============

Repository pattern implementation for feed data management.
Provides database abstraction layer for feed CRUD operations.
"""

import sqlite3
from typing import List, Optional

from ..database.connection import DatabaseConnection
from ..database.models import Feed, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode

UPDATABLE_FIELDS = ("title", "description", "priority", "last_updated_at")


class FeedRepository:
    """Repository for managing feed rows in the database."""

    def __init__(self, db_connection: DatabaseConnection):
        """Initialize feed repository.

        Args:
            db_connection: Database connection manager
        """
        self.db = db_connection
        self.logger = get_logger_for_component("feed_repository")

    def create_feed(self, feed: Feed) -> Feed:
        """Create a new feed in the database.

        Args:
            feed: Feed object to create

        Returns:
            The stored feed, with its assigned ID

        Raises:
            DatabaseError: If the insert fails (including a duplicate URL)
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO feeds (url, title, description, priority, last_updated_at, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (
                        feed.url,
                        feed.title,
                        feed.description,
                        feed.priority,
                        to_db_timestamp(feed.last_updated_at),
                        to_db_timestamp(feed.created_at or utc_now()),
                    ),
                )
                feed_id = cursor.lastrowid
                conn.commit()

        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Feed URL already stored: {feed.url}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            self.logger.error(f"Failed to create feed: {e}")
            raise DatabaseError(
                f"Failed to create feed: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        self.logger.info(f"Created feed {feed_id}: {feed.url}")
        return feed.model_copy(update={"id": feed_id})

    def get_feed_by_id(self, feed_id: int) -> Optional[Feed]:
        """Get feed by ID."""
        row = self._fetch_one("SELECT * FROM feeds WHERE id = ?", (feed_id,))
        return self._row_to_feed(row) if row else None

    def get_feed_by_url(self, url: str) -> Optional[Feed]:
        """Get feed by its source URL."""
        row = self._fetch_one("SELECT * FROM feeds WHERE url = ?", (url.strip(),))
        return self._row_to_feed(row) if row else None

    def get_all_feeds(self) -> List[Feed]:
        """Get all feeds in creation order."""
        try:
            with self.db.get_connection() as conn:
                rows = conn.execute("SELECT * FROM feeds ORDER BY id").fetchall()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list feeds: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return [self._row_to_feed(row) for row in rows]

    def update_feed(self, feed_id: int, **kwargs) -> Optional[Feed]:
        """Update feed fields.

        Only title, description, priority and last_updated_at can change;
        the URL is immutable.

        Args:
            feed_id: Feed ID
            **kwargs: Fields to update

        Returns:
            Updated feed, or None if no feed has that ID
        """
        fields = []
        values = []

        for field, value in kwargs.items():
            if field not in UPDATABLE_FIELDS:
                self.logger.warning(f"Ignoring non-updatable feed field: {field}")
                continue
            if field == "last_updated_at":
                value = to_db_timestamp(value)
            fields.append(f"{field} = ?")
            values.append(value)

        if not fields:
            return self.get_feed_by_id(feed_id)

        values.append(feed_id)
        query = f"UPDATE feeds SET {', '.join(fields)} WHERE id = ?"

        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(query, values)
                conn.commit()
                updated = cursor.rowcount > 0
        except sqlite3.Error as e:
            self.logger.error(f"Failed to update feed {feed_id}: {e}")
            raise DatabaseError(
                f"Failed to update feed {feed_id}: {e}",
                query=query,
                error_code=ErrorCode.DATABASE_ERROR,
            ) from e

        if not updated:
            self.logger.warning(f"No feed found with ID {feed_id}")
            return None

        return self.get_feed_by_id(feed_id)

    def delete_feed(self, feed_id: int) -> bool:
        """Delete a feed and all of its entries in one transaction.

        Favorite and pin markers go with the entries via FK cascade.

        Returns:
            True if a feed was deleted
        """
        try:
            with self.db.transaction() as conn:
                entries = conn.execute(
                    "DELETE FROM entries WHERE feed_id = ?", (feed_id,)
                ).rowcount
                cursor = conn.execute("DELETE FROM feeds WHERE id = ?", (feed_id,))
                deleted = cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to delete feed {feed_id}: {e}",
                error_code=ErrorCode.DATABASE_TRANSACTION,
            ) from e

        if deleted:
            self.logger.info(f"Deleted feed {feed_id} with {entries} entries")
        else:
            self.logger.warning(f"No feed found with ID {feed_id}")
        return deleted

    def _fetch_one(self, query: str, params: tuple):
        try:
            with self.db.get_connection() as conn:
                return conn.execute(query, params).fetchone()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Feed lookup failed: {e}", query=query, error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def _row_to_feed(self, row) -> Feed:
        """Convert database row to Feed object."""
        return Feed(
            id=row["id"],
            url=row["url"],
            title=row["title"],
            description=row["description"],
            priority=row["priority"],
            last_updated_at=row["last_updated_at"],
            created_at=row["created_at"],
        )
