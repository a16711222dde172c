"""
FeedSync Database Schema
========================

SQLite database schema with foreign key cascades and indexes.

Tables:
- feeds: subscribed feeds, unique by URL
- entries: articles, unique by URL across all feeds
- favorites / pins: 1:1 marker rows, cascade-deleted with their entry
"""

import sqlite3
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"entries", "favorites", "feeds", "pins"}


class DatabaseSchema:
    """Database schema manager for the FeedSync SQLite database."""

    def __init__(self, db_path: str = "data/feedsync.db"):
        """Initialize database schema manager.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables with proper schema."""
        conn = sqlite3.connect(self.db_path)
        try:
            conn.execute("PRAGMA foreign_keys = ON")

            # Create tables in dependency order
            self._create_feeds_table(conn)
            self._create_entries_table(conn)
            self._create_favorites_table(conn)
            self._create_pins_table(conn)

            self._run_migrations(conn)
            self._create_indexes(conn)

            conn.commit()
            logger.info("Database schema created successfully")
        finally:
            conn.close()

    def _create_feeds_table(self, conn: sqlite3.Connection) -> None:
        """Create feeds table."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS feeds (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                url TEXT NOT NULL UNIQUE,
                title TEXT NOT NULL,
                description TEXT,
                priority INTEGER NOT NULL DEFAULT 0 CHECK (priority BETWEEN 0 AND 5),
                last_updated_at TIMESTAMP,
                created_at TIMESTAMP NOT NULL
            )
        """
        )

    def _create_entries_table(self, conn: sqlite3.Connection) -> None:
        """Create entries table. URL uniqueness is a safety net only."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS entries (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                feed_id INTEGER NOT NULL,
                title TEXT NOT NULL,
                url TEXT NOT NULL UNIQUE,
                content TEXT,
                summary TEXT,
                author TEXT,
                published_at TIMESTAMP NOT NULL,
                is_read BOOLEAN NOT NULL DEFAULT FALSE,
                thumbnail_url TEXT,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,
                FOREIGN KEY (feed_id) REFERENCES feeds(id) ON DELETE CASCADE
            )
        """
        )

    def _create_favorites_table(self, conn: sqlite3.Connection) -> None:
        """Create favorites marker table."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS favorites (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entry_id INTEGER NOT NULL UNIQUE,
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY (entry_id) REFERENCES entries(id) ON DELETE CASCADE
            )
        """
        )

    def _create_pins_table(self, conn: sqlite3.Connection) -> None:
        """Create pins marker table."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS pins (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entry_id INTEGER NOT NULL UNIQUE,
                created_at TIMESTAMP NOT NULL,
                FOREIGN KEY (entry_id) REFERENCES entries(id) ON DELETE CASCADE
            )
        """
        )

    def _create_indexes(self, conn: sqlite3.Connection) -> None:
        """Create database indexes for common queries."""
        indexes = [
            "CREATE INDEX IF NOT EXISTS idx_entries_feed ON entries(feed_id)",
            "CREATE INDEX IF NOT EXISTS idx_entries_published ON entries(published_at)",
            "CREATE INDEX IF NOT EXISTS idx_entries_feed_read ON entries(feed_id, is_read)",
            "CREATE INDEX IF NOT EXISTS idx_feeds_priority ON feeds(priority)",
        ]

        for index_sql in indexes:
            conn.execute(index_sql)

    def _run_migrations(self, conn: sqlite3.Connection) -> None:
        """Run database migrations for existing databases."""
        cursor = conn.execute("PRAGMA table_info(feeds)")
        feed_columns = [column[1] for column in cursor.fetchall()]

        # Migration 1: feed priority (older databases predate it)
        if "priority" not in feed_columns:
            logger.info("Adding priority column to feeds table")
            conn.execute(
                "ALTER TABLE feeds ADD COLUMN priority INTEGER NOT NULL DEFAULT 0"
            )

    def drop_tables(self) -> None:
        """Drop all tables (for testing/reset purposes)."""
        conn = sqlite3.connect(self.db_path)
        try:
            # Drop in reverse dependency order
            for table in ["pins", "favorites", "entries", "feeds"]:
                conn.execute(f"DROP TABLE IF EXISTS {table}")

            conn.commit()
            logger.info("All database tables dropped")
        finally:
            conn.close()

    def verify_schema(self) -> bool:
        """Verify database schema is correctly created."""
        try:
            conn = sqlite3.connect(self.db_path)
            try:
                cursor = conn.execute(
                    """
                    SELECT name FROM sqlite_master
                    WHERE type='table' AND name NOT LIKE 'sqlite_%'
                """
                )
                tables = {row[0] for row in cursor.fetchall()}
            finally:
                conn.close()

            if not EXPECTED_TABLES.issubset(tables):
                logger.error(
                    f"Missing tables. Expected: {EXPECTED_TABLES}, Found: {tables}"
                )
                return False

            logger.info("Database schema verification passed")
            return True

        except sqlite3.Error as e:
            logger.error(f"Schema verification failed: {e}")
            return False


def create_tables(db_path: str = "data/feedsync.db") -> None:
    """Convenience function to create database tables.

    Args:
        db_path: Path to SQLite database file
    """
    schema = DatabaseSchema(db_path)
    schema.create_tables()
