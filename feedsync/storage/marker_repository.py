"""
Marker Repositories
===================

Favorite and pin markers: one row per entry, toggled independently and
removed by FK cascade when the entry is deleted.
"""

import sqlite3
from typing import List, Type, Union

from ..database.connection import DatabaseConnection
from ..database.models import Favorite, Pin, utc_now, to_db_timestamp
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DatabaseError, ErrorCode


class MarkerRepository:
    """Shared CRUD for 1:1 entry marker tables."""

    table: str = ""
    model: Type[Union[Favorite, Pin]] = Favorite

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.logger = get_logger_for_component(f"{self.table}_repository")

    def add(self, entry_id: int) -> Union[Favorite, Pin]:
        """Mark an entry.

        Raises:
            DatabaseError: If the entry does not exist or is already marked
        """
        created_at = utc_now()
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    f"INSERT INTO {self.table} (entry_id, created_at) VALUES (?, ?)",
                    (entry_id, to_db_timestamp(created_at)),
                )
                marker_id = cursor.lastrowid
                conn.commit()
        except sqlite3.IntegrityError as e:
            raise DatabaseError(
                f"Cannot add {self.table} marker for entry {entry_id}: {e}",
                error_code=ErrorCode.DATABASE_CONSTRAINT,
                recoverable=False,
            ) from e
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to add {self.table} marker: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

        return self.model(id=marker_id, entry_id=entry_id, created_at=created_at)

    def remove(self, entry_id: int) -> bool:
        """Unmark an entry. Returns True if a marker was removed."""
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(
                    f"DELETE FROM {self.table} WHERE entry_id = ?", (entry_id,)
                )
                conn.commit()
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to remove {self.table} marker: {e}", error_code=ErrorCode.DATABASE_ERROR
            ) from e

    def exists(self, entry_id: int) -> bool:
        row = self.db.execute_one(
            f"SELECT 1 FROM {self.table} WHERE entry_id = ?", (entry_id,)
        )
        return row is not None

    def toggle(self, entry_id: int) -> bool:
        """Flip the marker for an entry.

        Returns:
            The new state (True when now marked)
        """
        if self.remove(entry_id):
            return False
        self.add(entry_id)
        return True

    def get_entry_ids(self) -> List[int]:
        """Marked entry IDs, most recently marked first."""
        rows = self.db.execute_query(
            f"SELECT entry_id FROM {self.table} ORDER BY created_at DESC, id DESC"
        )
        return [row["entry_id"] for row in rows]

    def count(self) -> int:
        return self.db.execute_one(f"SELECT COUNT(*) AS count FROM {self.table}")["count"]


class FavoriteRepository(MarkerRepository):
    """Favorite markers."""

    table = "favorites"
    model = Favorite


class PinRepository(MarkerRepository):
    """Pin markers."""

    table = "pins"
    model = Pin
