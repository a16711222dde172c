"""
Catalog Repository
==================

The narrow storage contract the sync engine depends on, plus its SQLite
implementation built from the feed and entry repositories.

All calls are synchronous; the engine never awaits storage.
"""

from typing import List, Optional, Protocol

from ..database.connection import DatabaseConnection
from ..database.models import Feed, Entry
from .feed_repository import FeedRepository
from .entry_repository import EntryRepository


class CatalogRepository(Protocol):
    """Find/create/update/delete for feeds and entries."""

    def find_feed_by_url(self, url: str) -> Optional[Feed]: ...

    def find_feed_by_id(self, feed_id: int) -> Optional[Feed]: ...

    def create_feed(self, feed: Feed) -> Feed: ...

    def update_feed(self, feed_id: int, **fields) -> Optional[Feed]: ...

    def delete_feed(self, feed_id: int) -> bool: ...

    def list_feeds(self) -> List[Feed]: ...

    def find_entry_by_url(self, url: str) -> Optional[Entry]: ...

    def create_entry(self, entry: Entry) -> Entry: ...

    def update_entry(self, entry_id: int, **fields) -> Optional[Entry]: ...

    def delete_entries_by_feed(self, feed_id: int) -> int: ...

    def count_entries_by_feed(self, feed_id: int) -> int: ...


class SQLiteCatalog:
    """CatalogRepository backed by the SQLite feed and entry tables."""

    def __init__(self, db_connection: DatabaseConnection):
        self.db = db_connection
        self.feeds = FeedRepository(db_connection)
        self.entries = EntryRepository(db_connection)

    def find_feed_by_url(self, url: str) -> Optional[Feed]:
        return self.feeds.get_feed_by_url(url)

    def find_feed_by_id(self, feed_id: int) -> Optional[Feed]:
        return self.feeds.get_feed_by_id(feed_id)

    def create_feed(self, feed: Feed) -> Feed:
        return self.feeds.create_feed(feed)

    def update_feed(self, feed_id: int, **fields) -> Optional[Feed]:
        return self.feeds.update_feed(feed_id, **fields)

    def delete_feed(self, feed_id: int) -> bool:
        # Entries are removed in the same transaction
        return self.feeds.delete_feed(feed_id)

    def list_feeds(self) -> List[Feed]:
        return self.feeds.get_all_feeds()

    def find_entry_by_url(self, url: str) -> Optional[Entry]:
        return self.entries.get_entry_by_url(url)

    def create_entry(self, entry: Entry) -> Entry:
        return self.entries.create_entry(entry)

    def update_entry(self, entry_id: int, **fields) -> Optional[Entry]:
        return self.entries.update_entry(entry_id, **fields)

    def delete_entries_by_feed(self, feed_id: int) -> int:
        return self.entries.delete_entries_by_feed(feed_id)

    def count_entries_by_feed(self, feed_id: int) -> int:
        return self.entries.count_by_feed(feed_id)
