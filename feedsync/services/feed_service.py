"""
Feed Service
============

Caller-facing facade shared by the management script and any outer
layer. Wires the catalog, sync engine and batch coordinator together and
adds the reader operations: listing, read state, priorities, favorites
and pins.
"""

from typing import List, Optional, Tuple

from ..database.connection import DatabaseConnection
from ..database.models import Feed, Entry, MIN_PRIORITY, MAX_PRIORITY
from ..ingestion.fetcher import DocumentFetcher
from ..ingestion.normalizer import FeedNormalizer
from ..storage.catalog import SQLiteCatalog
from ..storage.marker_repository import FavoriteRepository, PinRepository
from ..sync.coordinator import BatchCoordinator, ProgressCallback
from ..sync.engine import SyncEngine
from ..sync.results import AddFeedResult, BatchOutcome, FeedUpdateResult
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import ErrorCode, FeedNotFoundError, ValidationError
from ..utils.logging import get_logger_for_component


class FeedService:
    """
    Feed management and reading operations.

    Sync operations delegate to the engine and coordinator; everything
    else reads or flips flags in the catalog directly.
    """

    def __init__(
        self,
        db_connection: DatabaseConnection,
        fetcher: Optional[DocumentFetcher] = None,
        normalizer: Optional[FeedNormalizer] = None,
    ):
        """Initialize the feed service.

        Args:
            db_connection: Database connection manager
            fetcher: Document fetcher override
            normalizer: Feed normalizer override
        """
        self.db = db_connection
        self.catalog = SQLiteCatalog(db_connection)
        self.favorites = FavoriteRepository(db_connection)
        self.pins = PinRepository(db_connection)
        self.engine = SyncEngine(self.catalog, fetcher=fetcher, normalizer=normalizer)
        self.coordinator = BatchCoordinator(self.engine)
        self.logger = get_logger_for_component("feed_service")

    # Sync operations

    async def add_feed(
        self, url: str, cancellation_token: Optional[CancellationToken] = None
    ) -> AddFeedResult:
        return await self.engine.add_feed(url, cancellation_token=cancellation_token)

    async def update_feed(
        self, feed_id: int, cancellation_token: Optional[CancellationToken] = None
    ) -> FeedUpdateResult:
        return await self.engine.update_feed(feed_id, cancellation_token=cancellation_token)

    def remove_feed(self, feed_id: int) -> bool:
        return self.engine.remove_feed(feed_id)

    async def update_all_feeds(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BatchOutcome:
        return await self.coordinator.update_all(
            on_progress=on_progress, cancellation_token=cancellation_token
        )

    # Feeds

    def get_feed_list(self) -> List[Feed]:
        return self.catalog.list_feeds()

    def get_feed_by_id(self, feed_id: int) -> Optional[Feed]:
        return self.catalog.find_feed_by_id(feed_id)

    def set_feed_priority(self, feed_id: int, priority: int) -> Feed:
        """Set a feed's priority.

        Raises:
            ValidationError: If priority is outside 0-5
            FeedNotFoundError: If no feed has that ID
        """
        if not isinstance(priority, int) or not MIN_PRIORITY <= priority <= MAX_PRIORITY:
            raise ValidationError(
                f"Priority must be between {MIN_PRIORITY} and {MAX_PRIORITY}, got {priority}",
                field_name="priority",
                error_code=ErrorCode.VALIDATION_OUT_OF_RANGE,
            )

        feed = self.catalog.update_feed(feed_id, priority=priority)
        if feed is None:
            raise FeedNotFoundError(feed_id)
        return feed

    def get_unread_feeds(self) -> List[Tuple[Feed, int]]:
        """Feeds with unread entries and their unread counts.

        Sorted by priority (highest first), then unread count.
        """
        counts = self.catalog.entries.get_unread_counts_by_feed()
        feeds = [
            (feed, counts[feed.id]) for feed in self.catalog.list_feeds() if counts.get(feed.id)
        ]
        feeds.sort(key=lambda item: (item[0].priority, item[1]), reverse=True)
        return feeds

    # Entries

    def get_entry_by_id(self, entry_id: int) -> Optional[Entry]:
        return self.catalog.entries.get_entry(entry_id)

    def get_entries(
        self,
        feed_id: Optional[int] = None,
        is_read: Optional[bool] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Entry]:
        """Entries, newest first, optionally filtered by feed and read state."""
        return self.catalog.entries.get_entries(
            feed_id=feed_id, is_read=is_read, limit=limit, offset=offset
        )

    def mark_entry_read(self, entry_id: int) -> bool:
        return self.catalog.update_entry(entry_id, is_read=True) is not None

    def mark_entry_unread(self, entry_id: int) -> bool:
        return self.catalog.update_entry(entry_id, is_read=False) is not None

    def mark_all_read(self, feed_id: Optional[int] = None) -> int:
        """Mark every unread entry read, optionally for one feed.

        Returns:
            Number of entries changed
        """
        if feed_id is not None and self.catalog.find_feed_by_id(feed_id) is None:
            raise FeedNotFoundError(feed_id)
        changed = self.catalog.entries.mark_all_read(feed_id)
        self.logger.info(f"Marked {changed} entries read")
        return changed

    def get_unread_count(self, feed_id: Optional[int] = None) -> int:
        return self.catalog.entries.count_unread(feed_id)

    # Favorites and pins

    def toggle_favorite(self, entry_id: int) -> bool:
        """Flip the favorite marker. Returns True when now a favorite."""
        self._require_entry(entry_id)
        return self.favorites.toggle(entry_id)

    def toggle_pin(self, entry_id: int) -> bool:
        """Flip the pin marker. Returns True when now pinned."""
        self._require_entry(entry_id)
        return self.pins.toggle(entry_id)

    def get_favorite_entries(self) -> List[Entry]:
        return self.catalog.entries.get_entries_by_ids(self.favorites.get_entry_ids())

    def get_pinned_entries(self) -> List[Entry]:
        return self.catalog.entries.get_entries_by_ids(self.pins.get_entry_ids())

    def _require_entry(self, entry_id: int) -> Entry:
        entry = self.catalog.entries.get_entry(entry_id)
        if entry is None:
            raise ValidationError(
                f"Entry not found: {entry_id}",
                field_name="entry_id",
                error_code=ErrorCode.RESOURCE_NOT_FOUND,
            )
        return entry
