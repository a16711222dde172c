"""
Tests for Repository Components
===============================

Test suite for FeedRepository, EntryRepository, the marker repositories
and the SQLite catalog, covering CRUD operations, constraints and
cascades.
"""

import pytest
from datetime import datetime, timezone, timedelta

from feedsync.database.connection import DatabaseConnection
from feedsync.database.models import Feed, Entry
from feedsync.storage.feed_repository import FeedRepository
from feedsync.storage.entry_repository import EntryRepository
from feedsync.storage.marker_repository import FavoriteRepository, PinRepository
from feedsync.storage.catalog import SQLiteCatalog
from feedsync.utils.exceptions import DatabaseError, DuplicateEntryError, ErrorCode


def _entry(feed_id: int, slug: str, hours_ago: int = 0, **kwargs) -> Entry:
    return Entry(
        feed_id=feed_id,
        title=f"Article {slug}",
        url=f"https://example.com/{slug}",
        content=f"Content for {slug}",
        published_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc) - timedelta(hours=hours_ago),
        **kwargs,
    )


class TestFeedRepository:
    """Test suite for FeedRepository."""

    @pytest.fixture
    def feed_repo(self, db_connection):
        return FeedRepository(db_connection)

    def test_create_and_get_feed(self, feed_repo, sample_feed):
        created = feed_repo.create_feed(sample_feed)

        assert created.id is not None
        assert feed_repo.get_feed_by_id(created.id).url == sample_feed.url
        assert feed_repo.get_feed_by_url(sample_feed.url).id == created.id

    def test_get_feed_by_url_strips_whitespace(self, feed_repo, sample_feed):
        created = feed_repo.create_feed(sample_feed)

        assert feed_repo.get_feed_by_url(f"  {sample_feed.url}  ").id == created.id

    def test_missing_feed_returns_none(self, feed_repo):
        assert feed_repo.get_feed_by_id(999) is None
        assert feed_repo.get_feed_by_url("https://nowhere.example.com/feed") is None

    def test_duplicate_url_rejected(self, feed_repo, sample_feed):
        feed_repo.create_feed(sample_feed)

        with pytest.raises(DatabaseError) as exc_info:
            feed_repo.create_feed(sample_feed)

        assert exc_info.value.error_code == ErrorCode.DATABASE_CONSTRAINT

    def test_get_all_feeds_in_creation_order(self, feed_repo):
        for name in ("b", "a", "c"):
            feed_repo.create_feed(Feed(url=f"https://{name}.example.com/feed", title=name))

        assert [feed.title for feed in feed_repo.get_all_feeds()] == ["b", "a", "c"]

    def test_update_feed(self, feed_repo, sample_feed):
        created = feed_repo.create_feed(sample_feed)
        refreshed_at = datetime(2024, 2, 1, 8, 30, tzinfo=timezone.utc)

        updated = feed_repo.update_feed(
            created.id, title="Renamed", priority=3, last_updated_at=refreshed_at
        )

        assert updated.title == "Renamed"
        assert updated.priority == 3
        assert updated.last_updated_at == refreshed_at
        assert updated.url == sample_feed.url

    def test_update_ignores_url(self, feed_repo, sample_feed):
        created = feed_repo.create_feed(sample_feed)

        updated = feed_repo.update_feed(created.id, url="https://elsewhere.example.com/feed")

        assert updated.url == sample_feed.url

    def test_update_missing_feed_returns_none(self, feed_repo):
        assert feed_repo.update_feed(999, title="Ghost") is None

    def test_priority_out_of_range_rejected_by_schema(self, feed_repo, sample_feed):
        created = feed_repo.create_feed(sample_feed)

        with pytest.raises(DatabaseError):
            feed_repo.update_feed(created.id, priority=9)

    def test_delete_feed_removes_entries(self, db_connection, feed_repo, sample_feed):
        entry_repo = EntryRepository(db_connection)
        feed = feed_repo.create_feed(sample_feed)
        entry_repo.create_entry(_entry(feed.id, "one"))
        entry_repo.create_entry(_entry(feed.id, "two"))

        assert feed_repo.delete_feed(feed.id) is True

        assert feed_repo.get_feed_by_id(feed.id) is None
        assert entry_repo.count_by_feed(feed.id) == 0
        assert entry_repo.get_entry_by_url("https://example.com/one") is None

    def test_delete_missing_feed(self, feed_repo):
        assert feed_repo.delete_feed(999) is False


class TestEntryRepository:
    """Test suite for EntryRepository."""

    @pytest.fixture
    def feed(self, db_connection, sample_feed):
        return FeedRepository(db_connection).create_feed(sample_feed)

    @pytest.fixture
    def entry_repo(self, db_connection):
        return EntryRepository(db_connection)

    def test_create_and_get_entry(self, entry_repo, feed):
        created = entry_repo.create_entry(_entry(feed.id, "one", author="Jane"))

        fetched = entry_repo.get_entry(created.id)
        assert fetched.url == "https://example.com/one"
        assert fetched.author == "Jane"
        assert fetched.is_read is False
        assert fetched.published_at == datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)

    def test_duplicate_url_raises_duplicate_entry_error(self, entry_repo, db_connection, feed):
        other = FeedRepository(db_connection).create_feed(
            Feed(url="https://other.example.com/feed", title="Other")
        )
        entry_repo.create_entry(_entry(feed.id, "shared"))

        with pytest.raises(DuplicateEntryError) as exc_info:
            entry_repo.create_entry(_entry(other.id, "shared"))

        assert exc_info.value.entry_url == "https://example.com/shared"

    def test_entry_for_unknown_feed_rejected(self, entry_repo):
        with pytest.raises(DatabaseError):
            entry_repo.create_entry(_entry(999, "orphan"))

    def test_get_entries_newest_first(self, entry_repo, feed):
        entry_repo.create_entry(_entry(feed.id, "old", hours_ago=5))
        entry_repo.create_entry(_entry(feed.id, "new", hours_ago=0))
        entry_repo.create_entry(_entry(feed.id, "mid", hours_ago=2))

        titles = [entry.title for entry in entry_repo.get_entries(feed_id=feed.id)]

        assert titles == ["Article new", "Article mid", "Article old"]

    def test_get_entries_filters_and_pagination(self, entry_repo, feed):
        for index in range(5):
            entry_repo.create_entry(_entry(feed.id, f"e{index}", hours_ago=index))
        entry_repo.update_entry(entry_repo.get_entry_by_url("https://example.com/e0").id, is_read=True)

        assert len(entry_repo.get_entries(is_read=False)) == 4
        assert len(entry_repo.get_entries(is_read=True)) == 1

        page = entry_repo.get_entries(feed_id=feed.id, limit=2, offset=1)
        assert [entry.title for entry in page] == ["Article e1", "Article e2"]

    def test_update_entry_in_place(self, entry_repo, feed):
        created = entry_repo.create_entry(_entry(feed.id, "one"))

        updated = entry_repo.update_entry(
            created.id, title="New title", summary="Short", thumbnail_url="https://img.example.com/a.png"
        )

        assert updated.id == created.id
        assert updated.title == "New title"
        assert updated.summary == "Short"
        assert updated.thumbnail_url == "https://img.example.com/a.png"
        assert updated.published_at == created.published_at

    def test_update_entry_ignores_origin_fields(self, entry_repo, feed):
        created = entry_repo.create_entry(_entry(feed.id, "one"))

        updated = entry_repo.update_entry(
            created.id, feed_id=999, url="https://example.com/moved"
        )

        assert updated.feed_id == feed.id
        assert updated.url == "https://example.com/one"

    def test_update_missing_entry_returns_none(self, entry_repo):
        assert entry_repo.update_entry(999, title="Ghost") is None

    def test_unread_counts(self, entry_repo, db_connection, feed):
        other = FeedRepository(db_connection).create_feed(
            Feed(url="https://other.example.com/feed", title="Other")
        )
        entry_repo.create_entry(_entry(feed.id, "a"))
        entry_repo.create_entry(_entry(feed.id, "b"))
        entry_repo.create_entry(_entry(other.id, "c", is_read=True))

        assert entry_repo.count_unread() == 2
        assert entry_repo.count_unread(other.id) == 0
        assert entry_repo.get_unread_counts_by_feed() == {feed.id: 2}

    def test_mark_all_read(self, entry_repo, feed):
        entry_repo.create_entry(_entry(feed.id, "a"))
        entry_repo.create_entry(_entry(feed.id, "b"))

        assert entry_repo.mark_all_read(feed.id) == 2
        assert entry_repo.count_unread(feed.id) == 0
        assert entry_repo.mark_all_read() == 0

    def test_get_entries_by_ids_preserves_order(self, entry_repo, feed):
        first = entry_repo.create_entry(_entry(feed.id, "a"))
        second = entry_repo.create_entry(_entry(feed.id, "b"))

        entries = entry_repo.get_entries_by_ids([second.id, 999, first.id])

        assert [entry.id for entry in entries] == [second.id, first.id]
        assert entry_repo.get_entries_by_ids([]) == []


class TestMarkerRepositories:
    """Test suite for favorite and pin markers."""

    @pytest.fixture
    def entry(self, db_connection, sample_feed):
        feed = FeedRepository(db_connection).create_feed(sample_feed)
        return EntryRepository(db_connection).create_entry(_entry(feed.id, "marked"))

    def test_toggle_favorite(self, db_connection, entry):
        favorites = FavoriteRepository(db_connection)

        assert favorites.toggle(entry.id) is True
        assert favorites.exists(entry.id)
        assert favorites.get_entry_ids() == [entry.id]

        assert favorites.toggle(entry.id) is False
        assert not favorites.exists(entry.id)
        assert favorites.count() == 0

    def test_pins_independent_of_favorites(self, db_connection, entry):
        favorites = FavoriteRepository(db_connection)
        pins = PinRepository(db_connection)

        pins.add(entry.id)

        assert pins.exists(entry.id)
        assert not favorites.exists(entry.id)

    def test_marker_for_missing_entry_rejected(self, db_connection):
        with pytest.raises(DatabaseError):
            FavoriteRepository(db_connection).add(999)

    def test_markers_cascade_with_entry(self, db_connection, entry):
        favorites = FavoriteRepository(db_connection)
        pins = PinRepository(db_connection)
        favorites.add(entry.id)
        pins.add(entry.id)

        EntryRepository(db_connection).delete_entry(entry.id)

        assert favorites.count() == 0
        assert pins.count() == 0


class TestSQLiteCatalog:
    """Test suite for the catalog contract implementation."""

    def test_catalog_round_trip(self, catalog, sample_feed):
        feed = catalog.create_feed(sample_feed)
        entry = catalog.create_entry(_entry(feed.id, "one"))

        assert catalog.find_feed_by_url(sample_feed.url).id == feed.id
        assert catalog.find_feed_by_id(feed.id).title == sample_feed.title
        assert catalog.find_entry_by_url(entry.url).id == entry.id
        assert catalog.count_entries_by_feed(feed.id) == 1
        assert [f.id for f in catalog.list_feeds()] == [feed.id]

    def test_delete_feed_cascades_to_markers(self, catalog, db_connection, sample_feed):
        feed = catalog.create_feed(sample_feed)
        entry = catalog.create_entry(_entry(feed.id, "one"))
        FavoriteRepository(db_connection).add(entry.id)
        PinRepository(db_connection).add(entry.id)

        assert catalog.delete_feed(feed.id) is True

        assert catalog.find_entry_by_url(entry.url) is None
        assert FavoriteRepository(db_connection).count() == 0
        assert PinRepository(db_connection).count() == 0

    def test_delete_entries_by_feed(self, catalog, sample_feed):
        feed = catalog.create_feed(sample_feed)
        catalog.create_entry(_entry(feed.id, "one"))
        catalog.create_entry(_entry(feed.id, "two"))

        assert catalog.delete_entries_by_feed(feed.id) == 2
        assert catalog.find_feed_by_id(feed.id) is not None


class TestDatabaseConnection:
    """Connection pool behavior."""

    def test_foreign_keys_enabled(self, temp_db):
        connection = DatabaseConnection(temp_db, pool_size=1)
        try:
            row = connection.execute_one("PRAGMA foreign_keys")
            assert row[0] == 1
        finally:
            connection.close_all_connections()

    def test_transaction_rolls_back(self, temp_db):
        connection = DatabaseConnection(temp_db, pool_size=1)
        try:
            with pytest.raises(RuntimeError):
                with connection.transaction() as conn:
                    conn.execute(
                        "INSERT INTO feeds (url, title, priority, created_at) VALUES (?, ?, 0, ?)",
                        ("https://example.com/feed", "Feed", "2024-01-01T00:00:00+00:00"),
                    )
                    raise RuntimeError("abort")

            assert connection.execute_one("SELECT COUNT(*) FROM feeds")[0] == 0
        finally:
            connection.close_all_connections()

    def test_database_info(self, temp_db):
        connection = DatabaseConnection(temp_db, pool_size=1)
        try:
            info = connection.get_database_info()
            assert set(info["table_counts"]) == {"feeds", "entries", "favorites", "pins"}
        finally:
            connection.close_all_connections()
