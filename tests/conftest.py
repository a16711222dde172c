"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FeedSync tests.

- Session-scoped database created once, cleared between tests
- Stub fetcher serving canned documents so the network is never hit
- Sample RSS and Atom documents
"""

import pytest
import tempfile
import os
import sys
from pathlib import Path

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
_TEST_DIR = Path(tempfile.gettempdir()) / "feedsync_tests"
os.environ["FEEDSYNC_DEBUG"] = "true"
os.environ["FEEDSYNC_DATABASE__PATH"] = str(_TEST_DIR / "feedsync_default.db")
os.environ["FEEDSYNC_LOGGING__FILE_PATH"] = str(_TEST_DIR / "feedsync_test.log")
os.environ["FEEDSYNC_LOGGING__CONSOLE_LOGGING"] = "false"


SAMPLE_RSS_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:content="http://purl.org/rss/1.0/modules/content/"
     xmlns:media="http://search.yahoo.com/mrss/">
    <channel>
        <title>Test Tech Blog</title>
        <link>https://example.com</link>
        <description>A test technology blog</description>
        <item>
            <title>Python Tips and Tricks</title>
            <link>https://example.com/python-tips</link>
            <description>Learn advanced Python techniques</description>
            <content:encoded><![CDATA[<p>Full article about Python</p>]]></content:encoded>
            <author>john@example.com (John Doe)</author>
            <pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate>
            <guid>https://example.com/python-tips</guid>
            <enclosure url="https://example.com/images/python.png?w=300" type="image/png" length="1024"/>
        </item>
        <item>
            <title>JavaScript Frameworks</title>
            <link>https://example.com/js-frameworks</link>
            <description>Comparison of modern JavaScript frameworks</description>
            <pubDate>Sun, 14 Jan 2024 15:30:00 GMT</pubDate>
            <media:thumbnail url="https://cdn.example.com/thumbs/js"/>
        </item>
    </channel>
</rss>"""


SAMPLE_ATOM_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
    <title>Atom Test Feed</title>
    <subtitle>Updates from the Atom test site</subtitle>
    <link href="https://atom.example.com/"/>
    <updated>2024-01-15T12:00:00Z</updated>
    <id>urn:uuid:60a76c80-d399-11d9-b93C-0003939e0af6</id>
    <entry>
        <title>Machine Learning Basics</title>
        <link href="https://atom.example.com/ml-basics"/>
        <id>urn:uuid:1225c695-cfb8-4ebb-aaaa-80da344efa6a</id>
        <updated>2024-01-15T12:00:00Z</updated>
        <summary>Introduction to machine learning concepts</summary>
        <content type="html">&lt;p&gt;Full machine learning article&lt;/p&gt;</content>
        <author><name>Jane Smith</name></author>
    </entry>
</feed>"""


def build_rss(title: str, items) -> str:
    """Build a minimal RSS document.

    Args:
        title: Channel title
        items: Iterable of (title, link) pairs
    """
    body = "".join(
        f"<item><title>{item_title}</title><link>{link}</link>"
        f"<pubDate>Mon, 15 Jan 2024 10:00:00 GMT</pubDate></item>"
        for item_title, link in items
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?><rss version="2.0"><channel>'
        f"<title>{title}</title><link>https://example.com</link>{body}</channel></rss>"
    )


class StubFetcher:
    """Document fetcher serving canned responses by URL.

    Values in ``documents`` are either document text or a ``FetchFailure``.
    Unknown URLs produce a NOT_FOUND failure.
    """

    def __init__(self, documents=None):
        self.documents = dict(documents or {})
        self.calls = []

    async def fetch(self, url, cancellation_token=None, timeout=None):
        from feedsync.ingestion.fetcher import FetchFailure, FetchFailureKind, RawDocument

        self.calls.append(url)
        if cancellation_token is not None and cancellation_token.is_cancelled:
            return FetchFailure(url, FetchFailureKind.CANCELLED, "Request cancelled")

        document = self.documents.get(url)
        if document is None:
            return FetchFailure(url, FetchFailureKind.NOT_FOUND, "Feed not found", status=404)
        if isinstance(document, FetchFailure):
            return document
        return RawDocument(url=url, text=document, status=200, content_type="application/rss+xml")


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def session_test_db():
    """Session-scoped test database (schema created once for all tests)."""
    from feedsync.database.schema import DatabaseSchema

    _TEST_DIR.mkdir(exist_ok=True)
    db_path = _TEST_DIR / "feedsync_test.db"

    if db_path.exists():
        db_path.unlink()

    schema = DatabaseSchema(str(db_path))
    schema.create_tables()

    yield str(db_path)

    try:
        db_path.unlink()
    except FileNotFoundError:
        pass


@pytest.fixture
def clean_db(session_test_db):
    """Clear all rows between tests, keeping the schema."""
    from feedsync.database.connection import DatabaseConnection

    conn = DatabaseConnection(session_test_db, pool_size=2)

    with conn.get_connection() as db:
        # Order matters for foreign keys
        db.execute("DELETE FROM pins")
        db.execute("DELETE FROM favorites")
        db.execute("DELETE FROM entries")
        db.execute("DELETE FROM feeds")
        db.commit()

    conn.close_all_connections()

    yield session_test_db


@pytest.fixture
def temp_db():
    """Isolated temporary database file with schema."""
    from feedsync.database.schema import DatabaseSchema

    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    DatabaseSchema(db_path).create_tables()

    yield db_path

    for suffix in ("", "-wal", "-shm"):
        try:
            os.unlink(db_path + suffix)
        except FileNotFoundError:
            pass


@pytest.fixture
def db_connection(clean_db):
    """Database connection manager for testing."""
    from feedsync.database.connection import DatabaseConnection

    connection = DatabaseConnection(clean_db, pool_size=2)
    yield connection

    connection.close_all_connections()


@pytest.fixture
def catalog(db_connection):
    """SQLite catalog over the clean test database."""
    from feedsync.storage.catalog import SQLiteCatalog

    return SQLiteCatalog(db_connection)


@pytest.fixture
def stub_fetcher():
    return StubFetcher()


@pytest.fixture
def sample_feed():
    from feedsync.database.models import Feed

    return Feed(
        url="https://example.com/feed.xml",
        title="Tech News Feed",
        description="Latest technology news and updates",
    )


@pytest.fixture
def make_rss():
    """RSS document builder: ``make_rss(title, [(item_title, link), ...])``."""
    return build_rss


@pytest.fixture
def sample_rss_feed():
    return SAMPLE_RSS_FEED


@pytest.fixture
def sample_atom_feed():
    return SAMPLE_ATOM_FEED
