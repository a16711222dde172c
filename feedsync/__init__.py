"""
FeedSync - Feed Synchronization Engine
======================================

Keeps a local catalog of RSS/Atom feeds and their entries current.

Main Components:
- Database: SQLite with connection pooling and schema management
- Configuration: environment variables with Pydantic validation
- Ingestion: document fetching (aiohttp) and normalization (feedparser)
- Sync: URL-keyed reconciliation and sequential batch refresh
- Services: caller-facing facade with reader operations
"""

__version__ = "0.3.0"
__author__ = "FeedSync Development Team"
__description__ = "RSS/Atom feed synchronization engine"

# Core imports for easy access
from .config.settings import get_settings
from .database.connection import get_db_manager
from .database.schema import DatabaseSchema
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedSyncError

__all__ = [
    "get_settings",
    "get_db_manager",
    "DatabaseSchema",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedSyncError",
]
