"""
FeedSync Storage Layer
=====================

Repository pattern implementations for data access abstraction.

This module provides:
- Feed and entry repositories for CRUD operations
- Favorite and pin marker repositories
- The catalog contract consumed by the sync engine
"""

from .feed_repository import FeedRepository
from .entry_repository import EntryRepository
from .marker_repository import FavoriteRepository, PinRepository
from .catalog import CatalogRepository, SQLiteCatalog

__all__ = [
    "FeedRepository",
    "EntryRepository",
    "FavoriteRepository",
    "PinRepository",
    "CatalogRepository",
    "SQLiteCatalog",
]
