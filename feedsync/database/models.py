"""
FeedSync Data Models
===================

Pydantic data models for the catalog. These correspond to the database
schema and provide validation, serialization, and type hints.
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any

from pydantic import BaseModel, Field, field_validator

MIN_PRIORITY = 0
MAX_PRIORITY = 5


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_db_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for SQLite storage (ISO 8601, UTC)."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class Feed(BaseModel):
    """Subscribed RSS/Atom feed."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    url: str = Field(..., min_length=1, description="Source feed URL (natural key)")
    title: str = Field(..., description="Feed title")
    description: Optional[str] = Field(default=None, description="Feed description")
    priority: int = Field(
        default=MIN_PRIORITY, ge=MIN_PRIORITY, le=MAX_PRIORITY, description="User priority 0-5"
    )
    last_updated_at: Optional[datetime] = Field(default=None, description="Last successful refresh")
    created_at: Optional[datetime] = Field(default_factory=utc_now)

    @field_validator('url')
    @classmethod
    def validate_url(cls, v):
        """Strip surrounding whitespace from the URL."""
        v = v.strip()
        if not v:
            raise ValueError("Feed URL cannot be empty")
        return v

    def __str__(self) -> str:
        return f"Feed({self.title or self.url})"


class Entry(BaseModel):
    """One article drawn from a feed."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    feed_id: int = Field(..., description="Owning feed ID")
    title: str = Field(..., description="Entry title")
    url: str = Field(..., min_length=1, description="Canonical entry URL (natural key)")
    content: Optional[str] = Field(default=None, description="Entry body")
    summary: Optional[str] = Field(default=None, description="Entry summary")
    author: Optional[str] = Field(default=None, description="Entry author")
    published_at: datetime = Field(..., description="Publication time")
    is_read: bool = Field(default=False, description="Whether the user has read the entry")
    thumbnail_url: Optional[str] = Field(default=None, description="Thumbnail image URL")
    created_at: Optional[datetime] = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = Field(default_factory=utc_now)

    def __str__(self) -> str:
        return f"Entry({self.title[:50]})"


class Favorite(BaseModel):
    """Favorite marker for an entry."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    entry_id: int = Field(..., description="Marked entry ID")
    created_at: Optional[datetime] = Field(default_factory=utc_now)


class Pin(BaseModel):
    """Pin marker for an entry."""
    id: Optional[int] = Field(default=None, description="Database primary key")
    entry_id: int = Field(..., description="Marked entry ID")
    created_at: Optional[datetime] = Field(default_factory=utc_now)


# Type aliases for common data structures
FeedDict = Dict[str, Any]
EntryDict = Dict[str, Any]
