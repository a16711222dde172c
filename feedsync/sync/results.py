"""
Sync Results
============

Result and report records returned by the sync engine and the batch
coordinator.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from ..database.models import Feed
from ..utils.exceptions import FeedSyncError


@dataclass
class AddFeedResult:
    """Outcome of subscribing to a feed."""

    feed: Feed
    entries_count: int
    skipped_urls: List[str] = field(default_factory=list)


@dataclass
class FeedUpdateResult:
    """Outcome of refreshing one feed."""

    feed_id: int
    new_count: int
    updated_count: int
    total_count: int


@dataclass
class UpdateProgress:
    """Progress notification sent before each feed in a batch."""

    total_feeds: int
    current_index: int
    current_feed_title: str
    current_feed_url: str

    @property
    def fraction(self) -> float:
        return self.current_index / self.total_feeds if self.total_feeds else 1.0


@dataclass
class FeedUpdateFailure:
    """A feed that failed during a batch."""

    feed_id: int
    feed_url: str
    error: Exception

    @property
    def message(self) -> str:
        if isinstance(self.error, FeedSyncError):
            return self.error.user_message
        return str(self.error) or self.error.__class__.__name__


@dataclass
class BatchSummary:
    total_feeds: int
    success_count: int
    failure_count: int


@dataclass
class BatchResult:
    """Batch pass that ran to completion."""

    successful: List[FeedUpdateResult]
    failed: List[FeedUpdateFailure]
    summary: BatchSummary

    @property
    def new_entries(self) -> int:
        return sum(result.new_count for result in self.successful)


@dataclass
class CancelledResult:
    """Batch pass stopped early by a cancellation token."""

    processed_feeds: int
    total_feeds: int
    successful: List[FeedUpdateResult]
    failed: List[FeedUpdateFailure]
    reason: Optional[str] = None


class BatchState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


BatchOutcome = Union[BatchResult, CancelledResult]
