"""
FeedSync Sync Module
===================

Single-feed reconciliation and sequential batch refresh.
"""

from .engine import SyncEngine
from .coordinator import BatchCoordinator
from .results import (
    AddFeedResult,
    FeedUpdateResult,
    UpdateProgress,
    FeedUpdateFailure,
    BatchSummary,
    BatchResult,
    CancelledResult,
    BatchState,
)

__all__ = [
    'SyncEngine',
    'BatchCoordinator',
    'AddFeedResult',
    'FeedUpdateResult',
    'UpdateProgress',
    'FeedUpdateFailure',
    'BatchSummary',
    'BatchResult',
    'CancelledResult',
    'BatchState',
]
