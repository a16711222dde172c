"""
Batch Coordinator
=================

Refreshes every subscribed feed in one sequential pass.

Feeds are processed strictly one at a time in catalog order. The
cancellation token is checked at the top of each iteration; a feed that
fails, for any reason, is recorded and the pass moves on. Only a defect
outside the per-feed scope propagates.
"""

from typing import Callable, List, Optional

from ..utils.cancellation import CancellationToken
from ..utils.exceptions import FeedSyncError
from ..utils.logging import get_logger_for_component, PerformanceLogger
from .engine import SyncEngine
from .results import (
    BatchOutcome,
    BatchResult,
    BatchState,
    BatchSummary,
    CancelledResult,
    FeedUpdateFailure,
    FeedUpdateResult,
    UpdateProgress,
)

ProgressCallback = Callable[[UpdateProgress], None]


class BatchCoordinator:
    """Drives the sync engine across all feeds."""

    def __init__(self, engine: SyncEngine):
        self.engine = engine
        self.repository = engine.repository
        self.state = BatchState.NOT_STARTED
        self.logger = get_logger_for_component("batch_coordinator")

    async def update_all(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> BatchOutcome:
        """Refresh every feed once.

        Args:
            on_progress: Called before each feed is fetched
            cancellation_token: Stops the pass at the next feed boundary

        Returns:
            BatchResult when the pass completes, CancelledResult otherwise
        """
        feeds = self.repository.list_feeds()
        total_feeds = len(feeds)
        successful: List[FeedUpdateResult] = []
        failed: List[FeedUpdateFailure] = []

        self.state = BatchState.RUNNING
        self.logger.info(f"Starting update of {total_feeds} feeds")

        with PerformanceLogger(self.logger, "batch update", total_feeds=total_feeds) as perf:
            for index, feed in enumerate(feeds):
                if cancellation_token is not None and cancellation_token.is_cancelled:
                    self.state = BatchState.CANCELLED
                    self.logger.info(
                        f"Update cancelled after {index} of {total_feeds} feeds "
                        f"({len(successful)} succeeded, {len(failed)} failed)"
                    )
                    return CancelledResult(
                        processed_feeds=index,
                        total_feeds=total_feeds,
                        successful=successful,
                        failed=failed,
                        reason=cancellation_token.reason,
                    )

                if on_progress is not None:
                    on_progress(
                        UpdateProgress(
                            total_feeds=total_feeds,
                            current_index=index + 1,
                            current_feed_title=feed.title,
                            current_feed_url=feed.url,
                        )
                    )

                feed_log = self.logger.bind(feed_id=feed.id, feed_url=feed.url)
                try:
                    result = await self.engine.update_feed(
                        feed.id, cancellation_token=cancellation_token
                    )
                    successful.append(result)
                except FeedSyncError as e:
                    feed_log.error(f"Failed to update feed: {e}")
                    failed.append(FeedUpdateFailure(feed_id=feed.id, feed_url=feed.url, error=e))
                except Exception as e:
                    feed_log.error(f"Unexpected error updating feed: {e}", exc_info=True)
                    failed.append(FeedUpdateFailure(feed_id=feed.id, feed_url=feed.url, error=e))

            summary = BatchSummary(
                total_feeds=total_feeds,
                success_count=len(successful),
                failure_count=len(failed),
            )
            self.state = BatchState.COMPLETED
            self.logger.info(
                f"Updated {summary.success_count}/{total_feeds} feeds "
                f"({summary.failure_count} failed) in {perf.elapsed_seconds:.2f}s"
            )

        return BatchResult(successful=successful, failed=failed, summary=summary)
