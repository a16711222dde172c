"""
Sync Engine
===========

Single-feed synchronization: fetch and normalize one document, then
reconcile its drafts against the catalog by entry URL.

Reconciliation never deletes. Known URLs are updated in place so entry
IDs (and the favorite/pin markers keyed on them) survive refreshes;
unknown URLs are inserted; entries missing from the document are left
alone.
"""

from typing import Optional, Union

from ..database.models import Feed, Entry, utc_now
from ..ingestion.fetcher import DocumentFetcher, FetchFailure
from ..ingestion.normalizer import EntryDraft, FeedNormalizer, NormalizedFeed, ParseFailure
from ..storage.catalog import CatalogRepository
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import (
    DuplicateFeedError,
    FeedNotFoundError,
    FeedUnreachableError,
    FeedUpdateError,
)
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator
from .results import AddFeedResult, FeedUpdateResult

LoadOutcome = Union[NormalizedFeed, FetchFailure, ParseFailure]


class SyncEngine:
    """Adds, refreshes and removes individual feeds."""

    def __init__(
        self,
        repository: CatalogRepository,
        fetcher: Optional[DocumentFetcher] = None,
        normalizer: Optional[FeedNormalizer] = None,
    ):
        """Initialize sync engine.

        Args:
            repository: Catalog storage
            fetcher: Document fetcher (default: aiohttp-backed fetcher)
            normalizer: Feed normalizer (default: feedparser-backed normalizer)
        """
        self.repository = repository
        self.fetcher = fetcher or DocumentFetcher()
        self.normalizer = normalizer or FeedNormalizer()
        self.logger = get_logger_for_component("sync_engine")

    async def _load(
        self, url: str, cancellation_token: Optional[CancellationToken]
    ) -> LoadOutcome:
        """Fetch and normalize one document."""
        document = await self.fetcher.fetch(url, cancellation_token=cancellation_token)
        if isinstance(document, FetchFailure):
            return document
        return self.normalizer.normalize(document.text, url)

    async def add_feed(
        self, url: str, cancellation_token: Optional[CancellationToken] = None
    ) -> AddFeedResult:
        """Subscribe to a feed and store its current entries.

        Args:
            url: Feed URL
            cancellation_token: Aborts the fetch when signalled

        Returns:
            AddFeedResult with the created feed and stored entry count

        Raises:
            ValidationError: If the URL is malformed
            DuplicateFeedError: If the URL is already subscribed
            FeedUnreachableError: If the document cannot be fetched or parsed
        """
        url = URLValidator.validate_feed_url(url)
        log = self.logger.bind(feed_url=url)

        if self.repository.find_feed_by_url(url) is not None:
            raise DuplicateFeedError(url)

        outcome = await self._load(url, cancellation_token)
        if isinstance(outcome, (FetchFailure, ParseFailure)):
            log.warning(f"Cannot add feed: {outcome}")
            raise FeedUnreachableError(url, outcome) from outcome.cause

        # Another caller may have added it while we were fetching
        if self.repository.find_feed_by_url(url) is not None:
            raise DuplicateFeedError(url)

        meta, drafts = outcome
        feed = self.repository.create_feed(
            Feed(
                url=url,
                title=meta.title,
                description=meta.description,
                last_updated_at=utc_now(),
            )
        )

        stored = 0
        skipped_urls = []
        for draft in drafts:
            if not draft.url:
                continue

            existing = self.repository.find_entry_by_url(draft.url)
            if existing is None:
                self.repository.create_entry(self._draft_to_entry(draft, feed.id))
                stored += 1
            elif existing.feed_id == feed.id:
                # Repeated URL within the same document
                self.repository.update_entry(existing.id, **self._mutable_fields(draft))
            else:
                log.warning(
                    f"Skipping entry already owned by feed {existing.feed_id}: {draft.url}"
                )
                skipped_urls.append(draft.url)

        log.info(
            f"Added feed {feed.id} ({feed.title}) with {stored} entries"
            + (f", {len(skipped_urls)} skipped" if skipped_urls else "")
        )
        return AddFeedResult(feed=feed, entries_count=stored, skipped_urls=skipped_urls)

    async def update_feed(
        self, feed_id: int, cancellation_token: Optional[CancellationToken] = None
    ) -> FeedUpdateResult:
        """Refresh one stored feed.

        Args:
            feed_id: Feed ID
            cancellation_token: Aborts the fetch when signalled

        Returns:
            FeedUpdateResult with new/updated/total counts

        Raises:
            FeedNotFoundError: If no feed has that ID
            FeedUpdateError: If the document cannot be fetched or parsed
        """
        feed = self.repository.find_feed_by_id(feed_id)
        if feed is None:
            raise FeedNotFoundError(feed_id)
        log = self.logger.bind(feed_id=feed_id, feed_url=feed.url)

        outcome = await self._load(feed.url, cancellation_token)
        if isinstance(outcome, (FetchFailure, ParseFailure)):
            log.warning(f"Cannot update feed: {outcome}")
            raise FeedUpdateError(feed_id, feed.url, outcome) from outcome.cause

        meta, drafts = outcome
        self.repository.update_feed(feed_id, title=meta.title, description=meta.description)

        new_count = 0
        updated_count = 0
        for draft in drafts:
            if not draft.url:
                continue

            existing = self.repository.find_entry_by_url(draft.url)
            if existing is None:
                self.repository.create_entry(self._draft_to_entry(draft, feed_id))
                new_count += 1
            else:
                # Ownership stays with whichever feed stored it first
                self.repository.update_entry(existing.id, **self._mutable_fields(draft))
                updated_count += 1

        self.repository.update_feed(feed_id, last_updated_at=utc_now())
        total_count = self.repository.count_entries_by_feed(feed_id)

        log.info(
            f"Updated feed: {new_count} new, {updated_count} updated, {total_count} total"
        )
        return FeedUpdateResult(
            feed_id=feed_id,
            new_count=new_count,
            updated_count=updated_count,
            total_count=total_count,
        )

    def remove_feed(self, feed_id: int) -> bool:
        """Delete a feed and its entries.

        Raises:
            FeedNotFoundError: If no feed has that ID
        """
        feed = self.repository.find_feed_by_id(feed_id)
        if feed is None:
            raise FeedNotFoundError(feed_id)

        removed = self.repository.delete_feed(feed_id)
        self.logger.bind(feed_id=feed_id, feed_url=feed.url).info("Removed feed")
        return removed

    @staticmethod
    def _mutable_fields(draft: EntryDraft) -> dict:
        return {
            "title": draft.title,
            "content": draft.content,
            "summary": draft.summary,
            "author": draft.author,
            "thumbnail_url": draft.thumbnail_url,
        }

    @staticmethod
    def _draft_to_entry(draft: EntryDraft, feed_id: int) -> Entry:
        return Entry(
            feed_id=feed_id,
            url=draft.url,
            published_at=draft.published_at,
            **SyncEngine._mutable_fields(draft),
        )
