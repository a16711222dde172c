"""
FeedSync Ingestion Module
========================

Feed document retrieval and normalization.

This module handles:
- HTTP fetching with timeouts and cancellation
- RSS/Atom parsing into canonical drafts
"""

from .fetcher import DocumentFetcher, RawDocument, FetchFailure, FetchFailureKind
from .normalizer import FeedNormalizer, FeedMeta, EntryDraft, NormalizedFeed, ParseFailure

__all__ = [
    'DocumentFetcher',
    'RawDocument',
    'FetchFailure',
    'FetchFailureKind',
    'FeedNormalizer',
    'FeedMeta',
    'EntryDraft',
    'NormalizedFeed',
    'ParseFailure',
]
