"""
Feed Normalizer
===============

Turns a raw RSS 2.0, RSS 1.0 or Atom document into one ``FeedMeta`` and
an ordered list of ``EntryDraft`` records. Dialect differences stop here:
everything downstream sees the same shape.

Fallbacks never reject an item. Missing titles get a placeholder, a
missing date becomes "now", and an item with no usable URL keeps an
empty URL for the sync engine to drop.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional, Union

import feedparser

from ..utils.exceptions import ErrorCode
from ..utils.logging import get_logger_for_component
from ..utils.validators import URLValidator

UNTITLED_FEED = "Untitled Feed"
UNTITLED_ARTICLE = "Untitled Article"


@dataclass
class FeedMeta:
    """Feed-level metadata."""

    title: str
    description: Optional[str] = None
    link: Optional[str] = None


@dataclass
class EntryDraft:
    """One normalized item, not yet reconciled with the catalog."""

    title: str
    url: str
    published_at: datetime
    content: Optional[str] = None
    summary: Optional[str] = None
    author: Optional[str] = None
    thumbnail_url: Optional[str] = None


@dataclass
class NormalizedFeed:
    """Normalizer output; unpacks as ``meta, entries``."""

    meta: FeedMeta
    entries: List[EntryDraft] = field(default_factory=list)

    def __iter__(self) -> Iterator[Any]:
        return iter((self.meta, self.entries))


@dataclass(frozen=True)
class ParseFailure:
    """The document was reached but could not be read as a feed."""

    url: str
    message: str
    cause: Optional[BaseException] = None

    @property
    def error_code(self) -> ErrorCode:
        return ErrorCode.FEED_PARSE_ERROR

    def __str__(self) -> str:
        return f"parse_error: {self.message}"


NormalizeOutcome = Union[NormalizedFeed, ParseFailure]


def _text(value: Any) -> Optional[str]:
    """Stripped string or None for blank values."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _struct_to_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=timezone.utc)
    except (ValueError, TypeError):
        return None


class FeedNormalizer:
    """feedparser-backed normalizer for RSS and Atom documents."""

    def __init__(self):
        self.logger = get_logger_for_component("normalizer")

    def normalize(self, raw_text: str, source_url: str) -> NormalizeOutcome:
        """Normalize a raw feed document.

        Args:
            raw_text: Document text as fetched
            source_url: Feed URL, used for diagnostics only

        Returns:
            NormalizedFeed, or ParseFailure if the text is not a feed
        """
        log = self.logger.bind(feed_url=source_url)
        if not raw_text or not raw_text.strip():
            return ParseFailure(source_url, "Empty document")

        # Bytes plus an explicit charset keeps feedparser from treating the
        # text as a URL or filename, and from trusting a stale XML prolog.
        parsed = feedparser.parse(
            raw_text.encode("utf-8"),
            response_headers={"content-type": "application/xml; charset=utf-8"},
        )

        if not parsed.get("version") and not parsed.entries:
            cause = parsed.get("bozo_exception")
            reason = cause or "no RSS or Atom root element"
            log.warning(f"Unparsable feed document: {reason}")
            return ParseFailure(source_url, f"Not a valid RSS/Atom document: {reason}", cause=cause)

        if parsed.bozo:
            log.debug(f"Feed parsing warning: {parsed.get('bozo_exception')}")

        meta = self._extract_feed_meta(parsed.feed)
        entries = [self._extract_entry(item) for item in parsed.entries]

        log.debug(
            f"Normalized {len(entries)} entries ({parsed.get('version') or 'unknown'})"
        )
        return NormalizedFeed(meta=meta, entries=entries)

    def _extract_feed_meta(self, feed_data: Any) -> FeedMeta:
        title = _text(feed_data.get("title")) or UNTITLED_FEED
        description = _text(feed_data.get("description")) or _text(feed_data.get("subtitle"))
        return FeedMeta(title=title, description=description, link=_text(feed_data.get("link")))

    def _extract_entry(self, entry_data: Any) -> EntryDraft:
        title = _text(entry_data.get("title")) or UNTITLED_ARTICLE

        url = _text(entry_data.get("link"))
        # feedparser copies a permalink GUID into "link" whatever its shape
        if url and entry_data.get("guidislink") and not URLValidator.is_absolute_http_url(url):
            url = None
        if not url:
            guid = _text(entry_data.get("id"))
            url = guid if URLValidator.is_absolute_http_url(guid) else ""

        published_at = (
            _struct_to_datetime(entry_data.get("published_parsed"))
            or _struct_to_datetime(entry_data.get("updated_parsed"))
            or datetime.now(timezone.utc)
        )

        summary = _text(entry_data.get("summary"))

        # Atom content and RSS content:encoded both land in "content"
        content = None
        for item in entry_data.get("content") or []:
            content = _text(item.get("value"))
            if content:
                break
        if not content:
            content = _text(entry_data.get("description")) or summary

        author = _text(entry_data.get("author"))
        if not author:
            detail = entry_data.get("author_detail")
            if isinstance(detail, dict):
                author = _text(detail.get("name"))

        return EntryDraft(
            title=title,
            url=url,
            published_at=published_at,
            content=content,
            summary=summary,
            author=author,
            thumbnail_url=self._extract_thumbnail(entry_data),
        )

    def _extract_thumbnail(self, entry_data: Any) -> Optional[str]:
        """First image among enclosures, media:thumbnail, media:content."""
        for enclosure in entry_data.get("enclosures") or []:
            href = _text(enclosure.get("href") or enclosure.get("url"))
            if URLValidator.has_image_extension(href):
                return href

        for thumbnail in entry_data.get("media_thumbnail") or []:
            href = _text(thumbnail.get("url"))
            if href:
                return href

        for media in entry_data.get("media_content") or []:
            href = _text(media.get("url"))
            if URLValidator.has_image_extension(href):
                return href

        return None
