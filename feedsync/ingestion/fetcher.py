"""
Feed Document Fetcher
====================

Retrieves one feed document over HTTP with a bounded timeout and
mid-flight cancellation. Outcomes are typed values, never raised:
a ``RawDocument`` on success or a ``FetchFailure`` whose ``kind`` says
what went wrong. No retries; a failed feed is retried on the next pass.
"""

import asyncio
import ssl
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Tuple, Union

import aiohttp
import certifi

from ..config.settings import get_settings
from ..utils.cancellation import CancellationToken
from ..utils.exceptions import ErrorCode
from ..utils.logging import get_logger_for_component

ACCEPT_HEADER = "application/rss+xml, application/atom+xml, application/xml, text/xml"


class FetchFailureKind(str, Enum):
    """Closed set of fetch failure kinds."""

    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"


_ERROR_CODES = {
    FetchFailureKind.TIMED_OUT: ErrorCode.FEED_FETCH_TIMEOUT,
    FetchFailureKind.CANCELLED: ErrorCode.FEED_FETCH_CANCELLED,
    FetchFailureKind.NOT_FOUND: ErrorCode.FEED_NOT_FOUND,
    FetchFailureKind.HTTP_ERROR: ErrorCode.FEED_HTTP_ERROR,
    FetchFailureKind.TRANSPORT_ERROR: ErrorCode.FEED_NETWORK_ERROR,
}


@dataclass(frozen=True)
class RawDocument:
    """Successfully fetched feed document."""

    url: str
    text: str
    status: int = 200
    content_type: Optional[str] = None


@dataclass(frozen=True)
class FetchFailure:
    """Typed fetch failure carrying the URL and original cause."""

    url: str
    kind: FetchFailureKind
    message: str
    status: Optional[int] = None
    cause: Optional[BaseException] = None

    @property
    def error_code(self) -> ErrorCode:
        return _ERROR_CODES[self.kind]

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


FetchOutcome = Union[RawDocument, FetchFailure]


class DocumentFetcher:
    """Single-document HTTP fetcher with timeout and cooperative cancellation."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        """Initialize document fetcher.

        Args:
            timeout: Default request timeout in seconds (default from config)
            user_agent: User-Agent header (default from config)
        """
        settings = get_settings()
        self.timeout = timeout or settings.fetcher.request_timeout
        self.user_agent = user_agent or settings.fetcher.user_agent
        self.logger = get_logger_for_component("fetcher")

        # SSL context for secure requests
        self.ssl_context = ssl.create_default_context(cafile=certifi.where())

    @asynccontextmanager
    async def get_session(self, timeout: float):
        """Get configured aiohttp session."""
        connector = aiohttp.TCPConnector(ssl=self.ssl_context, limit=1)
        headers = {
            "User-Agent": self.user_agent,
            "Accept": ACCEPT_HEADER,
        }

        async with aiohttp.ClientSession(
            connector=connector,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers=headers,
        ) as session:
            yield session

    async def _request(self, url: str, timeout: float) -> Tuple[int, str, Optional[str]]:
        """Perform the HTTP GET.

        Returns:
            (status, body text, content type); the body is empty for
            error statuses
        """
        async with self.get_session(timeout) as session:
            async with session.get(url) as response:
                content_type = response.headers.get("Content-Type")
                if response.status >= 400:
                    return response.status, "", content_type
                text = await response.text(errors="replace")
                return response.status, text, content_type

    async def fetch(
        self,
        url: str,
        cancellation_token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None,
    ) -> FetchOutcome:
        """Fetch one feed document.

        Args:
            url: Absolute http/https URL
            cancellation_token: Token that aborts the request when signalled
            timeout: Timeout in seconds for this call (default from config)

        Returns:
            RawDocument on success, FetchFailure otherwise
        """
        timeout = timeout or self.timeout
        log = self.logger.bind(feed_url=url)

        if cancellation_token is not None and cancellation_token.is_cancelled:
            log.info("Fetch cancelled before start")
            return FetchFailure(url, FetchFailureKind.CANCELLED, "Request cancelled")

        start_time = datetime.now(timezone.utc)
        log.debug("Fetching feed")

        request = asyncio.ensure_future(self._request(url, timeout))
        waiters = {request}
        cancel_waiter = None
        if cancellation_token is not None:
            cancel_waiter = asyncio.ensure_future(cancellation_token.wait())
            waiters.add(cancel_waiter)

        try:
            done, pending = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            for task in waiters:
                task.cancel()
            raise

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        if request not in done:
            if cancel_waiter is not None and cancel_waiter in done:
                log.info("Fetch cancelled in flight")
                return FetchFailure(url, FetchFailureKind.CANCELLED, "Request cancelled")
            log.warning(f"Feed fetch timeout after {timeout}s")
            return FetchFailure(
                url, FetchFailureKind.TIMED_OUT, f"Request timeout after {timeout}s"
            )

        try:
            status, text, content_type = request.result()
        except asyncio.TimeoutError as e:
            log.warning(f"Feed fetch timeout after {timeout}s")
            return FetchFailure(
                url, FetchFailureKind.TIMED_OUT, f"Request timeout after {timeout}s", cause=e
            )
        except (aiohttp.ClientError, OSError, ValueError) as e:
            log.warning(f"Feed fetch failed: {e}")
            return FetchFailure(
                url, FetchFailureKind.TRANSPORT_ERROR, f"Network error: {e}", cause=e
            )

        if status == 404:
            log.warning("Feed not found")
            return FetchFailure(url, FetchFailureKind.NOT_FOUND, "Feed not found", status=status)
        if status >= 400:
            log.warning(f"Feed fetch failed: HTTP {status}", extra={"status": status})
            return FetchFailure(
                url, FetchFailureKind.HTTP_ERROR, f"HTTP error {status}", status=status
            )

        log.info(
            f"Fetched {len(text)} chars "
            f"in {(datetime.now(timezone.utc) - start_time).total_seconds():.2f}s"
        )
        return RawDocument(url=url, text=text, status=status, content_type=content_type)
