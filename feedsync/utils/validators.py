"""
FeedSync Input Validators
========================

URL validation utilities shared by the sync engine and the normalizer.
"""

import re
from urllib.parse import urlparse

from .exceptions import ValidationError, ErrorCode


class URLValidator:
    """URL validation utilities."""

    # Allowed schemes for RSS feeds
    ALLOWED_SCHEMES = {'http', 'https'}

    IMAGE_EXTENSION = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)$', re.IGNORECASE)

    @classmethod
    def validate_feed_url(cls, url: str) -> str:
        """Validate an RSS/Atom feed URL.

        The URL is the feed's natural key, so it is only stripped of
        surrounding whitespace, never rewritten.

        Args:
            url: URL to validate

        Returns:
            Stripped URL

        Raises:
            ValidationError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise ValidationError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url"
            )

        url = url.strip()

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise ValidationError(
                f"Invalid URL format: {str(e)}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            ) from e

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise ValidationError(
                f"URL scheme must be {' or '.join(sorted(cls.ALLOWED_SCHEMES))}",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        if not parsed.netloc:
            raise ValidationError(
                "URL must include a hostname",
                error_code=ErrorCode.VALIDATION_INVALID_FORMAT,
                field_name="url"
            )

        return url

    @classmethod
    def is_absolute_http_url(cls, value) -> bool:
        """Check whether a value looks like an absolute http(s) URL."""
        if not value or not isinstance(value, str):
            return False
        try:
            parsed = urlparse(value.strip())
        except ValueError:
            return False
        return parsed.scheme.lower() in cls.ALLOWED_SCHEMES and bool(parsed.netloc)

    @classmethod
    def has_image_extension(cls, url) -> bool:
        """Check whether a URL path ends in a common image extension."""
        if not url or not isinstance(url, str):
            return False
        try:
            path = urlparse(url).path
        except ValueError:
            return False
        return bool(cls.IMAGE_EXTENSION.search(path))
