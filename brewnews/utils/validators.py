"""
BrewNews Input Validators
=========================

URL validation for administratively managed sources.
"""

import re
from urllib.parse import urlparse, urlunparse

from .exceptions import InvalidInputError, ErrorCode

INVALID_URL_MESSAGE = "Please enter a valid URL."


class URLValidator:
    """URL validation and sanitization utilities."""

    ALLOWED_SCHEMES = {"http", "https"}

    # Common RSS/Atom feed patterns
    FEED_PATTERNS = [
        r"\.rss$", r"\.xml$", r"\.atom$",
        r"/rss/?$", r"/feed/?$", r"/feeds/?$",
        r"/atom/?$", r"/rss\.xml$", r"/feed\.xml$",
    ]

    SUSPICIOUS_PATTERNS = [
        r"^\s*javascript:",
        r"^\s*data:",
        r"^\s*file:",
    ]

    @classmethod
    def validate_source_url(cls, url: str) -> str:
        """Validate a source URL and return it stripped of surrounding whitespace.

        Args:
            url: URL to validate

        Returns:
            Validated URL (scheme and host lower-cased, fragment removed)

        Raises:
            InvalidInputError: If URL is invalid
        """
        if not url or not isinstance(url, str):
            raise InvalidInputError(
                "URL is required and must be a string",
                error_code=ErrorCode.VALIDATION_REQUIRED_FIELD,
                field_name="url",
                user_message=INVALID_URL_MESSAGE,
            )

        url = url.strip()

        if any(re.search(p, url, re.IGNORECASE) for p in cls.SUSPICIOUS_PATTERNS):
            raise InvalidInputError(
                f"URL uses a disallowed scheme: {url}",
                field_name="url",
                user_message=INVALID_URL_MESSAGE,
            )

        try:
            parsed = urlparse(url)
        except ValueError as e:
            raise InvalidInputError(
                f"Invalid URL format: {e}",
                field_name="url",
                user_message=INVALID_URL_MESSAGE,
            ) from e

        if parsed.scheme.lower() not in cls.ALLOWED_SCHEMES:
            raise InvalidInputError(
                f"URL scheme must be http or https: {url}",
                field_name="url",
                user_message=INVALID_URL_MESSAGE,
            )

        if not parsed.netloc or " " in parsed.netloc:
            raise InvalidInputError(
                f"URL must include a hostname: {url}",
                field_name="url",
                user_message=INVALID_URL_MESSAGE,
            )

        return urlunparse(parsed._replace(
            scheme=parsed.scheme.lower(),
            netloc=parsed.netloc.lower(),
            fragment="",
        ))

    @classmethod
    def is_likely_feed_url(cls, url: str) -> bool:
        """Check if URL is likely an RSS/Atom feed."""
        url_lower = url.lower()
        return any(re.search(pattern, url_lower) for pattern in cls.FEED_PATTERNS)
