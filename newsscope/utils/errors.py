"""
Exception types shared across the news analysis client.
"""

from typing import Optional


class NewsScopeError(Exception):
    """Base class for all errors raised by newsscope."""


class ConfigurationError(NewsScopeError):
    """A required credential or setting is missing."""


class NewsAPIError(NewsScopeError):
    """The news search API answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchError(NewsScopeError):
    """An article page could not be downloaded or parsed."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class LLMError(NewsScopeError):
    """The language model call failed or returned nothing usable."""


class LLMRateLimitError(LLMError):
    """The language model API answered 429 Too Many Requests."""


class ResponseParseError(LLMError):
    """The language model reply could not be parsed into the requested shape."""


class InvalidSelectionError(NewsScopeError):
    """A menu choice or article index is out of range."""
