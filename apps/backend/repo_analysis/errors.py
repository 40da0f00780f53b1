"""
Analysis Errors
===============

Exception hierarchy for the analyzer. Every error carries a stable
``error_code`` and serializes with ``to_dict()`` so callers can surface
it as JSON.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class AnalysisErrorCode(Enum):
    """Error codes for programmatic handling."""

    ANALYSIS_FAILED = "analysis_failed"
    CONFIG_INVALID = "config_invalid"
    INVALID_REPOSITORY_URL = "invalid_repository_url"
    SOURCE_FETCH_FAILED = "source_fetch_failed"
    REPOSITORY_NOT_FOUND = "repository_not_found"
    RATE_LIMITED = "rate_limited"
    SOURCE_HTTP_ERROR = "source_http_error"
    SOURCE_NETWORK_ERROR = "source_network_error"
    RENDER_FAILED = "render_failed"


class ArchitectureAnalysisError(Exception):
    """Base exception for analysis failures.

    Attributes:
        message: Human-readable error message
        error_code: Error code for programmatic handling
        details: Additional error details
    """

    default_code = AnalysisErrorCode.ANALYSIS_FAILED

    def __init__(
        self,
        message: str,
        error_code: AnalysisErrorCode | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_code": self.error_code.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigError(ArchitectureAnalysisError):
    """Raised for invalid or unreadable configuration."""

    default_code = AnalysisErrorCode.CONFIG_INVALID

    def __init__(self, message: str, problems: list[str] | None = None):
        super().__init__(message, details={"problems": problems or []})
        self.problems = problems or []


class InvalidRepositoryURLError(ArchitectureAnalysisError):
    """Raised when a repository URL cannot be parsed."""

    default_code = AnalysisErrorCode.INVALID_REPOSITORY_URL

    def __init__(self, url: str):
        super().__init__(f"Invalid repository URL: {url}", details={"url": url})
        self.url = url


class RenderError(ArchitectureAnalysisError):
    """Raised by a renderer for input it cannot draw."""

    default_code = AnalysisErrorCode.RENDER_FAILED


class SourceFetchError(ArchitectureAnalysisError):
    """Base for failures talking to a remote source.

    Attributes:
        url: Request URL that failed
        status_code: HTTP status, when a response was received
    """

    default_code = AnalysisErrorCode.SOURCE_FETCH_FAILED

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        merged = {"url": url, "status_code": status_code}
        merged.update(details or {})
        super().__init__(message, details=merged)
        self.url = url
        self.status_code = status_code


class RepositoryNotFoundError(SourceFetchError):
    """The repository, branch or path does not exist (HTTP 404)."""

    default_code = AnalysisErrorCode.REPOSITORY_NOT_FOUND


class RateLimitError(SourceFetchError):
    """The remote API refused the request because of rate limiting."""

    default_code = AnalysisErrorCode.RATE_LIMITED

    def __init__(
        self,
        message: str,
        url: str,
        status_code: int | None = None,
        reset_at: int | None = None,
        remaining: int | None = None,
    ):
        super().__init__(
            message,
            url,
            status_code,
            details={"reset_at": reset_at, "remaining": remaining},
        )
        self.reset_at = reset_at
        self.remaining = remaining


class SourceHTTPError(SourceFetchError):
    """Any other unsuccessful HTTP response."""

    default_code = AnalysisErrorCode.SOURCE_HTTP_ERROR


class SourceNetworkError(SourceFetchError):
    """Transport failure or timeout before a response arrived."""

    default_code = AnalysisErrorCode.SOURCE_NETWORK_ERROR
