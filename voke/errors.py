"""
Exception hierarchy shared by the API, the completion proxy and the trend pipeline.

Each class carries the HTTP status the request boundary answers with.
"""
from typing import Optional


class VokeError(Exception):
    """Base class for errors that are reported to the caller as an error envelope."""

    status_code: int = 500

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class InputValidationError(VokeError):
    """The request body is missing required fields or carries invalid values."""
    status_code = 400


class ConfigurationError(VokeError):
    """A required server-side setting (API key, database) is missing."""
    status_code = 500


class UpstreamError(VokeError):
    """The completion provider failed or could not be reached."""
    status_code = 500


class UpstreamRateLimitError(UpstreamError):
    status_code = 429


class UpstreamQuotaError(UpstreamError):
    status_code = 402


class TrendParseError(VokeError):
    """The model answer did not contain a usable trends document."""
    status_code = 500
