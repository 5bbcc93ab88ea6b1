"""Exceptions raised by the Twitch API client."""

from typing import Any


class TwitchClientError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(TwitchClientError):
    """Raised when the client or a provider is missing required configuration."""


class RateLimitMetadataError(ConfigError):
    """Raised when a Helix response carries no rate limit headers."""


class HTTPStatusCodeError(TwitchClientError):
    """Raised when the API answers with a non-2xx status.

    Attributes:
        status_code: HTTP status code of the response.
        status_text: Reason phrase of the response.
        body: Parsed JSON error payload.
    """

    def __init__(self, status_code: int, status_text: str, body: Any):
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(
            f"Encountered HTTP status code {status_code}: {status_text}",
        )


class InvalidTokenError(TwitchClientError):
    """Raised when token introspection rejects the access token."""

    def __init__(self, message: str = "Invalid token supplied"):
        super().__init__(message)


class MissingScopeError(TwitchClientError):
    """Raised when a provider cannot supply a token with the requested scopes."""


class DecodeError(TwitchClientError, ValueError):
    """Raised when a response body is not valid JSON."""


class UnknownEndpointError(TwitchClientError, KeyError):
    """Raised when an endpoint name is not in the registry."""
