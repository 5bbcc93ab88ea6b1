"""Twitch API call layer.

Builds requests for each endpoint group, sends them through a transport,
rate limits Helix calls and decodes responses. Authentication state lives
one level up, in the auth providers and the client.

Exports:
    CallDescriptor, CallType: Description of a single call.
    build_request: Call builder.
    decode_response: Response decoder.
    HelixRateLimiter, RateLimitBucket: Helix quota handling.
    HttpxTransport, Transport, ApiRequest, ApiResponse: Transport layer.
    types: Module containing Pydantic models for API responses.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

from . import static, types
from .call import DEFAULT_KRAKEN_VERSION, CallDescriptor, CallType, build_request
from .decoder import decode_response
from .ratelimit import HelixRateLimiter, RateLimitBucket, RateLimiterStats
from .transport import (
    DEFAULT_TIMEOUT,
    ApiRequest,
    ApiResponse,
    HttpxTransport,
    Transport,
)

__all__ = [
    "DEFAULT_KRAKEN_VERSION",
    "DEFAULT_TIMEOUT",
    "ApiRequest",
    "ApiResponse",
    "CallDescriptor",
    "CallType",
    "HelixRateLimiter",
    "HttpxTransport",
    "RateLimitBucket",
    "RateLimiterStats",
    "Transport",
    "build_request",
    "decode_response",
    "static",
    "types",
]
