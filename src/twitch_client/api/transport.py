"""HTTP transport for the Twitch API client.

Defines the request/response values exchanged with a transport and the
default httpx-backed implementation. Transports perform no retries.
"""

import threading
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

import httpx
import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class ApiRequest:
    """A fully-formed HTTP request."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes | None = None


@dataclass(frozen=True)
class ApiResponse:
    """An HTTP response as seen by the call pipeline."""

    status: int
    reason: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        """Whether the status is in the 2xx range."""
        return 200 <= self.status < 300  # noqa: PLR2004

    @property
    def text(self) -> str:
        return self.body.decode("utf-8")


class Transport(Protocol):
    """Anything that can send an ApiRequest and return an ApiResponse."""

    def send(self, request: ApiRequest) -> ApiResponse: ...


class HttpxTransport:
    """Transport backed by ``httpx.Client``.

    Thread-safe through thread-local storage of httpx.Client instances.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds (default: 30.0).
            transport: Optional low-level httpx transport, e.g.
                ``httpx.MockTransport`` in tests.

        Raises:
            ValueError: If timeout is not positive.
        """
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self._timeout = timeout
        self._transport = transport
        self._local = threading.local()

    @property
    def client(self) -> httpx.Client:
        """Get or create the thread-local httpx client."""
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._local.client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def send(self, request: ApiRequest) -> ApiResponse:
        """Send a request and return the raw response.

        Raises:
            httpx.HTTPError: If the request could not be completed.
        """
        start_time = time.time()
        try:
            logger.debug(
                "Making API request",
                method=request.method,
                url=request.url,
            )
            response = self.client.request(
                request.method,
                request.url,
                headers=dict(request.headers),
                content=request.body,
            )
        except httpx.HTTPError:
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                method=request.method,
                url=request.url,
                duration_seconds=round(duration, 3),
            )
            raise

        duration = time.time() - start_time
        logger.debug(
            "API request completed",
            status=response.status_code,
            duration_seconds=round(duration, 3),
        )
        return ApiResponse(
            status=response.status_code,
            reason=response.reason_phrase,
            headers=dict(response.headers),
            body=response.content,
        )
