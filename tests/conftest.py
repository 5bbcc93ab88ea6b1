"""Shared fixtures for the Twitch API client tests."""

import json
import threading
import time
from collections import deque
from collections.abc import Callable
from typing import Any

import pytest

from twitch_client.api.transport import ApiRequest, ApiResponse


class FakeTransport:
    """Transport recording requests and replaying queued responses.

    Queued exceptions are raised instead of returned. A ``handler`` takes
    precedence over the queue.
    """

    def __init__(self):
        self.requests: list[ApiRequest] = []
        self.handler: Callable[[ApiRequest], ApiResponse] | None = None
        self._responses: deque[ApiResponse | Exception] = deque()
        self._lock = threading.Lock()

    def queue(self, *responses: ApiResponse | Exception) -> None:
        self._responses.extend(responses)

    def send(self, request: ApiRequest) -> ApiResponse:
        with self._lock:
            self.requests.append(request)
            handler = self.handler
            item = None if handler else self._responses.popleft()
        if handler is not None:
            return handler(request)
        if isinstance(item, Exception):
            raise item
        return item


def _make_response(
    status: int = 200,
    data: Any = None,
    headers: dict[str, str] | None = None,
    reason: str = "OK",
    body: bytes | None = None,
) -> ApiResponse:
    if body is None:
        body = b"" if data is None else json.dumps(data).encode()
    return ApiResponse(status=status, reason=reason, headers=headers or {}, body=body)


def _helix_headers(
    remaining: int = 799,
    limit: int = 800,
    reset: float | None = None,
) -> dict[str, str]:
    return {
        "Ratelimit-Limit": str(limit),
        "Ratelimit-Remaining": str(remaining),
        "Ratelimit-Reset": str(reset if reset is not None else time.time() + 60),
    }


@pytest.fixture
def transport() -> FakeTransport:
    """Empty fake transport."""
    return FakeTransport()


@pytest.fixture
def make_response() -> Callable[..., ApiResponse]:
    """Factory building ApiResponse objects with a JSON body."""
    return _make_response


@pytest.fixture
def helix_headers() -> Callable[..., dict[str, str]]:
    """Factory building Helix rate limit headers."""
    return _helix_headers
