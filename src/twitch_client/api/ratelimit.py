"""Response-driven rate limiter for the Helix API.

Helix reports the caller's request budget in every response
(``Ratelimit-Limit``, ``Ratelimit-Remaining``, ``Ratelimit-Reset``). The
limiter admits requests while the last reported bucket has capacity and
queues them in arrival order otherwise. The reported values always replace
the local estimate, since the budget may be shared with other processes.
"""

import dataclasses
import threading
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import httpx
import structlog

from ..errors import RateLimitMetadataError
from .transport import ApiRequest, ApiResponse, Transport

logger = structlog.get_logger(__name__)

LIMIT_HEADER = "Ratelimit-Limit"
REMAINING_HEADER = "Ratelimit-Remaining"
RESET_HEADER = "Ratelimit-Reset"


@dataclass(frozen=True)
class RateLimitBucket:
    """Snapshot of the Helix request budget.

    ``reset_at`` is the epoch time at which the bucket is full again, or
    None when it is unknown (after a local refill, until the next response
    reports it).
    """

    limit: int
    remaining: int
    reset_at: float | None

    def consumed(self) -> "RateLimitBucket":
        return dataclasses.replace(self, remaining=max(0, self.remaining - 1))

    def refilled(self) -> "RateLimitBucket":
        return dataclasses.replace(self, remaining=self.limit, reset_at=None)


@dataclass(frozen=True)
class RateLimiterStats:
    """Point-in-time view of the limiter for monitoring."""

    bucket: RateLimitBucket | None
    queue_length: int
    in_flight: int
    dispatched: int


def bucket_from_headers(headers: Mapping[str, str]) -> RateLimitBucket:
    """Read the rate limit bucket from response headers.

    Raises:
        RateLimitMetadataError: If any of the three headers is missing or
            not numeric.
    """
    lookup = httpx.Headers(headers)
    try:
        return RateLimitBucket(
            limit=int(lookup[LIMIT_HEADER]),
            remaining=max(0, int(lookup[REMAINING_HEADER])),
            reset_at=float(lookup[RESET_HEADER]),
        )
    except (KeyError, ValueError) as e:
        msg = f"Helix response is missing valid rate limit headers: {e}"
        raise RateLimitMetadataError(msg) from e


class HelixRateLimiter:
    """Single-flight dispatcher for Helix requests.

    Requests are admitted strictly in arrival order: only the head of the
    queue may reserve capacity, and the check and the reservation happen
    under one lock. Before the first response (and after a local refill
    whose reset time is not yet known) capacity is unknown, so one request
    at a time is sent to learn it.

    Thread-safe. Transport failures propagate to the caller; the limiter
    never retries.
    """

    def __init__(
        self,
        transport: Transport,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the rate limiter.

        Args:
            transport: Transport used to send admitted requests.
            clock: Source of epoch seconds, compared with ``Ratelimit-Reset``.
        """
        self._transport = transport
        self._clock = clock
        self._condition = threading.Condition()
        self._queue: deque[object] = deque()
        self._bucket: RateLimitBucket | None = None
        self._in_flight = 0
        self._dispatched = 0

    @property
    def bucket(self) -> RateLimitBucket | None:
        """The current bucket, or None before the first response."""
        with self._condition:
            return self._bucket

    def stats(self) -> RateLimiterStats:
        with self._condition:
            return RateLimiterStats(
                bucket=self._bucket,
                queue_length=len(self._queue),
                in_flight=self._in_flight,
                dispatched=self._dispatched,
            )

    def request(self, request: ApiRequest) -> ApiResponse:
        """Send a request once the bucket admits it.

        Blocks the calling thread while the request is queued.

        Raises:
            RateLimitMetadataError: If the response lacks rate limit headers.
        """
        self._acquire()
        try:
            response = self._transport.send(request)
        except Exception:
            self._release(None)
            raise
        self._release(response)
        return response

    def _delay(self, now: float) -> float | None:
        """Seconds until the head of the queue may go, None if unbounded.

        An unbounded wait only happens while a request is in flight, whose
        completion wakes the queue.
        """
        bucket = self._bucket
        if bucket is None or (bucket.remaining == 0 and bucket.reset_at is None):
            return 0.0 if self._in_flight == 0 else None
        if bucket.remaining > 0:
            return 0.0
        return max(0.0, bucket.reset_at - now)

    def _reserve(self, now: float) -> None:
        bucket = self._bucket
        if bucket is None:
            return
        if bucket.remaining == 0 and bucket.reset_at is not None and now >= bucket.reset_at:
            bucket = bucket.refilled()
        self._bucket = bucket.consumed()

    def _acquire(self) -> None:
        ticket = object()
        with self._condition:
            self._queue.append(ticket)
            admitted = False
            try:
                while True:
                    if self._queue[0] is ticket:
                        now = self._clock()
                        delay = self._delay(now)
                        if delay == 0.0:
                            self._reserve(now)
                            self._queue.popleft()
                            self._in_flight += 1
                            self._dispatched += 1
                            self._condition.notify_all()
                            admitted = True
                            return
                        logger.debug(
                            "Waiting for Helix rate limit capacity",
                            wait_seconds=None if delay is None else round(delay, 3),
                            queue_length=len(self._queue),
                        )
                        self._condition.wait(delay)
                    else:
                        self._condition.wait()
            finally:
                if not admitted:
                    self._queue.remove(ticket)
                    self._condition.notify_all()

    def _release(self, response: ApiResponse | None) -> None:
        with self._condition:
            self._in_flight -= 1
            self._condition.notify_all()
            if response is None:
                return
            self._bucket = bucket_from_headers(response.headers)
            logger.debug(
                "Updated Helix rate limit bucket",
                limit=self._bucket.limit,
                remaining=self._bucket.remaining,
                reset_at=self._bucket.reset_at,
            )
