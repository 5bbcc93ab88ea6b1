"""Prometheus collector for the Helix rate limiter.

Exposes the last reported request budget and the state of the dispatch
queue so quota pressure can be watched alongside the application.
"""

from collections.abc import Iterator

import prometheus_client.core
import structlog
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .api.ratelimit import HelixRateLimiter
from .client import TwitchClient

logger = structlog.get_logger(__name__)


class RateLimiterCollector(Collector):
    """Prometheus collector reading a ``HelixRateLimiter`` on every scrape.

    Bucket gauges report -1 until the first Helix response has been seen.
    """

    def __init__(self, limiter: HelixRateLimiter, metric_prefix: str = "twitch_helix"):
        """Initialize the collector.

        Args:
            limiter: The limiter to observe.
            metric_prefix: Metric name prefix.
        """
        self._limiter = limiter
        self._metric_prefix = metric_prefix

    def _gauge(self, name: str, documentation: str, value: float) -> GaugeMetricFamily:
        gauge = GaugeMetricFamily(f"{self._metric_prefix}_{name}", documentation)
        gauge.add_metric([], value)
        return gauge

    def collect(self) -> Iterator[Metric]:
        """Collect limiter metrics for a Prometheus scrape."""
        stats = self._limiter.stats()
        bucket = stats.bucket

        yield self._gauge(
            "ratelimit_limit",
            "request budget per bucket as reported by Helix, -1 if unknown",
            bucket.limit if bucket is not None else -1,
        )
        yield self._gauge(
            "ratelimit_remaining",
            "requests left in the current bucket, -1 if unknown",
            bucket.remaining if bucket is not None else -1,
        )
        reset_at = bucket.reset_at if bucket is not None else None
        yield self._gauge(
            "ratelimit_reset_timestamp",
            "epoch seconds at which the bucket refills, -1 if unknown",
            reset_at if reset_at is not None else -1,
        )
        yield self._gauge(
            "queue_length",
            "requests waiting for rate limit capacity",
            stats.queue_length,
        )
        yield self._gauge(
            "in_flight",
            "requests sent and awaiting a response",
            stats.in_flight,
        )

        dispatched = CounterMetricFamily(
            f"{self._metric_prefix}_dispatched",
            "requests admitted by the rate limiter",
        )
        dispatched.add_metric([], stats.dispatched)
        yield dispatched


def create_registry(client: TwitchClient) -> prometheus_client.core.CollectorRegistry:
    """Create a Prometheus registry observing the client's rate limiter.

    Uses a custom registry instead of the global REGISTRY.
    """
    registry = prometheus_client.core.CollectorRegistry()
    registry.register(RateLimiterCollector(client.rate_limiter))
    logger.info("Registered collector", collector="helix_rate_limiter")
    return registry
