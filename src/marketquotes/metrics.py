"""Service-level request statistics for the aggregator."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any

from marketquotes.clock import DEFAULT_CLOCK, Clock


@dataclass
class ServiceMetrics:
    """Counters describing aggregator traffic.

    Attributes:
        total_requests: Quote lookups received (cache hits included).
        successful_requests: Lookups answered by a provider.
        failed_requests: Lookups no provider could answer.
        cache_hits: Lookups answered from the cache.
        cache_misses: Lookups that had to go to the provider chain.
        avg_response_ms: Running mean latency of successful provider lookups.
        provider_usage: Quotes served per provider name.
        last_update: Wall-clock time of the last change.
    """

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    avg_response_ms: float = 0.0
    provider_usage: dict[str, int] = field(default_factory=dict)
    last_update: datetime | None = None

    @property
    def cache_hit_rate(self) -> float:
        lookups = self.cache_hits + self.cache_misses
        if lookups == 0:
            return 0.0
        return self.cache_hits / lookups * 100

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "cache_hit_rate": round(self.cache_hit_rate, 2),
            "avg_response_ms": round(self.avg_response_ms, 2),
            "provider_usage": dict(self.provider_usage),
            "last_update": self.last_update.isoformat() if self.last_update else None,
        }


class MetricsRecorder:
    """Thread-safe owner of a ``ServiceMetrics`` instance.

    When ``enabled`` is False every ``record_*`` call is a no-op.
    """

    def __init__(self, enabled: bool = True, clock: Clock | None = None) -> None:
        self.enabled = enabled
        self.clock = clock or DEFAULT_CLOCK
        self._metrics = ServiceMetrics()
        self._lock = threading.Lock()

    def record_request(self, count: int = 1) -> None:
        self._bump("total_requests", count)

    def record_cache_hit(self, count: int = 1) -> None:
        self._bump("cache_hits", count)

    def record_cache_miss(self, count: int = 1) -> None:
        self._bump("cache_misses", count)

    def record_failure(self, count: int = 1) -> None:
        self._bump("failed_requests", count)

    def record_success(
        self,
        provider: str,
        count: int = 1,
        elapsed_ms: float | None = None,
    ) -> None:
        if not self.enabled or count <= 0:
            return
        with self._lock:
            m = self._metrics
            m.successful_requests += count
            m.provider_usage[provider] = m.provider_usage.get(provider, 0) + count
            if elapsed_ms is not None:
                n = m.successful_requests
                m.avg_response_ms = (m.avg_response_ms * (n - count) + elapsed_ms * count) / n
            m.last_update = self.clock.now()

    def snapshot(self) -> ServiceMetrics:
        """Independent copy of the current counters."""
        with self._lock:
            return replace(self._metrics, provider_usage=dict(self._metrics.provider_usage))

    def reset(self) -> None:
        with self._lock:
            self._metrics = ServiceMetrics()

    def _bump(self, name: str, count: int) -> None:
        if not self.enabled or count <= 0:
            return
        with self._lock:
            setattr(self._metrics, name, getattr(self._metrics, name) + count)
            self._metrics.last_update = self.clock.now()
