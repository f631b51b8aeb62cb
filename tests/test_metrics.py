"""Tests for ServiceMetrics and its recorder."""

import threading

import pytest

from marketquotes.metrics import MetricsRecorder, ServiceMetrics


class TestServiceMetrics:
    def test_defaults(self):
        m = ServiceMetrics()
        assert m.total_requests == 0
        assert m.provider_usage == {}
        assert m.last_update is None
        assert m.cache_hit_rate == 0.0

    def test_to_dict(self):
        m = ServiceMetrics(cache_hits=1, cache_misses=3, avg_response_ms=12.345)
        d = m.to_dict()
        assert d["cache_hit_rate"] == 25.0
        assert d["avg_response_ms"] == 12.35
        assert d["last_update"] is None


class TestMetricsRecorder:
    def test_counters(self, clock):
        rec = MetricsRecorder(clock=clock)
        rec.record_request(3)
        rec.record_cache_hit()
        rec.record_cache_miss(2)
        rec.record_failure()
        m = rec.snapshot()
        assert m.total_requests == 3
        assert m.cache_hits == 1
        assert m.cache_misses == 2
        assert m.failed_requests == 1
        assert m.last_update == clock.now()

    def test_running_average(self, clock):
        rec = MetricsRecorder(clock=clock)
        rec.record_success("A", elapsed_ms=100.0)
        rec.record_success("A", elapsed_ms=200.0)
        rec.record_success("B", elapsed_ms=300.0)
        m = rec.snapshot()
        assert m.successful_requests == 3
        assert m.avg_response_ms == pytest.approx(200.0)
        assert m.provider_usage == {"A": 2, "B": 1}

    def test_success_without_timing_keeps_average(self, clock):
        rec = MetricsRecorder(clock=clock)
        rec.record_success("A", elapsed_ms=100.0)
        rec.record_success("A", count=3)
        m = rec.snapshot()
        assert m.successful_requests == 4
        assert m.avg_response_ms == pytest.approx(100.0)

    def test_disabled(self, clock):
        rec = MetricsRecorder(enabled=False, clock=clock)
        rec.record_request()
        rec.record_success("A", elapsed_ms=1.0)
        assert rec.snapshot() == ServiceMetrics()

    def test_snapshot_is_copy(self, clock):
        rec = MetricsRecorder(clock=clock)
        rec.record_success("A")
        snap = rec.snapshot()
        snap.provider_usage["A"] = 100
        assert rec.snapshot().provider_usage == {"A": 1}

    def test_reset(self, clock):
        rec = MetricsRecorder(clock=clock)
        rec.record_request()
        rec.reset()
        assert rec.snapshot().total_requests == 0

    def test_thread_safe_counts(self, clock):
        rec = MetricsRecorder(clock=clock)

        def worker():
            for _ in range(1000):
                rec.record_request()
                rec.record_success("A")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        m = rec.snapshot()
        assert m.total_requests == 8000
        assert m.provider_usage == {"A": 8000}
