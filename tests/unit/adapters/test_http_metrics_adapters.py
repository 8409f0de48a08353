"""Unit tests for the HTTP metrics adapters."""

import threading

import pytest
from prometheus_client import CollectorRegistry, generate_latest

from routemetrics.adapters.http_metrics import FakeHttpMetrics, PrometheusHttpMetrics
from routemetrics.adapters.metrics_renderer import PrometheusMetricsRenderer
from routemetrics.core.config import MetricsSettings
from routemetrics.core.protocols import GaugeInstrument, HistogramInstrument, HttpMetrics

_LABELS = {"method": "GET", "response_code": "200", "route": "/users/{id}"}

# ---------------------------------------------------------------------------
# FakeHttpMetrics
# ---------------------------------------------------------------------------


class TestFakeHttpMetrics:
    def test_satisfies_protocols(self):
        fake = FakeHttpMetrics()

        assert isinstance(fake, HttpMetrics)
        assert isinstance(fake.total_requests, HistogramInstrument)
        assert isinstance(fake.in_flight_requests, GaugeInstrument)

    def test_slots_can_be_left_empty(self):
        fake = FakeHttpMetrics(in_flight=False, request_sizes=False)

        assert fake.in_flight_requests is None
        assert fake.request_sizes is None
        assert fake.total_requests is not None

    def test_clear_resets_all_state(self):
        fake = FakeHttpMetrics()
        fake.total_requests.observe(1.0, _LABELS)
        fake.response_sizes.observe(512, _LABELS)
        fake.in_flight_requests.inc({"method": "GET"})

        fake.clear()

        assert fake.total_requests.observations == []
        assert fake.response_sizes.observations == []
        assert fake.in_flight_requests.values == {}
        assert fake.in_flight_requests.calls == 0

    def test_gauge_is_atomic_across_threads(self):
        gauge = FakeHttpMetrics().in_flight_requests

        def churn():
            for _ in range(1_000):
                gauge.inc({"method": "GET"})
                gauge.dec({"method": "GET"})

        threads = [threading.Thread(target=churn) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert gauge.value(method="GET") == 0
        assert gauge.calls == 16_000


# ---------------------------------------------------------------------------
# PrometheusHttpMetrics
# ---------------------------------------------------------------------------


class TestPrometheusHttpMetrics:
    def test_registry_is_separate_from_default(self):
        from prometheus_client import REGISTRY

        adapter = PrometheusHttpMetrics()
        assert adapter.registry is not REGISTRY

    def test_generate_contains_expected_families(self):
        adapter = PrometheusHttpMetrics()
        output = PrometheusMetricsRenderer(adapter.registry).generate().decode()

        assert "http_total_requests" in output
        assert "http_in_flight_requests" in output
        assert "http_request_size_bytes" in output
        assert "http_response_size_bytes" in output

    def test_openmetrics_renderer_terminates_output(self):
        registry = CollectorRegistry()
        adapter = PrometheusHttpMetrics(registry=registry)
        adapter.total_requests.observe(3.0, _LABELS)
        renderer = PrometheusMetricsRenderer(registry, openmetrics=True)

        output = renderer.generate().decode()

        assert renderer.content_type.startswith("application/openmetrics-text")
        assert 'http_total_requests_count{method="GET",response_code="200",route="/users/{id}"} 1.0' in output
        assert output.endswith("# EOF\n")

    def test_observe_total_requests(self):
        registry = CollectorRegistry()
        adapter = PrometheusHttpMetrics(registry=registry)

        adapter.total_requests.observe(12.5, _LABELS)
        adapter.total_requests.observe(3.0, _LABELS)

        output = generate_latest(registry).decode()
        assert 'http_total_requests_count{method="GET",response_code="200",route="/users/{id}"} 2.0' in output
        assert 'http_total_requests_sum{method="GET",response_code="200",route="/users/{id}"} 15.5' in output

    def test_latency_buckets_are_log_scale(self):
        registry = CollectorRegistry()
        adapter = PrometheusHttpMetrics(registry=registry)
        adapter.total_requests.observe(3.0, _LABELS)

        output = generate_latest(registry).decode()
        assert 'http_total_requests_bucket{le="5.0",method="GET",response_code="200",route="/users/{id}"} 1.0' in output
        assert 'http_total_requests_bucket{le="2.0",method="GET",response_code="200",route="/users/{id}"} 0.0' in output

    def test_in_flight_gauge_uses_method_only(self):
        registry = CollectorRegistry()
        adapter = PrometheusHttpMetrics(registry=registry)

        adapter.in_flight_requests.inc({"method": "GET", "response_code": ""})
        adapter.in_flight_requests.inc({"method": "GET"})
        adapter.in_flight_requests.dec({"method": "GET"})

        output = generate_latest(registry).decode()
        assert 'http_in_flight_requests{method="GET"} 1.0' in output

    def test_prefix_is_applied(self):
        registry = CollectorRegistry()
        PrometheusHttpMetrics(MetricsSettings(prefix="edge"), registry=registry)

        output = generate_latest(registry).decode()
        assert "edge_total_requests" in output
        assert "http_total_requests" not in output

    def test_disabled_instruments_are_none(self):
        settings = MetricsSettings(total_requests_enabled=False, response_sizes_enabled=False)
        adapter = PrometheusHttpMetrics(settings)

        assert adapter.total_requests is None
        assert adapter.response_sizes is None
        assert adapter.request_sizes is not None
        assert adapter.in_flight_requests is not None

    def test_path_label_is_declared_when_enabled(self):
        registry = CollectorRegistry()
        adapter = PrometheusHttpMetrics(MetricsSettings(enable_path_label=True), registry=registry)

        adapter.response_sizes.observe(10, {**_LABELS, "path": "/users/42"})

        output = generate_latest(registry).decode()
        assert 'path="/users/42"' in output

    def test_missing_path_label_raises(self):
        adapter = PrometheusHttpMetrics(MetricsSettings(enable_path_label=True))

        with pytest.raises(KeyError):
            adapter.total_requests.observe(1.0, _LABELS)
