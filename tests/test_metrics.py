import sys

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CONTENT_TYPE_LATEST

from conftest import logged_events, make_settings
from purchase_api.main import create_app
from purchase_shared.metrics import MetricsRegistry


class BrokenRegistry(MetricsRegistry):
    def snapshot(self):
        raise RuntimeError("registry lock poisoned at 0xdeadbeef")


def test_metrics_exposition(client):
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == CONTENT_TYPE_LATEST
    assert resp.text
    assert "python_info" in resp.text


@pytest.mark.skipif(not sys.platform.startswith("linux"), reason="process collector reads /proc")
def test_metrics_include_default_process_metrics(client):
    body = client.get("/metrics").text
    assert "process_cpu_seconds_total" in body
    assert "process_resident_memory_bytes" in body


def test_requests_are_counted_by_route_template(client):
    client.get("/health")
    client.get("/does-not-exist")
    body = client.get("/metrics").text
    assert 'http_requests_total{method="GET",route="/health",status="200"} 1.0' in body
    assert 'route="<unmatched>",status="404"' in body
    assert 'http_request_duration_seconds_count{method="GET",route="/health"} 1.0' in body


def test_metrics_failure_returns_generic_error(settings, logger):
    app = create_app(settings, logger=logger, metrics=BrokenRegistry())
    with TestClient(app) as client:
        resp = client.get("/metrics")

    assert resp.status_code == 500
    assert resp.json()["error"]["code"] == "metrics_unavailable"
    assert "deadbeef" not in resp.text
    assert "metrics_export_failed" in logged_events(logger, "exception")


def test_metrics_route_absent_when_disabled(logger):
    app = create_app(make_settings(metrics_enabled=False), logger=logger)
    with TestClient(app) as client:
        resp = client.get("/metrics")
    assert resp.status_code == 404
    assert app.state.metrics is None


def test_registries_are_isolated():
    first = MetricsRegistry(default_metrics=False)
    second = MetricsRegistry(default_metrics=False)
    first.observe_request("GET", "/api", 200, 0.01)

    assert b'route="/api"' in first.snapshot()[0]
    assert b'route="/api"' not in second.snapshot()[0]


def test_namespace_prefixes_request_metrics():
    registry = MetricsRegistry(namespace="purchase", default_metrics=False)
    registry.observe_request("POST", "/api/users", 201, 0.2)
    payload, content_type = registry.snapshot()

    assert content_type == CONTENT_TYPE_LATEST
    assert b"purchase_http_requests_total" in payload
    assert b"purchase_http_request_duration_seconds_bucket" in payload


def test_collect_returns_metric_families():
    registry = MetricsRegistry(default_metrics=False)
    names = {family.name for family in registry.collect()}
    assert {"http_requests", "http_request_duration_seconds"} <= names


def test_handler_errors_are_counted_as_500(app):
    @app.get("/orders/{order_id}")
    async def order(order_id: int):
        raise RuntimeError("ledger offline")

    with TestClient(app) as client:
        assert client.get("/orders/7").status_code == 500
        body = client.get("/metrics").text
    assert 'http_requests_total{method="GET",route="/orders/{order_id}",status="500"} 1.0' in body
