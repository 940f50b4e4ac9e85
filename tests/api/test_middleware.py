"""
Middleware test suite for scrape correlation.

Tests verify that every response carries an X-Request-ID header, generated
or passed through, and that the id is bound to the log context while the
request is served.
"""
import uuid
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from structlog.testing import capture_logs

from app.main import create_app
from app.pingz.core.types import PollConfig


@pytest.fixture
def client(mock_settings, state) -> Generator[TestClient, None, None]:
    app = create_app(PollConfig(interval=60.0), state=state, settings=mock_settings)
    with TestClient(app) as test_client:
        yield test_client


def test_request_id_generation(client: TestClient):
    """A scrape without an X-Request-ID gets a fresh UUID."""
    response = client.get("/metrics")

    assert response.status_code == 200
    req_id = response.headers.get("X-Request-ID")
    assert req_id is not None
    assert uuid.UUID(req_id)


def test_request_ids_differ_between_requests(client: TestClient):
    first = client.get("/metrics").headers["X-Request-ID"]
    second = client.get("/metrics").headers["X-Request-ID"]
    assert first != second


def test_request_id_passthrough(client: TestClient):
    """An id set by a proxy in front of the exporter is preserved."""
    custom_trace_id = "trace-abc-123"
    response = client.get(
        "/metrics",
        headers={"X-Request-ID": custom_trace_id}
    )

    assert response.headers.get("X-Request-ID") == custom_trace_id


def test_request_is_logged_with_its_id(client: TestClient):
    with capture_logs() as logs:
        client.get("/health/live", headers={"X-Request-ID": "scrape-1"})

    served = [log for log in logs if log["event"] == "request served"]
    assert len(served) == 1
    assert served[0]["path"] == "/health/live"
    assert served[0]["status"] == 200
