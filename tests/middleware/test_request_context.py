from __future__ import annotations

import logging
import uuid

import pytest
from fastapi.testclient import TestClient

from heritage360.middleware.request_context import request_id_var


def test_request_id_generated_when_not_provided(client: TestClient) -> None:
    resp = client.get("/health")
    uuid.UUID(resp.headers["x-request-id"])


def test_request_id_echoed_when_provided(client: TestClient) -> None:
    resp = client.get("/health", headers={"X-Request-ID": "trace-abc-123"})
    assert resp.headers.get("x-request-id") == "trace-abc-123"


def test_request_id_present_on_error_responses(client: TestClient) -> None:
    resp = client.get("/v1/progress/me")  # no token -> 401
    assert resp.status_code == 401
    assert resp.headers.get("x-request-id") is not None


def test_completion_log_line_carries_context(
    client: TestClient, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.INFO, logger="heritage360.middleware.request_context"):
        client.get("/health", headers={"X-Request-ID": "ctx-42"})
    records = [r for r in caplog.records if getattr(r, "path", None) == "/health"]
    assert records
    assert records[-1].request_id == "ctx-42"  # type: ignore[attr-defined]
    assert records[-1].status_code == 200  # type: ignore[attr-defined]


def test_default_request_id_outside_requests() -> None:
    assert request_id_var.get() == "-"
