from __future__ import annotations

from fastapi.testclient import TestClient

from heritage360.main import app


def test_app_title() -> None:
    assert app.title == "heritage360-learning"


def test_all_routers_registered() -> None:
    paths = {route.path for route in app.routes}
    for expected in (
        "/v1/courses",
        "/v1/lessons/{lesson_id}",
        "/v1/lessons/{lesson_id}/quiz",
        "/v1/lessons/{lesson_id}/complete",
        "/v1/progress/me",
        "/v1/achievements",
        "/v1/certificates/verify/{verification_code}",
        "/v1/admin/courses/{course_id}/analytics",
        "/health",
        "/metrics",
    ):
        assert expected in paths


def test_lifespan_starts_without_backing_services() -> None:
    with TestClient(app) as client:
        assert client.get("/health").status_code == 200
