"""Catalog and enrollment endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import HERITAGE_101, auth


def test_list_courses_requires_token(client: TestClient) -> None:
    assert client.get("/v1/courses").status_code == 401


def test_list_courses_returns_published_catalog(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses", headers=auth(token))
    assert resp.status_code == 200
    by_id = {c["id"]: c for c in resp.json()}
    assert by_id[HERITAGE_101]["total_lessons"] == 4
    assert by_id["ethiopian-scripts"]["difficulty"] == "intermediate"


def test_course_detail_lists_lessons_in_order(client: TestClient, token: str) -> None:
    resp = client.get(f"/v1/courses/{HERITAGE_101}", headers=auth(token))
    assert resp.status_code == 200
    lessons = resp.json()["lessons"]
    assert [lesson["position"] for lesson in lessons] == [1, 2, 3, 4]
    assert lessons[1]["title"] == "The Rock-Hewn Churches of Lalibela"


def test_course_detail_unknown_is_404(client: TestClient, token: str) -> None:
    resp = client.get("/v1/courses/atlantis", headers=auth(token))
    assert resp.status_code == 404


def test_enroll_creates_course_progress(client: TestClient, token: str) -> None:
    resp = client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    assert resp.status_code == 201
    body = resp.json()
    assert body["course_id"] == HERITAGE_101
    assert body["status"] == "not_started"
    assert body["progress_percentage"] == 0
    assert len(body["lessons"]) == 4
    assert body["enrolled_at"] is not None


def test_enroll_twice_is_409(client: TestClient, token: str) -> None:
    client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    resp = client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_enrolled"


def test_enroll_unknown_course_is_404(client: TestClient, token: str) -> None:
    resp = client.post("/v1/courses/atlantis/enroll", headers=auth(token))
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


def test_unenroll_removes_course_progress(client: TestClient, token: str) -> None:
    client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    resp = client.delete(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    assert resp.status_code == 204

    progress = client.get("/v1/progress/me", headers=auth(token)).json()
    assert progress["courses"] == []


def test_unenroll_when_not_enrolled_is_404(client: TestClient, token: str) -> None:
    resp = client.delete(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    assert resp.status_code == 404
