"""Course analytics and role checks across protected endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from tests.conftest import HERITAGE_101, HERITAGE_101_LESSONS, auth, mint_token

ANALYTICS_URL = f"/v1/admin/courses/{HERITAGE_101}/analytics"


@pytest.mark.parametrize(
    ("roles", "expected"),
    [
        (None, 401),
        (["learner"], 403),
        (["instructor"], 200),
        (["admin"], 200),
    ],
)
def test_analytics_access(client: TestClient, roles: list[str] | None, expected: int) -> None:
    headers = {} if roles is None else auth(mint_token(username="staff", roles=roles))
    assert client.get(ANALYTICS_URL, headers=headers).status_code == expected


def test_analytics_counts(client: TestClient, admin_token: str) -> None:
    for name in ("amara", "bekele"):
        client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(mint_token(name)))
    client.post(
        f"/v1/lessons/{HERITAGE_101_LESSONS[0]}/complete",
        json={},
        headers=auth(mint_token("bekele")),
    )

    body = client.get(ANALYTICS_URL, headers=auth(admin_token)).json()
    assert body == {
        "course_id": HERITAGE_101,
        "enrolled": 2,
        "in_progress": 1,
        "completed": 0,
        "average_percentage": 13,  # (0 + 25) / 2 = 12.5
        "completion_rate": 0,
    }


def test_analytics_unknown_course_is_404(client: TestClient, admin_token: str) -> None:
    resp = client.get("/v1/admin/courses/atlantis/analytics", headers=auth(admin_token))
    assert resp.status_code == 404


def test_invalid_token_rejected(client: TestClient) -> None:
    resp = client.get(ANALYTICS_URL, headers=auth("not-a-jwt"))
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
