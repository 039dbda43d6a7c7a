from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from heritage360.api.dependencies import catalog_repo, certificate_repo, progress_repo
from heritage360.main import app
from heritage360.repos.catalog_repo import sample_courses
from heritage360.services import token_service
from heritage360.services.cache import cache_service

# Ensure repo root is on sys.path so `import heritage360` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

HERITAGE_101 = "ethiopian-heritage-101"
HERITAGE_101_LESSONS = [f"{HERITAGE_101}-l{i}" for i in range(1, 5)]


@pytest.fixture(autouse=True)
def reset_catalog() -> None:
    """Restore the sample catalog between tests."""
    if hasattr(catalog_repo, "clear"):
        catalog_repo.clear()  # type: ignore[union-attr]
        for course in sample_courses():
            catalog_repo.add(course)  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_progress_state() -> None:
    """Clear learner aggregates between tests."""
    if hasattr(progress_repo, "_store"):
        progress_repo._store.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_certificates() -> None:
    if hasattr(certificate_repo, "_by_certificate_id"):
        certificate_repo._by_certificate_id.clear()  # type: ignore[union-attr]
        certificate_repo._by_code.clear()  # type: ignore[union-attr]


@pytest.fixture(autouse=True)
def reset_cache() -> None:
    """Clear cache between tests."""
    if hasattr(cache_service, "_store"):
        cache_service._store.clear()  # type: ignore[union-attr]


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def mint_token(
    username: str = "test-user",
    roles: list[str] | None = None,
) -> str:
    """Create a valid ES256 JWT for testing."""
    return token_service.create_access_token(sub=username, roles=roles)


def auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token() -> str:
    """Token with default role (learner)."""
    return mint_token()


@pytest.fixture
def admin_token() -> str:
    return mint_token(username="test-admin", roles=["admin"])


@pytest.fixture
def instructor_token() -> str:
    return mint_token(username="test-instructor", roles=["instructor"])


def complete_course(client: TestClient, token: str, scores: list[int | None]) -> None:
    """Enroll in the sample heritage course and complete every lesson."""
    client.post(f"/v1/courses/{HERITAGE_101}/enroll", headers=auth(token))
    for lesson_id, score in zip(HERITAGE_101_LESSONS, scores, strict=True):
        body = {"time_spent": 10}
        if score is not None:
            body["score"] = score
        resp = client.post(
            f"/v1/lessons/{lesson_id}/complete", json=body, headers=auth(token)
        )
        assert resp.status_code == 200, resp.text
