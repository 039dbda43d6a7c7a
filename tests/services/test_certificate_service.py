from __future__ import annotations

import asyncio
import dataclasses
import re

import pytest

from heritage360.core.errors import NotEligibleError, NotFoundError
from heritage360.repos.catalog_repo import InMemoryCatalogRepo, sample_courses
from heritage360.repos.certificate_repo import InMemoryCertificateRepo
from heritage360.repos.progress_repo import InMemoryProgressRepo
from heritage360.services.cache import InMemoryCacheService
from heritage360.services.certificate_service import CertificateService, new_certificate_id
from heritage360.services.learner_lock import InMemoryLearnerLock
from heritage360.services.progress_service import ProgressService

COURSE_ID = "ethiopian-heritage-101"
LESSONS = [f"{COURSE_ID}-l{i}" for i in range(1, 5)]
NOW = 1_772_366_400  # 2026-03-01T12:00:00Z


class Harness:
    def __init__(self) -> None:
        catalog = InMemoryCatalogRepo(sample_courses())
        self.progress_repo = InMemoryProgressRepo()
        self.certificate_repo = InMemoryCertificateRepo()
        lock = InMemoryLearnerLock()
        self.progress = ProgressService(
            catalog=catalog,
            progress_repo=self.progress_repo,
            lock=lock,
            cache=InMemoryCacheService(),
            clock=lambda: NOW,
        )
        self.certificates = CertificateService(
            catalog=catalog,
            progress_repo=self.progress_repo,
            certificate_repo=self.certificate_repo,
            lock=lock,
            clock=lambda: NOW + 3600,
        )

    async def finish_course(self, user_id: str, scores: list[int | None]) -> None:
        await self.progress.enroll(user_id, COURSE_ID)
        for lesson_id, score in zip(LESSONS, scores, strict=True):
            await self.progress.complete_lesson(
                user_id, lesson_id, score=score, time_spent=15
            )


def test_certificate_id_format() -> None:
    assert re.fullmatch(r"CERT-20260301-[0-9A-F]{8}", new_certificate_id(NOW))


def test_issue_before_completion_not_eligible_and_nothing_persisted() -> None:
    h = Harness()

    async def scenario() -> None:
        await h.progress.enroll("u1", COURSE_ID)
        await h.progress.complete_lesson("u1", LESSONS[0])
        await h.certificates.issue("u1", COURSE_ID)

    with pytest.raises(NotEligibleError):
        asyncio.run(scenario())
    assert asyncio.run(h.certificate_repo.list_by_user("u1")) == []


def test_issue_without_enrollment_not_eligible() -> None:
    with pytest.raises(NotEligibleError):
        asyncio.run(Harness().certificates.issue("u1", COURSE_ID))


def test_issue_unknown_course_not_found() -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(Harness().certificates.issue("u1", "no-such-course"))


def test_issue_computes_record_from_course_progress() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [80, 90, 70, 100])
        return await h.certificates.issue("u1", COURSE_ID)

    cert, created = asyncio.run(scenario())
    assert created is True
    assert cert.final_score == 85
    assert cert.lessons_completed == 4
    assert cert.total_lessons == 4
    assert cert.time_spent == 60
    assert cert.completion_date == NOW
    assert cert.issued_at == NOW + 3600
    assert cert.course_title == "Introduction to Ethiopian Heritage"
    assert cert.is_valid is True


def test_final_score_ignores_unscored_lessons() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [None, 70, None, 81])
        return await h.certificates.issue("u1", COURSE_ID)

    cert, _ = asyncio.run(scenario())
    assert cert.final_score == 76  # 75.5 rounds up


def test_issue_is_idempotent() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [90, 90, 90, 90])
        first = await h.certificates.issue("u1", COURSE_ID)
        second = await h.certificates.issue("u1", COURSE_ID)
        return first, second

    (first, created_first), (second, created_second) = asyncio.run(scenario())
    assert created_first is True
    assert created_second is False
    assert first.certificate_id == second.certificate_id
    assert first.verification_code == second.verification_code
    assert len(asyncio.run(h.certificate_repo.list_by_user("u1"))) == 1


def test_concurrent_issue_creates_one_certificate() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [90, 90, 90, 90])
        return await asyncio.gather(
            h.certificates.issue("u1", COURSE_ID),
            h.certificates.issue("u1", COURSE_ID),
        )

    results = asyncio.run(scenario())
    assert {cert.certificate_id for cert, _ in results} == {results[0][0].certificate_id}
    assert sorted(created for _, created in results) == [False, True]


def test_verify_returns_public_projection() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [80, 90, 70, 100])
        cert, _ = await h.certificates.issue("u1", COURSE_ID)
        return cert, await h.certificates.verify(cert.verification_code)

    cert, verification = asyncio.run(scenario())
    fields = {f.name for f in dataclasses.fields(verification)}
    assert "user_id" not in fields
    assert "id" not in fields
    assert verification.certificate_id == cert.certificate_id
    assert verification.final_score == 85
    assert verification.valid is True


def test_verify_unknown_code_not_found() -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(Harness().certificates.verify("not-a-code"))


def test_revoked_certificate_fails_verification_and_blocks_reissue() -> None:
    h = Harness()

    async def setup():
        await h.finish_course("u1", [80, 80, 80, 80])
        cert, _ = await h.certificates.issue("u1", COURSE_ID)
        revoked = await h.certificates.revoke(
            cert.certificate_id, reason="academic misconduct", actor="admin-1"
        )
        return cert, revoked

    cert, revoked = asyncio.run(setup())
    assert revoked.is_valid is False
    assert revoked.revoked_at == NOW + 3600
    assert revoked.revoke_reason == "academic misconduct"

    with pytest.raises(NotFoundError):
        asyncio.run(h.certificates.verify(cert.verification_code))
    with pytest.raises(NotEligibleError):
        asyncio.run(h.certificates.issue("u1", COURSE_ID))
    # Revocation never deletes.
    assert len(asyncio.run(h.certificates.list_for_learner("u1"))) == 1


def test_reinstate_rotates_verification_code() -> None:
    h = Harness()

    async def scenario():
        await h.finish_course("u1", [80, 80, 80, 80])
        cert, _ = await h.certificates.issue("u1", COURSE_ID)
        await h.certificates.revoke(cert.certificate_id, reason="review", actor="a")
        reinstated = await h.certificates.reinstate(cert.certificate_id, actor="a")
        return cert, reinstated

    cert, reinstated = asyncio.run(scenario())
    assert reinstated.is_valid is True
    assert reinstated.revoked_at is None
    assert reinstated.verification_code != cert.verification_code

    assert asyncio.run(h.certificates.verify(reinstated.verification_code)).valid is True
    with pytest.raises(NotFoundError):
        asyncio.run(h.certificates.verify(cert.verification_code))


def test_revoke_unknown_certificate_not_found() -> None:
    with pytest.raises(NotFoundError):
        asyncio.run(Harness().certificates.revoke("CERT-X", reason="r", actor="a"))
