"""Course-completion certificates.

issue() is idempotent per (learner, course): a second call after
completion returns the certificate issued the first time.  The record is
immutable apart from its validity; revoke/reinstate flip it and nothing
is ever deleted.  Issuance runs under the same per-learner lock as
progress writes so two concurrent issue requests cannot both create one.

Identifiers:
  certificate_id     CERT-YYYYMMDD-XXXXXXXX   public, printed on the certificate
  verification_code  secrets.token_urlsafe    unguessable, used by /verify
"""

from __future__ import annotations

import datetime
import logging
import secrets
from collections.abc import Callable
from dataclasses import replace

from heritage360.core.errors import NotEligibleError, NotFoundError
from heritage360.core.metrics import CERTIFICATES_ISSUED
from heritage360.models.certificate import Certificate, CertificateVerification
from heritage360.repos.catalog_repo import CatalogRepo
from heritage360.repos.certificate_repo import CertificateRepo
from heritage360.repos.progress_repo import ProgressRepo
from heritage360.services.learner_lock import LearnerLock
from heritage360.services.progress_service import utc_now
from heritage360.services.progress_tracker import course_final_score

logger = logging.getLogger(__name__)

_MAX_ID_ATTEMPTS = 5


def new_certificate_id(now: int) -> str:
    day = datetime.datetime.fromtimestamp(now, datetime.UTC).strftime("%Y%m%d")
    return f"CERT-{day}-{secrets.token_hex(4).upper()}"


def new_verification_code() -> str:
    return secrets.token_urlsafe(24)


class CertificateService:
    def __init__(
        self,
        *,
        catalog: CatalogRepo,
        progress_repo: ProgressRepo,
        certificate_repo: CertificateRepo,
        lock: LearnerLock,
        clock: Callable[[], int] = utc_now,
    ) -> None:
        self._catalog = catalog
        self._progress = progress_repo
        self._certificates = certificate_repo
        self._lock = lock
        self._clock = clock

    async def issue(self, user_id: str, course_id: str) -> tuple[Certificate, bool]:
        """Issue (or return) the learner's certificate for a completed course.

        Returns (certificate, created).  Raises NotFoundError for an
        unknown course and NotEligibleError while the course is incomplete
        or the existing certificate has been revoked.
        """
        course = await self._catalog.get_course(course_id)
        if course is None:
            raise NotFoundError(f"course {course_id!r} not found")

        async with self._lock.hold(user_id):
            existing = await self._certificates.get_for_course(user_id, course_id)
            if existing is not None:
                if not existing.is_valid:
                    logger.warning(
                        "Re-issue of revoked certificate rejected user=%s course=%s",
                        user_id,
                        course_id,
                    )
                    raise NotEligibleError("certificate for this course has been revoked")
                return existing, False

            progress = await self._progress.get(user_id)
            cp = progress.course(course_id) if progress is not None else None
            if cp is None or not cp.is_completed:
                logger.warning(
                    "Certificate requested before completion user=%s course=%s",
                    user_id,
                    course_id,
                )
                raise NotEligibleError(f"course {course_id!r} is not completed")

            now = self._clock()
            certificate = Certificate.new(
                certificate_id=await self._unique(
                    lambda: new_certificate_id(now),
                    self._certificates.get_by_certificate_id,
                ),
                verification_code=await self._unique(
                    new_verification_code,
                    self._certificates.get_by_verification_code,
                ),
                user_id=user_id,
                course_id=course_id,
                course_title=course.title,
                completion_date=cp.completed_at or now,
                final_score=course_final_score(cp),
                time_spent=sum(lp.time_spent for lp in cp.lessons),
                lessons_completed=cp.completed_count,
                total_lessons=course.total_lessons,
                issued_at=now,
            )
            await self._certificates.add(certificate)

        CERTIFICATES_ISSUED.inc()
        logger.info(
            "Certificate issued user=%s course=%s certificate=%s final_score=%d",
            user_id,
            course_id,
            certificate.certificate_id,
            certificate.final_score,
        )
        return certificate, True

    async def verify(self, verification_code: str) -> CertificateVerification:
        cert = await self._certificates.get_by_verification_code(verification_code)
        if cert is None or not cert.is_valid:
            raise NotFoundError("certificate not found")
        return CertificateVerification.from_certificate(cert)

    async def list_for_learner(self, user_id: str) -> list[Certificate]:
        return await self._certificates.list_by_user(user_id)

    async def revoke(
        self, certificate_id: str, *, reason: str, actor: str
    ) -> Certificate:
        cert = await self._require(certificate_id)
        if not cert.is_valid:
            return cert
        revoked = replace(
            cert,
            is_valid=False,
            revoked_at=self._clock(),
            revoke_reason=reason,
        )
        await self._certificates.update(revoked)
        logger.info(
            "Certificate revoked certificate=%s by=%s reason=%s",
            certificate_id,
            actor,
            reason,
        )
        return revoked

    async def reinstate(self, certificate_id: str, *, actor: str) -> Certificate:
        cert = await self._require(certificate_id)
        if cert.is_valid:
            return cert
        reinstated = replace(
            cert,
            is_valid=True,
            revoked_at=None,
            revoke_reason=None,
            verification_code=await self._unique(
                new_verification_code,
                self._certificates.get_by_verification_code,
            ),
        )
        await self._certificates.update(reinstated)
        logger.info("Certificate reinstated certificate=%s by=%s", certificate_id, actor)
        return reinstated

    async def _require(self, certificate_id: str) -> Certificate:
        cert = await self._certificates.get_by_certificate_id(certificate_id)
        if cert is None:
            raise NotFoundError(f"certificate {certificate_id!r} not found")
        return cert

    @staticmethod
    async def _unique(generate: Callable[[], str], lookup) -> str:
        for _ in range(_MAX_ID_ATTEMPTS):
            candidate = generate()
            if await lookup(candidate) is None:
                return candidate
        raise RuntimeError("could not generate a unique certificate identifier")
