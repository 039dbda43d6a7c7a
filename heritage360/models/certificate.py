from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True, slots=True)
class Certificate:
    """Issued completion record.

    Immutable apart from the validity flag: revocation flips is_valid,
    nothing is ever hard-deleted.
    """

    id: UUID
    certificate_id: str  # public, e.g. CERT-20260301-9F2C11AB
    verification_code: str
    user_id: str
    course_id: str
    course_title: str
    completion_date: int
    final_score: int
    time_spent: int
    lessons_completed: int
    total_lessons: int
    issued_at: int
    is_valid: bool = True
    revoked_at: int | None = None
    revoke_reason: str | None = None

    @staticmethod
    def new(
        *,
        certificate_id: str,
        verification_code: str,
        user_id: str,
        course_id: str,
        course_title: str,
        completion_date: int,
        final_score: int,
        time_spent: int,
        lessons_completed: int,
        total_lessons: int,
        issued_at: int,
    ) -> Certificate:
        return Certificate(
            id=uuid4(),
            certificate_id=certificate_id,
            verification_code=verification_code,
            user_id=user_id,
            course_id=course_id,
            course_title=course_title,
            completion_date=completion_date,
            final_score=final_score,
            time_spent=time_spent,
            lessons_completed=lessons_completed,
            total_lessons=total_lessons,
            issued_at=issued_at,
        )


@dataclass(frozen=True, slots=True)
class CertificateVerification:
    """Public-safe projection returned by verification lookups."""

    certificate_id: str
    course_title: str
    completion_date: int
    final_score: int
    lessons_completed: int
    total_lessons: int
    issued_at: int
    valid: bool = True

    @staticmethod
    def from_certificate(cert: Certificate) -> CertificateVerification:
        return CertificateVerification(
            certificate_id=cert.certificate_id,
            course_title=cert.course_title,
            completion_date=cert.completion_date,
            final_score=cert.final_score,
            lessons_completed=cert.lessons_completed,
            total_lessons=cert.total_lessons,
            issued_at=cert.issued_at,
            valid=cert.is_valid,
        )
