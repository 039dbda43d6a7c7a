"""Certificate endpoints.

Issuance is idempotent: the first successful call returns 201 with the new
certificate, later calls return 200 with the same one.  Verification is
public (no token) and returns only the public-safe projection.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from heritage360.api.dependencies import get_certificate_service, require_permission
from heritage360.models.certificate import Certificate
from heritage360.models.principal import Principal
from heritage360.services.certificate_service import CertificateService

router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


class CertificateOut(BaseModel):
    certificate_id: str
    verification_code: str
    course_id: str
    course_title: str
    completion_date: int
    final_score: int
    time_spent: int
    lessons_completed: int
    total_lessons: int
    issued_at: int
    is_valid: bool
    revoked_at: int | None
    revoke_reason: str | None

    @classmethod
    def of(cls, cert: Certificate) -> CertificateOut:
        return cls(
            certificate_id=cert.certificate_id,
            verification_code=cert.verification_code,
            course_id=cert.course_id,
            course_title=cert.course_title,
            completion_date=cert.completion_date,
            final_score=cert.final_score,
            time_spent=cert.time_spent,
            lessons_completed=cert.lessons_completed,
            total_lessons=cert.total_lessons,
            issued_at=cert.issued_at,
            is_valid=cert.is_valid,
            revoked_at=cert.revoked_at,
            revoke_reason=cert.revoke_reason,
        )


class VerificationOut(BaseModel):
    certificate_id: str
    course_title: str
    completion_date: int
    final_score: int
    lessons_completed: int
    total_lessons: int
    issued_at: int
    valid: bool


class RevokeIn(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


_can_revoke = require_permission("certificate:revoke", "certificate")


@router.post(
    "/courses/{course_id}",
    response_model=CertificateOut,
    status_code=status.HTTP_201_CREATED,
)
async def issue_certificate(
    course_id: str,
    response: Response,
    principal: Annotated[
        Principal, Depends(require_permission("certificate:issue", "certificate"))
    ],
    service: Annotated[CertificateService, Depends(get_certificate_service)],
) -> CertificateOut:
    cert, created = await service.issue(principal.user_id, course_id)
    if not created:
        response.status_code = status.HTTP_200_OK
    return CertificateOut.of(cert)


@router.get("/me", response_model=list[CertificateOut])
async def list_my_certificates(
    principal: Annotated[Principal, Depends(require_permission("progress:read", "certificate"))],
    service: Annotated[CertificateService, Depends(get_certificate_service)],
) -> list[CertificateOut]:
    return [CertificateOut.of(c) for c in await service.list_for_learner(principal.user_id)]


@router.get("/verify/{verification_code}", response_model=VerificationOut)
async def verify_certificate(
    verification_code: str,
    service: Annotated[CertificateService, Depends(get_certificate_service)],
) -> VerificationOut:
    v = await service.verify(verification_code)
    return VerificationOut(
        certificate_id=v.certificate_id,
        course_title=v.course_title,
        completion_date=v.completion_date,
        final_score=v.final_score,
        lessons_completed=v.lessons_completed,
        total_lessons=v.total_lessons,
        issued_at=v.issued_at,
        valid=v.valid,
    )


@router.post("/{certificate_id}/revoke", response_model=CertificateOut)
async def revoke_certificate(
    certificate_id: str,
    payload: RevokeIn,
    principal: Annotated[Principal, Depends(_can_revoke)],
    service: Annotated[CertificateService, Depends(get_certificate_service)],
) -> CertificateOut:
    cert = await service.revoke(certificate_id, reason=payload.reason, actor=principal.user_id)
    return CertificateOut.of(cert)


@router.post("/{certificate_id}/reinstate", response_model=CertificateOut)
async def reinstate_certificate(
    certificate_id: str,
    principal: Annotated[Principal, Depends(_can_revoke)],
    service: Annotated[CertificateService, Depends(get_certificate_service)],
) -> CertificateOut:
    cert = await service.reinstate(certificate_id, actor=principal.user_id)
    return CertificateOut.of(cert)
