"""PostgreSQL implementation of CertificateRepo."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritage360.db.tables import CertificateRow
from heritage360.models.certificate import Certificate


class PgCertificateRepo:
    """Satisfies the CertificateRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def _one(self, *criteria) -> Certificate | None:
        async with self._session_factory() as session:
            stmt = select(CertificateRow).where(*criteria)
            row = (await session.execute(stmt)).scalar_one_or_none()
        return _row_to_certificate(row) if row is not None else None

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        return await self._one(CertificateRow.certificate_id == certificate_id)

    async def get_by_verification_code(self, code: str) -> Certificate | None:
        return await self._one(CertificateRow.verification_code == code)

    async def get_for_course(self, user_id: str, course_id: str) -> Certificate | None:
        return await self._one(
            CertificateRow.user_id == user_id, CertificateRow.course_id == course_id
        )

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        async with self._session_factory() as session:
            stmt = (
                select(CertificateRow)
                .where(CertificateRow.user_id == user_id)
                .order_by(CertificateRow.issued_at.desc())
            )
            rows = (await session.execute(stmt)).scalars().all()
        return [_row_to_certificate(r) for r in rows]

    async def add(self, certificate: Certificate) -> None:
        async with self._session_factory() as session, session.begin():
            session.add(
                CertificateRow(
                    id=certificate.id,
                    certificate_id=certificate.certificate_id,
                    verification_code=certificate.verification_code,
                    user_id=certificate.user_id,
                    course_id=certificate.course_id,
                    course_title=certificate.course_title,
                    completion_date=certificate.completion_date,
                    final_score=certificate.final_score,
                    time_spent=certificate.time_spent,
                    lessons_completed=certificate.lessons_completed,
                    total_lessons=certificate.total_lessons,
                    issued_at=certificate.issued_at,
                    is_valid=certificate.is_valid,
                )
            )

    async def update(self, certificate: Certificate) -> None:
        # Only the validity fields and the verification code ever change.
        async with self._session_factory() as session, session.begin():
            result = await session.execute(
                update(CertificateRow)
                .where(CertificateRow.certificate_id == certificate.certificate_id)
                .values(
                    verification_code=certificate.verification_code,
                    is_valid=certificate.is_valid,
                    revoked_at=certificate.revoked_at,
                    revoke_reason=certificate.revoke_reason,
                )
            )
            if result.rowcount == 0:
                raise KeyError("certificate not found")


def _row_to_certificate(row: CertificateRow) -> Certificate:
    return Certificate(
        id=row.id,
        certificate_id=row.certificate_id,
        verification_code=row.verification_code,
        user_id=row.user_id,
        course_id=row.course_id,
        course_title=row.course_title,
        completion_date=row.completion_date,
        final_score=row.final_score,
        time_spent=row.time_spent,
        lessons_completed=row.lessons_completed,
        total_lessons=row.total_lessons,
        issued_at=row.issued_at,
        is_valid=row.is_valid,
        revoked_at=row.revoked_at,
        revoke_reason=row.revoke_reason,
    )
