from __future__ import annotations

from typing import Protocol

from heritage360.models.certificate import Certificate


class CertificateRepo(Protocol):
    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None: ...
    async def get_by_verification_code(self, code: str) -> Certificate | None: ...
    async def get_for_course(self, user_id: str, course_id: str) -> Certificate | None: ...
    async def list_by_user(self, user_id: str) -> list[Certificate]: ...
    async def add(self, certificate: Certificate) -> None: ...
    async def update(self, certificate: Certificate) -> None: ...


class InMemoryCertificateRepo:
    def __init__(self) -> None:
        self._by_certificate_id: dict[str, Certificate] = {}
        self._by_code: dict[str, Certificate] = {}

    async def get_by_certificate_id(self, certificate_id: str) -> Certificate | None:
        return self._by_certificate_id.get(certificate_id)

    async def get_by_verification_code(self, code: str) -> Certificate | None:
        return self._by_code.get(code)

    async def get_for_course(self, user_id: str, course_id: str) -> Certificate | None:
        for cert in self._by_certificate_id.values():
            if cert.user_id == user_id and cert.course_id == course_id:
                return cert
        return None

    async def list_by_user(self, user_id: str) -> list[Certificate]:
        certs = [c for c in self._by_certificate_id.values() if c.user_id == user_id]
        return sorted(certs, key=lambda c: c.issued_at, reverse=True)

    async def add(self, certificate: Certificate) -> None:
        if certificate.certificate_id in self._by_certificate_id:
            raise ValueError("certificate_id already exists")
        if certificate.verification_code in self._by_code:
            raise ValueError("verification_code already exists")
        if await self.get_for_course(certificate.user_id, certificate.course_id):
            raise ValueError("certificate already exists for this course")
        self._by_certificate_id[certificate.certificate_id] = certificate
        self._by_code[certificate.verification_code] = certificate

    async def update(self, certificate: Certificate) -> None:
        existing = self._by_certificate_id.get(certificate.certificate_id)
        if existing is None:
            raise KeyError("certificate not found")
        # Codes are rotated on reinstate; the old one must stop resolving.
        self._by_code.pop(existing.verification_code, None)
        self._by_certificate_id[certificate.certificate_id] = certificate
        self._by_code[certificate.verification_code] = certificate
