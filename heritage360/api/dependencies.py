from __future__ import annotations

import logging
from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer

from heritage360.core import policy
from heritage360.core.config import SETTINGS
from heritage360.core.policy import Resource
from heritage360.db.engine import async_session_factory
from heritage360.models.principal import Principal
from heritage360.repos.catalog_repo import CatalogRepo, InMemoryCatalogRepo, sample_courses
from heritage360.repos.certificate_repo import CertificateRepo, InMemoryCertificateRepo
from heritage360.repos.pg_catalog_repo import PgCatalogRepo
from heritage360.repos.pg_certificate_repo import PgCertificateRepo
from heritage360.repos.pg_progress_repo import PgProgressRepo
from heritage360.repos.progress_repo import InMemoryProgressRepo, ProgressRepo
from heritage360.services import token_service
from heritage360.services.cache import cache_service
from heritage360.services.certificate_service import CertificateService
from heritage360.services.learner_lock import learner_lock
from heritage360.services.progress_service import ProgressService

logger = logging.getLogger(__name__)

# Tokens are issued by the upstream auth service; tokenUrl is only used
# by the OpenAPI docs.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/oauth/token")


def require_user(
    raw_token: Annotated[str, Depends(oauth2_scheme)],
) -> Principal:
    """Extract and validate the JWT bearer token. Returns a Principal."""
    try:
        claims = token_service.decode_access_token(raw_token)
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token expired",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    principal = Principal(
        user_id=claims["sub"],
        roles=frozenset(claims.get("roles", [])),
    )
    logger.debug(
        "Token validated for user=%s roles=%s",
        principal.user_id,
        principal.roles,
    )
    return principal


def require_role(role: str):
    """Dependency factory: demand a specific role.

    Usage: Depends(require_role("admin"))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        if not principal.has_role(role):
            logger.warning(
                "Access denied: user=%s missing role=%s",
                principal.user_id,
                role,
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return _guard


def require_permission(action: str, kind: str):
    """Dependency factory: ask the policy whether the caller may act on
    their own resource of `kind`.

    Usage: Depends(require_permission("certificate:issue", "certificate"))
    """

    def _guard(
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        _check(principal, action, Resource(kind=kind, owner_id=principal.user_id))
        return principal

    return _guard


def require_learner_permission(action: str, kind: str):
    """Like require_permission, but the resource belongs to the learner
    named by the `user_id` path parameter."""

    def _guard(
        user_id: str,
        principal: Annotated[Principal, Depends(require_user)],
    ) -> Principal:
        _check(principal, action, Resource(kind=kind, owner_id=user_id))
        return principal

    return _guard


def _check(principal: Principal, action: str, resource: Resource) -> None:
    decision = policy.evaluate(principal, action, resource)
    if not decision.allowed:
        logger.warning(
            "Access denied: user=%s action=%s reason=%s",
            principal.user_id,
            action,
            decision.reason,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )


# ---------------------------------------------------------------------------
# Composition root
# ---------------------------------------------------------------------------
# Postgres repositories when DATABASE_URL is configured, in-memory ones
# (catalog seeded with the sample courses) otherwise.

if async_session_factory is not None:
    catalog_repo: CatalogRepo = PgCatalogRepo(async_session_factory)
    progress_repo: ProgressRepo = PgProgressRepo(async_session_factory)
    certificate_repo: CertificateRepo = PgCertificateRepo(async_session_factory)
else:
    catalog_repo = InMemoryCatalogRepo(sample_courses())
    progress_repo = InMemoryProgressRepo()
    certificate_repo = InMemoryCertificateRepo()

progress_service = ProgressService(
    catalog=catalog_repo,
    progress_repo=progress_repo,
    lock=learner_lock,
    cache=cache_service,
    tz=SETTINGS.streak_tz,
    max_retries=SETTINGS.progress_max_retries,
)

certificate_service = CertificateService(
    catalog=catalog_repo,
    progress_repo=progress_repo,
    certificate_repo=certificate_repo,
    lock=learner_lock,
)


def get_catalog() -> CatalogRepo:
    return catalog_repo


def get_progress_service() -> ProgressService:
    return progress_service


def get_certificate_service() -> CertificateService:
    return certificate_service
