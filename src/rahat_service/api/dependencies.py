"""FastAPI dependencies: storage selection, services and the acting user."""

import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Request

from rahat_service.config import settings
from rahat_service.core import AnalyticsService, CaseManager
from rahat_service.core.errors import AuthorizationError
from rahat_service.infrastructure.auth import AuthServiceClient
from rahat_service.infrastructure.database import db_client
from rahat_service.infrastructure.persistence import (
    CaseRepository,
    InMemoryCaseRepository,
    SQLCaseRepository,
)
from rahat_service.models import Actor, Role

logger = logging.getLogger(__name__)

COLLECTOR_OFFICE = "collector-office"

# Global singleton in-memory repository (persists across requests)
_inmemory_repository: Optional[InMemoryCaseRepository] = None
_auth_client: Optional[AuthServiceClient] = None


async def get_case_repository() -> AsyncGenerator[CaseRepository, None]:
    """Dependency to get case repository.

    Returns the appropriate repository implementation based on the
    CASE_STORAGE_TYPE setting:
    - inmemory (default): InMemoryCaseRepository singleton for dev/testing
    - postgres: SQLCaseRepository on the configured DATABASE_URL
    """
    if settings.case_storage_type.lower() == "postgres":
        async for session in db_client.get_session():
            yield SQLCaseRepository(session)
    else:
        global _inmemory_repository
        if _inmemory_repository is None:
            _inmemory_repository = InMemoryCaseRepository()
        yield _inmemory_repository


async def get_case_manager(
    repository: CaseRepository = Depends(get_case_repository),
) -> CaseManager:
    """Dependency to get case manager with repository."""
    return CaseManager(repository)


async def get_analytics_service(
    repository: CaseRepository = Depends(get_case_repository),
) -> AnalyticsService:
    return AnalyticsService(repository)


def get_auth_client() -> AuthServiceClient:
    global _auth_client
    if _auth_client is None:
        _auth_client = AuthServiceClient()
    return _auth_client


async def close_auth_client() -> None:
    global _auth_client
    if _auth_client is not None:
        await _auth_client.close()
        _auth_client = None


async def get_actor(
    request: Request,
    x_user_id: Optional[str] = Header(None, alias="X-User-ID"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
    x_user_department: Optional[str] = Header(None, alias="X-User-Department"),
) -> Actor:
    """Resolve the acting user.

    With the default ``gateway`` identity provider the API Gateway has
    already validated the session and set X-User-* headers. With
    ``auth-service`` the session cookie is resolved against the auth service.

    Raises:
        AuthorizationError: If no user could be resolved
    """
    if settings.identity_provider == "auth-service":
        actor = await get_auth_client().resolve_actor(request.headers.get("cookie", ""))
    elif x_user_id:
        actor = Actor(user_id=x_user_id, role=x_user_role or "", department=x_user_department or "")
    else:
        actor = None

    if actor is None:
        raise AuthorizationError()
    return actor


async def require_tehsildar(actor: Actor = Depends(get_actor)) -> Actor:
    """Tehsildars, or anyone in the Collector's office."""
    if actor.department != COLLECTOR_OFFICE and actor.role != Role.TEHSILDAR.value:
        logger.warning(f"User {actor.user_id} ({actor.role}) denied Tehsildar route")
        raise AuthorizationError()
    return actor


async def require_collector(actor: Actor = Depends(get_actor)) -> Actor:
    if actor.role != Role.COLLECTOR.value:
        logger.warning(f"User {actor.user_id} ({actor.role}) denied Collector route")
        raise AuthorizationError()
    return actor
