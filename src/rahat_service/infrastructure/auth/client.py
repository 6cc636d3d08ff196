"""Client for the external auth service.

The auth service owns sessions and department membership. Given the
caller's session cookie it returns the signed-in user and their member
record (department slug and department role).
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from rahat_service.config import settings
from rahat_service.models import Actor

logger = logging.getLogger(__name__)


class Member(BaseModel):
    """Department membership of a user. Read-only to this service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    user_id: str = Field(alias="userId")
    department_slug: str = Field(default="", alias="departmentSlug")
    role: str = ""


class AuthServiceClient:
    """Resolves a session cookie into an Actor via the auth service."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.auth_url).rstrip("/")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.auth_timeout_seconds,
            transport=transport,
        )

    async def get_session(self, cookie: str) -> Optional[Dict[str, Any]]:
        """
        Get current session information.

        Returns:
            ``{"session": {...}, "user": {...}}`` or None when there is no session
        """
        if not cookie:
            return None
        try:
            response = await self.client.get("/api/auth/get-session", headers={"Cookie": cookie})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Session lookup failed: {e}")
            raise
        return (response.json() if response.content else None) or None

    async def current_member(self, cookie: str) -> Optional[Member]:
        """Get the member record of the signed-in user."""
        if not cookie:
            return None
        try:
            response = await self.client.get("/api/v1/members/me", headers={"Cookie": cookie})
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Member lookup failed: {e}")
            raise
        member = (response.json() or {}).get("member")
        return Member.model_validate(member) if member else None

    async def resolve_actor(self, cookie: str) -> Optional[Actor]:
        session = await self.get_session(cookie)
        user = (session or {}).get("user")
        if not user:
            return None

        member = await self.current_member(cookie)
        if member is None:
            return None

        return Actor(user_id=user["id"], role=member.role, department=member.department_slug)

    async def close(self):
        await self.client.aclose()
