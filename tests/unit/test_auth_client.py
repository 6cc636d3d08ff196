"""Unit tests for the auth service client."""

import httpx
import pytest

from rahat_service.infrastructure.auth import AuthServiceClient


def auth_transport(session=None, member=None, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["cookie"] == "session=abc"
        if request.url.path == "/api/auth/get-session":
            return httpx.Response(status_code, json=session)
        if request.url.path == "/api/v1/members/me":
            return httpx.Response(status_code, json={"member": member})
        return httpx.Response(404)

    return httpx.MockTransport(handler)


@pytest.mark.unit
class TestAuthServiceClient:
    async def test_resolves_actor(self):
        client = AuthServiceClient(
            base_url="http://auth.test",
            transport=auth_transport(
                session={"session": {"id": "s-1"}, "user": {"id": "user-7"}},
                member={"userId": "user-7", "departmentSlug": "tehsil-office", "role": "tehsildar"},
            ),
        )

        actor = await client.resolve_actor("session=abc")
        await client.close()

        assert actor.user_id == "user-7"
        assert actor.role == "tehsildar"
        assert actor.department == "tehsil-office"

    async def test_no_session(self):
        client = AuthServiceClient(base_url="http://auth.test", transport=auth_transport(session=None))

        assert await client.resolve_actor("session=abc") is None
        assert await client.resolve_actor("") is None
        await client.close()

    async def test_no_membership(self):
        client = AuthServiceClient(
            base_url="http://auth.test",
            transport=auth_transport(session={"user": {"id": "user-7"}}, member=None),
        )

        assert await client.resolve_actor("session=abc") is None
        await client.close()

    async def test_auth_service_errors_propagate(self):
        client = AuthServiceClient(base_url="http://auth.test", transport=auth_transport(status_code=503))

        with pytest.raises(httpx.HTTPStatusError):
            await client.resolve_actor("session=abc")
        await client.close()
