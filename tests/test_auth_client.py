"""Test bearer parsing and the auth service client."""
import json

import httpx
import pytest

from core.errors import AuthServiceError, Unauthorized
from core.integrations.auth_client import AuthClient, parse_bearer
from patterns.domain_config import AuthServiceConfig

USER = {"id": "u-1", "email": "ada@example.com", "user_metadata": {"display_name": "Ada"}}
SESSION = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "token_type": "bearer",
    "expires_in": 3600,
    "user": USER,
}


def make_client(handler) -> AuthClient:
    return AuthClient(
        AuthServiceConfig(url="http://auth.test", public_key="anon"),
        transport=httpx.MockTransport(handler),
    )


def test_parse_bearer():
    assert parse_bearer("Bearer abc.def") == "abc.def"


@pytest.mark.parametrize("header", [None, "", "abc.def", "Basic abc", "Bearer ", "bearer abc"])
def test_parse_bearer_rejects(header):
    with pytest.raises(Unauthorized):
        parse_bearer(header)


@pytest.mark.asyncio
async def test_sign_in():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["grant_type"] = request.url.params.get("grant_type")
        seen["apikey"] = request.headers.get("apikey")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SESSION)

    session = await make_client(handler).sign_in("ada@example.com", "pw")

    assert seen == {
        "path": "/auth/v1/token",
        "grant_type": "password",
        "apikey": "anon",
        "body": {"email": "ada@example.com", "password": "pw"},
    }
    assert session.access_token == "access-1"
    assert session.user.display_name == "Ada"
    assert not session.is_expired


@pytest.mark.asyncio
async def test_sign_in_rejected():
    def handler(request):
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})

    with pytest.raises(Unauthorized, match="Invalid login credentials"):
        await make_client(handler).sign_in("ada@example.com", "wrong")


@pytest.mark.asyncio
async def test_sign_up_sends_display_name():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json=SESSION)

    session = await make_client(handler).sign_up("ada@example.com", "pw", "Ada")
    assert bodies[0]["data"] == {"display_name": "Ada"}
    assert session.user.user_id == "u-1"


@pytest.mark.asyncio
async def test_sign_up_pending_confirmation():
    def handler(request):
        return httpx.Response(200, json=USER)

    assert await make_client(handler).sign_up("ada@example.com", "pw", "Ada") is None


@pytest.mark.asyncio
async def test_sign_up_rejected():
    def handler(request):
        return httpx.Response(422, json={"msg": "User already registered"})

    with pytest.raises(AuthServiceError, match="already registered"):
        await make_client(handler).sign_up("ada@example.com", "pw", "Ada")


@pytest.mark.asyncio
async def test_get_user():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer access-1"
        return httpx.Response(200, json=USER)

    identity = await make_client(handler).get_user("access-1")
    assert identity.user_id == "u-1"
    assert identity.email == "ada@example.com"


@pytest.mark.asyncio
async def test_get_user_rejected():
    def handler(request):
        return httpx.Response(401, json={"msg": "invalid JWT"})

    with pytest.raises(Unauthorized):
        await make_client(handler).get_user("expired")


@pytest.mark.asyncio
async def test_get_user_service_unreachable():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(Unauthorized):
        await make_client(handler).get_user("access-1")


@pytest.mark.asyncio
async def test_sign_out():
    paths = []

    def handler(request):
        paths.append((request.url.path, request.headers.get("Authorization")))
        return httpx.Response(204)

    await make_client(handler).sign_out("access-1")
    assert paths == [("/auth/v1/logout", "Bearer access-1")]
