"""Shared fixtures: in-memory task store, fake auth service, fake model gateway."""
import json
import os
from contextlib import asynccontextmanager

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GATEWAY_API_KEY", "test-gateway-key")

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from core.integrations.auth_client import AuthClient
from core.llm.gateway import GatewayClient
from core.models.base import Base
from core.realtime.change_feed import TaskChangeFeed
from patterns.domain_config import AuthServiceConfig, GatewayConfig
from verticals.board.models import db_models  # noqa: F401
from verticals.board.service import TaskService

USER_ID = "3f1c2a9e-user-ada"
OTHER_USER_ID = "77aa01bb-user-bob"
TOKEN = "token-ada"
OTHER_TOKEN = "token-bob"

_USERS = {
    TOKEN: {"id": USER_ID, "email": "ada@example.com", "user_metadata": {"display_name": "Ada"}},
    OTHER_TOKEN: {"id": OTHER_USER_ID, "email": "bob@example.com", "user_metadata": {}},
}


def sse(*records) -> bytes:
    """Encode records the way the gateway frames them (blank line after each)."""
    out = []
    for record in records:
        payload = record if isinstance(record, str) else json.dumps(record)
        out.append(f"data: {payload}\n\n")
    return "".join(out).encode("utf-8")


def content_record(text: str) -> dict:
    return {"choices": [{"delta": {"content": text}}]}


def tool_record(arguments: str = "", name: str | None = None, index: int = 0) -> dict:
    function = {"arguments": arguments}
    if name:
        function["name"] = name
    return {"choices": [{"delta": {"tool_calls": [{"index": index, "function": function}]}}]}


async def aiter_chunks(chunks):
    for chunk in chunks:
        yield chunk


def auth_headers(token: str = TOKEN) -> dict:
    return {"Authorization": f"Bearer {token}"}


# ---------------------------------------------------------------------------
# Task store
# ---------------------------------------------------------------------------

@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    @asynccontextmanager
    async def factory():
        async with maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest.fixture
def feed():
    return TaskChangeFeed()


@pytest.fixture
def service(session_factory, feed):
    return TaskService(session_factory, feed)


# ---------------------------------------------------------------------------
# External services
# ---------------------------------------------------------------------------

def auth_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/auth/v1/user":
        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        user = _USERS.get(token)
        if user is None:
            return httpx.Response(401, json={"msg": "invalid JWT"})
        return httpx.Response(200, json=user)
    return httpx.Response(404)


@pytest.fixture
def auth_client():
    return AuthClient(
        AuthServiceConfig(url="http://auth.test", public_key="public-anon-key"),
        transport=httpx.MockTransport(auth_handler),
    )


class FakeUpstream:
    """Scriptable model gateway: records requests, streams configured chunks."""

    def __init__(self):
        self.status = 200
        self.chunks: list[bytes] = []
        self.requests: list[dict] = []
        self.body_read = False

    async def _body(self):
        self.body_read = True
        for chunk in self.chunks:
            yield chunk

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        return httpx.Response(
            self.status,
            headers={"content-type": "text/event-stream"},
            content=self._body(),
        )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
async def gateway(upstream):
    client = GatewayClient(
        GatewayConfig(url="http://gateway.test/v1/chat/completions", api_key="secret"),
        transport=httpx.MockTransport(upstream.handler),
    )
    yield client
    await client.aclose()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

@pytest.fixture
def app(service, feed, gateway, auth_client):
    from api.deps import get_auth_client
    from api.main import app
    from verticals.board.dependencies import get_change_feed, get_gateway, get_task_service

    app.dependency_overrides[get_auth_client] = lambda: auth_client
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_task_service] = lambda: service
    app.dependency_overrides[get_change_feed] = lambda: feed
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        yield client
