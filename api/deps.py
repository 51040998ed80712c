"""Request authentication dependencies.

Every board endpoint depends on get_current_user, which resolves the
bearer token through the managed auth service. The returned Identity is
the only source of the owner id written to the task store; client
payloads never supply it.

    @router.get("/tasks")
    async def list_tasks(identity: Identity = Depends(get_current_user)):
        ...
"""

from functools import lru_cache

from fastapi import Depends, Header

from core.integrations.auth_client import AuthClient, Identity, parse_bearer
from verticals.board.config import config


@lru_cache
def get_auth_client() -> AuthClient:
    return AuthClient(config.auth)


async def get_current_user(
    authorization: str | None = Header(None),
    auth: AuthClient = Depends(get_auth_client),
) -> Identity:
    """Resolve ``Authorization: Bearer <token>`` to an Identity or raise Unauthorized."""
    token = parse_bearer(authorization)
    return await auth.get_user(token)
