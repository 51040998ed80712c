"""
FlowBoard Auth Client — managed auth service integration.

Talks to a GoTrue-compatible REST API (``/auth/v1/...``):
- Password sign-in and sign-up (with display name)
- Sign-out (access token revocation)
- Bearer token → user identity resolution

The public key travels in the ``apikey`` header on every call; the user's
access token, where needed, in ``Authorization``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging

import httpx

from core.errors import AuthServiceError, Unauthorized
from patterns.domain_config import AuthServiceConfig

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def parse_bearer(header: str | None) -> str:
    """Extract the token from an Authorization header or raise Unauthorized."""
    if not header or not header.startswith(BEARER_PREFIX):
        raise Unauthorized()
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized()
    return token


@dataclass
class Identity:
    """An authenticated user as reported by the auth service."""
    user_id: str
    email: str | None = None
    display_name: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "Identity":
        metadata = data.get("user_metadata") or {}
        return cls(
            user_id=str(data["id"]),
            email=data.get("email"),
            display_name=metadata.get("display_name"),
        )


@dataclass
class AuthSession:
    """Access/refresh token pair for a signed-in user."""
    access_token: str
    user: Identity
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_at: datetime | None = None
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "AuthSession":
        expires_in = data.get("expires_in")
        expires_at = (
            datetime.now(timezone.utc) + timedelta(seconds=int(expires_in))
            if expires_in else None
        )
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "bearer"),
            expires_at=expires_at,
            user=Identity.from_payload(data["user"]),
        )


class AuthClient:
    """Async client for the managed auth service."""

    def __init__(
        self,
        config: AuthServiceConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport

    def _headers(self, access_token: str | None = None) -> dict[str, str]:
        headers = {"apikey": self.config.public_key}
        if access_token:
            headers["Authorization"] = f"{BEARER_PREFIX}{access_token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        access_token: str | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.config.url,
            transport=self._transport,
            timeout=self.config.timeout_seconds,
        ) as client:
            return await client.request(
                method, path, headers=self._headers(access_token), **kwargs
            )

    async def sign_in(self, email: str, password: str) -> AuthSession:
        """Password sign-in. Raises Unauthorized on bad credentials."""
        resp = await self._request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if resp.status_code != 200:
            logger.info("Sign-in rejected for %s: HTTP %s", email, resp.status_code)
            raise Unauthorized(_error_message(resp) or "Invalid login credentials")
        return AuthSession.from_payload(resp.json())

    async def sign_up(
        self, email: str, password: str, display_name: str
    ) -> AuthSession | None:
        """Register a user.

        Returns the new session, or None when the service requires email
        confirmation before the first sign-in.
        """
        resp = await self._request(
            "POST",
            "/auth/v1/signup",
            json={
                "email": email,
                "password": password,
                "data": {"display_name": display_name},
            },
        )
        if resp.status_code not in (200, 201):
            raise AuthServiceError(_error_message(resp) or "Sign-up failed")

        data = resp.json()
        if "access_token" in data:
            return AuthSession.from_payload(data)
        return None

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind access_token."""
        resp = await self._request("POST", "/auth/v1/logout", access_token=access_token)
        if resp.status_code not in (200, 204, 401):
            logger.warning("Sign-out returned HTTP %s", resp.status_code)

    async def get_user(self, access_token: str) -> Identity:
        """Resolve a bearer token to the identity it belongs to."""
        try:
            resp = await self._request("GET", "/auth/v1/user", access_token=access_token)
        except httpx.HTTPError as exc:
            logger.warning("Auth service unreachable: %s", exc)
            raise Unauthorized() from exc

        if resp.status_code != 200:
            raise Unauthorized()
        data = resp.json()
        if not data.get("id"):
            raise Unauthorized()
        return Identity.from_payload(data)


def _error_message(resp: httpx.Response) -> str | None:
    try:
        data = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("error_description") or data.get("msg") or data.get("message")
