"""
FlowBoard Core Integrations — managed service clients.

- AuthClient: sign-in, sign-up, sign-out and bearer token resolution
- parse_bearer: Authorization header validation
"""
from core.integrations.auth_client import (
    AuthClient,
    AuthSession,
    Identity,
    parse_bearer,
)

__all__ = [
    "AuthClient",
    "AuthSession",
    "Identity",
    "parse_bearer",
]
