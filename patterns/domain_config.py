"""Dataclass-based domain configuration pattern.

Each vertical defines its endpoints, limits, and credentials as a frozen
dataclass. This gives you:
- Type safety (IDE autocompletion, mypy checking)
- Default values (sensible out-of-the-box)
- Immutability (frozen=True prevents accidental mutation)
- Easy overrides (from env vars or test fixtures)

Example domain: the task board with its model gateway, auth service and
chat settings.
"""

import os
from dataclasses import dataclass, field


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GatewayConfig:
    """Upstream chat-completions gateway."""

    url: str = "https://ai.gateway.lovable.dev/v1/chat/completions"
    api_key: str = ""  # server-side secret, never sent to clients
    model: str = "google/gemini-3-flash-preview"
    timeout_seconds: float = 60.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class AuthServiceConfig:
    """Managed auth service (GoTrue-compatible REST API)."""

    url: str = "http://localhost:54321"
    public_key: str = ""
    timeout_seconds: float = 10.0


@dataclass(frozen=True)
class ChatConfig:
    """Chat assistant behaviour."""

    assistant_name: str = "FlowBoard AI"
    refresh_delay_seconds: float = 1.0  # client refetch after tool activity
    keepalive_seconds: float = 15.0  # change-feed comment interval


# ---------------------------------------------------------------------------
# Top-level domain config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BoardConfig:
    """Complete configuration for the task board vertical.

    Usage::

        config = BoardConfig.from_env()
        if not config.gateway.is_configured:
            raise UpstreamError("GATEWAY_API_KEY is not configured")
    """

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    auth: AuthServiceConfig = field(default_factory=AuthServiceConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)

    @classmethod
    def default(cls) -> "BoardConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls) -> "BoardConfig":
        """Create config from environment variables.

        Example: GATEWAY_API_KEY=sk-... AUTH_SERVICE_URL=https://x.supabase.co
        """
        gateway_defaults = GatewayConfig()
        auth_defaults = AuthServiceConfig()
        chat_defaults = ChatConfig()

        gateway = GatewayConfig(
            url=os.getenv("GATEWAY_URL", gateway_defaults.url),
            api_key=os.getenv("GATEWAY_API_KEY", ""),
            model=os.getenv("GATEWAY_MODEL", gateway_defaults.model),
            timeout_seconds=float(
                os.getenv("GATEWAY_TIMEOUT", str(gateway_defaults.timeout_seconds))
            ),
        )
        auth = AuthServiceConfig(
            url=os.getenv("AUTH_SERVICE_URL", auth_defaults.url).rstrip("/"),
            public_key=os.getenv("AUTH_PUBLIC_KEY", ""),
        )
        chat = ChatConfig(
            refresh_delay_seconds=float(
                os.getenv("CHAT_REFRESH_DELAY", str(chat_defaults.refresh_delay_seconds))
            ),
        )
        return cls(gateway=gateway, auth=auth, chat=chat)
