"""
FlowBoard LLM Gateway — streaming chat-completions client

Opens a streaming POST against an OpenAI-compatible gateway and maps
non-success statuses onto the error taxonomy before any body bytes are
relayed:
- 429 → RateLimited (body not read)
- 402 → QuotaExhausted (body not read)
- other non-2xx → UpstreamError (body read for the log only)
"""
from __future__ import annotations
from typing import Any, AsyncIterator, Optional
import logging

import httpx

from core.errors import QuotaExhausted, RateLimited, UpstreamError
from patterns.domain_config import GatewayConfig

logger = logging.getLogger(__name__)


class UpstreamStream:
    """An open streaming response from the gateway.

    Owns the httpx response; the caller must ``aclose()`` it once the
    relay is finished, even if the client disconnected early.
    """

    def __init__(self, response: httpx.Response):
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.aiter_bytes():
            yield chunk

    async def aclose(self) -> None:
        await self._response.aclose()


class GatewayClient:
    """Client for the upstream model gateway."""

    def __init__(
        self,
        config: GatewayConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def model(self) -> str:
        return self.config.model

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=httpx.Timeout(self.config.timeout_seconds, connect=10.0),
            )
        return self._client

    async def open_stream(self, payload: dict[str, Any]) -> UpstreamStream:
        """Send the chat request and return the open event stream."""
        if not self.config.is_configured:
            raise UpstreamError("GATEWAY_API_KEY is not configured")

        client = self._get_client()
        request = client.build_request(
            "POST",
            self.config.url,
            json=payload,
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.error("AI gateway request failed: %s", exc)
            raise UpstreamError() from exc

        if response.is_success:
            return UpstreamStream(response)

        status = response.status_code
        if status == 429:
            await response.aclose()
            raise RateLimited()
        if status == 402:
            await response.aclose()
            raise QuotaExhausted()

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        except httpx.HTTPError:
            body = ""
        finally:
            await response.aclose()
        logger.error("AI gateway error: %s %s", status, body[:500])
        raise UpstreamError()

    async def aclose(self) -> None:
        """Release pooled connections."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
