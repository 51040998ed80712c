"""Streaming chat relay with server-side tool execution.

Sits between the client and the upstream model gateway. Upstream bytes are
split into event-stream lines as they arrive and each line is handled
immediately:

- blank, comment and non-``data:`` lines: forwarded byte-identical
- ``data:`` lines carrying ``tool_calls``: accumulated, never forwarded
- any other ``data:`` line, parseable or not: forwarded byte-identical
- ``data: [DONE]``: the accumulated tool call (if any) is executed once,
  a synthesized content chunk with its confirmation is emitted, then the
  terminator is forwarded

The output is produced chunk by chunk; nothing waits for the upstream
response to finish.
"""

import logging
from typing import AsyncIterable, AsyncIterator

import httpx

from core.errors import MalformedRecord
from core.observability.otel_setup import get_tracer
from core.streaming.sse import (
    LineBuffer,
    LineKind,
    classify,
    encode_content_chunk,
    parse_delta,
)
from core.tools.registry import ToolRegistry
from verticals.board.tool_calls import PendingToolCall, ToolCallAccumulator

logger = logging.getLogger(__name__)


class ChatRelay:
    """Relays one chat exchange for one authenticated user.

    Usage::

        relay = ChatRelay(registry, user_id=identity.user_id)
        return StreamingResponse(relay.relay(upstream.aiter_bytes()))
    """

    def __init__(self, registry: ToolRegistry, user_id: str):
        self.registry = registry
        self.user_id = user_id
        self._lines = LineBuffer()
        self._tool_call = ToolCallAccumulator()
        self.tool_results: list[dict] = []

    async def relay(self, chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
        span = get_tracer(__name__).start_span(
            "board.chat.relay", attributes={"enduser.id": self.user_id}
        )
        try:
            try:
                async for chunk in chunks:
                    self._lines.feed(chunk)
                    out: list[str] = []
                    while (raw := self._lines.next_line()) is not None:
                        out.extend(await self._handle_line(raw))
                    if out:
                        yield "".join(out).encode("utf-8")
            except httpx.HTTPError as exc:
                logger.error("Stream error: %s", exc)
                span.record_exception(exc)

            # Trailing record without a final newline
            remainder = self._lines.flush()
            if remainder:
                out = await self._handle_line(remainder)
                if out:
                    yield "".join(out).encode("utf-8")
        finally:
            span.set_attribute("board.tool_calls", len(self.tool_results))
            span.end()

    async def _handle_line(self, raw: str) -> list[str]:
        line = classify(raw)
        if line.kind in (LineKind.BLANK, LineKind.COMMENT, LineKind.OTHER):
            return [raw]

        if line.kind == LineKind.DONE:
            return [*await self._finish_tool_call(), raw]

        try:
            delta = parse_delta(line.payload)
        except MalformedRecord:
            return [raw]

        tool_calls = delta.get("tool_calls")
        if isinstance(tool_calls, list):
            if tool_calls:
                self._tool_call.add(tool_calls)
            return []
        return [raw]

    async def _finish_tool_call(self) -> list[str]:
        call = self._tool_call.complete()
        if call is None:
            return []
        message = await self._execute(call)
        return [encode_content_chunk(message)] if message else []

    async def _execute(self, call: PendingToolCall) -> str | None:
        if self.registry.get_tool(call.name) is None:
            logger.warning("Model called unknown tool %r; ignoring", call.name)
            return None

        try:
            arguments = call.parse_arguments()
        except MalformedRecord as exc:
            logger.error("Failed to parse tool call: %s", exc)
            return None

        try:
            result = await self.registry.invoke(
                call.name, user_id=self.user_id, arguments=arguments
            )
        except Exception as exc:
            # The terminator must still reach the client
            logger.exception("Tool %s failed: %s", call.name, exc)
            return None
        if not isinstance(result, dict):
            return None
        self.tool_results.append(result)
        return result.get("message")
