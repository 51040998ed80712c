"""Incremental consumer for the chat relay's event stream.

Renders assistant text while the response is still arriving. Lines are
split on ``\\n`` as bytes come in, which can cut a record short if its
JSON payload itself spans a newline. When a ``data:`` line fails to
parse, it is pushed back onto the front of the buffer and scanning stops
until more bytes arrive. The next attempt joins it with the following
line; if that following line starts a fresh record instead, the pushed
back text was a genuinely malformed record and is skipped. Every line is
applied at most once and no bytes are dropped before they are judged.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterable

from core.errors import MalformedRecord
from core.streaming.sse import LineBuffer, LineKind, classify, parse_delta
from verticals.board.client.messages import MessageLog

logger = logging.getLogger(__name__)

_RECORD_STARTS = (LineKind.DATA, LineKind.DONE, LineKind.BLANK)


@dataclass
class ConsumeResult:
    """What one response produced."""
    text: str = ""
    saw_tool_calls: bool = False
    done: bool = False
    skipped_lines: int = 0


class StreamConsumer:
    """Consumes one response body into a MessageLog.

    Usage::

        consumer = StreamConsumer(log)
        result = await consumer.consume(response.aiter_bytes())
        if result.saw_tool_calls:
            schedule_refresh()
    """

    def __init__(self, log: MessageLog):
        self.log = log
        self.result = ConsumeResult()
        self._lines = LineBuffer()
        self._span = 1  # lines the pending record attempt covers

    async def consume(self, chunks: AsyncIterable[bytes]) -> ConsumeResult:
        async for chunk in chunks:
            self._lines.feed(chunk)
            self._scan()
            if self.result.done:
                break

        if not self.result.done:
            self._final_flush()
        return self.result

    # -- scanning --

    def _take_lines(self, count: int, partial: bool = False) -> list[str]:
        taken: list[str] = []
        while len(taken) < count:
            line = self._lines.next_line()
            if line is None:
                break
            taken.append(line)
        if len(taken) < count and not partial:
            self._lines.push_front("".join(taken))
            return []
        return taken

    def _scan(self, final: bool = False) -> None:
        while not self.result.done:
            lines = self._take_lines(self._span, partial=final)
            if not lines:
                return
            if len(lines) < self._span:
                # End of input: nothing can complete the pending record
                self._skip(lines)
                self._span = 1
                return

            joined = "".join(lines)
            if self._handle(joined):
                self._span = 1
                continue

            if len(lines) > 1 and classify(lines[-1]).kind in _RECORD_STARTS:
                self._skip(lines[:-1])
                self._lines.push_front(lines[-1])
                self._span = 1
                continue

            # Retry joined with the next line once it is available
            self._lines.push_front(joined)
            self._span += 1

    def _final_flush(self) -> None:
        remainder = self._lines.flush()
        if not remainder.strip():
            return
        if not remainder.endswith("\n"):
            remainder += "\n"
        self._lines.push_front(remainder)
        self._scan(final=True)

    def _skip(self, lines: list[str]) -> None:
        self.result.skipped_lines += len(lines)
        logger.debug("Skipping malformed stream record: %r", "".join(lines)[:200])

    # -- per record --

    def _handle(self, raw: str) -> bool:
        """Apply one record. False means its JSON did not parse (yet)."""
        line = classify(raw)
        if line.kind == LineKind.DONE:
            self.result.done = True
            return True
        if line.kind != LineKind.DATA:
            return True

        try:
            delta = parse_delta(line.payload)
        except MalformedRecord:
            return False

        if delta.get("tool_calls"):
            # The relay may have created tasks; no text to render
            self.result.saw_tool_calls = True

        content = delta.get("content")
        if isinstance(content, str) and content:
            self.result.text += content
            self.log.upsert_assistant(self.result.text)
        return True
