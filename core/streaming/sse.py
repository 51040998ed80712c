"""Incremental server-sent-event line handling.

Network reads arrive in arbitrary-sized chunks: a ``data: ...\\n`` record
may span several reads and a multi-byte character may be split between
two of them. LineBuffer carries both kinds of partial state across reads
so callers can pull complete lines one at a time.

Line classification is shared by the relay and the client consumer::

    buf = LineBuffer()
    buf.feed(chunk)
    while (raw := buf.next_line()) is not None:
        line = classify(raw)
        if line.kind == LineKind.DATA:
            delta = parse_delta(line.payload)
"""
from __future__ import annotations

import codecs
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from core.errors import MalformedRecord

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class LineKind(str, Enum):
    BLANK = "blank"
    COMMENT = "comment"
    OTHER = "other"
    DONE = "done"
    DATA = "data"


@dataclass(frozen=True)
class SSELine:
    """One classified event-stream line.

    ``raw`` keeps the line exactly as received (terminator included) so it
    can be forwarded byte-identical.
    """

    kind: LineKind
    raw: str
    payload: str = ""

    @property
    def text(self) -> str:
        """The line without its ``\\n`` / ``\\r\\n`` terminator."""
        return _strip_terminator(self.raw)


def _strip_terminator(raw: str) -> str:
    if raw.endswith("\n"):
        raw = raw[:-1]
    if raw.endswith("\r"):
        raw = raw[:-1]
    return raw


# ---------------------------------------------------------------------------
# Line buffer
# ---------------------------------------------------------------------------

class LineBuffer:
    """Stateful UTF-8 decoder plus a buffer of not-yet-terminated text."""

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> None:
        self._buffer += self._decoder.decode(data)

    def next_line(self) -> str | None:
        """Pop one line including its ``\\n``; None if no full line is buffered."""
        index = self._buffer.find("\n")
        if index == -1:
            return None
        line, self._buffer = self._buffer[: index + 1], self._buffer[index + 1:]
        return line

    def push_front(self, text: str) -> None:
        self._buffer = text + self._buffer

    def flush(self) -> str:
        """Finish decoding and return whatever text remains buffered."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        return remainder


# ---------------------------------------------------------------------------
# Classification & payload helpers
# ---------------------------------------------------------------------------

def classify(raw: str) -> SSELine:
    """Classify one raw line (terminator optional)."""
    text = _strip_terminator(raw)
    if text.strip() == "":
        return SSELine(LineKind.BLANK, raw)
    if text.startswith(":"):
        return SSELine(LineKind.COMMENT, raw)
    if not text.startswith(DATA_PREFIX):
        return SSELine(LineKind.OTHER, raw)

    payload = text[len(DATA_PREFIX):].strip()
    if payload == DONE_SENTINEL:
        return SSELine(LineKind.DONE, raw, payload)
    return SSELine(LineKind.DATA, raw, payload)


def parse_delta(payload: str) -> dict[str, Any]:
    """Parse a data payload and return the first choice's delta.

    Raises MalformedRecord if the payload is not JSON. A well-formed record
    without choices yields an empty delta.
    """
    try:
        record = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedRecord(f"Invalid stream record: {exc.msg}") from exc

    if not isinstance(record, dict):
        return {}
    choices = record.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return {}
    delta = choices[0].get("delta")
    return delta if isinstance(delta, dict) else {}


def encode_content_chunk(content: str) -> str:
    """Build a content-delta record in the upstream wire shape."""
    record = {"choices": [{"delta": {"content": content}}]}
    return f"{DATA_PREFIX}{json.dumps(record, ensure_ascii=False)}\n"


def encode_event(data: dict[str, Any]) -> str:
    """Build a ``data:`` record terminated by a blank line."""
    return f"{DATA_PREFIX}{json.dumps(data, ensure_ascii=False)}\n\n"
