"""
FlowBoard Core Streaming — incremental event-stream primitives.

- LineBuffer: chunk-to-line splitting with stateful UTF-8 decoding
- classify / parse_delta: per-line classification and delta extraction
- encode_content_chunk: synthesized content records
"""
from core.streaming.sse import (
    DATA_PREFIX,
    DONE_SENTINEL,
    LineBuffer,
    LineKind,
    SSELine,
    classify,
    encode_content_chunk,
    encode_event,
    parse_delta,
)

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "LineBuffer",
    "LineKind",
    "SSELine",
    "classify",
    "encode_content_chunk",
    "encode_event",
    "parse_delta",
]
