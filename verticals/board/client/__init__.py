"""Client SDK for the task board: transcript reducer, stream consumer, API client."""

from verticals.board.client.board_client import BoardClient
from verticals.board.client.messages import ChatMessage, MessageLog
from verticals.board.client.stream_consumer import ConsumeResult, StreamConsumer

__all__ = [
    "BoardClient",
    "ChatMessage",
    "ConsumeResult",
    "MessageLog",
    "StreamConsumer",
]
