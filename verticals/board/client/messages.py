"""Chat transcript state as a pure reducer.

Streamed assistant text always lands in a single trailing assistant
message: if the last message is already the assistant's, its content is
replaced with the text accumulated so far; otherwise a new assistant
message is appended.
"""

from dataclasses import dataclass
from typing import Callable, Optional

USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


def append_message(messages: list[ChatMessage], message: ChatMessage) -> list[ChatMessage]:
    return [*messages, message]


def upsert_assistant(messages: list[ChatMessage], content: str) -> list[ChatMessage]:
    """Replace the trailing assistant message, or append one."""
    if messages and messages[-1].role == ASSISTANT:
        return [*messages[:-1], ChatMessage(ASSISTANT, content)]
    return append_message(messages, ChatMessage(ASSISTANT, content))


class MessageLog:
    """Holds the transcript for one chat session; never persisted."""

    def __init__(self, on_change: Optional[Callable[[list[ChatMessage]], None]] = None):
        self._messages: list[ChatMessage] = []
        self._on_change = on_change

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    @property
    def last(self) -> ChatMessage | None:
        return self._messages[-1] if self._messages else None

    def _set(self, messages: list[ChatMessage]) -> None:
        self._messages = messages
        if self._on_change:
            self._on_change(self.messages)

    def append_user(self, content: str) -> None:
        self._set(append_message(self._messages, ChatMessage(USER, content)))

    def upsert_assistant(self, content: str) -> None:
        self._set(upsert_assistant(self._messages, content))

    def clear(self) -> None:
        self._set([])

    def __len__(self) -> int:
        return len(self._messages)
