"""Tool-call accumulation as an explicit state machine.

A model-issued function call arrives as many stream deltas: the name in
one fragment, the JSON arguments split across any number of others. None
of the argument fragments is valid JSON on its own; they must be joined
in arrival order before parsing.

States::

    IDLE ──fragment──▶ ACCUMULATING ──[DONE]──▶ COMPLETED
      └──────────────────[DONE]──────────────────▲

complete() hands out the accumulated call exactly once, which makes the
terminator-triggered side effect happen once even if a stream repeats its
terminator.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from core.errors import MalformedRecord

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# State definitions
# ---------------------------------------------------------------------------

class ToolCallState(str, Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    COMPLETED = "completed"


_TRANSITIONS: dict[ToolCallState, list[ToolCallState]] = {
    ToolCallState.IDLE: [ToolCallState.ACCUMULATING, ToolCallState.COMPLETED],
    ToolCallState.ACCUMULATING: [ToolCallState.COMPLETED],
    ToolCallState.COMPLETED: [],  # terminal
}


# ---------------------------------------------------------------------------
# Accumulated call
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PendingToolCall:
    """A fully received tool call awaiting execution."""

    name: str
    arguments: str

    def parse_arguments(self) -> dict[str, Any]:
        """Parse the joined argument buffer. Empty means no arguments."""
        if not self.arguments.strip():
            return {}
        try:
            parsed = json.loads(self.arguments)
        except json.JSONDecodeError as exc:
            raise MalformedRecord(f"Invalid tool arguments for {self.name}: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise MalformedRecord(f"Tool arguments for {self.name} are not an object")
        return parsed


@dataclass
class ToolCallAccumulator:
    """Collects one tool call's name and argument fragments.

    Usage::

        acc = ToolCallAccumulator()
        acc.add(delta["tool_calls"])   # any number of times
        call = acc.complete()          # on [DONE]; None if nothing arrived
    """

    state: ToolCallState = ToolCallState.IDLE
    name: str = ""
    index: int | None = None
    _fragments: list[str] = field(default_factory=list)

    def _transition(self, to_state: ToolCallState) -> None:
        if to_state not in _TRANSITIONS[self.state]:
            raise ValueError(
                f"Cannot transition from {self.state.value} to {to_state.value}"
            )
        self.state = to_state

    @property
    def arguments(self) -> str:
        return "".join(self._fragments)

    @property
    def has_call(self) -> bool:
        return self.state != ToolCallState.IDLE

    def add(self, tool_calls: list[dict[str, Any]]) -> None:
        """Record the fragments carried by one delta's ``tool_calls`` list."""
        if self.state == ToolCallState.COMPLETED:
            logger.warning("Ignoring tool-call fragment after completion")
            return

        for fragment in tool_calls:
            if not isinstance(fragment, dict):
                continue
            index = fragment.get("index", 0)
            if self.index is None:
                self.index = index
            elif index != self.index:
                # Only a single call per response is executed
                logger.warning("Ignoring fragment for additional tool call %s", index)
                continue

            function = fragment.get("function") or {}
            if not isinstance(function, dict):
                logger.warning("Ignoring tool-call fragment with malformed function: %r", function)
                continue

            if self.state == ToolCallState.IDLE:
                self._transition(ToolCallState.ACCUMULATING)

            name = function.get("name")
            if isinstance(name, str) and name and not self.name:
                self.name = name
            self._add_arguments(function.get("arguments"))

    def _add_arguments(self, arguments: Any) -> None:
        if isinstance(arguments, str):
            if arguments:
                self._fragments.append(arguments)
        elif isinstance(arguments, dict):
            # Some gateways send the arguments already decoded
            self._fragments.append(json.dumps(arguments))
        elif arguments is not None:
            logger.warning("Ignoring non-string tool arguments: %r", arguments)

    def complete(self) -> PendingToolCall | None:
        """Finish accumulation; returns the call only on the first completion."""
        if self.state == ToolCallState.COMPLETED:
            return None

        had_call = self.state == ToolCallState.ACCUMULATING
        self._transition(ToolCallState.COMPLETED)
        if not had_call or not self.name:
            return None
        return PendingToolCall(name=self.name, arguments=self.arguments)
