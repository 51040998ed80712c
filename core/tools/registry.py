"""
FlowBoard Tool Registry — server-side function tools

Tools declared to the upstream model and executed by the relay:
- Register/deregister at runtime
- Export declarations in the chat-completions ``tools`` wire format
- Invoke handlers (sync or async) by name
"""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Callable, Optional
from datetime import datetime, timezone
import asyncio


class ToolDefinition(BaseModel):
    """Registered tool metadata."""
    name: str
    description: str
    parameters: dict = Field(default_factory=dict)
    registered_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    """Central registry for the tools the relay executes."""

    def __init__(self):
        self._tools: dict[str, ToolDefinition] = {}
        self._handlers: dict[str, Callable] = {}

    def register(
        self,
        name: str,
        description: str,
        handler: Callable,
        parameters: Optional[dict] = None,
    ):
        """Register a tool."""
        self._tools[name] = ToolDefinition(
            name=name,
            description=description,
            parameters=parameters or {},
        )
        self._handlers[name] = handler

    def deregister(self, name: str):
        """Remove a tool."""
        self._tools.pop(name, None)
        self._handlers.pop(name, None)

    def list_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get tool metadata."""
        return self._tools.get(name)

    def to_openai_tools(self) -> list[dict[str, Any]]:
        """Declarations for the ``tools`` field of a chat-completions request."""
        return [tool.to_wire() for tool in self._tools.values()]

    async def invoke(self, name: str, **kwargs) -> Any:
        """Invoke a registered tool."""
        handler = self._handlers.get(name)
        if not handler:
            raise ValueError(f"Tool not found: {name}")

        if asyncio.iscoroutinefunction(handler):
            return await handler(**kwargs)
        return handler(**kwargs)

    @property
    def tool_count(self) -> int:
        return len(self._tools)
