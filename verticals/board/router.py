"""Task board API router — streaming chat + task CRUD + change stream.

Demonstrates the standard FlowBoard router pattern:
- Chat endpoint relaying the model gateway's event stream with
  server-side execution of the create_task tool
- CRUD for the authenticated user's tasks
- Change notifications as an event stream
- Services injected via FastAPI Depends
"""

from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from api.deps import get_current_user
from core.integrations.auth_client import Identity
from core.llm.gateway import GatewayClient, UpstreamStream
from core.realtime.change_feed import TaskChangeFeed
from core.streaming.sse import encode_event
from verticals.board.config import config
from verticals.board.dependencies import get_change_feed, get_gateway, get_task_service
from verticals.board.models.schemas import (
    ChatRequest,
    TaskCreate,
    TaskListResponse,
    TaskMove,
    TaskResponse,
    TaskUpdate,
)
from verticals.board.prompts import build_chat_payload
from verticals.board.relay import ChatRelay
from verticals.board.service import TaskService
from verticals.board.tools import build_board_tools

router = APIRouter()

EVENT_STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


# ============================================================================
# Chat Endpoint
# ============================================================================

async def _relay_and_close(
    relay: ChatRelay, upstream: UpstreamStream
) -> AsyncIterator[bytes]:
    try:
        async for chunk in relay.relay(upstream.aiter_bytes()):
            yield chunk
    finally:
        await upstream.aclose()


@router.post("/chat")
async def board_chat(
    request: ChatRequest,
    identity: Identity = Depends(get_current_user),
    gateway: GatewayClient = Depends(get_gateway),
    service: TaskService = Depends(get_task_service),
):
    """Stream an assistant reply, creating tasks the model asks for.

    Upstream 429/402 are returned as-is before any streaming starts;
    everything else is relayed as ``text/event-stream``.
    """
    registry = build_board_tools(service)
    payload = build_chat_payload(
        model=gateway.model,
        messages=request.messages,
        tasks=request.tasks,
        tools=registry.to_openai_tools(),
        assistant_name=config.chat.assistant_name,
    )
    upstream = await gateway.open_stream(payload)
    relay = ChatRelay(registry, user_id=identity.user_id)
    return StreamingResponse(
        _relay_and_close(relay, upstream),
        media_type="text/event-stream",
        headers=EVENT_STREAM_HEADERS,
    )


# ============================================================================
# Task Endpoints
# ============================================================================

@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    identity: Identity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """All of the user's tasks, ordered by position."""
    tasks = await service.list_tasks(identity.user_id)
    return {"data": tasks, "count": len(tasks)}


@router.get("/tasks/changes")
async def stream_task_changes(
    identity: Identity = Depends(get_current_user),
    feed: TaskChangeFeed = Depends(get_change_feed),
):
    """Push a record for every insert/update/delete on the user's tasks."""
    keepalive = config.chat.keepalive_seconds

    async def events() -> AsyncIterator[bytes]:
        async with feed.subscribe(identity.user_id) as subscription:
            while True:
                change = await subscription.next(timeout=keepalive)
                if change is None:
                    yield b": keep-alive\n\n"
                    continue
                yield encode_event(change.to_dict()).encode("utf-8")

    return StreamingResponse(
        events(), media_type="text/event-stream", headers=EVENT_STREAM_HEADERS
    )


@router.post("/tasks", status_code=201, response_model=TaskResponse)
async def create_task(
    request: TaskCreate,
    identity: Identity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Add a task from the task form."""
    return await service.create_task(identity.user_id, request.to_row())


@router.patch("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: TaskUpdate,
    identity: Identity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Edit a task."""
    task = await service.update_task(identity.user_id, task_id, request.to_row())
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.post("/tasks/{task_id}/move", response_model=TaskResponse)
async def move_task(
    task_id: str,
    request: TaskMove,
    identity: Identity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Move a task to another column (drag-and-drop)."""
    task = await service.move_task(identity.user_id, task_id, request.status.value)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.delete("/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    identity: Identity = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """Delete a task."""
    deleted = await service.delete_task(identity.user_id, task_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Task not found")
