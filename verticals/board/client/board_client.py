"""
FlowBoard Client — async SDK for the board API.

Mirrors what the web UI does:
- Sign-in/sign-up/sign-out against the managed auth service
- A transient task cache, refreshed on load and on every change notification
- Task CRUD with user-facing notices for success and failure
- Chat with incremental rendering of the assistant's reply

Notices go through ``notify(level, message)``; the default just logs them.
"""
from __future__ import annotations
from typing import Any, Callable, Optional
import asyncio
import logging

import httpx

from core.integrations.auth_client import AuthClient, AuthSession, Identity
from core.streaming.sse import LineBuffer, LineKind, classify
from verticals.board.client.messages import MessageLog
from verticals.board.client.stream_consumer import ConsumeResult, StreamConsumer

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]

RATE_LIMIT_NOTICE = "Rate limit exceeded, please try again later."
QUOTA_NOTICE = "AI credits exhausted. Please add funds."
SEND_FAILED_NOTICE = "Failed to send message"

SNAPSHOT_FIELDS = ("title", "status", "priority", "category", "due_date")


def _log_notice(level: str, message: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, "[%s] %s", level, message)


class BoardClient:
    """Client-side state and operations for one signed-in user."""

    def __init__(
        self,
        base_url: str,
        auth: AuthClient,
        notify: Optional[Notifier] = None,
        refresh_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.notify: Notifier = notify or _log_notice
        self.refresh_delay = refresh_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._pending: set[asyncio.Task] = set()

        self.session: AuthSession | None = None
        self.tasks: list[dict[str, Any]] = []
        self.messages = MessageLog()
        self.is_loading = False

    # --- HTTP plumbing ---

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                transport=self._transport,
                timeout=httpx.Timeout(30.0, read=None),
            )
        return self._client

    def _auth_headers(self) -> dict[str, str]:
        if self.session is None:
            return {}
        return {"Authorization": f"Bearer {self.session.access_token}"}

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self._get_client().request(
            method, path, headers=self._auth_headers(), **kwargs
        )

    async def aclose(self) -> None:
        for task in list(self._pending):
            task.cancel()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # --- Auth ---

    @property
    def user(self) -> Identity | None:
        return self.session.user if self.session else None

    async def sign_in(self, email: str, password: str) -> AuthSession:
        self.session = await self.auth.sign_in(email, password)
        await self.fetch_tasks()
        return self.session

    async def sign_up(self, email: str, password: str, display_name: str) -> AuthSession | None:
        session = await self.auth.sign_up(email, password, display_name)
        if session is None:
            self.notify("info", "Check your email to confirm your account.")
            return None
        self.session = session
        await self.fetch_tasks()
        return session

    async def sign_out(self) -> None:
        if self.session is not None:
            await self.auth.sign_out(self.session.access_token)
        self.session = None
        self.tasks = []
        self.messages.clear()

    # --- Task cache ---

    @property
    def todo_tasks(self) -> list[dict[str, Any]]:
        return [t for t in self.tasks if t.get("status") == "todo"]

    @property
    def in_progress_tasks(self) -> list[dict[str, Any]]:
        return [t for t in self.tasks if t.get("status") == "in_progress"]

    async def fetch_tasks(self) -> list[dict[str, Any]]:
        """Replace the cache with the store's current rows."""
        if self.session is None:
            return self.tasks
        try:
            resp = await self._request("GET", "/api/board/tasks")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to load tasks: %s", exc)
            self.notify("error", "Failed to load tasks")
            return self.tasks
        self.tasks = resp.json()["data"]
        return self.tasks

    async def _write(
        self, method: str, path: str, failure: str, success: str | None = None, **kwargs: Any
    ) -> httpx.Response | None:
        try:
            resp = await self._request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("%s: %s", failure, exc)
            self.notify("error", failure)
            return None
        if success:
            self.notify("success", success)
        return resp

    async def add_task(self, task: dict[str, Any]) -> dict[str, Any] | None:
        resp = await self._write(
            "POST", "/api/board/tasks", "Failed to create task", "Task created!", json=task
        )
        return resp.json() if resp is not None else None

    async def update_task(self, task_id: str, updates: dict[str, Any]) -> dict[str, Any] | None:
        resp = await self._write(
            "PATCH", f"/api/board/tasks/{task_id}", "Failed to update task", json=updates
        )
        return resp.json() if resp is not None else None

    async def move_task(self, task_id: str, status: str) -> dict[str, Any] | None:
        resp = await self._write(
            "POST",
            f"/api/board/tasks/{task_id}/move",
            "Failed to update task",
            json={"status": status},
        )
        return resp.json() if resp is not None else None

    async def delete_task(self, task_id: str) -> bool:
        resp = await self._write(
            "DELETE", f"/api/board/tasks/{task_id}", "Failed to delete task", "Task deleted"
        )
        return resp is not None

    def schedule_refresh(self, delay: float | None = None) -> asyncio.Task:
        """One-shot delayed refetch, giving server-side inserts time to land."""
        wait = self.refresh_delay if delay is None else delay

        async def _refresh_later() -> None:
            await asyncio.sleep(wait)
            await self.fetch_tasks()

        task = asyncio.create_task(_refresh_later())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def watch_changes(self) -> None:
        """Refetch the cache on every change notification until cancelled."""
        client = self._get_client()
        async with client.stream(
            "GET", "/api/board/tasks/changes", headers=self._auth_headers()
        ) as resp:
            if not resp.is_success:
                logger.error("Change subscription rejected: HTTP %s", resp.status_code)
                return
            lines = LineBuffer()
            async for chunk in resp.aiter_bytes():
                lines.feed(chunk)
                while (raw := lines.next_line()) is not None:
                    if classify(raw).kind == LineKind.DATA:
                        await self.fetch_tasks()

    # --- Chat ---

    def _task_snapshot(self) -> list[dict[str, Any]]:
        return [{key: task.get(key) for key in SNAPSHOT_FIELDS} for task in self.tasks]

    async def send_message(self, text: str) -> ConsumeResult | None:
        """Send the conversation plus a board snapshot and stream the reply."""
        if not text.strip() or self.is_loading:
            return None

        self.messages.append_user(text)
        payload = {
            "messages": [m.to_dict() for m in self.messages.messages],
            "tasks": self._task_snapshot(),
        }

        self.is_loading = True
        try:
            async with self._get_client().stream(
                "POST", "/api/board/chat", json=payload, headers=self._auth_headers()
            ) as resp:
                if resp.status_code == 429:
                    self.notify("error", RATE_LIMIT_NOTICE)
                    return None
                if resp.status_code == 402:
                    self.notify("error", QUOTA_NOTICE)
                    return None
                if not resp.is_success:
                    logger.error("Chat request failed: HTTP %s", resp.status_code)
                    self.notify("error", SEND_FAILED_NOTICE)
                    return None

                result = await StreamConsumer(self.messages).consume(resp.aiter_bytes())
        except httpx.HTTPError as exc:
            logger.error("Chat stream failed: %s", exc)
            self.notify("error", SEND_FAILED_NOTICE)
            return None
        finally:
            self.is_loading = False

        if result.saw_tool_calls:
            self.schedule_refresh()
        return result
