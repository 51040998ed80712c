"""Board tools executed server-side on behalf of the assistant.

create_task is the only tool. Its handler inserts one task owned by the
authenticated user and always returns a confirmation message: a failed
insert is logged, never raised, so the chat stream carries on.
"""

import logging
from datetime import date
from typing import Any

from core.errors import PersistenceFailure
from core.observability.otel_setup import get_tracer
from core.tools.registry import ToolRegistry
from verticals.board.models.schemas import TaskCategory, TaskPriority, TaskStatus
from verticals.board.service import TaskService

logger = logging.getLogger(__name__)

CREATE_TASK = "create_task"

CREATE_TASK_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string", "description": "Task title"},
        "description": {"type": "string", "description": "Task description"},
        "priority": {"type": "string", "enum": [p.value for p in TaskPriority]},
        "category": {"type": "string", "enum": [c.value for c in TaskCategory]},
        "status": {
            "type": "string",
            "enum": [s.value for s in TaskStatus],
            "description": "Column to place the task in",
        },
        "due_date": {"type": "string", "description": "Due date in YYYY-MM-DD format"},
    },
    "required": ["title", "priority", "status"],
    "additionalProperties": False,
}


MISSING_TITLE_MESSAGE = "⚠️ Task not created: a title is required."


def confirmation_message(title: str) -> str:
    return f'✅ Task "{title}" created!'


def _pick(value: Any, allowed: type, default: str) -> str:
    # Models sometimes send lists or objects where a string is declared
    if not isinstance(value, str):
        return default
    values = {member.value for member in allowed}
    return value if value in values else default


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _parse_due_date(value: Any) -> date | None:
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.warning("Ignoring unparseable due_date %r from tool call", value)
        return None


def task_fields_from_arguments(args: dict[str, Any]) -> dict[str, Any]:
    """Apply the create_task defaults to model-supplied arguments."""
    return {
        "title": _text(args.get("title")).strip(),
        "description": _text(args.get("description")),
        "priority": _pick(args.get("priority"), TaskPriority, TaskPriority.MEDIUM.value),
        "category": _pick(args.get("category"), TaskCategory, ""),
        "status": _pick(args.get("status"), TaskStatus, TaskStatus.TODO.value),
        "due_date": _parse_due_date(args.get("due_date")),
        "position": 0,
    }


def build_board_tools(service: TaskService) -> ToolRegistry:
    """Registry holding the tools the relay may execute for this request."""
    registry = ToolRegistry()
    tracer = get_tracer(__name__)

    async def create_task(user_id: str, arguments: dict[str, Any]) -> dict[str, Any]:
        fields = task_fields_from_arguments(arguments)
        title = fields["title"]
        if not title:
            logger.warning("create_task called without a title; nothing inserted")
            return {
                "title": "",
                "created": False,
                "task": None,
                "message": MISSING_TITLE_MESSAGE,
            }

        task = None
        with tracer.start_as_current_span(
            "board.tool.create_task", attributes={"task.status": fields["status"]}
        ):
            try:
                task = await service.create_task(user_id, fields)
            except PersistenceFailure as exc:
                logger.error("Failed to create task %r from chat: %s", title, exc)

        return {
            "title": title,
            "created": task is not None,
            "task": task,
            "message": confirmation_message(title),
        }

    registry.register(
        name=CREATE_TASK,
        description="Create a new task on the Kanban board",
        handler=create_task,
        parameters=CREATE_TASK_PARAMETERS,
    )
    return registry
