"""System prompt and upstream request construction for the board assistant."""

from typing import Any, Iterable

from verticals.board.models.schemas import ChatMessageIn, TaskSnapshot

ASSISTANT_INSTRUCTIONS = """You are {assistant_name}, a productivity assistant for a Kanban board app. You help users manage tasks and provide productivity insights.

You can:
1. Help users create tasks by using the create_task tool
2. Provide productivity insights based on their current board state
3. Give task management advice
4. Answer general productivity questions

When creating tasks, extract: title, description, priority (low/medium/high), category (Design/Dev/Media/Marketing/Research), status (todo/in_progress), and due_date (YYYY-MM-DD format).

Always be concise, helpful, and encouraging."""


def build_task_summary(tasks: Iterable[TaskSnapshot]) -> str:
    """Render the board snapshot the assistant reasons over."""
    lines = [
        f'- "{t.title}" [{t.status}] priority:{t.priority} '
        f"category:{t.category or 'none'} due:{t.due_date or 'none'}"
        for t in tasks
    ]
    if not lines:
        return "The board currently has no tasks."
    return "Current board tasks:\n" + "\n".join(lines)


def build_system_prompt(
    tasks: Iterable[TaskSnapshot], assistant_name: str = "FlowBoard AI"
) -> str:
    instructions = ASSISTANT_INSTRUCTIONS.format(assistant_name=assistant_name)
    return f"{instructions}\n\n{build_task_summary(tasks)}"


def build_chat_payload(
    model: str,
    messages: Iterable[ChatMessageIn],
    tasks: Iterable[TaskSnapshot],
    tools: list[dict[str, Any]],
    assistant_name: str = "FlowBoard AI",
) -> dict[str, Any]:
    """Streaming chat-completions body: system prompt first, then the conversation."""
    return {
        "model": model,
        "messages": [
            {"role": "system", "content": build_system_prompt(tasks, assistant_name)},
            *({"role": m.role.value, "content": m.content} for m in messages),
        ],
        "stream": True,
        "tools": tools,
    }
