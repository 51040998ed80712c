"""Pydantic schemas for API request/response validation."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskCategory(str, Enum):
    DESIGN = "Design"
    DEV = "Dev"
    MEDIA = "Media"
    MARKETING = "Marketing"
    RESEARCH = "Research"


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def _blank_category(value):
    # An empty category means "uncategorised"
    return None if value == "" else value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    category: Optional[TaskCategory] = None
    due_date: Optional[date] = None
    position: int = 0

    @field_validator("category", mode="before")
    @classmethod
    def normalise_category(cls, value):
        return _blank_category(value)

    def to_row(self) -> dict:
        data = self.model_dump(mode="python")
        data["status"] = self.status.value
        data["priority"] = self.priority.value
        data["category"] = self.category.value if self.category else ""
        return data


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    category: Optional[TaskCategory] = None
    due_date: Optional[date] = None
    position: Optional[int] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalise_category(cls, value):
        return _blank_category(value)

    def to_row(self) -> dict:
        data = self.model_dump(mode="python", exclude_unset=True)
        # Only due_date and category may be cleared
        data = {
            k: v for k, v in data.items()
            if v is not None or k in ("due_date", "category")
        }
        for key in ("status", "priority"):
            if data.get(key) is not None:
                data[key] = data[key].value
        if "category" in data:
            data["category"] = data["category"].value if data["category"] else ""
        return data


class TaskMove(BaseModel):
    status: TaskStatus


class ChatMessageIn(BaseModel):
    role: ChatRole
    content: str


class TaskSnapshot(BaseModel):
    """The slice of a task the chat assistant sees in its system prompt."""
    title: str
    status: str = "todo"
    priority: str = "medium"
    category: Optional[str] = None
    due_date: Optional[str] = None


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn] = Field(default_factory=list)
    tasks: list[TaskSnapshot] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class TaskResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: str = ""
    status: TaskStatus
    priority: TaskPriority
    category: str = ""
    due_date: Optional[date] = None
    position: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TaskListResponse(BaseModel):
    data: list[TaskResponse]
    count: int
