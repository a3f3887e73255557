from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Optional, List

import bleach
from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class TaskType(str, Enum):
    WORK = "work"
    FOOD = "food"
    HOMEWORK = "homework"
    EMAIL = "email"
    MEETING = "meeting"
    PROJECT = "project"
    HEALTH = "health"
    PERSONAL = "personal"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


# All timestamps are stored and compared as naive UTC
UtcDateTime = Annotated[datetime, AfterValidator(_as_naive_utc)]


def strip_markup(value):
    """Remove every HTML tag and attribute from free text (recurses into lists)."""
    if isinstance(value, str):
        return bleach.clean(value, tags=[], attributes={}, strip=True)
    if isinstance(value, list):
        return [strip_markup(item) for item in value]
    return value


def clean_title(value: str) -> str:
    cleaned = strip_markup(value).strip()
    if not cleaned:
        raise ValueError("Title is required")
    return cleaned


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; either is accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_default=True,
    )


# --- Base task schema ---
class BaseTaskFields(CamelModel):
    """Fields and constraints shared by every task category."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    due_date: Optional[UtcDateTime] = None
    start_date: Optional[UtcDateTime] = None
    estimated_duration: Optional[int] = Field(None, ge=1)  # minutes
    actual_duration: Optional[int] = Field(None, ge=1)  # minutes
    xp_value: int = Field(0, ge=0)
    tags: List[str] = Field(default_factory=list)
    location: Optional[str] = Field(None, max_length=200)


class TaskCreateMixin(CamelModel):
    """Input-side sanitising of the base free-text fields (bleach strips all markup)."""

    sanitize_title = field_validator("title", check_fields=False)(clean_title)
    sanitize_base_text = field_validator("description", "location", "tags", check_fields=False)(strip_markup)


class TaskReadMixin(CamelModel):
    id: int
    task_type: TaskType
    assignee: int
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


# --- User ---
class UserPublic(CamelModel):
    id: int
    name: str
    email: str
    role: str
    avatar: Optional[str] = None
    is_email_verified: bool = False
