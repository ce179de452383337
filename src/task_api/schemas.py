from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000

# Incoming dueDate may be a date, a datetime, or an ISO8601 string
DueDateInput = Union[date, datetime, str]


def _require_text(value: Any, label: str, max_length: int) -> str:
    """
    Trim a required text field, rejecting non-strings and blank values.
    """
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} is required and must be a non-empty string")
    s = value.strip()
    if len(s) > max_length:
        raise ValueError(f"{label} must be at most {max_length} characters")
    return s


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _due_date_to_utc(value: datetime) -> datetime:
    # Offsets near datetime.min/max cannot be shifted to UTC
    try:
        return _to_naive_utc(value)
    except OverflowError as e:
        raise ValueError("dueDate is outside the supported date range") from e


def parse_due_date(value: Optional[DueDateInput]) -> Optional[datetime]:
    """
    Normalize dueDate input into a naive UTC datetime.
    - None or a blank string means no due date.
    - A date (or date-only string) is promoted to midnight.
    - Timezone-aware values, including a trailing 'Z', are converted to UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return _due_date_to_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 0, 0, 0)

    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        if s.endswith(("Z", "z")):
            s = s[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(s)
        except ValueError:
            try:
                d = date.fromisoformat(s)
            except ValueError as e:
                raise ValueError(
                    "dueDate must be an ISO8601 date or datetime (e.g. '2025-01-31' or '2025-01-31T13:45:00Z')"
                ) from e
            return datetime(d.year, d.month, d.day, 0, 0, 0)
        return _due_date_to_utc(parsed)

    raise ValueError("dueDate must be an ISO8601 date or datetime string")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a naive UTC datetime as ISO8601 with a 'Z' suffix."""
    if value is None:
        return None
    return _to_naive_utc(value).isoformat() + "Z"


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Payload for creating a task. Tasks always start as not completed.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "2%",
                "dueDate": "2025-02-01T10:30:00Z",
            }
        },
    )

    title: str = Field(default=None, validate_default=True, description="Task title")
    description: str = Field(default=None, validate_default=True, description="Task description")
    due_date: Optional[datetime] = Field(
        default=None,
        alias="dueDate",
        description="Optional due date. Accepts ISO8601 date or datetime; dates are set to 00:00",
    )

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _require_text(v, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return _require_text(v, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return parse_due_date(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Partial update payload.

    Only fields present in the request are applied (see ``changes``). An
    explicit ``completed: false`` clears the flag and an explicit
    ``dueDate: null`` clears the due date. ``version``, when given, must match
    the stored version.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Buy oat milk",
                "completed": True,
                "version": 1,
            }
        },
    )

    title: Optional[str] = Field(default=None, description="New title")
    description: Optional[str] = Field(default=None, description="New description")
    completed: Optional[bool] = Field(default=None, description="New completion flag")
    due_date: Optional[datetime] = Field(default=None, alias="dueDate", description="New due date, or null to clear")
    version: Optional[int] = Field(default=None, ge=1, strict=True, description="Expected current version")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _require_text(v, "Title", TITLE_MAX_LENGTH)

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        return _require_text(v, "Description", DESCRIPTION_MAX_LENGTH)

    @field_validator("completed", mode="before")
    @classmethod
    def validate_completed(cls, v: Any) -> bool:
        if not isinstance(v, bool):
            raise ValueError("completed must be a boolean")
        return v

    @field_validator("due_date", mode="before")
    @classmethod
    def validate_due_date(cls, v: Optional[DueDateInput]) -> Optional[datetime]:
        return parse_due_date(v)

    def changes(self) -> dict:
        """Return the supplied fields keyed by storage name, excluding ``version``."""
        supplied = self.model_fields_set - {"version"}
        return {name: getattr(self, name) for name in supplied}


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    A task as returned by the API.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": "2%",
                "completed": False,
                "dueDate": "2025-02-01T10:30:00Z",
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-25T10:15:30.123456Z",
                "version": 1,
            }
        },
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Task title")
    description: str = Field(..., description="Task description")
    completed: bool = Field(..., description="Completion flag")
    due_date: Optional[datetime] = Field(default=None, alias="dueDate", description="Due date, if any")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp (UTC)")
    version: int = Field(..., description="Concurrency token")

    @field_serializer("due_date", "created_at", "updated_at")
    def serialize_timestamp(self, value: Optional[datetime]) -> Optional[str]:
        return format_timestamp(value)


class TaskResponse(BaseModel):
    """Envelope carrying a single task."""

    success: bool = True
    data: TaskOut
    message: str


class TaskListResponse(BaseModel):
    """Envelope carrying every task, newest first."""

    success: bool = True
    data: List[TaskOut]
    message: str


class MessageResponse(BaseModel):
    """Envelope for operations that return no task, such as delete."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Envelope for every failure."""

    success: bool = False
    error: str
