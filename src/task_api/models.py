from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Storage-neutral representation of a Task as returned by every repository
    backend.

    Fields:
    - id: Unique positive integer assigned by the store
    - title: Trimmed, non-empty title
    - description: Trimmed, non-empty description
    - completed: Completion flag
    - due_date: Optional due datetime (naive UTC)
    - created_at: Insert timestamp (naive UTC)
    - updated_at: Last write timestamp (naive UTC)
    - version: Concurrency token, 1 on insert and incremented on each update
    """

    id: int
    title: str
    description: str
    completed: bool
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    version: int
