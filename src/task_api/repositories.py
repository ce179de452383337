from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, List, Optional

from .errors import Conflict
from .models import TaskEntity
from .schemas import TaskCreate
from .settings import get_settings

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "description", "completed", "due_date"})


def utcnow() -> datetime:
    """Current time as a naive UTC datetime, the form every backend stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def check_version(task_id: int, current: int, expected: Optional[int]) -> None:
    """Raise Conflict when an expected version is given and differs from the stored one."""
    if expected is not None and expected != current:
        raise Conflict(
            f"Task {task_id} was modified by another request (expected version {expected}, found {current})"
        )


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract persistence contract for task storage backends.

    Inputs are already validated; backends only store and fetch. Failures of
    the underlying store are raised as StoreError.
    """

    name: str = "abstract"

    @abstractmethod
    def create(self, data: TaskCreate) -> TaskEntity:
        """Insert a new task and return it with id, timestamps and version assigned."""

    @abstractmethod
    def get(self, task_id: int) -> Optional[TaskEntity]:
        """Return a task by id, or None if not found."""

    @abstractmethod
    def update(
        self, task_id: int, changes: Dict[str, Any], expected_version: Optional[int] = None
    ) -> Optional[TaskEntity]:
        """
        Apply ``changes`` (storage field names) to an existing task and bump its version.
        Return the updated task, or None if not found. Raise Conflict on version mismatch.
        """

    @abstractmethod
    def delete(self, task_id: int) -> Optional[TaskEntity]:
        """Hard-delete a task. Return the removed task, or None if not found."""

    @abstractmethod
    def list(self) -> List[TaskEntity]:
        """Return every task ordered by created_at descending, newest id first on ties."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository for tests and local development.
    """

    name = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def create(self, data: TaskCreate) -> TaskEntity:
        now = utcnow()
        entity: TaskEntity = {
            "id": self._allocate_id(),
            "title": data.title,
            "description": data.description,
            "completed": False,
            "due_date": data.due_date,
            "created_at": now,
            "updated_at": now,
            "version": 1,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        logger.info("Created task id=%s", entity["id"])
        return entity.copy()

    def get(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def update(
        self, task_id: int, changes: Dict[str, Any], expected_version: Optional[int] = None
    ) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                return None
            check_version(task_id, existing["version"], expected_version)

            updated = existing.copy()
            for field, value in changes.items():
                if field in UPDATABLE_FIELDS:
                    updated[field] = value  # type: ignore[literal-required]
            updated["updated_at"] = utcnow()
            updated["version"] = existing["version"] + 1

            self._items[task_id] = updated
            return updated.copy()

    def delete(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            removed = self._items.pop(task_id, None)
        if removed is not None:
            logger.info("Deleted task id=%s", task_id)
        return removed

    def list(self) -> List[TaskEntity]:
        with self._lock:
            items = sorted(
                self._items.values(),
                key=lambda t: (t["created_at"], t["id"]),
                reverse=True,
            )
            # Copies so callers cannot mutate stored state
            return [t.copy() for t in items]


# PUBLIC_INTERFACE
@lru_cache
def get_repository() -> Repository:
    """
    Return the process-wide repository selected by settings.
    - memory: InMemoryRepository
    - sqlalchemy: SQLAlchemyRepository bound to DATABASE_URL
    """
    settings = get_settings()
    if settings.persistence_backend == "memory":
        return InMemoryRepository()

    from .db import SQLAlchemyRepository

    return SQLAlchemyRepository.from_url(settings.database_url)
