from __future__ import annotations

from typing import Any, List, Mapping, Optional, Type, TypeVar

import pydantic

from .errors import NotFound, ValidationError
from .models import TaskEntity
from .repositories import Repository
from .schemas import TaskCreate, TaskUpdate

_Payload = TypeVar("_Payload", TaskCreate, TaskUpdate)


# Largest value a signed 64-bit INTEGER column holds
MAX_TASK_ID = 2**63 - 1


def is_ascii_digits(raw: str) -> bool:
    """True for a non-empty run of 0-9; Unicode digits such as '²' do not count."""
    return raw.isascii() and raw.isdigit()


def parse_task_id(raw: Any) -> int:
    """
    Return ``raw`` as a positive integer id or raise ValidationError.

    Accepts ints and ASCII decimal strings up to MAX_TASK_ID; rejects booleans,
    floats, anything <= 0 and anything too large for the id column.
    """
    if isinstance(raw, bool):
        raise ValidationError("Invalid task id")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and is_ascii_digits(raw.strip()):
        value = int(raw.strip())
    else:
        raise ValidationError("Invalid task id")
    if value <= 0 or value > MAX_TASK_ID:
        raise ValidationError("Invalid task id")
    return value


def _first_error_message(exc: pydantic.ValidationError) -> str:
    err = exc.errors()[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    field = ".".join(str(part) for part in err.get("loc", ()))
    return f"{field}: {err['msg']}" if field else err["msg"]


def _validate(model: Type[_Payload], payload: Mapping[str, Any]) -> _Payload:
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return model.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError(_first_error_message(exc)) from exc


# PUBLIC_INTERFACE
class TaskService:
    """
    Validation layer in front of a storage Repository.

    Every input check runs before the repository is called, so a rejected
    request never reaches the store. Not-found results from the repository are
    turned into NotFound.
    """

    def __init__(self, repo: Repository) -> None:
        self._repo = repo

    def list_tasks(self) -> List[TaskEntity]:
        return self._repo.list()

    def get_task(self, task_id: Any) -> TaskEntity:
        tid = parse_task_id(task_id)
        task = self._repo.get(tid)
        if task is None:
            raise NotFound("Task not found")
        return task

    def create_task(self, payload: Mapping[str, Any]) -> TaskEntity:
        data = _validate(TaskCreate, payload)
        return self._repo.create(data)

    def update_task(
        self, task_id: Any, payload: Mapping[str, Any], expected_version: Optional[int] = None
    ) -> TaskEntity:
        """
        Apply a partial update.

        Fails with ValidationError when no updatable field is supplied. A
        ``version`` in the payload takes precedence over ``expected_version``.
        """
        tid = parse_task_id(task_id)
        data = _validate(TaskUpdate, payload)
        changes = data.changes()
        if not changes:
            raise ValidationError("No fields to update")
        version = data.version if data.version is not None else expected_version

        updated = self._repo.update(tid, changes, expected_version=version)
        if updated is None:
            raise NotFound("Task not found")
        return updated

    def delete_task(self, task_id: Any) -> str:
        """Delete a task and return its former title."""
        tid = parse_task_id(task_id)
        removed = self._repo.delete(tid)
        if removed is None:
            raise NotFound("Task not found")
        return removed["title"]
