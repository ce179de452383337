from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import httpx

logger = logging.getLogger(__name__)

TASKS_PATH = "/api/tasks"


class ApiError(Exception):
    """
    Raised for any non-2xx response, any body with ``success != true``, or a
    transport failure (``status_code`` is None in that case).
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


# PUBLIC_INTERFACE
class TaskApiClient:
    """
    Thin wrapper over the task endpoints that unwraps the response envelope.

    Takes any ``httpx.Client`` whose base URL points at the API server; this
    includes FastAPI's ``TestClient``. No retries.
    """

    def __init__(self, http: httpx.Client, token: Optional[str] = None) -> None:
        self._http = http
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, json: Any = None) -> Dict[str, Any]:
        try:
            resp = self._http.request(method, path, json=json, headers=self._headers)
        except httpx.HTTPError as exc:
            raise ApiError(f"Network error: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            raise ApiError(f"Unexpected response ({resp.status_code})", resp.status_code)
        if resp.is_error or body.get("success") is not True:
            raise ApiError(str(body.get("error") or f"Request failed ({resp.status_code})"), resp.status_code)
        return body

    def list_tasks(self) -> List[Dict[str, Any]]:
        return self._request("GET", TASKS_PATH)["data"]

    def get_task(self, task_id: int) -> Dict[str, Any]:
        return self._request("GET", f"{TASKS_PATH}/{task_id}")["data"]

    def create_task(self, title: str, description: str, due_date: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"title": title.strip(), "description": description.strip()}
        if due_date:
            payload["dueDate"] = due_date
        return self._request("POST", TASKS_PATH, json=payload)["data"]

    def update_task(self, task_id: int, patch: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"{TASKS_PATH}/{task_id}", json=dict(patch))["data"]

    def delete_task(self, task_id: int) -> str:
        return self._request("DELETE", f"{TASKS_PATH}/{task_id}")["message"]


# PUBLIC_INTERFACE
class TaskStore:
    """
    Client-side cache mirroring the server's task list.

    The store is the only owner of the cached list. Every successful mutation
    (add, mutate, remove) is followed by a full ``refresh()``; nothing is
    patched locally. A failed call records its message in ``error`` and leaves
    the cache as it was. A successful call clears ``error``.
    """

    def __init__(self, api: TaskApiClient) -> None:
        self._api = api
        self._tasks: List[Dict[str, Any]] = []
        self.error: Optional[str] = None
        self.loading = False

    @property
    def tasks(self) -> Tuple[Dict[str, Any], ...]:
        return tuple(self._tasks)

    def find(self, task_id: int) -> Optional[Dict[str, Any]]:
        for task in self._tasks:
            if task["id"] == task_id:
                return task
        return None

    def counts(self) -> Tuple[int, int]:
        """Return ``(completed, uncompleted)`` over the cached list."""
        completed = sum(1 for t in self._tasks if t.get("completed"))
        return completed, len(self._tasks) - completed

    def _fail(self, exc: ApiError) -> bool:
        logger.warning("Task request failed status=%s: %s", exc.status_code, exc.message)
        self.error = exc.message
        return False

    def refresh(self) -> bool:
        """Reload the whole list. Returns False (and sets ``error``) on failure."""
        self.loading = True
        try:
            tasks = self._api.list_tasks()
        except ApiError as exc:
            return self._fail(exc)
        finally:
            self.loading = False
        self._tasks = list(tasks)
        self.error = None
        return True

    def add(self, title: str, description: str, due_date: Optional[str] = None) -> bool:
        try:
            self._api.create_task(title, description, due_date)
        except ApiError as exc:
            return self._fail(exc)
        return self.refresh()

    def mutate(self, task_id: int, patch: Mapping[str, Any]) -> bool:
        try:
            self._api.update_task(task_id, patch)
        except ApiError as exc:
            return self._fail(exc)
        return self.refresh()

    def toggle_complete(self, task_id: int) -> bool:
        task = self.find(task_id)
        if task is None:
            self.error = "Task not found"
            return False
        return self.mutate(task_id, {"completed": not task["completed"]})

    def remove(self, task_id: int) -> Optional[str]:
        """
        Delete a task and reload.

        Returns the server's confirmation message, or None when either the
        delete or the reload fails (``error`` says which).
        """
        try:
            message = self._api.delete_task(task_id)
        except ApiError as exc:
            self._fail(exc)
            return None
        if not self.refresh():
            return None
        return message
