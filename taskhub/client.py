"""HTTP client for the task API.

Each call takes an explicit ``Session`` instead of reading a token from
process-wide state, so several users can be driven from the same process.
"""
from dataclasses import dataclass, field
from typing import Any, Iterable

import httpx


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


@dataclass
class Session:
    token: str
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def user_id(self) -> int | None:
        return self.user.get("id")

    @property
    def is_admin(self) -> bool:
        return self.user.get("role") == "admin"


Upload = tuple[str, bytes, str]


class TaskHubClient:
    def __init__(self, http: httpx.Client):
        self.http = http

    def _request(self, method: str, path: str, session: Session | None = None, **kwargs) -> Any:
        headers = dict(kwargs.pop("headers", None) or {})
        if session is not None:
            headers.update(session.headers)
        r = self.http.request(method, path, headers=headers, **kwargs)
        if r.status_code >= 400:
            try:
                message = r.json().get("detail") or r.text
            except ValueError:
                message = r.text
            raise ApiError(r.status_code, str(message))
        return r.json()

    def _auth(self, path: str, email: str, password: str) -> Session:
        data = self._request("POST", path, json={"email": email, "password": password})
        return Session(token=data["token"], user=data["user"])

    def register(self, email: str, password: str) -> Session:
        return self._auth("/auth/register", email, password)

    def login(self, email: str, password: str) -> Session:
        return self._auth("/auth/login", email, password)

    def list_tasks(self, session: Session) -> list[dict]:
        return self._request("GET", "/tasks", session)

    def get_task(self, session: Session, task_id: int) -> dict:
        return self._request("GET", f"/tasks/{task_id}", session)

    def create_task(self, session: Session, fields: dict[str, Any], documents: Iterable[Upload] = ()) -> dict:
        return self._request("POST", "/tasks", session, data=_form(fields), files=_files(documents))

    def update_task(
        self, session: Session, task_id: int, fields: dict[str, Any], documents: Iterable[Upload] = ()
    ) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", session, data=_form(fields), files=_files(documents))

    def update_status(self, session: Session, task_id: int, status: str) -> dict:
        return self._request("PATCH", f"/tasks/{task_id}/status", session, json={"status": status})

    def delete_task(self, session: Session, task_id: int) -> dict:
        return self._request("DELETE", f"/tasks/{task_id}", session)

    def list_users(self, session: Session) -> list[dict]:
        return self._request("GET", "/users", session)


def _form(fields: dict[str, Any]) -> dict[str, str]:
    return {k: str(v) for k, v in fields.items() if v is not None}


def _files(documents: Iterable[Upload]) -> list[tuple[str, Upload]] | None:
    files = [("documents", doc) for doc in documents]
    return files or None


def filter_tasks(tasks: Iterable[dict], status: str = "all", priority: str = "all", search: str = "") -> list[dict]:
    """Client-side view over tasks the server already allowed us to see."""
    needle = (search or "").lower()
    out = []
    for task in tasks:
        if status != "all" and task.get("status") != status:
            continue
        if priority != "all" and task.get("priority") != priority:
            continue
        if needle and needle not in (task.get("title") or "").lower() and needle not in (
            task.get("description") or ""
        ).lower():
            continue
        out.append(task)
    return out
