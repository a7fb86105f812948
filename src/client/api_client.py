"""
HTTP client for the YoursKanban REST API.
"""

import logging

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A non-2xx response, or a request that never reached the server."""

    def __init__(self, status: int, message: str, code: str | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"ApiError(status={self.status}, code={self.code!r}, message={self.message!r})"


class ApiClient:
    def __init__(self, base_url: str, token: str | None = None,
                 timeout: float = 10, session: requests.Session | None = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
        })

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def request(self, method: str, path: str, **kwargs):
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        url = f"{self.base_url}{path}"
        logger.debug("API request %s %s", method, path)
        try:
            response = self.session.request(method, url, headers=headers,
                                            timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("API request failed: %s %s: %s", method, path, e)
            raise ApiError(0, str(e) or "Network request failed",
                           "NETWORK_ERROR") from e
        return self._handle_response(response)

    def _handle_response(self, response):
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.ok:
            return data
        if response.status_code == 401:
            # Session is gone; drop the stale token
            self.token = None
        message = "Something went wrong"
        code = None
        if isinstance(data, dict):
            message = data.get("message") or message
            code = data.get("code")
        raise ApiError(response.status_code, message, code)

    # -- auth --------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> dict:
        data = self.request("POST", "/auth/register", json={
            "name": name, "email": email, "password": password})
        self.token = data.get("token")
        return data["user"]

    def login(self, email: str, password: str) -> dict:
        data = self.request("POST", "/auth/login",
                            json={"email": email, "password": password})
        self.token = data.get("token")
        return data["user"]

    def logout(self) -> None:
        try:
            self.request("POST", "/auth/logout")
        finally:
            self.token = None

    def me(self) -> dict:
        return self.request("GET", "/auth/me")["user"]

    def health(self) -> dict:
        return self.request("GET", "/health")

    # -- tasks -------------------------------------------------------------

    def list_tasks(self, status: str | None = None) -> list:
        params = {"status": status} if status else None
        return self.request("GET", "/tasks", params=params)

    def get_task(self, task_id: str) -> dict:
        return self.request("GET", f"/tasks/{task_id}")

    def create_task(self, task: dict) -> dict:
        return self.request("POST", "/tasks", json=task)

    def update_task(self, task_id: str, updates: dict) -> dict:
        return self.request("PATCH", f"/tasks/{task_id}", json=updates)

    def delete_task(self, task_id: str) -> dict:
        return self.request("DELETE", f"/tasks/{task_id}")

    def duplicate_task(self, task_id: str) -> dict:
        return self.request("POST", f"/tasks/{task_id}/duplicate")

    def reorder_tasks(self, items: list[dict]) -> dict:
        return self.request("PUT", "/tasks/reorder", json={"tasks": items})

    def import_tasks(self, tasks: list[dict]) -> list:
        return self.request("POST", "/tasks/import", json={"tasks": tasks})

    def export_tasks(self) -> dict:
        return self.request("GET", "/tasks/export")
