"""HTTP client for the Project Tracker API."""

import logging
from typing import Any

import httpx

from project_tracker.client.session import SessionContext

logger = logging.getLogger(__name__)


class TrackerAPIError(Exception):
    """Error response from the API."""

    def __init__(self, status_code: int, code: str, message: str, details: dict[str, Any] | None = None):
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"{status_code} {code}: {message}")


class TrackerClient:
    """Thin wrapper over the REST API using an injected session."""

    def __init__(
        self,
        session: SessionContext,
        base_url: str = "http://localhost:8000/api/v1",
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ):
        self.session = session
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TrackerClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> Any:
        response = self._http.request(method, path, headers=self.session.auth_headers(), **kwargs)

        if response.status_code == 401:
            logger.info("Session rejected by server; clearing it")
            self.session.clear()

        if response.is_error:
            try:
                error = response.json().get("error") or {}
            except ValueError:
                error = {}
            raise TrackerAPIError(
                response.status_code,
                error.get("code", "HTTP_ERROR"),
                error.get("message", response.reason_phrase),
                error.get("details"),
            )
        return response.json()

    # Auth

    def login_student(self, roll_no: str, password: str) -> dict[str, Any]:
        data = self._request("POST", "/auth/student/login", json={"roll_no": roll_no, "password": password})
        self.session.login(data)
        return data

    def login_teacher(self, email: str, password: str) -> dict[str, Any]:
        data = self._request("POST", "/auth/teacher/login", json={"email": email, "password": password})
        self.session.login(data)
        return data

    def login_admin(self, admin_id: str, password: str) -> dict[str, Any]:
        data = self._request("POST", "/auth/admin/login", json={"admin_id": admin_id, "password": password})
        self.session.login(data)
        return data

    def logout(self) -> None:
        self.session.clear()

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/auth/me")

    # Student

    def send_partner_request(self, roll_no: str, message: str | None = None) -> dict[str, Any]:
        return self._request("POST", "/student/partner-requests", json={"roll_no": roll_no, "message": message})

    def respond_partner_request(self, request_id: int, action: str) -> dict[str, Any]:
        return self._request("POST", f"/student/partner-requests/{request_id}/respond", json={"action": action})

    def partner_requests(self) -> dict[str, Any]:
        return self._request("GET", "/student/partner-requests")

    def send_incharge_request(self, teacher_id: int) -> dict[str, Any]:
        return self._request("POST", "/student/incharge-requests", json={"teacher_id": teacher_id})

    def post_update(self, description: str, report: str | None = None, screenshots: list[str] | None = None) -> dict[str, Any]:
        body = {"description": description, "report": report, "screenshots": screenshots or []}
        return self._request("POST", "/student/project/updates", json=body)

    # Teacher

    def incharge_requests(self, pending_only: bool = False) -> list[dict[str, Any]]:
        return self._request("GET", "/teacher/incharge-requests", params={"pending_only": pending_only})

    def respond_incharge_request(
        self,
        request_id: int,
        action: str,
        project_id: int | None = None,
        message: str | None = None,
    ) -> dict[str, Any]:
        body = {"action": action, "project_id": project_id, "message": message}
        return self._request("POST", f"/teacher/incharge-requests/{request_id}/respond", json=body)

    def replace_targets(self, project_id: int, targets: list[dict[str, Any]]) -> dict[str, Any]:
        return self._request("PUT", f"/teacher/projects/{project_id}/targets", json={"targets": targets})

    def set_target_completed(self, project_id: int, target_id: int, completed: bool) -> dict[str, Any]:
        return self._request(
            "PATCH",
            f"/teacher/projects/{project_id}/targets/{target_id}",
            json={"completed": completed},
        )

    def comment_on_update(self, project_id: int, update_id: int, comment: str) -> dict[str, Any]:
        return self._request(
            "PUT",
            f"/teacher/projects/{project_id}/updates/{update_id}/comment",
            json={"comment": comment},
        )
