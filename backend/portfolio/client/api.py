"""HTTP client for the portfolio API.

Each call makes exactly one attempt with a bounded wait. Failures are
normalized so callers can tell an unreachable server (retry later) from a
server that rejected the request (fix the input).
"""

from __future__ import annotations

import logging
import mimetypes
from typing import Any, Iterable
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter

from ..models import Project


DEFAULT_TIMEOUT = 10.0
UPLOAD_TIMEOUT = 300.0

_project_list = TypeAdapter(list[Project])


class ClientError(Exception):
    """Base class for failures reported by :class:`PortfolioClient`."""


class ServerUnavailableError(ClientError):
    """The server could not be reached or did not answer in time."""

    def __init__(self, message: str, *, timed_out: bool = False) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class RequestRejectedError(ClientError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _auth_headers(pin: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {pin}"}


class PortfolioClient:
    """Thin wrapper over the REST routes exposed by :mod:`portfolio.main`."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = httpx.Client(base_url=self.base_url, transport=transport)
        self._logger = logger or logging.getLogger(__name__)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PortfolioClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def fetch_projects(self, *, timeout: float | None = None) -> list[Project]:
        data = self._request("GET", "/api/projects", timeout=timeout)
        if not isinstance(data, list):
            return []
        self._logger.debug("Fetched %d projects", len(data))
        return _project_list.validate_python(data)

    def save_projects(self, projects: Iterable[Project], pin: str) -> None:
        payload = [project.model_dump(mode="json") for project in projects]
        self._request("POST", "/api/projects", json=payload, headers=_auth_headers(pin))

    def upload_media(
        self,
        data: bytes,
        filename: str,
        pin: str,
        *,
        content_type: str | None = None,
    ) -> str:
        """Upload one file and return its hosted URL."""

        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        body = self._request(
            "POST",
            "/api/upload",
            files={"image": (filename, data, content_type)},
            headers=_auth_headers(pin),
            timeout=UPLOAD_TIMEOUT,
        )
        return body["url"]

    def delete_media(self, public_id: str, pin: str, *, resource_type: str = "image") -> None:
        self._request(
            "DELETE",
            f"/api/images/{quote(public_id, safe='/')}",
            params={"resource_type": resource_type},
            headers=_auth_headers(pin),
        )

    def verify_admin_pin(self, pin: str) -> bool:
        """Check a PIN without mutating anything; 401/503 answers yield ``False``."""

        if not pin:
            return False
        try:
            self._request("GET", "/api/admin/verify", headers=_auth_headers(pin))
        except RequestRejectedError as exc:
            if exc.status_code in (401, 503):
                return False
            raise
        return True

    def health(self) -> dict[str, Any]:
        return self._request("GET", "/api/health")

    def _request(self, method: str, path: str, *, timeout: float | None = None, **kwargs: Any) -> Any:
        try:
            response = self._http.request(method, path, timeout=timeout or self.timeout, **kwargs)
        except httpx.TimeoutException as exc:
            self._logger.error("Request timeout - server may be offline: %s %s", method, path)
            raise ServerUnavailableError(
                f"Server did not respond within {timeout or self.timeout:g}s.", timed_out=True
            ) from exc
        except httpx.TransportError as exc:
            self._logger.error("Network error - server may be offline: %s", exc)
            raise ServerUnavailableError(f"Server is not available at {self.base_url}.") from exc

        if response.is_error:
            raise RequestRejectedError(response.status_code, _rejection_message(response))
        try:
            return response.json()
        except ValueError as exc:
            raise RequestRejectedError(response.status_code, "Response was not valid JSON") from exc


def _rejection_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return response.reason_phrase
