from __future__ import annotations

from typing import Any

from portfolio.client.api import RequestRejectedError
from portfolio.models import Project
from portfolio.security import hash_admin_pin

ADMIN_PIN = "2468"
ADMIN_CREDENTIAL = hash_admin_pin(ADMIN_PIN, "test-salt")


def admin_headers(pin: str = ADMIN_PIN) -> dict[str, str]:
    """Authorization header carrying the admin PIN as a bearer token."""

    return {"Authorization": f"Bearer {pin}"}


def project_payload(project_id: int, **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": project_id,
        "title": f"Project {project_id}",
        "description": "",
        "year": "2024",
        "category": "Branding",
        "image": f"https://res.cloudinary.com/demo/image/upload/p{project_id}.jpg",
        "video": None,
        "type": "image",
    }
    payload.update(overrides)
    return payload


class FakeUploader:
    """Stand-in for :mod:`cloudinary.uploader` recording every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any, dict[str, Any]]] = []
        self.upload_result: Any = {
            "secure_url": "https://res.cloudinary.com/demo/image/upload/v1/portfolio/abc.jpg",
            "public_id": "portfolio/abc",
            "resource_type": "image",
        }
        self.destroy_result: Any = {"result": "ok"}
        self.error: Exception | None = None

    def upload(self, file: Any, **options: Any) -> Any:
        if hasattr(file, "read"):
            file = file.read()
        elif isinstance(file, str):
            with open(file, "rb") as handle:
                file = handle.read()
        self.calls.append(("upload", file, options))
        if self.error is not None:
            raise self.error
        return self.upload_result

    def destroy(self, public_id: str, **options: Any) -> Any:
        self.calls.append(("destroy", public_id, options))
        if self.error is not None:
            raise self.error
        return self.destroy_result


class FakeClient:
    """In-memory stand-in for :class:`PortfolioClient`."""

    def __init__(self, projects: list[Project] | None = None) -> None:
        self.server: list[Project] = list(projects or [])
        self.fetch_error: Exception | None = None
        self.save_error: Exception | None = None
        self.failing_uploads: set[str] = set()
        self.saves: list[list[Project]] = []
        self.uploads: list[tuple[str, bytes, str | None]] = []
        self.verified: list[str] = []

    def verify_admin_pin(self, pin: str) -> bool:
        self.verified.append(pin)
        return pin == ADMIN_PIN

    def fetch_projects(self, *, timeout: float | None = None) -> list[Project]:
        if self.fetch_error is not None:
            raise self.fetch_error
        return list(self.server)

    def save_projects(self, projects: list[Project], pin: str) -> None:
        assert pin == ADMIN_PIN
        if self.save_error is not None:
            raise self.save_error
        self.saves.append(list(projects))
        self.server = list(projects)

    def upload_media(self, data: bytes, filename: str, pin: str, *, content_type: str | None = None) -> str:
        self.uploads.append((filename, data, content_type))
        if filename in self.failing_uploads:
            raise RequestRejectedError(500, "Invalid image file")
        kind = "video" if content_type and content_type.startswith("video/") else "image"
        return f"https://res.cloudinary.com/demo/{kind}/upload/v1/portfolio/{filename}"

    def close(self) -> None:
        pass

    def __enter__(self) -> "FakeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
