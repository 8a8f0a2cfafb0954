from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient

from portfolio.config import SECURITY_CONFIG
from portfolio.main import create_app

from .helpers import ADMIN_CREDENTIAL, FakeUploader


@pytest.fixture(autouse=True)
def configure_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate storage paths and configure the admin PIN for every test case."""

    monkeypatch.setenv(SECURITY_CONFIG.pin_salt_env_var, ADMIN_CREDENTIAL.salt)
    monkeypatch.setenv(SECURITY_CONFIG.pin_hash_env_var, ADMIN_CREDENTIAL.expected_hash)
    monkeypatch.setenv("PORTFOLIO_DB_PATH", str(tmp_path / "sqlite" / "portfolio.db"))
    monkeypatch.setenv("PORTFOLIO_IMAGES_DIR", str(tmp_path / "images"))
    monkeypatch.setenv("PORTFOLIO_DIST_DIR", str(tmp_path / "dist"))
    for name in (
        "CLOUDINARY_CLOUD_NAME",
        "CLOUDINARY_API_KEY",
        "CLOUDINARY_API_SECRET",
        "CORS_ORIGINS",
        "TRUST_PROXY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def cloudinary_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLOUDINARY_CLOUD_NAME", "demo")
    monkeypatch.setenv("CLOUDINARY_API_KEY", "key-123")
    monkeypatch.setenv("CLOUDINARY_API_SECRET", "secret-456")


@pytest.fixture()
def uploader() -> FakeUploader:
    """Fake media host shared by the app and the test case."""

    return FakeUploader()


@pytest.fixture()
def client(uploader: FakeUploader) -> Generator[TestClient, None, None]:
    """Provide a FastAPI test client bound to an isolated database and fake media host."""

    app = create_app(media_uploader=uploader)
    with TestClient(app) as test_client:
        yield test_client
