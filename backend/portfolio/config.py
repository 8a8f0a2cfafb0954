"""Configuration helpers for the portfolio backend.

Runtime configuration is read from environment variables on demand so tests can
override them before application components are instantiated. Secrets (the
admin PIN hash and the Cloudinary credentials) must never be committed.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import Final


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


@dataclass(frozen=True)
class SecurityConfig:
    """Names of the environment variables holding the admin credential pair.

    Attributes:
        pin_salt_env_var: Salt fed to scrypt when deriving the PIN hash.
        pin_hash_env_var: Base64-encoded scrypt output for the admin PIN.
    """

    pin_salt_env_var: str = "ADMIN_PIN_SALT"
    pin_hash_env_var: str = "ADMIN_PIN_HASH"
    trust_proxy_env_var: str = "TRUST_PROXY"


SECURITY_CONFIG: Final = SecurityConfig()


@dataclass(frozen=True)
class DataConfig:
    """Configuration for persistent application storage."""

    sqlite_path_env_var: str = "PORTFOLIO_DB_PATH"
    default_sqlite_path: Path = Path("var/sqlite/portfolio.db")
    images_dir_env_var: str = "PORTFOLIO_IMAGES_DIR"
    default_images_dir: Path = Path("var/data/images")
    dist_dir_env_var: str = "PORTFOLIO_DIST_DIR"
    default_dist_dir: Path = Path("dist")


DATA_CONFIG: Final = DataConfig()


@dataclass(frozen=True)
class MediaConfig:
    """Cloudinary account settings used by the media store adapter."""

    cloud_name: str | None
    api_key: str | None
    api_secret: str | None
    folder: str = "portfolio"
    max_upload_bytes: int = 200 * 1024 * 1024

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)


@dataclass(frozen=True)
class ServerConfig:
    """Network binding and logging options for the HTTP server."""

    host: str = "0.0.0.0"
    port: int = 3005
    log_level: str = "INFO"
    log_format: str = "text"


DEFAULT_CORS_ORIGINS: Final = (
    "https://dedouleur.netlify.app",
    "https://dedouleur.mooo.com",
    "https://retardded.github.io",
    "http://localhost:5173",
    "http://localhost:3000",
)


def load_admin_credentials() -> tuple[str, str] | None:
    """Return the configured ``(salt, hash)`` pair, or ``None`` when unset."""

    salt = os.environ.get(SECURITY_CONFIG.pin_salt_env_var)
    expected = os.environ.get(SECURITY_CONFIG.pin_hash_env_var)
    if not salt or not expected:
        return None
    return salt, expected


def trust_proxy() -> bool:
    return os.environ.get(SECURITY_CONFIG.trust_proxy_env_var, "false").lower() == "true"


def _resolve_path(env_var: str, default: Path) -> Path:
    candidate = os.environ.get(env_var)
    if candidate:
        return Path(candidate).expanduser().resolve()
    return default.expanduser().resolve()


def resolve_sqlite_path() -> Path:
    """Return the configured path to the SQLite database file."""

    return _resolve_path(DATA_CONFIG.sqlite_path_env_var, DATA_CONFIG.default_sqlite_path)


def resolve_images_dir() -> Path:
    """Return the directory used for staged uploads and legacy local images."""

    return _resolve_path(DATA_CONFIG.images_dir_env_var, DATA_CONFIG.default_images_dir)


def resolve_dist_dir() -> Path:
    """Return the directory holding the built single-page application."""

    return _resolve_path(DATA_CONFIG.dist_dir_env_var, DATA_CONFIG.default_dist_dir)


def load_media_config() -> MediaConfig:
    return MediaConfig(
        cloud_name=os.environ.get("CLOUDINARY_CLOUD_NAME"),
        api_key=os.environ.get("CLOUDINARY_API_KEY"),
        api_secret=os.environ.get("CLOUDINARY_API_SECRET"),
    )


def load_cors_origins() -> tuple[set[str], bool]:
    """Return the explicit origin allow-list and whether wildcard mode is on.

    ``CORS_ORIGINS`` is a comma-separated list appended to the defaults. A
    literal ``*`` entry switches to reflecting any origin.
    """

    extra = [item.strip() for item in os.environ.get("CORS_ORIGINS", "").split(",")]
    extra = [item for item in extra if item]
    wildcard = "*" in extra
    origins = set(DEFAULT_CORS_ORIGINS)
    origins.update(item for item in extra if item != "*")
    return origins, wildcard


def load_server_config() -> ServerConfig:
    """Read host, port and logging options from the environment.

    Raises:
        ConfigurationError: If ``PORTFOLIO_PORT`` is not an integer or the log
            format is unknown.
    """

    raw_port = os.environ.get("PORTFOLIO_PORT", str(ServerConfig.port))
    try:
        port = int(raw_port)
    except ValueError as exc:
        raise ConfigurationError(f"PORTFOLIO_PORT must be an integer, got {raw_port!r}.") from exc

    log_format = os.environ.get("PORTFOLIO_LOG_FORMAT", ServerConfig.log_format).lower()
    if log_format not in {"text", "json"}:
        raise ConfigurationError("PORTFOLIO_LOG_FORMAT must be 'text' or 'json'.")

    return ServerConfig(
        host=os.environ.get("PORTFOLIO_HOST", ServerConfig.host),
        port=port,
        log_level=os.environ.get("PORTFOLIO_LOG_LEVEL", ServerConfig.log_level).upper(),
        log_format=log_format,
    )
