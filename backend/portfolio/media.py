"""Media store adapter for Cloudinary.

Uploads use Cloudinary's ``auto`` resource type, which detects whether the
file is an image or a video, and return a stable ``secure_url`` that the
gallery can embed directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, BinaryIO, Mapping, Protocol

import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError

from .config import MediaConfig


UPLOAD_TIMEOUT = 300
UNEXPECTED_RESPONSE = "Unexpected response from media host"


class MediaStoreError(RuntimeError):
    """Raised when the media host rejects a call or cannot be reached."""


class Uploader(Protocol):
    """The two calls of :mod:`cloudinary.uploader` the adapter relies on."""

    def upload(self, file: Any, **options: Any) -> Mapping[str, Any]:
        ...

    def destroy(self, public_id: str, **options: Any) -> Mapping[str, Any]:
        ...


@dataclass(frozen=True)
class MediaUpload:
    url: str
    public_id: str
    resource_type: str


class CloudinaryMediaStore:
    """Upload and delete media on a Cloudinary account."""

    def __init__(
        self,
        config: MediaConfig,
        *,
        uploader: Uploader = cloudinary.uploader,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._uploader = uploader
        self._logger = logger or logging.getLogger(__name__)
        if not config.is_configured:
            self._logger.warning(
                "Cloudinary env vars missing. Uploads to /api/upload will fail until "
                "CLOUDINARY_* are set."
            )

    def upload(self, source: Path | bytes | BinaryIO, *, filename: str, content_type: str) -> MediaUpload:
        """Upload ``source`` and return its hosted URL and opaque identifier.

        Raises:
            MediaStoreError: With the media host's message when the upload fails.
        """

        file = str(source) if isinstance(source, Path) else source
        result = self._call(
            self._uploader.upload,
            file,
            resource_type="auto",
            folder=self._config.folder,
            filename_override=filename,
            timeout=UPLOAD_TIMEOUT,
        )
        try:
            upload = MediaUpload(
                url=str(result["secure_url"]),
                public_id=str(result["public_id"]),
                resource_type=str(result.get("resource_type", "image")),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            self._logger.error("Upload of %s returned %r", filename, result)
            raise MediaStoreError(UNEXPECTED_RESPONSE) from exc
        self._logger.info("Uploaded %s (%s) as %s (%s)", filename, content_type, upload.public_id, upload.resource_type)
        return upload

    def delete(self, public_id: str, *, resource_type: str = "image") -> bool:
        """Delete a hosted asset; an already missing asset counts as deleted."""

        response = self._call(self._uploader.destroy, public_id, resource_type=resource_type)
        try:
            result = response.get("result")
        except AttributeError as exc:
            raise MediaStoreError(UNEXPECTED_RESPONSE) from exc
        if result not in {"ok", "not found"}:
            raise MediaStoreError(f"Unexpected delete result: {result}")
        if result == "not found":
            self._logger.info("Media %s was already absent", public_id)
        return True

    def _call(self, operation: Any, target: Any, **options: Any) -> Any:
        if not self._config.is_configured:
            raise MediaStoreError(
                "Cloudinary is not configured (missing CLOUDINARY_CLOUD_NAME / "
                "CLOUDINARY_API_KEY / CLOUDINARY_API_SECRET)."
            )
        try:
            return operation(
                target,
                cloud_name=self._config.cloud_name,
                api_key=self._config.api_key,
                api_secret=self._config.api_secret,
                **options,
            )
        except CloudinaryError as exc:
            raise MediaStoreError(str(exc) or UNEXPECTED_RESPONSE) from exc
        except OSError as exc:
            raise MediaStoreError(f"Media host request failed: {exc}") from exc
