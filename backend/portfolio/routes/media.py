"""Media upload and deletion endpoints backed by the media store adapter."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Request, UploadFile
from starlette.concurrency import run_in_threadpool

from ..dependencies import get_media_store, require_admin
from ..errors import PayloadTooLarge, UpstreamFailure, ValidationError
from ..media import CloudinaryMediaStore, MediaStoreError
from ..models import DeleteMediaResponse, UploadResponse
from ..ratelimit import rate_limit


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["media"])

ALLOWED_EXTENSIONS = re.compile(r"jpeg|jpg|png|gif|webp|mp4|webm|ogg|mov")
ALLOWED_CONTENT_TYPES = re.compile(r"image|video")


def is_allowed_media(filename: str, content_type: str | None) -> bool:
    extension = Path(filename).suffix.lower()
    return bool(ALLOWED_EXTENSIONS.search(extension)) and bool(
        ALLOWED_CONTENT_TYPES.search(content_type or "")
    )


def _stage_upload(upload: UploadFile, directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(upload.filename or "").suffix.lower()
    with tempfile.NamedTemporaryFile(dir=directory, suffix=suffix, delete=False) as staged:
        upload.file.seek(0)
        shutil.copyfileobj(upload.file, staged)
    return Path(staged.name)


@router.post(
    "/upload",
    response_model=UploadResponse,
    summary="Upload one image or video to the media host",
    dependencies=[Depends(rate_limit("upload")), Depends(require_admin)],
)
async def upload_media(
    request: Request,
    store: Annotated[CloudinaryMediaStore, Depends(get_media_store)],
    image: Annotated[UploadFile | None, File()] = None,
) -> UploadResponse:
    """Forward the multipart ``image`` field to the media host.

    The bytes are staged on local disk first and the staged copy is removed
    once the remote call finishes, whatever its outcome.
    """

    if image is None:
        raise ValidationError("No file uploaded")

    filename = image.filename or "upload"
    if not is_allowed_media(filename, image.content_type):
        raise ValidationError("Only image and video files are allowed!")

    max_bytes = request.app.state.media_config.max_upload_bytes
    if image.size is not None and image.size > max_bytes:
        raise PayloadTooLarge("File too large")

    staged = await run_in_threadpool(_stage_upload, image, request.app.state.images_dir)
    try:
        result = await run_in_threadpool(
            store.upload,
            staged,
            filename=filename,
            content_type=image.content_type or "application/octet-stream",
        )
    except MediaStoreError as exc:
        logger.error("Upload error for %s: %s", filename, exc)
        raise UpstreamFailure(str(exc) or "Failed to upload file (unknown error)") from exc
    finally:
        try:
            staged.unlink()
        except OSError:
            logger.warning("Failed to delete temp upload file: %s", staged)

    return UploadResponse(url=result.url, filename=result.public_id)


@router.delete(
    "/images/{public_id:path}",
    response_model=DeleteMediaResponse,
    summary="Delete hosted media by its opaque identifier",
    dependencies=[Depends(rate_limit("auth")), Depends(require_admin)],
)
async def delete_media(
    public_id: str,
    store: Annotated[CloudinaryMediaStore, Depends(get_media_store)],
    resource_type: str = "image",
) -> DeleteMediaResponse:
    """Remove an asset from the media host; the host's error is passed through."""

    try:
        await run_in_threadpool(store.delete, public_id, resource_type=resource_type)
    except MediaStoreError as exc:
        logger.error("Delete error for %s: %s", public_id, exc)
        raise UpstreamFailure(str(exc)) from exc
    return DeleteMediaResponse()
