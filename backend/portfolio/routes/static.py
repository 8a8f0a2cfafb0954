"""Built front-end assets and the single-page application fallback."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse

from ..errors import NotFound

router = APIRouter(tags=["static"])


def _resolve_asset(dist_dir: Path, requested: str) -> Path | None:
    if not requested:
        return None
    candidate = (dist_dir / requested).resolve()
    if not candidate.is_relative_to(dist_dir.resolve()) or not candidate.is_file():
        return None
    return candidate


@router.get("/{full_path:path}", include_in_schema=False)
async def spa_fallback(full_path: str, request: Request) -> FileResponse:
    """Serve a built asset when it exists, otherwise the SPA's ``index.html``."""

    dist_dir: Path = request.app.state.dist_dir
    if full_path.startswith("api/"):
        raise NotFound("Not found")

    asset = _resolve_asset(dist_dir, full_path)
    if asset is not None:
        return FileResponse(asset)

    index = dist_dir / "index.html"
    if not index.is_file():
        raise NotFound("Not found")
    return FileResponse(index)
