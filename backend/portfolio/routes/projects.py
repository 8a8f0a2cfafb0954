"""Project listing and bulk replace endpoints."""

from __future__ import annotations

from typing import Annotated, Any

import pydantic
from fastapi import APIRouter, Body, Depends
from pydantic import TypeAdapter

from ..dependencies import get_repository, require_admin
from ..errors import UpstreamFailure, ValidationError
from ..models import Project, SaveProjectsResponse
from ..ratelimit import rate_limit
from ..repositories.projects import ProjectsRepository


router = APIRouter(prefix="/api/projects", tags=["projects"])
_project_list = TypeAdapter(list[Project])


@router.get(
    "",
    response_model=list[Project],
    summary="List all gallery projects",
    dependencies=[Depends(rate_limit("api"))],
)
async def list_projects(
    repository: Annotated[ProjectsRepository, Depends(get_repository)],
) -> list[Project]:
    """Return every stored project, newest first. Never fails on an empty store."""

    return repository.list_all()


@router.post(
    "",
    response_model=SaveProjectsResponse,
    summary="Replace all projects",
    dependencies=[Depends(rate_limit("api")), Depends(require_admin)],
)
async def replace_projects(
    repository: Annotated[ProjectsRepository, Depends(get_repository)],
    payload: Annotated[Any, Body()] = None,
) -> SaveProjectsResponse:
    """Atomically swap the stored set for the submitted array of projects."""

    if not isinstance(payload, list):
        raise ValidationError("Projects must be an array")

    try:
        projects = _project_list.validate_python(payload)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ValidationError(f"Invalid project at {location}: {first['msg']}") from exc

    if not repository.replace_all(projects):
        raise UpstreamFailure("Failed to save projects")
    return SaveProjectsResponse()
