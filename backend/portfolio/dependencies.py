"""Reusable FastAPI dependency providers."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header, Request

from .errors import ServiceUnavailable, Unauthorized
from .media import CloudinaryMediaStore
from .repositories.projects import ProjectsRepository
from .security import current_credential, extract_admin_pin, verify_admin_pin


logger = logging.getLogger(__name__)


def get_repository(request: Request) -> ProjectsRepository:
    return request.app.state.repository


def get_media_store(request: Request) -> CloudinaryMediaStore:
    return request.app.state.media_store


async def require_admin(
    authorization: Annotated[str | None, Header()] = None,
    x_admin_pin: Annotated[str | None, Header(alias="X-Admin-Pin")] = None,
) -> None:
    """Reject the request unless it carries the configured admin PIN."""

    credential = current_credential()
    if credential is None:
        raise ServiceUnavailable(
            "Admin PIN is not configured on the server (missing ADMIN_PIN_SALT / ADMIN_PIN_HASH)."
        )

    pin = extract_admin_pin(authorization, x_admin_pin)
    if not pin:
        raise Unauthorized("Missing admin credentials")

    if not verify_admin_pin(pin, credential):
        logger.warning("Rejected admin request with an invalid PIN")
        raise Unauthorized("Invalid admin credentials")
