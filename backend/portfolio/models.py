"""Pydantic models used by the backend API and the client package."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MediaType = Literal["image", "video"]


class ProjectFields(BaseModel):
    """Editable attributes of a gallery entry, without its identifier."""

    model_config = ConfigDict(extra="ignore")

    title: str
    description: str = ""
    year: str = ""
    category: str = ""
    image: Optional[str] = None
    video: Optional[str] = None
    type: MediaType = "image"

    @field_validator("description", "year", "category", mode="before")
    @classmethod
    def blank_when_missing(cls, value: object) -> object:
        if value is None:
            return ""
        # Older exports store the year as a JSON number.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("type", mode="before")
    @classmethod
    def image_when_missing(cls, value: object) -> object:
        return value or "image"

    @field_validator("image", "video", mode="before")
    @classmethod
    def none_when_empty(cls, value: object) -> object:
        return value or None


class Project(ProjectFields):
    """One portfolio gallery entry (image or video) with descriptive metadata."""

    id: int

    def is_video(self) -> bool:
        return self.type == "video"


class SaveProjectsResponse(BaseModel):
    success: bool = True
    message: str = "Projects saved successfully"


class UploadResponse(BaseModel):
    success: bool = True
    url: str = Field(..., description="Directly embeddable URL of the hosted media.")
    filename: str = Field(..., description="Opaque media identifier used for deletion.")


class DeleteMediaResponse(BaseModel):
    success: bool = True
    message: str = "Image deleted"


class VerifyResponse(BaseModel):
    ok: bool = True


class HealthResponse(BaseModel):
    """Response payload for service liveness checks."""

    status: str = Field(..., description="Human-readable service status message.")
    timestamp: datetime
