"""Read-only gallery view model: filtering, display order and the lightbox."""

from __future__ import annotations

import logging
from typing import Literal, Sequence

from ..models import Project
from .api import ClientError, PortfolioClient
from .defaults import default_projects


GalleryFilter = Literal["all", "image", "video"]
FILTERS: tuple[GalleryFilter, ...] = ("all", "image", "video")

logger = logging.getLogger(__name__)


def media_type(project: Project) -> str:
    return project.type or "image"


def order_for_display(projects: Sequence[Project]) -> list[Project]:
    """Stable sort that keeps storage order but moves videos after images."""

    return sorted(projects, key=lambda project: media_type(project) == "video")


def filter_projects(projects: Sequence[Project], selected: GalleryFilter) -> list[Project]:
    if selected not in FILTERS:
        raise ValueError(f"Unknown gallery filter: {selected!r}")
    ordered = order_for_display(projects)
    if selected == "all":
        return ordered
    return [project for project in ordered if media_type(project) == selected]


def load_gallery(client: PortfolioClient) -> list[Project]:
    """Fetch the public set, silently falling back to the built-in defaults."""

    try:
        projects = client.fetch_projects()
    except ClientError as exc:
        logger.warning("Failed to load projects, showing defaults: %s", exc)
        return default_projects()
    return projects or default_projects()


class Lightbox:
    """Full-screen viewer over the currently filtered project set.

    ``index`` is ``None`` while closed. Navigation wraps around in both
    directions.
    """

    def __init__(self, projects: Sequence[Project] = ()) -> None:
        self._projects = list(projects)
        self.index: int | None = None

    @property
    def projects(self) -> list[Project]:
        return list(self._projects)

    @property
    def is_open(self) -> bool:
        return self.index is not None

    @property
    def current(self) -> Project | None:
        if self.index is None:
            return None
        return self._projects[self.index]

    def show(self, projects: Sequence[Project]) -> None:
        """Swap the viewed set (e.g. after a filter change); closes the viewer."""

        self._projects = list(projects)
        self.index = None

    def open(self, index: int) -> None:
        if not 0 <= index < len(self._projects):
            raise IndexError(f"No project at position {index}")
        self.index = index

    def close(self) -> None:
        self.index = None

    def next(self) -> None:
        if self.index is None or not self._projects:
            return
        self.index = (self.index + 1) % len(self._projects)

    def previous(self) -> None:
        if self.index is None or not self._projects:
            return
        self.index = (self.index - 1 + len(self._projects)) % len(self._projects)

    def handle_key(self, key: str) -> bool:
        """Apply a keyboard event; returns whether the key was consumed."""

        if self.index is None:
            return False
        if key == "Escape":
            self.close()
        elif key == "ArrowLeft":
            self.previous()
        elif key == "ArrowRight":
            self.next()
        else:
            return False
        return True


class Gallery:
    """Loaded project set plus the active filter and lightbox state."""

    def __init__(self, projects: Sequence[Project]) -> None:
        self._projects = list(projects)
        self.filter: GalleryFilter = "all"
        self.lightbox = Lightbox(self.visible())

    @classmethod
    def load(cls, client: PortfolioClient) -> "Gallery":
        return cls(load_gallery(client))

    def visible(self) -> list[Project]:
        return filter_projects(self._projects, self.filter)

    def set_filter(self, selected: GalleryFilter) -> None:
        """Switch the active filter; an unknown filter leaves the current one in place."""

        visible = filter_projects(self._projects, selected)
        self.filter = selected
        self.lightbox.show(visible)
