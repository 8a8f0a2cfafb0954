"""Admin console controller.

The console edits an in-memory working set of projects and persists it only
on an explicit save, which replaces the whole server-side set in one call.
Media uploads run strictly one file at a time.
"""

from __future__ import annotations

import json
import logging
import mimetypes
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Sequence

from pydantic import TypeAdapter

from ..models import Project
from .api import ClientError, PortfolioClient, ServerUnavailableError
from .compression import compress_image
from .credentials import CredentialStore
from .defaults import default_projects
from .status import Level, StatusBoard


LOAD_TIMEOUT = 5.0
EXPORT_FILENAME = "portfolio-data.json"

_project_list = TypeAdapter(list[Project])


class ConsoleState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHORIZING = "authorizing"
    LOADING = "loading"
    READY = "ready"
    SAVING = "saving"


class ConsoleLockedError(RuntimeError):
    """Raised when an editing action is attempted without authorization."""


@dataclass(frozen=True)
class MediaFile:
    filename: str
    content_type: str
    data: bytes

    @classmethod
    def from_path(cls, path: Path) -> "MediaFile":
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        return cls(filename=path.name, content_type=content_type, data=path.read_bytes())

    @property
    def is_video(self) -> bool:
        return self.content_type.startswith("video/")


@dataclass(frozen=True)
class UploadOutcome:
    filename: str
    url: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.url is not None


@dataclass
class BulkUploadReport:
    outcomes: list[UploadOutcome] = field(default_factory=list)
    created: list[Project] = field(default_factory=list)
    saved: bool = False

    @property
    def successful(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)


class AdminConsole:
    """State machine behind the authenticated editing surface."""

    def __init__(
        self,
        client: PortfolioClient,
        credentials: CredentialStore,
        *,
        status: StatusBoard | None = None,
        defaults: Callable[[], list[Project]] = default_projects,
        compress: Callable[[bytes], bytes] = compress_image,
        today: Callable[[], date] = date.today,
        logger: logging.Logger | None = None,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self.status = status or StatusBoard()
        self._defaults = defaults
        self._compress = compress
        self._today = today
        self._logger = logger or logging.getLogger(__name__)
        self._pin: str | None = None
        self.state = ConsoleState.UNAUTHENTICATED
        self.projects: list[Project] = defaults()
        self.loaded_from_server = False

    @property
    def is_authorized(self) -> bool:
        return self.state not in (ConsoleState.UNAUTHENTICATED, ConsoleState.AUTHORIZING)

    # -- authentication -------------------------------------------------

    def restore_session(self) -> bool:
        """Re-validate a cached PIN; a rejected PIN is evicted from the cache."""

        cached = self._credentials.load()
        if not cached:
            return False
        self.state = ConsoleState.AUTHORIZING
        try:
            ok = self._client.verify_admin_pin(cached)
        except ClientError as exc:
            self._logger.warning("Could not validate cached admin PIN: %s", exc)
            self.state = ConsoleState.UNAUTHENTICATED
            return False
        if not ok:
            self._credentials.clear()
            self.state = ConsoleState.UNAUTHENTICATED
            return False
        self._enter_authorized(cached)
        return True

    def authorize(self, pin: str) -> bool:
        self.status.clear()
        self.state = ConsoleState.AUTHORIZING
        try:
            ok = self._client.verify_admin_pin(pin)
        except ClientError as exc:
            self.state = ConsoleState.UNAUTHENTICATED
            self.status.post(f"Could not verify PIN: {exc}", Level.ERROR, ttl=5)
            return False
        if not ok:
            self.state = ConsoleState.UNAUTHENTICATED
            self.status.post("Wrong PIN", Level.ERROR, ttl=5)
            return False
        self._credentials.save(pin)
        self._enter_authorized(pin)
        return True

    def logout(self) -> None:
        self._credentials.clear()
        self._pin = None
        self.state = ConsoleState.UNAUTHENTICATED
        self.projects = self._defaults()
        self.loaded_from_server = False

    def _enter_authorized(self, pin: str) -> None:
        self._pin = pin
        self.state = ConsoleState.LOADING
        self.load()

    # -- loading and saving --------------------------------------------

    def load(self) -> None:
        """Fetch the server set, falling back to defaults on any failure."""

        self._require_authorized()
        self.state = ConsoleState.LOADING
        self.loaded_from_server = False
        try:
            server_projects = self._client.fetch_projects(timeout=LOAD_TIMEOUT)
        except ServerUnavailableError as exc:
            self._logger.error("Failed to load projects: %s", exc)
            self.projects = self._defaults()
            self.status.post(
                "Server offline. Using default projects. Start server to save changes.",
                Level.WARNING,
                ttl=7,
            )
        except ClientError as exc:
            self._logger.error("Failed to load projects: %s", exc)
            self.projects = self._defaults()
            self.status.post(f"Error loading projects: {exc}. Using defaults.", Level.WARNING, ttl=7)
        else:
            self.loaded_from_server = True
            if server_projects:
                self.projects = server_projects
            else:
                self.projects = self._defaults()
                self.status.post(
                    "No projects on server. Using defaults. Add projects and save.",
                    Level.INFO,
                    ttl=5,
                )
        finally:
            self.state = ConsoleState.READY

    def save(self) -> bool:
        """Persist the whole working set with one bulk replace."""

        self._require_authorized()
        self.status.post("Saving...", Level.PROGRESS, ttl=None)
        if self._persist(self.projects):
            self.status.post("Saved successfully!", Level.SUCCESS)
            return True
        return False

    def _persist(self, projects: Sequence[Project]) -> bool:
        pin = self._require_pin()
        self.state = ConsoleState.SAVING
        try:
            self._client.save_projects(projects, pin)
        except ClientError as exc:
            self._logger.error("Save error: %s", exc)
            self.status.post(f"Save failed: {exc}", Level.ERROR, ttl=5)
            return False
        finally:
            self.state = ConsoleState.READY
        self.loaded_from_server = True
        return True

    # -- local edits ----------------------------------------------------

    def _next_id(self) -> int:
        return max((project.id for project in self.projects), default=0) + 1

    def add_project(self) -> Project:
        self._require_authorized()
        project = Project(
            id=self._next_id(),
            title="New project",
            year=str(self._today().year),
            category="Uncategorized",
        )
        self.projects = [project, *self.projects]
        return project

    def update_project(self, project_id: int, **changes: object) -> Project:
        self._require_authorized()
        index = self._index_of(project_id)
        updated = Project.model_validate({**self.projects[index].model_dump(), **changes, "id": project_id})
        self.projects[index] = updated
        return updated

    def delete_project(self, project_id: int) -> None:
        self._require_authorized()
        self.projects = [project for project in self.projects if project.id != project_id]

    def move_project(self, project_id: int, offset: int) -> None:
        """Shift an entry ``offset`` places, clamped to the ends of the list."""

        self._require_authorized()
        index = self._index_of(project_id)
        project = self.projects.pop(index)
        target = min(max(index + offset, 0), len(self.projects))
        self.projects.insert(target, project)

    def move_videos_to_bottom(self) -> None:
        self._require_authorized()
        images = [project for project in self.projects if (project.type or "image") == "image"]
        videos = [project for project in self.projects if project.type == "video"]
        self.projects = images + videos
        self.status.post("Videos moved to bottom. Save to persist.", Level.INFO, ttl=4)

    # -- media ----------------------------------------------------------

    def _upload(self, media: MediaFile) -> str:
        pin = self._require_pin()
        if media.is_video:
            return self._client.upload_media(media.data, media.filename, pin, content_type=media.content_type)
        compressed = self._compress(media.data)
        return self._client.upload_media(compressed, media.filename, pin, content_type="image/jpeg")

    def bulk_upload(self, files: Iterable[MediaFile]) -> BulkUploadReport:
        """Upload ``files`` one by one, add an entry per success and save once."""

        self._require_authorized()
        files = list(files)
        report = BulkUploadReport()
        self.state = ConsoleState.SAVING
        try:
            for position, media in enumerate(files, start=1):
                self.status.post(f"Uploading {position}/{len(files)}: {media.filename}", Level.PROGRESS, ttl=None)
                try:
                    url = self._upload(media)
                except (ClientError, OSError) as exc:
                    self._logger.error("Failed to process %s: %s", media.filename, exc)
                    report.outcomes.append(UploadOutcome(media.filename, error=str(exc)))
                    continue
                report.outcomes.append(UploadOutcome(media.filename, url=url))
                report.created.append(self._entry_for_upload(media, url))
        finally:
            self.state = ConsoleState.READY

        if not report.created:
            message = "All uploads failed" if report.failed else "No images processed"
            self.status.post(message, Level.ERROR if report.failed else Level.INFO, ttl=5)
            return report

        first_id = self._next_id()
        report.created = [
            project.model_copy(update={"id": first_id + offset})
            for offset, project in enumerate(report.created)
        ]
        self.projects = [*report.created, *self.projects]

        self.status.post(f"Saving {report.successful} new projects...", Level.PROGRESS, ttl=None)
        report.saved = self._persist(self.projects)
        if report.saved:
            suffix = f" ({report.failed} failed)" if report.failed else ""
            self.status.post(f"Added and saved {report.successful} files.{suffix}", Level.SUCCESS, ttl=5)
        else:
            self.status.post(
                f"Added {report.successful} files but failed to save to server.", Level.WARNING, ttl=5
            )
        return report

    def _entry_for_upload(self, media: MediaFile, url: str) -> Project:
        title = media.filename.split(".")[0] or "New Project"
        return Project(
            id=0,
            title=title,
            year=str(self._today().year),
            category="Uncategorized",
            image=None if media.is_video else url,
            video=url if media.is_video else None,
            type="video" if media.is_video else "image",
        )

    def replace_media(self, project_id: int, media: MediaFile) -> bool:
        """Upload a new video, or a new image/cover, for one entry.

        The entry keeps its previous media when the upload fails. The change is
        local until :meth:`save`.
        """

        self._require_authorized()
        field_name = "video" if media.is_video else "image"
        try:
            url = self._upload(media)
        except (ClientError, OSError) as exc:
            self._logger.error("%s upload error: %s", field_name.capitalize(), exc)
            self.status.post(f"Failed to upload {field_name}", Level.ERROR)
            return False
        self.update_project(project_id, **{field_name: url})
        self.status.post(f"{field_name.capitalize()} uploaded. Save to persist.", Level.SUCCESS)
        return True

    # -- export / import ------------------------------------------------

    def export_document(self) -> str:
        return json.dumps([project.model_dump(mode="json") for project in self.projects], indent=2)

    def import_document(self, text: str) -> bool:
        """Replace the working set from ``text`` and save it straight away.

        Accepts a bare array or an object with a ``projects`` array. Returns
        ``True`` only when the document parsed and the save succeeded.
        """

        self._require_authorized()
        try:
            document = json.loads(text)
            if isinstance(document, dict) and isinstance(document.get("projects"), list):
                document = document["projects"]
            if not isinstance(document, list):
                raise ValueError("Invalid format")
            imported = _project_list.validate_python(document)
        except ValueError as exc:
            self._logger.warning("Import failed: %s", exc)
            self.status.post("Import failed: Invalid JSON format", Level.ERROR)
            return False

        self.projects = imported
        if self._persist(imported):
            self.status.post("Imported and saved successfully!", Level.SUCCESS)
            return True
        self.status.post("Imported but failed to save to server", Level.WARNING)
        return False

    # -- helpers --------------------------------------------------------

    def _require_authorized(self) -> None:
        if not self.is_authorized or self._pin is None:
            raise ConsoleLockedError("Admin console is locked; authorize first.")

    def _require_pin(self) -> str:
        if self._pin is None:
            raise ConsoleLockedError("Admin console is locked; authorize first.")
        return self._pin

    def _index_of(self, project_id: int) -> int:
        for index, project in enumerate(self.projects):
            if project.id == project_id:
                return index
        raise KeyError(project_id)
