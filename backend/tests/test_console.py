from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from portfolio.client.api import RequestRejectedError, ServerUnavailableError
from portfolio.client.console import (
    AdminConsole,
    ConsoleLockedError,
    ConsoleState,
    MediaFile,
)
from portfolio.client.credentials import FileCredentialStore, MemoryCredentialStore
from portfolio.client.defaults import default_projects
from portfolio.client.status import HISTORY_SIZE, Level, StatusBoard
from portfolio.models import Project

from .helpers import ADMIN_PIN, FakeClient, project_payload


def _projects(*ids: int, **overrides: object) -> list[Project]:
    return [Project(**project_payload(project_id, **overrides)) for project_id in ids]


def _console(client: FakeClient, credentials: MemoryCredentialStore | None = None) -> AdminConsole:
    return AdminConsole(
        client,
        credentials or MemoryCredentialStore(),
        compress=lambda data: b"compressed:" + data,
        today=lambda: date(2025, 3, 1),
    )


@pytest.fixture()
def fake() -> FakeClient:
    return FakeClient(_projects(3, 2, 1))


@pytest.fixture()
def console(fake: FakeClient) -> AdminConsole:
    console = _console(fake)
    assert console.authorize(ADMIN_PIN)
    return console


def test_authorize_loads_server_set(console: AdminConsole) -> None:
    assert console.state is ConsoleState.READY
    assert [project.id for project in console.projects] == [3, 2, 1]


def test_wrong_pin_keeps_console_locked(fake: FakeClient) -> None:
    credentials = MemoryCredentialStore()
    console = _console(fake, credentials)

    assert console.authorize("0000") is False
    assert console.state is ConsoleState.UNAUTHENTICATED
    assert console.status.current is not None
    assert console.status.current.message == "Wrong PIN"
    assert credentials.load() is None
    with pytest.raises(ConsoleLockedError):
        console.add_project()


def test_authorize_caches_verified_pin(fake: FakeClient) -> None:
    credentials = MemoryCredentialStore()
    _console(fake, credentials).authorize(ADMIN_PIN)
    assert credentials.load() == ADMIN_PIN


def test_restore_session_with_valid_cache(fake: FakeClient) -> None:
    console = _console(fake, MemoryCredentialStore(ADMIN_PIN))
    assert console.restore_session() is True
    assert console.is_authorized
    assert fake.verified == [ADMIN_PIN]


def test_restore_session_evicts_rejected_pin(fake: FakeClient) -> None:
    credentials = MemoryCredentialStore("1111")
    console = _console(fake, credentials)

    assert console.restore_session() is False
    assert credentials.load() is None
    assert console.state is ConsoleState.UNAUTHENTICATED


def test_restore_session_without_cache(fake: FakeClient) -> None:
    assert _console(fake).restore_session() is False
    assert fake.verified == []


def test_logout_clears_cache_and_locks(console: AdminConsole) -> None:
    console.logout()
    assert console.state is ConsoleState.UNAUTHENTICATED
    with pytest.raises(ConsoleLockedError):
        console.save()


def test_load_offline_falls_back_to_defaults(fake: FakeClient) -> None:
    fake.fetch_error = ServerUnavailableError("down", timed_out=True)
    console = _console(fake)
    console.authorize(ADMIN_PIN)

    assert console.projects == default_projects()
    assert console.status.current is not None
    assert console.status.current.level is Level.WARNING
    assert console.status.current.message.startswith("Server offline")


def test_load_error_falls_back_to_defaults(fake: FakeClient) -> None:
    fake.fetch_error = RequestRejectedError(500, "boom")
    console = _console(fake)
    console.authorize(ADMIN_PIN)

    assert console.projects == default_projects()
    assert console.status.current is not None
    assert "Error loading projects" in console.status.current.message


def test_load_empty_set_falls_back_to_defaults() -> None:
    console = _console(FakeClient([]))
    console.authorize(ADMIN_PIN)

    assert console.projects == default_projects()
    assert console.status.current is not None
    assert console.status.current.level is Level.INFO


def test_add_project_prepends_with_next_id(console: AdminConsole) -> None:
    project = console.add_project()
    assert project.id == 4
    assert project.year == "2025"
    assert console.projects[0] == project


def test_update_project(console: AdminConsole) -> None:
    updated = console.update_project(2, title="Renamed", id=99)
    assert updated.id == 2
    assert updated.title == "Renamed"
    assert console.projects[1].title == "Renamed"


def test_update_unknown_project(console: AdminConsole) -> None:
    with pytest.raises(KeyError):
        console.update_project(42, title="x")


def test_edits_are_local_until_save(console: AdminConsole, fake: FakeClient) -> None:
    console.delete_project(2)
    assert [project.id for project in fake.server] == [3, 2, 1]

    assert console.save() is True
    assert [project.id for project in fake.server] == [3, 1]
    assert console.status.current is not None
    assert console.status.current.message == "Saved successfully!"


def test_failed_save_reports_error(console: AdminConsole, fake: FakeClient) -> None:
    fake.save_error = ServerUnavailableError("down")
    assert console.save() is False
    assert console.state is ConsoleState.READY
    assert console.status.current is not None
    assert console.status.current.level is Level.ERROR


@pytest.mark.parametrize(
    ("project_id", "offset", "expected"),
    [(3, 1, [2, 3, 1]), (1, -1, [3, 1, 2]), (3, -1, [3, 2, 1]), (1, 5, [3, 2, 1])],
)
def test_move_project(console: AdminConsole, project_id: int, offset: int, expected: list[int]) -> None:
    console.move_project(project_id, offset)
    assert [project.id for project in console.projects] == expected


def test_move_videos_to_bottom_is_stable() -> None:
    video = dict(type="video", image=None, video="https://res.cloudinary.com/demo/video/upload/v.mp4")
    server = [
        *_projects(5, **video),
        *_projects(4),
        *_projects(3, **video),
        *_projects(2, 1),
    ]
    console = _console(FakeClient(server))
    console.authorize(ADMIN_PIN)

    console.move_videos_to_bottom()

    assert [project.id for project in console.projects] == [4, 2, 1, 5, 3]


def test_bulk_upload_adds_entries_and_saves_once(console: AdminConsole, fake: FakeClient) -> None:
    files = [
        MediaFile("first.png", "image/png", b"one"),
        MediaFile("reel.mp4", "video/mp4", b"two"),
    ]

    report = console.bulk_upload(files)

    assert report.successful == 2
    assert report.saved is True
    assert len(fake.saves) == 1
    assert [filename for filename, _, _ in fake.uploads] == ["first.png", "reel.mp4"]
    assert fake.uploads[0][1:] == (b"compressed:one", "image/jpeg")
    assert fake.uploads[1][1:] == (b"two", "video/mp4")

    first, reel = console.projects[:2]
    assert (first.id, first.title, first.type, first.video) == (4, "first", "image", None)
    assert (reel.id, reel.type, reel.image) == (5, "video", None)
    assert reel.video is not None and reel.video.endswith("reel.mp4")
    assert [project.id for project in fake.server] == [4, 5, 3, 2, 1]


def test_bulk_upload_partial_failure(console: AdminConsole, fake: FakeClient) -> None:
    fake.failing_uploads = {"bad.png"}
    files = [
        MediaFile("ok.png", "image/png", b"1"),
        MediaFile("bad.png", "image/png", b"2"),
        MediaFile("also.png", "image/png", b"3"),
    ]

    report = console.bulk_upload(files)

    assert (report.successful, report.failed) == (2, 1)
    assert [outcome.filename for outcome in report.outcomes] == ["ok.png", "bad.png", "also.png"]
    assert report.outcomes[1].error is not None
    assert [project.title for project in console.projects[:2]] == ["ok", "also"]
    assert console.status.current is not None
    assert console.status.current.message == "Added and saved 2 files. (1 failed)"


def test_bulk_upload_all_failed_does_not_save(console: AdminConsole, fake: FakeClient) -> None:
    fake.failing_uploads = {"bad.png"}
    report = console.bulk_upload([MediaFile("bad.png", "image/png", b"x")])

    assert report.saved is False
    assert fake.saves == []
    assert [project.id for project in console.projects] == [3, 2, 1]


def test_bulk_upload_unreadable_image(fake: FakeClient) -> None:
    def broken(data: bytes) -> bytes:
        raise OSError("cannot identify image file")

    console = AdminConsole(fake, MemoryCredentialStore(), compress=broken)
    console.authorize(ADMIN_PIN)

    report = console.bulk_upload([MediaFile("broken.png", "image/png", b"x")])

    assert report.failed == 1
    assert fake.uploads == []


def test_bulk_upload_kept_locally_when_save_fails(console: AdminConsole, fake: FakeClient) -> None:
    fake.save_error = ServerUnavailableError("down")
    report = console.bulk_upload([MediaFile("new.png", "image/png", b"x")])

    assert report.saved is False
    assert console.projects[0].title == "new"
    assert console.status.current is not None
    assert console.status.current.level is Level.WARNING


def test_replace_media_keeps_old_url_on_failure(console: AdminConsole, fake: FakeClient) -> None:
    before = console.projects[0].image
    fake.failing_uploads = {"cover.png"}

    assert console.replace_media(3, MediaFile("cover.png", "image/png", b"x")) is False
    assert console.projects[0].image == before


def test_replace_media_sets_video_field(console: AdminConsole, fake: FakeClient) -> None:
    assert console.replace_media(2, MediaFile("clip.webm", "video/webm", b"x")) is True
    assert console.projects[1].video == "https://res.cloudinary.com/demo/video/upload/v1/portfolio/clip.webm"
    assert fake.saves == []


def test_export_then_import_round_trip(console: AdminConsole, fake: FakeClient) -> None:
    document = console.export_document()
    assert [entry["id"] for entry in json.loads(document)] == [3, 2, 1]

    console.delete_project(3)
    assert console.import_document(document) is True
    assert [project.id for project in console.projects] == [3, 2, 1]
    assert len(fake.saves) == 1


def test_import_accepts_wrapped_document(console: AdminConsole, fake: FakeClient) -> None:
    document = json.dumps({"projects": [project_payload(9)]})
    assert console.import_document(document) is True
    assert [project.id for project in fake.server] == [9]


@pytest.mark.parametrize("document", ["not json", '{"foo": 1}', '[{"title": "missing id"}]'])
def test_import_rejects_invalid_documents(console: AdminConsole, fake: FakeClient, document: str) -> None:
    assert console.import_document(document) is False
    assert [project.id for project in console.projects] == [3, 2, 1]
    assert fake.saves == []
    assert console.status.current is not None
    assert console.status.current.message == "Import failed: Invalid JSON format"


def test_status_banner_expires() -> None:
    now = [0.0]
    board = StatusBoard(clock=lambda: now[0])
    board.post("Saved", Level.SUCCESS, ttl=3)
    assert board.current is not None
    now[0] = 3.0
    assert board.current is None
    board.post("Saving...", Level.PROGRESS, ttl=None)
    now[0] = 1000.0
    assert board.current is not None


def test_file_credential_store(tmp_path: Path) -> None:
    store = FileCredentialStore(tmp_path / "nested" / "pin")
    assert store.load() is None
    store.save(ADMIN_PIN)
    assert store.load() == ADMIN_PIN
    assert (tmp_path / "nested" / "pin").stat().st_mode & 0o777 == 0o600
    store.clear()
    store.clear()
    assert store.load() is None


def test_loaded_from_server_tracks_the_working_set_source(fake: FakeClient) -> None:
    fake.fetch_error = ServerUnavailableError("down", timed_out=True)
    console = _console(fake)
    console.authorize(ADMIN_PIN)
    assert console.loaded_from_server is False

    fake.fetch_error = None
    console.load()
    assert console.loaded_from_server is True


def test_empty_server_set_counts_as_loaded() -> None:
    console = _console(FakeClient([]))
    console.authorize(ADMIN_PIN)
    assert console.loaded_from_server is True


def test_successful_import_marks_set_as_loaded(fake: FakeClient) -> None:
    fake.fetch_error = RequestRejectedError(500, "boom")
    console = _console(fake)
    console.authorize(ADMIN_PIN)

    assert console.import_document(json.dumps([project_payload(9)])) is True
    assert console.loaded_from_server is True


def test_status_history_is_bounded() -> None:
    board = StatusBoard()
    for number in range(HISTORY_SIZE + 10):
        board.post(f"Uploading {number}", Level.PROGRESS, ttl=None)

    assert len(board.history) == HISTORY_SIZE
    assert board.history[0].message == "Uploading 10"
    assert board.history[-1].message == f"Uploading {HISTORY_SIZE + 9}"


def test_media_actions_locked_after_logout(console: AdminConsole, fake: FakeClient) -> None:
    console.logout()

    with pytest.raises(ConsoleLockedError):
        console.replace_media(3, MediaFile("cover.png", "image/png", b"x"))
    with pytest.raises(ConsoleLockedError):
        console.bulk_upload([MediaFile("new.png", "image/png", b"x")])
    assert fake.uploads == []
