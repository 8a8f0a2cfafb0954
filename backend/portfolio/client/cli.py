"""Terminal front end for the admin console and the public gallery listing."""

from __future__ import annotations

import argparse
import getpass
import os
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv

from ..logging_config import configure_logging
from ..security import hash_admin_pin
from .api import PortfolioClient
from .console import EXPORT_FILENAME, AdminConsole, MediaFile
from .credentials import DEFAULT_CREDENTIAL_PATH, FileCredentialStore
from .gallery import FILTERS, Gallery
from .posters import video_poster_url


DEFAULT_API_URL = "http://localhost:3005"


def _print_status(console: AdminConsole) -> None:
    banner = console.status.current
    if banner is not None:
        print(f"[{banner.level.value}] {banner.message}")


def _open_console(args: argparse.Namespace, client: PortfolioClient) -> AdminConsole | None:
    """Authorize with the env PIN, the cached PIN or an interactive prompt."""

    console = AdminConsole(client, FileCredentialStore(args.credentials))
    env_pin = os.environ.get("PORTFOLIO_ADMIN_PIN")
    if env_pin:
        authorized = console.authorize(env_pin)
    else:
        authorized = console.restore_session() or console.authorize(getpass.getpass("Admin PIN: "))
    if not authorized:
        _print_status(console)
        return None
    return console


def _open_editable_console(args: argparse.Namespace, client: PortfolioClient) -> AdminConsole | None:
    """Like :func:`_open_console`, but refuse to edit a set the server did not supply.

    Every save replaces the whole server set.
    """

    console = _open_console(args, client)
    if console is None:
        return None
    if not console.loaded_from_server and not args.force:
        _print_status(console)
        print(
            "Projects could not be loaded from the server; refusing to save over them. "
            "Re-run with --force to save the default set anyway.",
            file=sys.stderr,
        )
        return None
    return console


def _cmd_hash_pin(args: argparse.Namespace, client: PortfolioClient) -> int:
    pin = getpass.getpass("New admin PIN: ")
    if not pin:
        print("PIN must not be empty.", file=sys.stderr)
        return 2
    credential = hash_admin_pin(pin, args.salt)
    print(f"ADMIN_PIN_SALT={credential.salt}")
    print(f"ADMIN_PIN_HASH={credential.expected_hash}")
    return 0


def _cmd_list(args: argparse.Namespace, client: PortfolioClient) -> int:
    gallery = Gallery.load(client)
    gallery.set_filter(args.filter)
    for project in gallery.visible():
        media = project.video if project.type == "video" else project.image
        line = f"{project.id:>4}  {project.type:<5}  {project.year:<6} {project.title} ({project.category})"
        if media:
            line += f"  {media}"
        if project.type == "video":
            line += f"  poster={video_poster_url(project)}"
        print(line)
    return 0


def _cmd_login(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_console(args, client)
    if console is None:
        return 1
    print(f"Authorized. {len(console.projects)} projects loaded.")
    _print_status(console)
    return 0


def _cmd_logout(args: argparse.Namespace, client: PortfolioClient) -> int:
    FileCredentialStore(args.credentials).clear()
    print("Cached admin PIN removed.")
    return 0


def _cmd_export(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_console(args, client)
    if console is None:
        return 1
    args.output.write_text(console.export_document(), encoding="utf-8")
    print(f"Exported {len(console.projects)} projects to {args.output}")
    return 0


def _cmd_import(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_console(args, client)
    if console is None:
        return 1
    ok = console.import_document(args.document.read_text(encoding="utf-8"))
    _print_status(console)
    return 0 if ok else 1


def _cmd_upload(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_editable_console(args, client)
    if console is None:
        return 1
    report = console.bulk_upload(MediaFile.from_path(path) for path in args.files)
    for outcome in report.outcomes:
        print(f"{'ok' if outcome.ok else 'FAILED':<7} {outcome.filename}  {outcome.url or outcome.error}")
    _print_status(console)
    return 0 if report.saved and not report.failed else 1


def _cmd_delete(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_editable_console(args, client)
    if console is None:
        return 1
    console.delete_project(args.project_id)
    ok = console.save()
    _print_status(console)
    return 0 if ok else 1


def _cmd_videos_last(args: argparse.Namespace, client: PortfolioClient) -> int:
    console = _open_editable_console(args, client)
    if console is None:
        return 1
    console.move_videos_to_bottom()
    ok = console.save()
    _print_status(console)
    return 0 if ok else 1


def _cmd_serve(args: argparse.Namespace, client: PortfolioClient) -> int:
    from ..main import run

    run()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio-admin", description="Manage the portfolio gallery")
    parser.add_argument(
        "--api-url",
        default=os.environ.get("PORTFOLIO_API_URL", DEFAULT_API_URL),
        help="Base URL of the portfolio API",
    )
    parser.add_argument(
        "--credentials",
        type=Path,
        default=DEFAULT_CREDENTIAL_PATH,
        help="Where the verified admin PIN is cached",
    )
    parser.add_argument("--verbose", action="store_true", help="Log debug output")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Save edits even when the server set could not be loaded",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    hash_pin = commands.add_parser("hash-pin", help="Generate ADMIN_PIN_SALT / ADMIN_PIN_HASH")
    hash_pin.add_argument("--salt", help="Salt to use instead of a random one")
    hash_pin.set_defaults(handler=_cmd_hash_pin)

    listing = commands.add_parser("list", help="Show the public gallery")
    listing.add_argument("--filter", choices=FILTERS, default="all")
    listing.set_defaults(handler=_cmd_list)

    commands.add_parser("login", help="Verify and cache the admin PIN").set_defaults(handler=_cmd_login)
    commands.add_parser("logout", help="Forget the cached admin PIN").set_defaults(handler=_cmd_logout)

    export = commands.add_parser("export", help="Download all projects as JSON")
    export.add_argument("--output", type=Path, default=Path(EXPORT_FILENAME))
    export.set_defaults(handler=_cmd_export)

    importer = commands.add_parser("import", help="Replace all projects from a JSON document and save")
    importer.add_argument("document", type=Path)
    importer.set_defaults(handler=_cmd_import)

    upload = commands.add_parser("upload", help="Upload media files, one entry per file")
    upload.add_argument("files", type=Path, nargs="+")
    upload.set_defaults(handler=_cmd_upload)

    delete = commands.add_parser("delete", help="Remove one project and save")
    delete.add_argument("project_id", type=int)
    delete.set_defaults(handler=_cmd_delete)

    commands.add_parser("videos-last", help="Move videos after images and save").set_defaults(
        handler=_cmd_videos_last
    )
    commands.add_parser("serve", help="Run the API server").set_defaults(handler=_cmd_serve)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "WARNING")
    with PortfolioClient(args.api_url) as client:
        return args.handler(args, client)


if __name__ == "__main__":
    sys.exit(main())
