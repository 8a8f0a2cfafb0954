"""SQLite-backed repository for portfolio projects."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Sequence

from ..db import Database, DatabaseUnavailableError
from ..models import Project, ProjectFields


_COLUMNS = "id, title, description, year, category, image, video, type"


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _field_values(project: ProjectFields) -> tuple[object, ...]:
    return (
        project.title,
        project.description or "",
        project.year or "",
        project.category or "",
        project.image or None,
        project.video or None,
        project.type or "image",
    )


class ProjectsRepository:
    """Encapsulates the ``projects`` relation.

    Failures are reported through return values (empty lists, ``False`` or
    ``None``) and logged; callers at the HTTP boundary decide how to surface
    them.
    """

    def __init__(self, database: Database, *, logger: logging.Logger | None = None) -> None:
        self._database = database
        self._logger = logger or logging.getLogger(__name__)

    def list_all(self) -> list[Project]:
        """Return every project, most recently inserted first."""

        try:
            with self._database.connection() as connection:
                rows = connection.execute(
                    f"SELECT {_COLUMNS} FROM projects ORDER BY id DESC"
                ).fetchall()
        except DatabaseUnavailableError:
            self._logger.warning("Database not initialized, returning empty project list")
            return []
        except sqlite3.Error:
            self._logger.exception("Error fetching projects")
            return []

        return [self._row_to_project(row) for row in rows]

    def replace_all(self, projects: Sequence[Project]) -> bool:
        """Atomically replace the whole table with ``projects``.

        Caller-supplied ids are kept and the AUTOINCREMENT counter is set to
        the largest of them, so later single inserts continue above it.
        """

        now = _utcnow()
        try:
            with self._database.connection() as connection:
                connection.execute("DELETE FROM projects")
                connection.executemany(
                    f"""
                    INSERT INTO projects ({_COLUMNS}, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    [(project.id, *_field_values(project), now, now) for project in projects],
                )
                if projects:
                    self._reset_sequence(connection, max(project.id for project in projects))
        except DatabaseUnavailableError:
            self._logger.warning("Database not initialized, projects not saved")
            return False
        except sqlite3.Error:
            self._logger.exception("Error saving projects")
            return False

        self._logger.info("Saved %d projects to database", len(projects))
        return True

    def insert_one(self, project: ProjectFields) -> Project | None:
        now = _utcnow()
        try:
            with self._database.connection() as connection:
                cursor = connection.execute(
                    """
                    INSERT INTO projects (
                        title, description, year, category, image, video, type,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (*_field_values(project), now, now),
                )
                row = connection.execute(
                    f"SELECT {_COLUMNS} FROM projects WHERE id = ?",
                    (cursor.lastrowid,),
                ).fetchone()
        except DatabaseUnavailableError:
            self._logger.warning("Database not initialized, project not added")
            return None
        except sqlite3.Error:
            self._logger.exception("Error adding project")
            return None

        if row is None:  # pragma: no cover
            return None
        return self._row_to_project(row)

    def update_one(self, project_id: int, project: ProjectFields) -> bool:
        """Overwrite the fields of ``project_id``; a missing id is not an error."""

        try:
            with self._database.connection() as connection:
                connection.execute(
                    """
                    UPDATE projects
                    SET title = ?, description = ?, year = ?, category = ?,
                        image = ?, video = ?, type = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (*_field_values(project), _utcnow(), project_id),
                )
        except DatabaseUnavailableError:
            self._logger.warning("Database not initialized, project not updated")
            return False
        except sqlite3.Error:
            self._logger.exception("Error updating project %s", project_id)
            return False
        return True

    def delete_one(self, project_id: int) -> bool:
        """Delete ``project_id``; a missing id is not an error."""

        try:
            with self._database.connection() as connection:
                connection.execute("DELETE FROM projects WHERE id = ?", (project_id,))
        except DatabaseUnavailableError:
            self._logger.warning("Database not initialized, project not deleted")
            return False
        except sqlite3.Error:
            self._logger.exception("Error deleting project %s", project_id)
            return False
        return True

    def _reset_sequence(self, connection: sqlite3.Connection, max_id: int) -> None:
        cursor = connection.execute(
            "UPDATE sqlite_sequence SET seq = ? WHERE name = 'projects'",
            (max_id,),
        )
        if cursor.rowcount == 0:
            connection.execute(
                "INSERT INTO sqlite_sequence (name, seq) VALUES ('projects', ?)",
                (max_id,),
            )

    def _row_to_project(self, row: sqlite3.Row) -> Project:
        return Project(**dict(row))

