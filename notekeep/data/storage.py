"""SQLite storage helpers for notes."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..logging import get_logger
from .models import Note

LOGGER = get_logger(__name__)

_NOTE_COLUMNS = "id, owner_id, title, content, summary, created_at, updated_at"


class NoteDatabase:
    """Persistent note storage built on SQLite."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.path)

    def initialize(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS notes (
                    id TEXT PRIMARY KEY,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL CHECK (length(trim(title)) > 0),
                    content TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            columns = [row[1] for row in conn.execute("PRAGMA table_info(notes)").fetchall()]
            if "summary" not in columns:
                LOGGER.info("Adding summary column to notes table at %s", self.path)
                conn.execute("ALTER TABLE notes ADD COLUMN summary TEXT")
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_notes_owner_created ON notes (owner_id, created_at DESC)"
            )
            conn.commit()

    def insert_note(self, note: Note) -> None:
        with self._connect() as conn:
            conn.execute(
                f"INSERT INTO notes ({_NOTE_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    note.id,
                    note.owner_id,
                    note.title,
                    note.content,
                    note.summary,
                    note.created_at.isoformat(timespec="microseconds"),
                    note.updated_at.isoformat(timespec="microseconds"),
                ),
            )
            conn.commit()

    def update_note(self, note: Note) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE notes SET title = ?, content = ?, summary = ?, updated_at = ?
                WHERE id = ? AND owner_id = ?
                """,
                (
                    note.title,
                    note.content,
                    note.summary,
                    note.updated_at.isoformat(timespec="microseconds"),
                    note.id,
                    note.owner_id,
                ),
            )
            conn.commit()
        return cursor.rowcount > 0

    def delete_note(self, owner_id: str, note_id: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                "DELETE FROM notes WHERE id = ? AND owner_id = ?",
                (note_id, owner_id),
            )
            conn.commit()
        return cursor.rowcount > 0

    def fetch_note(self, owner_id: str, note_id: str) -> Optional[Note]:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_NOTE_COLUMNS} FROM notes WHERE id = ? AND owner_id = ?",
                (note_id, owner_id),
            ).fetchone()
        if not row:
            return None
        return _row_to_note(row)

    def list_notes(self, owner_id: str, limit: Optional[int] = None) -> List[Note]:
        query = f"SELECT {_NOTE_COLUMNS} FROM notes WHERE owner_id = ? ORDER BY created_at DESC"
        params: tuple = (owner_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (owner_id, limit)
        with self._connect() as conn:
            rows = conn.execute(query, params).fetchall()
        return [_row_to_note(row) for row in rows]


def _row_to_note(row) -> Note:
    return Note(
        id=row[0],
        owner_id=row[1],
        title=row[2],
        content=row[3],
        summary=row[4],
        created_at=datetime.fromisoformat(row[5]),
        updated_at=datetime.fromisoformat(row[6]),
    )


__all__ = ["NoteDatabase"]
