"""SQLite-backed note store client."""

from __future__ import annotations

import asyncio
import sqlite3
import uuid
from pathlib import Path
from typing import Callable, List, Optional, TypeVar

from ...core.errors import NoteNotFoundError, NoteRejectedError, StoreUnavailableError
from ...data.models import Note, NoteFields, utcnow
from ...data.storage import NoteDatabase
from ...logging import get_logger
from ..identity import IdentityProvider
from .base import NoteStoreClient

LOGGER = get_logger(__name__)

T = TypeVar("T")


class SQLiteNoteStore(NoteStoreClient):
    """Runs blocking SQLite calls in a worker thread and maps driver errors."""

    def __init__(
        self,
        identity: IdentityProvider,
        path: Optional[Path] = None,
        database: Optional[NoteDatabase] = None,
    ) -> None:
        super().__init__(identity)
        if database is None:
            if path is None:
                raise ValueError("Either a database path or a NoteDatabase is required")
            database = NoteDatabase(path)
        self.database = database
        self.database.initialize()

    async def _run(self, func: Callable[..., T], *args) -> T:
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.IntegrityError as exc:
            raise NoteRejectedError(f"Note rejected by database: {exc}") from exc
        except sqlite3.Error as exc:
            LOGGER.error("SQLite note store failure: %s", exc)
            raise StoreUnavailableError(f"Note database unavailable: {exc}") from exc

    async def list(self) -> List[Note]:
        owner = self._require_owner()
        return await self._run(self.database.list_notes, owner)

    async def get(self, note_id: str) -> Note:
        owner = self._require_owner()
        note = await self._run(self.database.fetch_note, owner, note_id)
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found", note_id=note_id)
        return note

    async def create(self, fields: NoteFields) -> Note:
        owner = self._require_owner()
        self._validate(fields)
        now = utcnow()
        note = Note(
            id=str(uuid.uuid4()),
            owner_id=owner,
            title=fields.title,
            content=fields.content or None,
            summary=fields.summary or None,
            created_at=now,
            updated_at=now,
        )
        await self._run(self.database.insert_note, note)
        return note

    async def update(self, note_id: str, fields: NoteFields) -> Note:
        self._validate(fields)
        current = await self.get(note_id)
        note = current.with_fields(fields)
        if not await self._run(self.database.update_note, note):
            raise NoteNotFoundError(f"Note {note_id} not found", note_id=note_id)
        return note

    async def delete(self, note_id: str) -> None:
        owner = self._require_owner()
        if not await self._run(self.database.delete_note, owner, note_id):
            raise NoteNotFoundError(f"Note {note_id} not found", note_id=note_id)


__all__ = ["SQLiteNoteStore"]
