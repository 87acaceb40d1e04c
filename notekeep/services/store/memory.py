"""In-memory note store for offline usage and demos."""

from __future__ import annotations

import asyncio
import uuid
from typing import Dict, List, Optional

from ...core.errors import NoteNotFoundError
from ...data.models import Note, NoteFields, utcnow
from ..identity import IdentityProvider
from .base import NoteStoreClient


class InMemoryNoteStore(NoteStoreClient):
    def __init__(self, identity: IdentityProvider, latency: float = 0.0) -> None:
        super().__init__(identity)
        self.latency = latency
        self._notes: Dict[str, Note] = {}

    async def _pause(self) -> None:
        if self.latency > 0:
            await asyncio.sleep(self.latency)

    def _owned(self, owner: str, note_id: str) -> Note:
        note = self._notes.get(note_id)
        if note is None or note.owner_id != owner:
            raise NoteNotFoundError(f"Note {note_id} not found", note_id=note_id)
        return note

    async def list(self) -> List[Note]:
        owner = self._require_owner()
        await self._pause()
        notes = [note for note in self._notes.values() if note.owner_id == owner]
        return sorted(notes, key=lambda note: note.created_at, reverse=True)

    async def get(self, note_id: str) -> Note:
        owner = self._require_owner()
        await self._pause()
        return self._owned(owner, note_id)

    async def create(self, fields: NoteFields) -> Note:
        owner = self._require_owner()
        self._validate(fields)
        await self._pause()
        now = utcnow()
        note = Note(
            id=uuid.uuid4().hex,
            owner_id=owner,
            title=fields.title,
            content=fields.content or None,
            summary=fields.summary or None,
            created_at=now,
            updated_at=now,
        )
        self._notes[note.id] = note
        return note

    async def update(self, note_id: str, fields: NoteFields) -> Note:
        owner = self._require_owner()
        self._validate(fields)
        await self._pause()
        note = self._owned(owner, note_id).with_fields(fields)
        self._notes[note_id] = note
        return note

    async def delete(self, note_id: str) -> None:
        owner = self._require_owner()
        await self._pause()
        self._owned(owner, note_id)
        del self._notes[note_id]

    def seed(self, note: Note, owner_id: Optional[str] = None) -> Note:
        """Insert a note directly, bypassing validation. Used for fixtures and imports."""

        if owner_id is not None:
            note = note.model_copy(update={"owner_id": owner_id})
        self._notes[note.id] = note
        return note


__all__ = ["InMemoryNoteStore"]
