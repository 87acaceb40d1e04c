"""Optimistic create/update/delete against the shared note cache."""

from __future__ import annotations

import uuid
from typing import Iterable, List, Optional, Set

from ..data.models import ALL_NOTES, CollectionKey, Note, NoteFields, utcnow
from ..logging import get_logger
from ..services.store.base import NoteStoreClient
from .cache import NoteCache
from .errors import NoteNotFoundError, NoteRejectedError, NoteStoreError
from .optimistic import optimistic_write

LOGGER = get_logger(__name__)

TEMP_ID_PREFIX = "temp-"


def is_provisional(note_id: str) -> bool:
    return note_id.startswith(TEMP_ID_PREFIX)


class MutationManager:
    """Applies mutations to the cache before the store confirms them.

    Every failed remote call rolls the cache back to what it held before the
    optimistic write and re-raises the store error unchanged.
    """

    def __init__(
        self,
        cache: NoteCache,
        client: NoteStoreClient,
        default_key: CollectionKey = ALL_NOTES,
    ) -> None:
        self.cache = cache
        self.client = client
        self.default_key = default_key
        self._deleted: Set[str] = set()

    # ------------------------------------------------------------------
    # Reads into the cache
    # ------------------------------------------------------------------
    async def refresh(self, key: Optional[CollectionKey] = None) -> List[Note]:
        """Replace a collection with the store's current contents.

        Provisional notes of creates still in flight stay at the front.
        """

        key = key or self.default_key
        notes = await self.client.list()
        notes = [note for note in notes if note.id not in self._deleted]
        provisional = [note for note in self.cache.get_collection(key) if is_provisional(note.id)]
        self.cache.set_collection(key, provisional + list(notes))
        for note in notes:
            if self.cache.has_note_entry(note.id):
                self.cache.set_note(note)
        LOGGER.debug("Refreshed %s with %d notes", key, len(notes))
        return notes

    async def load(self, note_id: str) -> Note:
        try:
            note = await self.client.get(note_id)
        except NoteNotFoundError:
            self.cache.forget_note(note_id)
            raise
        self.cache.set_note(note)
        return note

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    async def create(self, fields: NoteFields, key: Optional[CollectionKey] = None) -> Note:
        key = key or self.default_key
        temp_id = f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"
        now = utcnow()
        provisional = Note(
            id=temp_id,
            owner_id=None,
            title=fields.title,
            content=fields.content or None,
            summary=fields.summary or None,
            created_at=now,
            updated_at=now,
        )

        with optimistic_write(self.cache, [key], [temp_id]):
            self.cache.upsert_into_collection(key, provisional)
            try:
                note = await self.client.create(fields)
            except NoteStoreError as exc:
                LOGGER.warning("Create failed (%s); discarding provisional note %s", exc.kind.value, temp_id)
                raise

        self.cache.substitute(key, temp_id, note)
        LOGGER.info("Created note %s (provisional id %s)", note.id, temp_id)
        return note

    async def update(self, note_id: str, fields: NoteFields) -> Note:
        if is_provisional(note_id):
            raise NoteRejectedError("Note is still being saved", note_id=note_id)

        current = self.cache.get_note(note_id)
        keys = self.cache.collections_containing(note_id)

        with optimistic_write(self.cache, keys, [note_id]) as snapshot:
            if current is not None:
                self._write(current.with_fields(fields, updated_at=utcnow()), keys)
            try:
                confirmed = await self.client.update(note_id, fields)
            except NoteStoreError as exc:
                if note_id in self._deleted:
                    snapshot.discard()
                LOGGER.warning("Update of note %s failed (%s); rolling back", note_id, exc.kind.value)
                raise

        if note_id in self._deleted:
            LOGGER.info("Ignoring update result for deleted note %s", note_id)
            return confirmed
        if confirmed != self.cache.get_note(note_id):
            self._write(confirmed, self.cache.collections_containing(note_id))
        return confirmed

    async def delete(self, note_id: str) -> None:
        """Remove a note everywhere in the cache, then from the store.

        Only the deletion scheduler calls this, once a grace period has run out.
        """

        keys = self.cache.collections_containing(note_id)
        with optimistic_write(self.cache, keys, [note_id]):
            for key in keys:
                self.cache.remove_from_collection(key, note_id)
            self.cache.forget_note(note_id)
            try:
                await self.client.delete(note_id)
            except NoteNotFoundError:
                LOGGER.info("Note %s was already deleted from the store", note_id)
            except NoteStoreError as exc:
                LOGGER.warning("Delete of note %s failed (%s); rolling back", note_id, exc.kind.value)
                raise
        self._deleted.add(note_id)
        self._purge(note_id)
        LOGGER.info("Deleted note %s", note_id)

    def _purge(self, note_id: str) -> None:
        # refresh and rollback can re-add the note while its delete is in flight
        for key in self.cache.collections_containing(note_id):
            self.cache.remove_from_collection(key, note_id)
        self.cache.forget_note(note_id)

    def _write(self, note: Note, keys: Iterable[CollectionKey]) -> None:
        keys = list(keys)
        for key in keys:
            self.cache.upsert_into_collection(key, note)
        if self.cache.has_note_entry(note.id) or not keys:
            self.cache.set_note(note)


__all__ = ["MutationManager", "TEMP_ID_PREFIX", "is_provisional"]
