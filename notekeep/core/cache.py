"""Process-local note cache shared by every surface."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from ..data.models import CollectionKey, Note
from ..logging import get_logger

LOGGER = get_logger(__name__)

CacheListener = Callable[[Optional[CollectionKey]], None]


class NoteCache:
    """Maps collection keys to ordered note sequences and ids to single notes.

    All operations are synchronous and must run on the event loop thread.
    Listeners are called after every write with the affected collection key,
    or ``None`` when only a single-note entry changed.
    """

    def __init__(self) -> None:
        self._collections: Dict[CollectionKey, List[Note]] = {}
        self._notes: Dict[str, Note] = {}
        self._listeners: List[CacheListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def keys(self) -> List[CollectionKey]:
        return list(self._collections)

    def has_collection(self, key: CollectionKey) -> bool:
        return key in self._collections

    def get_collection(self, key: CollectionKey) -> List[Note]:
        return list(self._collections.get(key, ()))

    def get_note(self, note_id: str) -> Optional[Note]:
        note = self._notes.get(note_id)
        if note is not None:
            return note
        for notes in self._collections.values():
            for candidate in notes:
                if candidate.id == note_id:
                    return candidate
        return None

    def has_note_entry(self, note_id: str) -> bool:
        return note_id in self._notes

    def get_note_entry(self, note_id: str) -> Optional[Note]:
        return self._notes.get(note_id)

    def collections_containing(self, note_id: str) -> List[CollectionKey]:
        return [key for key, notes in self._collections.items() if _index_of(notes, note_id) is not None]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def set_collection(self, key: CollectionKey, notes: Sequence[Note]) -> None:
        deduped: List[Note] = []
        seen = set()
        for note in notes:
            if note.id in seen:
                LOGGER.warning("Dropping duplicate note %s from collection %s", note.id, key)
                continue
            seen.add(note.id)
            deduped.append(note)
        self._collections[key] = deduped
        self._emit(key)

    def drop_collection(self, key: CollectionKey) -> None:
        if self._collections.pop(key, None) is not None:
            self._emit(key)

    def upsert_into_collection(self, key: CollectionKey, note: Note) -> None:
        notes = self._collections.setdefault(key, [])
        index = _index_of(notes, note.id)
        if index is None:
            notes.insert(0, note)
        else:
            notes[index] = note
        self._emit(key)

    def insert_at(self, key: CollectionKey, index: int, note: Note) -> None:
        notes = self._collections.setdefault(key, [])
        existing = _index_of(notes, note.id)
        if existing is not None:
            del notes[existing]
        notes.insert(min(max(index, 0), len(notes)), note)
        self._emit(key)

    def insert_ordered(self, key: CollectionKey, note: Note) -> None:
        """Insert keeping the collection ordered by ``created_at`` descending."""

        notes = self._collections.setdefault(key, [])
        existing = _index_of(notes, note.id)
        if existing is not None:
            del notes[existing]
        position = len(notes)
        for index, candidate in enumerate(notes):
            if candidate.created_at < note.created_at:
                position = index
                break
        notes.insert(position, note)
        self._emit(key)

    def substitute(self, key: CollectionKey, old_id: str, note: Note) -> None:
        """Replace the entry with ``old_id`` by ``note`` at the same position."""

        notes = self._collections.setdefault(key, [])
        duplicate = _index_of(notes, note.id)
        if duplicate is not None and note.id != old_id:
            del notes[duplicate]
        index = _index_of(notes, old_id)
        if index is None:
            notes.insert(0, note)
        else:
            notes[index] = note
        self._emit(key)

    def remove_from_collection(self, key: CollectionKey, note_id: str) -> bool:
        notes = self._collections.get(key)
        if not notes:
            return False
        index = _index_of(notes, note_id)
        if index is None:
            return False
        del notes[index]
        self._emit(key)
        return True

    def set_note(self, note: Note) -> None:
        self._notes[note.id] = note
        self._emit(None)

    def forget_note(self, note_id: str) -> bool:
        if self._notes.pop(note_id, None) is None:
            return False
        self._emit(None)
        return True

    def clear(self) -> None:
        self._collections.clear()
        self._notes.clear()
        self._emit(None)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, listener: CacheListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, key: Optional[CollectionKey]) -> None:
        for listener in list(self._listeners):
            try:
                listener(key)
            except Exception:  # pragma: no cover - listeners should not break writes
                LOGGER.exception("Cache listener raised an exception")


def _index_of(notes: Sequence[Note], note_id: str) -> Optional[int]:
    for index, note in enumerate(notes):
        if note.id == note_id:
            return index
    return None


__all__ = ["CacheListener", "NoteCache"]
