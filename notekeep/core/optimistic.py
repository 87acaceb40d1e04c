"""Snapshot capture and restore around speculative cache writes."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple

from ..data.models import CollectionKey, Note
from ..logging import get_logger
from .cache import NoteCache

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class _TrackedPosition:
    note_id: str
    index: Optional[int]
    note: Optional[Note]
    prev_id: Optional[str] = None
    next_id: Optional[str] = None


@dataclass(frozen=True)
class _CollectionCapture:
    key: CollectionKey
    existed: bool
    positions: Tuple[_TrackedPosition, ...]


class SnapshotConsumedError(RuntimeError):
    """Raised when a snapshot is restored or discarded twice."""


class OptimisticSnapshot:
    """State of the tracked notes right before an optimistic write.

    Only the tracked note ids are captured and restored, so writes to other
    notes made while the remote call was in flight survive a rollback.
    """

    def __init__(
        self,
        cache: NoteCache,
        collections: Tuple[_CollectionCapture, ...],
        entries: Tuple[Tuple[str, Optional[Note]], ...],
    ) -> None:
        self._cache = cache
        self._collections = collections
        self._entries = entries
        self._consumed = False

    @classmethod
    def capture(
        cls,
        cache: NoteCache,
        keys: Iterable[CollectionKey],
        note_ids: Iterable[str],
    ) -> "OptimisticSnapshot":
        ids = tuple(dict.fromkeys(note_ids))
        collections = []
        for key in dict.fromkeys(keys):
            current = cache.get_collection(key)
            positions = [_track(current, note_id) for note_id in ids]
            collections.append(
                _CollectionCapture(key=key, existed=cache.has_collection(key), positions=tuple(positions))
            )
        entries = tuple((note_id, cache.get_note_entry(note_id)) for note_id in ids)
        return cls(cache, tuple(collections), entries)

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def note_ids(self) -> Tuple[str, ...]:
        return tuple(note_id for note_id, _ in self._entries)

    def discard(self) -> None:
        self._consume()

    def restore(self) -> None:
        self._consume()
        cache = self._cache
        for capture in self._collections:
            for position in capture.positions:
                cache.remove_from_collection(capture.key, position.note_id)
            if not capture.existed:
                if cache.has_collection(capture.key) and not cache.get_collection(capture.key):
                    cache.drop_collection(capture.key)
                continue
            restored = sorted(
                (p for p in capture.positions if p.index is not None and p.note is not None),
                key=lambda p: p.index,
            )
            for position in restored:
                index = _anchor_index(cache.get_collection(capture.key), position)
                cache.insert_at(capture.key, index, position.note)
        for note_id, note in self._entries:
            if note is None:
                cache.forget_note(note_id)
            else:
                cache.set_note(note)
        LOGGER.debug("Restored optimistic snapshot for %s", ", ".join(self.note_ids))

    def _consume(self) -> None:
        if self._consumed:
            raise SnapshotConsumedError("Optimistic snapshot already consumed")
        self._consumed = True


def _track(notes: List[Note], note_id: str) -> _TrackedPosition:
    index = next((i for i, note in enumerate(notes) if note.id == note_id), None)
    if index is None:
        return _TrackedPosition(note_id=note_id, index=None, note=None)
    return _TrackedPosition(
        note_id=note_id,
        index=index,
        note=notes[index],
        prev_id=notes[index - 1].id if index > 0 else None,
        next_id=notes[index + 1].id if index + 1 < len(notes) else None,
    )


def _anchor_index(notes: List[Note], position: _TrackedPosition) -> int:
    """Where to put a restored note: before its old successor, else after its old predecessor."""

    ids = [note.id for note in notes]
    if position.next_id in ids:
        return ids.index(position.next_id)
    if position.prev_id in ids:
        return ids.index(position.prev_id) + 1
    return position.index or 0


@contextmanager
def optimistic_write(
    cache: NoteCache,
    keys: Iterable[CollectionKey],
    note_ids: Iterable[str],
) -> Iterator[OptimisticSnapshot]:
    """Capture the tracked notes, restore them if the block raises, discard otherwise."""

    snapshot = OptimisticSnapshot.capture(cache, keys, note_ids)
    try:
        yield snapshot
    except BaseException:
        if not snapshot.consumed:
            snapshot.restore()
        raise
    else:
        if not snapshot.consumed:
            snapshot.discard()


__all__ = ["OptimisticSnapshot", "SnapshotConsumedError", "optimistic_write"]
