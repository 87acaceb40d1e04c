"""Read-time projection that hides notes pending deletion."""

from __future__ import annotations

from typing import Callable, List, Optional

from ..data.models import ALL_NOTES, CollectionKey, Note
from .cache import NoteCache
from .deletion import DeletionScheduler


def visible_notes(
    cache: NoteCache,
    scheduler: DeletionScheduler,
    key: CollectionKey = ALL_NOTES,
) -> List[Note]:
    """Return the cached collection without notes that are pending or being deleted."""

    hidden = scheduler.hidden_ids()
    return [note for note in cache.get_collection(key) if note.id not in hidden]


class NoteView:
    """Read handle a single surface (list, navigation, detail) renders from.

    Views hold no state of their own, so two views over the same cache and
    scheduler always agree.
    """

    def __init__(self, cache: NoteCache, scheduler: DeletionScheduler, key: CollectionKey = ALL_NOTES) -> None:
        self.cache = cache
        self.scheduler = scheduler
        self.key = key

    def notes(self) -> List[Note]:
        return visible_notes(self.cache, self.scheduler, self.key)

    def get(self, note_id: str) -> Optional[Note]:
        if self.scheduler.is_hidden(note_id):
            return None
        return self.cache.get_note(note_id)

    def __contains__(self, note_id: object) -> bool:
        return isinstance(note_id, str) and any(note.id == note_id for note in self.notes())

    def __len__(self) -> int:
        return len(self.notes())

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call ``callback`` whenever the cache or the pending set changes."""

        def on_cache(key: Optional[CollectionKey]) -> None:
            if key is None or key == self.key:
                callback()

        def on_deletion(_note_id: str) -> None:
            callback()

        unsubscribers = [self.cache.subscribe(on_cache), self.scheduler.subscribe(on_deletion)]

        def unsubscribe() -> None:
            for unsubscribe_one in unsubscribers:
                unsubscribe_one()

        return unsubscribe


__all__ = ["NoteView", "visible_notes"]
