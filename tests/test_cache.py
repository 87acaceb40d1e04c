from datetime import datetime, timedelta, timezone

import pytest

from notekeep.core.cache import NoteCache
from notekeep.core.optimistic import OptimisticSnapshot, SnapshotConsumedError, optimistic_write
from notekeep.data.models import ALL_NOTES, CollectionKey, Note

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _note(note_id: str, minutes: int = 0, title: str | None = None) -> Note:
    stamp = BASE + timedelta(minutes=minutes)
    return Note(id=note_id, owner_id="owner", title=title or note_id.upper(), created_at=stamp, updated_at=stamp)


def _ids(cache: NoteCache, key=ALL_NOTES) -> list[str]:
    return [note.id for note in cache.get_collection(key)]


def test_upsert_inserts_at_front_and_replaces_in_place() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("a", 3), _note("b", 2)])

    cache.upsert_into_collection(ALL_NOTES, _note("c", 4))
    assert _ids(cache) == ["c", "a", "b"]

    cache.upsert_into_collection(ALL_NOTES, _note("a", 3, title="Renamed"))
    assert _ids(cache) == ["c", "a", "b"]
    assert cache.get_note("a").title == "Renamed"


def test_set_collection_drops_duplicate_ids() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("a"), _note("a", title="dup"), _note("b")])

    assert _ids(cache) == ["a", "b"]
    assert cache.get_note("a").title == "A"


def test_get_note_prefers_single_entry() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("a")])
    cache.set_note(_note("a", title="Detail"))

    assert cache.get_note("a").title == "Detail"
    assert cache.get_note("missing") is None


def test_substitute_keeps_position() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("temp-1"), _note("a")])

    cache.substitute(ALL_NOTES, "temp-1", _note("server-1"))

    assert _ids(cache) == ["server-1", "a"]


def test_insert_ordered_uses_created_at() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("c", 3), _note("a", 1)])

    cache.insert_ordered(ALL_NOTES, _note("b", 2))

    assert _ids(cache) == ["c", "b", "a"]


def test_collections_containing_and_listeners() -> None:
    cache = NoteCache()
    other = CollectionKey(name="pinned")
    events = []
    unsubscribe = cache.subscribe(events.append)

    cache.set_collection(ALL_NOTES, [_note("a")])
    cache.set_collection(other, [_note("a"), _note("b")])
    unsubscribe()
    cache.remove_from_collection(other, "a")

    assert cache.collections_containing("b") == [other]
    assert cache.collections_containing("a") == [ALL_NOTES]
    assert events == [ALL_NOTES, other]


def test_optimistic_write_restores_tracked_note_only() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("a", 3), _note("b", 2), _note("c", 1)])

    with pytest.raises(RuntimeError):
        with optimistic_write(cache, [ALL_NOTES], ["b"]):
            cache.remove_from_collection(ALL_NOTES, "b")
            cache.upsert_into_collection(ALL_NOTES, _note("d", 4))
            raise RuntimeError("remote failed")

    assert _ids(cache) == ["d", "a", "b", "c"]


def test_optimistic_write_drops_collection_created_for_write() -> None:
    cache = NoteCache()

    with pytest.raises(RuntimeError):
        with optimistic_write(cache, [ALL_NOTES], ["temp-x"]):
            cache.upsert_into_collection(ALL_NOTES, _note("temp-x"))
            raise RuntimeError("remote failed")

    assert not cache.has_collection(ALL_NOTES)


def test_snapshot_is_consumed_once() -> None:
    cache = NoteCache()
    cache.set_collection(ALL_NOTES, [_note("a")])
    snapshot = OptimisticSnapshot.capture(cache, [ALL_NOTES], ["a"])

    snapshot.discard()

    with pytest.raises(SnapshotConsumedError):
        snapshot.restore()
