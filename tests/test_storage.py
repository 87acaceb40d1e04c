import asyncio
import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from notekeep.core.errors import NoteNotFoundError, NoteRejectedError, UnauthenticatedError
from notekeep.data.models import Note, NoteFields
from notekeep.data.storage import NoteDatabase
from notekeep.services.identity import StaticIdentity
from notekeep.services.store.memory import InMemoryNoteStore
from notekeep.services.store.sqlite import SQLiteNoteStore

BASE = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_database_lists_owner_notes_newest_first(tmp_path):
    db = NoteDatabase(tmp_path / "notes.db")
    db.initialize()
    for minutes, note_id in enumerate(["old", "mid", "new"]):
        stamp = BASE + timedelta(minutes=minutes)
        db.insert_note(Note(id=note_id, owner_id="owner", title=note_id, created_at=stamp, updated_at=stamp))
    db.insert_note(Note(id="other", owner_id="someone-else", title="other"))

    assert [note.id for note in db.list_notes("owner")] == ["new", "mid", "old"]
    assert [note.id for note in db.list_notes("owner", limit=1)] == ["new"]
    assert db.fetch_note("owner", "other") is None
    assert db.fetch_note("owner", "mid").created_at == BASE + timedelta(minutes=1)


def test_initialize_adds_summary_column_to_existing_table(tmp_path):
    db_path = tmp_path / "legacy.db"
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE notes (
                id TEXT PRIMARY KEY,
                owner_id TEXT NOT NULL,
                title TEXT NOT NULL,
                content TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute(
            "INSERT INTO notes VALUES (?, ?, ?, ?, ?, ?)",
            ("n1", "owner", "Legacy", "body", BASE.isoformat(), BASE.isoformat()),
        )
        conn.commit()

    db = NoteDatabase(db_path)
    db.initialize()
    db.initialize()

    with sqlite3.connect(db_path) as conn:
        columns = [row[1] for row in conn.execute("PRAGMA table_info(notes)").fetchall()]

    assert columns.count("summary") == 1
    legacy = db.fetch_note("owner", "n1")
    assert legacy.title == "Legacy"
    assert legacy.summary is None


def test_update_and_delete_report_missing_rows(tmp_path):
    db = NoteDatabase(tmp_path / "notes.db")
    db.initialize()
    note = Note(id="n1", owner_id="owner", title="First")
    db.insert_note(note)

    assert db.update_note(note.model_copy(update={"summary": "* one"})) is True
    assert db.fetch_note("owner", "n1").summary == "* one"
    assert db.update_note(note.model_copy(update={"id": "missing"})) is False
    assert db.delete_note("owner", "n1") is True
    assert db.delete_note("owner", "n1") is False


def test_sqlite_store_round_trip(tmp_path):
    async def scenario():
        store = SQLiteNoteStore(StaticIdentity("owner"), path=tmp_path / "notes.db")
        created = await store.create(NoteFields(title="Groceries", content="milk", summary="* milk"))
        updated = await store.update(created.id, NoteFields(title="Groceries", content="milk, eggs"))
        listed = await store.list()
        await store.delete(created.id)
        with pytest.raises(NoteNotFoundError):
            await store.get(created.id)
        with pytest.raises(NoteNotFoundError):
            await store.delete(created.id)
        return created, updated, listed

    created, updated, listed = asyncio.run(scenario())

    assert created.owner_id == "owner"
    assert updated.content == "milk, eggs"
    assert updated.summary is None
    assert updated.created_at == created.created_at
    assert listed == [updated]


def test_sqlite_store_rejects_blank_title_and_duplicate_ids(tmp_path):
    db = NoteDatabase(tmp_path / "notes.db")
    store = SQLiteNoteStore(StaticIdentity("owner"), database=db)
    db.insert_note(Note(id="dup", owner_id="owner", title="Existing"))

    async def scenario():
        with pytest.raises(NoteRejectedError):
            await store.create(NoteFields(title="   "))
        with pytest.raises(NoteRejectedError):
            await store._run(db.insert_note, Note(id="dup", owner_id="owner", title="Again"))

    asyncio.run(scenario())


def test_signed_out_store_calls_fail():
    identity = StaticIdentity("owner")
    store = InMemoryNoteStore(identity)
    identity.sign_out()

    with pytest.raises(UnauthenticatedError) as excinfo:
        asyncio.run(store.list())

    assert str(excinfo.value) == "User not authenticated"


def test_memory_store_scopes_notes_to_owner():
    identity = StaticIdentity("owner")
    store = InMemoryNoteStore(identity)
    store.seed(Note(id="theirs", owner_id="other", title="Not yours"))

    async def scenario():
        mine = await store.create(NoteFields(title="Mine"))
        with pytest.raises(NoteNotFoundError):
            await store.get("theirs")
        with pytest.raises(NoteNotFoundError):
            await store.update("theirs", NoteFields(title="Hijack"))
        with pytest.raises(NoteNotFoundError):
            await store.delete("theirs")
        return mine, await store.list()

    mine, listed = asyncio.run(scenario())

    assert listed == [mine]
