import asyncio

import pytest

from notekeep.config import Settings
from notekeep.core.deletion import DeletionStatus
from notekeep.core.errors import NoteRejectedError
from notekeep.core.workspace import NotesWorkspace, build_workspace
from notekeep.data.models import NoteFields
from notekeep.notifications import NotificationLevel, Notifier
from notekeep.services.identity import StaticIdentity
from notekeep.services.store.memory import InMemoryNoteStore
from notekeep.services.store.sqlite import SQLiteNoteStore
from notekeep.services.summarizer import DummySummarizer, Summarizer, SummaryResult


class FailingSummarizer(Summarizer):
    async def _summarize(self, text: str) -> SummaryResult:
        return SummaryResult(error="Failed to generate summary")


class ExplodingSummarizer(Summarizer):
    async def _summarize(self, text: str) -> SummaryResult:
        raise ConnectionError("summary service down")


def _settings(**overrides) -> Settings:
    values = {"store_backend": "memory", "summarizer_backend": "none", "delete_grace_seconds": 0.05}
    values.update(overrides)
    return Settings(**values)


def _workspace(summarizer=None) -> NotesWorkspace:
    return NotesWorkspace(
        InMemoryNoteStore(StaticIdentity("owner")),
        summarizer=summarizer,
        notifier=Notifier(),
        settings=_settings(),
    )


def test_create_note_stores_summary():
    workspace = _workspace(DummySummarizer())

    async def scenario():
        note = await workspace.create_note("Trip", "Book flights. Pack bags.")
        await workspace.refresh()
        return note

    note = asyncio.run(scenario())

    assert note.summary == "* Book flights.\n* Pack bags."
    assert [n.id for n in workspace.view().notes()] == [note.id]
    assert workspace.notifier.history[-1].title == "Note created successfully"


@pytest.mark.parametrize("summarizer", [FailingSummarizer(), ExplodingSummarizer()])
def test_summary_failure_does_not_block_save(summarizer):
    workspace = _workspace(summarizer)

    note = asyncio.run(workspace.create_note("Plain", "Some content"))

    assert note.summary is None
    levels = [n.level for n in workspace.notifier.history]
    assert levels == [NotificationLevel.WARNING, NotificationLevel.SUCCESS]


def test_update_keeps_previous_summary_when_summarizer_fails():
    workspace = _workspace(DummySummarizer())

    async def scenario():
        note = await workspace.create_note("Plan", "Write the draft.")
        workspace.summarizer = FailingSummarizer()
        return await workspace.update_note(note.id, "Plan v2", "Write the second draft.")

    updated = asyncio.run(scenario())

    assert updated.title == "Plan v2"
    assert updated.summary == "* Write the draft."


def test_rejected_create_notifies_and_raises():
    workspace = _workspace()

    with pytest.raises(NoteRejectedError):
        asyncio.run(workspace.create_note("  "))

    assert workspace.notifier.history[-1].title == "Failed to create note"
    assert workspace.view().notes() == []


def test_open_note_fetches_uncached_note():
    workspace = _workspace()

    async def scenario():
        created = await workspace.client.create(NoteFields(title="Remote"))
        opened = await workspace.open_note(created.id)
        return created, opened

    created, opened = asyncio.run(scenario())

    assert opened == created
    assert workspace.cache.get_note_entry(created.id) == created


def test_delete_and_undo_through_workspace():
    workspace = _workspace()

    async def scenario():
        note = await workspace.create_note("Temporary")
        entry = workspace.request_delete(note.id)
        hidden = workspace.view().get(note.id)
        workspace.undo_delete(note.id)
        outcome = await entry.wait()
        await workspace.close()
        return note, hidden, outcome

    note, hidden, outcome = asyncio.run(scenario())

    assert hidden is None
    assert outcome.status is DeletionStatus.UNDONE
    assert workspace.view().get(note.id) is not None


def test_build_workspace_uses_settings(tmp_path):
    settings = _settings(
        store_backend="sqlite",
        database_path=tmp_path / "notes.db",
        summarizer_backend="dummy",
        repeat_delete_policy="reject",
    )

    workspace = build_workspace(settings)

    assert isinstance(workspace.client, SQLiteNoteStore)
    assert workspace.summarizer is not None
    assert workspace.scheduler.grace_period == 0.05
    assert workspace.scheduler.repeat_policy == "reject"
