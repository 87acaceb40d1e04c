"""Process-wide wiring of cache, mutations, deletion scheduler and summarizer."""

from __future__ import annotations

from typing import List, Optional

from ..config import Settings, get_settings
from ..data.models import ALL_NOTES, CollectionKey, Note, NoteFields
from ..logging import get_logger
from ..notifications import Notifier
from ..services.factory import resolve_store_backend, resolve_summarizer_backend
from ..services.store.base import NoteStoreClient
from ..services.summarizer.base import Summarizer
from .cache import NoteCache
from .deletion import DeletionScheduler, PendingDeletion
from .errors import NoteStoreError
from .mutations import MutationManager
from .visibility import NoteView

LOGGER = get_logger(__name__)


class NotesWorkspace:
    """The single shared note state every surface reads from and writes through."""

    def __init__(
        self,
        client: NoteStoreClient,
        summarizer: Optional[Summarizer] = None,
        notifier: Optional[Notifier] = None,
        settings: Optional[Settings] = None,
        grace_period: Optional[float] = None,
        repeat_policy: Optional[str] = None,
        key: CollectionKey = ALL_NOTES,
    ) -> None:
        settings = settings or get_settings()
        self.key = key
        self.client = client
        self.summarizer = summarizer
        self.notifier = notifier or Notifier(default_duration=settings.notification_seconds)
        self.cache = NoteCache()
        self.mutations = MutationManager(self.cache, client, default_key=key)
        self.scheduler = DeletionScheduler(
            self.mutations,
            grace_period=grace_period if grace_period is not None else settings.delete_grace_seconds,
            repeat_policy=repeat_policy or settings.repeat_delete_policy,
            notifier=self.notifier,
        )

    def view(self, key: Optional[CollectionKey] = None) -> NoteView:
        return NoteView(self.cache, self.scheduler, key or self.key)

    async def refresh(self, key: Optional[CollectionKey] = None) -> List[Note]:
        return await self.mutations.refresh(key)

    async def open_note(self, note_id: str) -> Note:
        """Return the note for a detail surface, fetching it when it is not cached."""

        note = self.cache.get_note_entry(note_id)
        if note is None:
            note = await self.mutations.load(note_id)
        return note

    async def summarize(self, content: Optional[str]) -> Optional[str]:
        if self.summarizer is None or not content or not content.strip():
            return None
        try:
            result = await self.summarizer.summarize(content)
        except Exception as exc:  # summarizer failures must not block saving
            LOGGER.exception("Summarizer raised an exception")
            self.notifier.warning("Summary unavailable", str(exc) or "Failed to generate summary")
            return None
        if not result.ok:
            LOGGER.warning("Summary generation failed: %s", result.error)
            self.notifier.warning("Summary unavailable", result.error)
            return None
        return result.summary

    async def create_note(self, title: str, content: Optional[str] = None, summarize: bool = True) -> Note:
        summary = await self.summarize(content) if summarize else None
        fields = NoteFields(title=title, content=content, summary=summary)
        try:
            note = await self.mutations.create(fields)
        except NoteStoreError as exc:
            self.notifier.error("Failed to create note", str(exc) or "Unknown error occurred")
            raise
        self.notifier.success("Note created successfully", "Your new note has been saved", note_id=note.id)
        return note

    async def update_note(
        self,
        note_id: str,
        title: str,
        content: Optional[str] = None,
        summarize: bool = True,
    ) -> Note:
        """Save new title/content. A failed or skipped summary keeps the previous one."""

        current = self.cache.get_note(note_id)
        summary = current.summary if current is not None else None
        if summarize:
            summary = await self.summarize(content) or summary
        fields = NoteFields(title=title, content=content, summary=summary)
        try:
            note = await self.mutations.update(note_id, fields)
        except NoteStoreError as exc:
            self.notifier.error("Failed to update note", str(exc) or "Unknown error occurred", note_id=note_id)
            raise
        self.notifier.success("Note updated", note_id=note_id)
        return note

    def request_delete(self, note_id: str) -> PendingDeletion:
        return self.scheduler.request_delete(note_id)

    def undo_delete(self, note_id: str) -> Note:
        return self.scheduler.undo(note_id)

    async def close(self, commit_pending: bool = True) -> None:
        await self.scheduler.close(commit_pending=commit_pending)
        await self.client.close()


def build_workspace(
    settings: Optional[Settings] = None,
    store_backend: Optional[str] = None,
    summarizer_backend: Optional[str] = None,
    notifier: Optional[Notifier] = None,
) -> NotesWorkspace:
    settings = settings or get_settings()
    client = resolve_store_backend(store_backend or settings.store_backend, settings=settings)
    summarizer = resolve_summarizer_backend(
        summarizer_backend if summarizer_backend is not None else settings.summarizer_backend
    )
    return NotesWorkspace(client, summarizer=summarizer, notifier=notifier, settings=settings)


_workspace: Optional[NotesWorkspace] = None


def get_workspace() -> NotesWorkspace:
    """Return the process-wide workspace, building it from settings on first use."""

    global _workspace
    if _workspace is None:
        _workspace = build_workspace()
    return _workspace


def reset_workspace() -> None:
    global _workspace
    _workspace = None


__all__ = [
    "NotesWorkspace",
    "build_workspace",
    "get_workspace",
    "reset_workspace",
]
