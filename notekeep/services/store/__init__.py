"""Note store clients."""

from .base import NoteStoreClient
from .memory import InMemoryNoteStore
from .sqlite import SQLiteNoteStore

__all__ = ["InMemoryNoteStore", "NoteStoreClient", "SQLiteNoteStore"]
