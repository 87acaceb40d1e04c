"""notekeep: short notes with AI summaries, optimistic updates and undoable deletes."""

__version__ = "0.1.0"
