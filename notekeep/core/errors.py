"""Failure taxonomy shared by the store clients, mutations and deletion scheduler."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    UNAVAILABLE = "unavailable"
    ALREADY_PENDING = "already_pending"


class NoteStoreError(RuntimeError):
    """Base class for failures surfaced by a note store client."""

    kind: FailureKind = FailureKind.UNAVAILABLE

    def __init__(self, message: str, note_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.note_id = note_id


class UnauthenticatedError(NoteStoreError):
    kind = FailureKind.UNAUTHENTICATED


class NoteNotFoundError(NoteStoreError):
    kind = FailureKind.NOT_FOUND


class NoteRejectedError(NoteStoreError):
    kind = FailureKind.REJECTED


class StoreUnavailableError(NoteStoreError):
    kind = FailureKind.UNAVAILABLE


class DeletionStateError(RuntimeError):
    """Raised when a deletion request or undo does not fit the note's current state."""

    def __init__(self, message: str, note_id: str) -> None:
        super().__init__(message)
        self.note_id = note_id


class AlreadyPendingError(DeletionStateError):
    kind = FailureKind.ALREADY_PENDING


class NotPendingError(DeletionStateError):
    """Undo arrived for a note that is not waiting out its grace period."""


__all__ = [
    "AlreadyPendingError",
    "DeletionStateError",
    "FailureKind",
    "NotPendingError",
    "NoteNotFoundError",
    "NoteRejectedError",
    "NoteStoreError",
    "StoreUnavailableError",
    "UnauthenticatedError",
]
