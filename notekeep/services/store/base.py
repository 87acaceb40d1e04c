"""Note store client abstractions."""

from __future__ import annotations

import abc
from typing import List

from ...core.errors import NoteRejectedError, UnauthenticatedError
from ...data.models import Note, NoteFields
from ..identity import IdentityProvider


class NoteStoreClient(abc.ABC):
    """Async CRUD access to the persistent notes of the current owner.

    Failures raise :class:`~notekeep.core.errors.NoteStoreError` subclasses.
    Clients never retry.
    """

    def __init__(self, identity: IdentityProvider) -> None:
        self.identity = identity

    @abc.abstractmethod
    async def list(self) -> List[Note]:
        """Return the owner's notes, newest first."""

    @abc.abstractmethod
    async def get(self, note_id: str) -> Note:
        raise NotImplementedError

    @abc.abstractmethod
    async def create(self, fields: NoteFields) -> Note:
        raise NotImplementedError

    @abc.abstractmethod
    async def update(self, note_id: str, fields: NoteFields) -> Note:
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, note_id: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release backend resources."""

    def _require_owner(self) -> str:
        owner = self.identity.current_owner()
        if not owner:
            raise UnauthenticatedError("User not authenticated")
        return owner

    @staticmethod
    def _validate(fields: NoteFields) -> None:
        if not fields.title or not fields.title.strip():
            raise NoteRejectedError("Note title must not be empty")


__all__ = ["NoteStoreClient"]
