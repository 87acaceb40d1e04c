"""Soft delete with a grace period and undo.

Each note id moves through an explicit state machine::

    ACTIVE --request_delete--> PENDING --timer fires--> COMMITTED
       ^                          |
       +----------undo------------+

The PENDING -> COMMITTED transition happens synchronously inside the timer
callback, before the remote delete is issued, so an undo that arrives after
the timer fired is rejected instead of racing the delete.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Tuple

from ..data.models import CollectionKey, Note
from ..logging import get_logger
from ..notifications import Notifier
from .errors import (
    AlreadyPendingError,
    DeletionStateError,
    NoteNotFoundError,
    NoteStoreError,
    NotPendingError,
)
from .mutations import MutationManager, is_provisional

LOGGER = get_logger(__name__)

REPEAT_POLICIES = ("restart", "reject")

DeletionListener = Callable[[str], None]


class DeletionState(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    COMMITTED = "committed"


class DeletionStatus(str, Enum):
    COMMITTED = "committed"
    UNDONE = "undone"
    FAILED = "failed"


@dataclass(frozen=True)
class DeletionOutcome:
    note_id: str
    status: DeletionStatus
    error: Optional[Exception] = None


class PendingDeletion:
    """A note waiting out its grace period. Owned by :class:`DeletionScheduler`."""

    def __init__(
        self,
        note_id: str,
        saved_note: Note,
        loop: asyncio.AbstractEventLoop,
        collections: Tuple[CollectionKey, ...] = (),
    ) -> None:
        self.note_id = note_id
        self.saved_note = saved_note
        self.collections = collections
        self.state = DeletionState.PENDING
        self.restarts = 0
        self.deadline: Optional[float] = None
        self._loop = loop
        self._handle: Optional[asyncio.TimerHandle] = None
        self._outcome: "asyncio.Future[DeletionOutcome]" = loop.create_future()

    @property
    def timer_active(self) -> bool:
        return self._handle is not None and not self._handle.cancelled()

    def remaining(self) -> float:
        if self.deadline is None or self.state is not DeletionState.PENDING:
            return 0.0
        return max(0.0, self.deadline - self._loop.time())

    def done(self) -> bool:
        return self._outcome.done()

    async def wait(self) -> DeletionOutcome:
        """Wait until the deletion is committed, undone or has failed."""

        return await asyncio.shield(self._outcome)

    def _arm(self, delay: float, callback: Callable[["PendingDeletion"], None]) -> None:
        self._cancel_timer()
        self.deadline = self._loop.time() + delay
        self._handle = self._loop.call_later(delay, callback, self)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _resolve(self, outcome: DeletionOutcome) -> None:
        if not self._outcome.done():
            self._outcome.set_result(outcome)


class DeletionScheduler:
    """Turns delete requests into cancellable, delayed commits.

    At most one timer is live per note id. Pending notes stay in the cache;
    the visibility filter hides them through :meth:`hidden_ids`.
    """

    def __init__(
        self,
        mutations: MutationManager,
        grace_period: float = 5.0,
        repeat_policy: str = "restart",
        notifier: Optional[Notifier] = None,
    ) -> None:
        if grace_period <= 0:
            raise ValueError("grace_period must be positive")
        if repeat_policy not in REPEAT_POLICIES:
            raise ValueError(f"Unknown repeat delete policy: {repeat_policy}")
        self.mutations = mutations
        self.grace_period = grace_period
        self.repeat_policy = repeat_policy
        self.notifier = notifier or Notifier()
        self._entries: Dict[str, PendingDeletion] = {}
        self._tasks: "set[asyncio.Task[None]]" = set()
        self._listeners: List[DeletionListener] = []

    @property
    def cache(self):
        return self.mutations.cache

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def state(self, note_id: str) -> DeletionState:
        entry = self._entries.get(note_id)
        return entry.state if entry is not None else DeletionState.ACTIVE

    def get(self, note_id: str) -> Optional[PendingDeletion]:
        return self._entries.get(note_id)

    def pending(self) -> List[PendingDeletion]:
        return [entry for entry in self._entries.values() if entry.state is DeletionState.PENDING]

    def hidden_ids(self) -> FrozenSet[str]:
        return frozenset(self._entries)

    def is_hidden(self, note_id: str) -> bool:
        return note_id in self._entries

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def request_delete(self, note_id: str) -> PendingDeletion:
        loop = asyncio.get_running_loop()
        entry = self._entries.get(note_id)
        if entry is not None:
            return self._repeat_request(entry)

        if is_provisional(note_id):
            raise DeletionStateError("Note is still being saved", note_id)
        note = self.cache.get_note(note_id)
        if note is None:
            raise NoteNotFoundError(f"Note {note_id} not found", note_id=note_id)

        entry = PendingDeletion(note_id, note, loop, tuple(self.cache.collections_containing(note_id)))
        self._entries[note_id] = entry
        entry._arm(self.grace_period, self._fire)
        LOGGER.info("Note %s pending deletion for %.1fs", note_id, self.grace_period)
        self._emit(note_id)
        self.notifier.info(
            "Note moved to trash",
            f"Note will be permanently deleted in {self.grace_period:g} seconds",
            duration=self.grace_period,
            action_label="Undo",
            note_id=note_id,
        )
        return entry

    def _repeat_request(self, entry: PendingDeletion) -> PendingDeletion:
        if entry.state is DeletionState.COMMITTED:
            raise AlreadyPendingError("Note deletion is already in progress", entry.note_id)
        if self.repeat_policy == "reject":
            raise AlreadyPendingError("Note is already pending deletion", entry.note_id)

        current = self.cache.get_note(entry.note_id)
        if current is not None:
            entry.saved_note = current
        for key in self.cache.collections_containing(entry.note_id):
            if key not in entry.collections:
                entry.collections += (key,)
        entry.restarts += 1
        entry._arm(self.grace_period, self._fire)
        LOGGER.info("Restarted grace period for note %s", entry.note_id)
        return entry

    def undo(self, note_id: str) -> Note:
        entry = self._entries.get(note_id)
        if entry is None:
            raise NotPendingError("Note is not pending deletion", note_id)
        if entry.state is DeletionState.COMMITTED:
            raise NotPendingError("Note deletion was already committed", note_id)

        entry._cancel_timer()
        del self._entries[note_id]

        cached = self.cache.get_note(note_id)
        note = cached or entry.saved_note
        present = self.cache.collections_containing(note_id)
        default_key = self.mutations.default_key
        keys = entry.collections or ((default_key,) if cached is None else ())
        for key in keys:
            if key in present or (key != default_key and not self.cache.has_collection(key)):
                continue
            LOGGER.info("Re-inserting evicted note %s into %s on undo", note_id, key)
            self.cache.insert_ordered(key, note)

        entry._resolve(DeletionOutcome(note_id, DeletionStatus.UNDONE))
        self._emit(note_id)
        self.notifier.success("Note restored successfully", "Your note has been restored", note_id=note_id)
        return note

    def commit_now(self, note_id: str) -> PendingDeletion:
        """Skip the rest of the grace period and commit immediately."""

        entry = self._entries.get(note_id)
        if entry is None or entry.state is not DeletionState.PENDING:
            raise NotPendingError("Note is not pending deletion", note_id)
        entry._cancel_timer()
        self._fire(entry)
        return entry

    def _fire(self, entry: PendingDeletion) -> None:
        if self._entries.get(entry.note_id) is not entry or entry.state is not DeletionState.PENDING:
            return
        entry.state = DeletionState.COMMITTED
        entry._handle = None
        self._emit(entry.note_id)
        task = asyncio.get_running_loop().create_task(self._commit(entry))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _commit(self, entry: PendingDeletion) -> None:
        outcome = DeletionOutcome(entry.note_id, DeletionStatus.FAILED)
        try:
            await self.mutations.delete(entry.note_id)
        except NoteStoreError as exc:
            LOGGER.error("Error deleting note %s: %s", entry.note_id, exc)
            outcome = DeletionOutcome(entry.note_id, DeletionStatus.FAILED, exc)
            self.notifier.error("Failed to delete note", str(exc) or "Unknown error occurred", note_id=entry.note_id)
        except Exception as exc:
            LOGGER.exception("Unexpected error deleting note %s", entry.note_id)
            outcome = DeletionOutcome(entry.note_id, DeletionStatus.FAILED, exc)
            self.notifier.error("Failed to delete note", "Unknown error occurred", note_id=entry.note_id)
        else:
            outcome = DeletionOutcome(entry.note_id, DeletionStatus.COMMITTED)
            self.notifier.success(
                "Note permanently deleted",
                "The note has been removed from your account",
                note_id=entry.note_id,
            )
        finally:
            if self._entries.get(entry.note_id) is entry:
                del self._entries[entry.note_id]
            entry._resolve(outcome)
            self._emit(entry.note_id)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def drain(self) -> None:
        """Wait for every commit already in flight."""

        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    LOGGER.error("Deletion commit task failed unexpectedly: %r", result)

    async def close(self, commit_pending: bool = True) -> None:
        """Settle all pending deletions, committing or cancelling them."""

        for entry in self.pending():
            if commit_pending:
                self.commit_now(entry.note_id)
            else:
                self.undo(entry.note_id)
        await self.drain()

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, listener: DeletionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, note_id: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(note_id)
            except Exception:  # pragma: no cover - listeners should not break transitions
                LOGGER.exception("Deletion listener raised an exception")


__all__ = [
    "DeletionOutcome",
    "DeletionScheduler",
    "DeletionState",
    "DeletionStatus",
    "PendingDeletion",
    "REPEAT_POLICIES",
]
