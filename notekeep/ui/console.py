"""Interactive console UI for browsing and editing notes."""

from __future__ import annotations

import asyncio
import threading
from collections import deque
from pathlib import Path
from typing import Any, Awaitable, Callable, Deque, Optional, TypeVar

from ..config import (
    EnvironmentSettingError,
    Settings,
    clear_environment_setting,
    get_settings,
    list_environment_settings,
    update_environment_setting,
)
from ..core.deletion import DeletionScheduler
from ..core.errors import DeletionStateError, NoteStoreError
from ..core.visibility import NoteView
from ..core.workspace import NotesWorkspace, build_workspace
from ..data.models import Note
from ..logging import get_logger
from ..notifications import Notification

LOGGER = get_logger(__name__)

T = TypeVar("T")

PREVIEW_CHARS = 80


# ----------------------------------------------------------------------
# Surfaces
# ----------------------------------------------------------------------
def _first_line(text: Optional[str], limit: int = PREVIEW_CHARS) -> str:
    if not text:
        return ""
    line = text.strip().splitlines()[0] if text.strip() else ""
    return line if len(line) <= limit else line[: limit - 3].rstrip() + "..."


def render_note_list(view: NoteView) -> str:
    """Main list surface: one card per visible note."""

    notes = view.notes()
    if not notes:
        return "No notes yet. Create one!"
    lines = []
    for index, note in enumerate(notes, start=1):
        stamp = note.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
        lines.append(f"{index:>2}. {note.title}  [{stamp}]  ({note.id})")
        preview = _first_line(note.summary) or _first_line(note.content)
        if preview:
            lines.append(f"      {preview}")
    return "\n".join(lines)


def render_navigation(view: NoteView, active_id: Optional[str] = None) -> str:
    """Compact navigation surface listing titles only."""

    notes = view.notes()
    if not notes:
        return "Notes: (empty)"
    entries = [f"{'>' if note.id == active_id else ' '} {note.title}" for note in notes]
    return "Notes:\n" + "\n".join(entries)


def render_detail(view: NoteView, note_id: str) -> str:
    """Detail surface for one note; hidden notes read as unavailable."""

    note = view.get(note_id)
    if note is None:
        return "Note not available."
    lines = [
        f"Title: {note.title}",
        f"Created: {note.created_at.astimezone():%Y-%m-%d %H:%M:%S}",
        f"Updated: {note.updated_at.astimezone():%Y-%m-%d %H:%M:%S}",
        "",
        note.content or "(no content)",
    ]
    if note.summary:
        lines.extend(["", "Summary:", note.summary])
    return "\n".join(lines)


def render_pending(scheduler: DeletionScheduler) -> str:
    entries = scheduler.pending()
    if not entries:
        return ""
    parts = [f"{entry.saved_note.title} ({entry.remaining():.0f}s)" for entry in entries]
    return "Pending deletion: " + ", ".join(parts) + " - choose undo to restore."


# ----------------------------------------------------------------------
# Event loop runner
# ----------------------------------------------------------------------
class _LoopRunner:
    """Runs the workspace event loop in a background thread.

    All cache reads and writes are submitted to this loop so that only one
    thread ever touches the shared note state.
    """

    def __init__(self) -> None:
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name="notekeep-loop", daemon=True)

    def _run(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self) -> None:
        self._thread.start()

    def run(self, coro: Awaitable[T]) -> T:
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result()

    def call(self, func: Callable[..., T], *args: Any) -> T:
        async def _invoke() -> T:
            return func(*args)

        return self.run(_invoke())

    def stop(self) -> None:
        if self._thread.is_alive():
            self.loop.call_soon_threadsafe(self.loop.stop)
            self._thread.join()
        self.loop.close()


class NotesConsoleUI:
    """Simple interactive console used to manage notes from the terminal."""

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        store_backend_name: Optional[str] = None,
        summarizer_backend_name: Optional[str] = None,
        workspace: Optional[NotesWorkspace] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._workspace = workspace or build_workspace(
            self._settings,
            store_backend=store_backend_name,
            summarizer_backend=summarizer_backend_name,
        )
        self._list_view = self._workspace.view()
        self._nav_view = self._workspace.view()
        self._detail_view = self._workspace.view()
        self._runner = _LoopRunner()
        self._messages: Deque[str] = deque()
        self._active_note: Optional[str] = None
        self._running = True
        self._workspace.notifier.subscribe(self._on_notification)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def run(self) -> None:
        """Enter the interactive UI loop."""

        self._info("Launching notekeep. Press Ctrl+C to exit.")
        self._runner.start()
        try:
            self._refresh()
            while self._running:
                self._flush_messages()
                self._print_menu()
                try:
                    choice = input("Select option: ").strip().lower()
                except (KeyboardInterrupt, EOFError):
                    print()
                    choice = "q"
                self._handle_choice(choice)
        finally:
            self._shutdown()
            self._flush_messages()
            print("Goodbye!")

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------
    def _handle_choice(self, choice: str) -> None:
        if choice in {"1", "list", "l"}:
            self._show_list()
        elif choice in {"2", "open", "o"}:
            self._open_note()
        elif choice in {"3", "new", "n"}:
            self._create_note()
        elif choice in {"4", "edit", "e"}:
            self._edit_note()
        elif choice in {"5", "delete", "d"}:
            self._delete_note()
        elif choice in {"6", "undo", "u"}:
            self._undo_delete()
        elif choice in {"7", "refresh", "r"}:
            self._refresh()
        elif choice in {"8", "env", "config"}:
            self._configure_environment()
        elif choice in {"q", "quit", "exit"}:
            self._running = False
        else:
            self._info("Unknown option. Please choose one of the menu entries.")

    def _show_list(self) -> None:
        print()
        print(self._runner.call(render_navigation, self._nav_view, self._active_note))
        print()
        print(self._runner.call(render_note_list, self._list_view))

    def _open_note(self) -> None:
        note = self._prompt_note("Open note")
        if note is None:
            return
        try:
            self._runner.run(self._workspace.open_note(note.id))
        except NoteStoreError as exc:
            self._error(f"Failed to load note: {exc}")
            return
        self._active_note = note.id
        print()
        print(self._runner.call(render_detail, self._detail_view, note.id))

    def _create_note(self) -> None:
        title = input("Title: ").strip()
        if not title:
            self._info("A title is required. Note not created.")
            return
        content = self._prompt_content()
        summarize = self._prompt_bool("Generate summary", self._workspace.summarizer is not None)
        try:
            note = self._runner.run(self._workspace.create_note(title, content, summarize=summarize))
        except NoteStoreError as exc:
            LOGGER.debug("Create failed: %s", exc)
            return
        self._active_note = note.id

    def _edit_note(self) -> None:
        note = self._prompt_note("Edit note")
        if note is None:
            return
        title = input(f"Title [{note.title}]: ").strip() or note.title
        print("Current content:")
        print(note.content or "(no content)")
        content = self._prompt_content(default=note.content)
        summarize = self._prompt_bool("Regenerate summary", self._workspace.summarizer is not None)
        try:
            self._runner.run(self._workspace.update_note(note.id, title, content, summarize=summarize))
        except NoteStoreError as exc:
            LOGGER.debug("Update failed: %s", exc)

    def _delete_note(self) -> None:
        note = self._prompt_note("Delete note")
        if note is None:
            return
        try:
            self._runner.call(self._workspace.request_delete, note.id)
        except (DeletionStateError, NoteStoreError) as exc:
            self._error(f"Cannot delete note: {exc}")
            return
        if self._active_note == note.id:
            self._active_note = None

    def _undo_delete(self) -> None:
        pending = self._runner.call(self._workspace.scheduler.pending)
        if not pending:
            self._info("Nothing to undo.")
            return
        entry = pending[-1]
        if len(pending) > 1:
            for index, candidate in enumerate(pending, start=1):
                print(f"{index}) {candidate.saved_note.title}")
            choice = input(f"Restore which note [{len(pending)}]: ").strip()
            if choice:
                try:
                    entry = pending[int(choice) - 1]
                except (ValueError, IndexError):
                    self._info("Invalid selection.")
                    return
        try:
            self._runner.call(self._workspace.undo_delete, entry.note_id)
        except DeletionStateError as exc:
            self._error(f"Too late to undo: {exc}")

    def _refresh(self) -> None:
        try:
            notes = self._runner.run(self._workspace.refresh())
        except NoteStoreError as exc:
            self._error(f"Failed to load notes: {exc}")
            return
        self._info(f"Loaded {len(notes)} notes.")

    def _configure_environment(self) -> None:
        while True:
            settings = list(list_environment_settings(self._settings))
            print()
            print("Environment configuration:")
            for idx, entry in enumerate(settings, start=1):
                print(
                    f"{idx}) {entry.env_name} = {self._format_env_value(entry.value)}"
                    f" (default: {self._format_env_value(entry.default)})"
                )
            print("b) Back to main menu")

            choice = input("Select variable to edit: ").strip().lower()
            if choice in {"b", "back", "q", "exit"}:
                return

            try:
                selected = settings[int(choice) - 1]
            except (ValueError, IndexError):
                self._info("Invalid selection. Choose a number from the list or 'b' to go back.")
                continue

            new_value = input(
                f"Enter new value for {selected.env_name} (leave empty to reset to default): "
            ).strip()
            try:
                if new_value:
                    self._settings = update_environment_setting(selected.field, new_value)
                    verb = "updated"
                else:
                    self._settings = clear_environment_setting(selected.field)
                    verb = "reset"
            except EnvironmentSettingError as exc:
                self._error(f"Failed to update {selected.env_name}: {exc}")
                continue

            current = getattr(self._settings, selected.field)
            self._info(
                f"{selected.env_name} {verb}. Current value: {self._format_env_value(current)}. "
                "Backend changes apply on next launch."
            )
            self._flush_messages()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _prompt_note(self, label: str) -> Optional[Note]:
        default = self._active_note
        suffix = f" [{default}]" if default else ""
        ref = input(f"{label} (number or id){suffix}: ").strip() or (default or "")
        if not ref:
            self._info("No note selected.")
            return None
        note = self._runner.call(self._resolve_note, ref)
        if note is None:
            self._info(f"No visible note matches '{ref}'.")
        return note

    def _resolve_note(self, ref: str) -> Optional[Note]:
        notes = self._list_view.notes()
        if ref.isdigit() and 1 <= int(ref) <= len(notes):
            return notes[int(ref) - 1]
        matches = [note for note in notes if note.id == ref or note.id.startswith(ref)]
        if len(matches) == 1:
            return matches[0]
        return self._detail_view.get(ref)

    def _prompt_content(self, default: Optional[str] = None) -> Optional[str]:
        hint = "; leave empty to keep current" if default else ""
        print(f"Content (finish with an empty line{hint}):")
        lines = []
        while True:
            try:
                line = input()
            except EOFError:
                break
            if not line:
                break
            lines.append(line)
        if not lines:
            return default
        return "\n".join(lines)

    def _prompt_bool(self, label: str, current: bool) -> bool:
        suffix = "Y/n" if current else "y/N"
        value = input(f"{label}? ({suffix}): ").strip().lower()
        if not value:
            return current
        if value in {"y", "yes"}:
            return True
        if value in {"n", "no"}:
            return False
        self._info("Invalid response. Keeping previous value.")
        return current

    def _format_env_value(self, value: Any) -> str:
        if value is None:
            return "(unset)"
        if isinstance(value, Path):
            return str(value)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def _shutdown(self) -> None:
        try:
            self._runner.run(self._workspace.close(commit_pending=True))
        finally:
            self._runner.stop()

    def _print_menu(self) -> None:
        print()
        pending = self._runner.call(render_pending, self._workspace.scheduler)
        if pending:
            print(pending)
        count = self._runner.call(len, self._list_view)
        print(f"{count} notes")
        print("1) List notes")
        print("2) Open note")
        print("3) New note")
        print("4) Edit note")
        print("5) Delete note")
        print("6) Undo delete")
        print("7) Refresh from store")
        print("8) Configure environment variables")
        print("q) Quit")

    def _on_notification(self, notification: Notification) -> None:
        self._messages.append(notification.format())

    def _info(self, message: str) -> None:
        self._messages.append(f"[info] {message}")

    def _error(self, message: str) -> None:
        self._messages.append(f"[error] {message}")

    def _flush_messages(self) -> None:
        while self._messages:
            print(self._messages.popleft())


__all__ = [
    "NotesConsoleUI",
    "render_detail",
    "render_navigation",
    "render_note_list",
    "render_pending",
]
