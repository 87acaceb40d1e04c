"""Typer CLI entry point for notekeep."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import typer

from .config import get_settings
from .core.deletion import DeletionState, DeletionStatus
from .core.errors import DeletionStateError, NoteStoreError
from .core.workspace import NotesWorkspace, build_workspace
from .logging import configure_logging, get_logger
from .services.factory import ServiceConfigurationError
from .ui.console import NotesConsoleUI, render_detail, render_note_list

app = typer.Typer(help="notekeep: short notes with AI summaries")
LOGGER = get_logger(__name__)

T = TypeVar("T")

StoreOption = typer.Option(None, "--store", help="Note store backend: memory/sqlite")
SummarizerOption = typer.Option(None, "--summarizer", help="Summarizer backend: none/dummy/openai")


def _build(store: Optional[str], summarizer: Optional[str]) -> NotesWorkspace:
    configure_logging()
    try:
        return build_workspace(get_settings(), store_backend=store, summarizer_backend=summarizer)
    except ServiceConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _run(workspace: NotesWorkspace, action: Callable[[NotesWorkspace], Awaitable[T]]) -> T:
    async def _main() -> T:
        try:
            return await action(workspace)
        finally:
            await workspace.close(commit_pending=False)

    try:
        return asyncio.run(_main())
    except (NoteStoreError, DeletionStateError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.command("list")
def list_notes(store: Optional[str] = StoreOption) -> None:
    """List notes, newest first."""

    workspace = _build(store, "none")

    async def action(ws: NotesWorkspace) -> str:
        await ws.refresh()
        return render_note_list(ws.view())

    typer.echo(_run(workspace, action))


@app.command()
def show(note_id: str = typer.Argument(..., help="Note id"), store: Optional[str] = StoreOption) -> None:
    """Show a single note."""

    workspace = _build(store, "none")

    async def action(ws: NotesWorkspace) -> str:
        await ws.open_note(note_id)
        return render_detail(ws.view(), note_id)

    typer.echo(_run(workspace, action))


@app.command()
def create(
    title: str = typer.Argument(..., help="Note title"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="Note body"),
    summarize: bool = typer.Option(True, "--summarize/--no-summarize", help="Generate an AI summary"),
    store: Optional[str] = StoreOption,
    summarizer: Optional[str] = SummarizerOption,
) -> None:
    """Create a note."""

    workspace = _build(store, summarizer)
    note = _run(workspace, lambda ws: ws.create_note(title, content, summarize=summarize))
    typer.echo(f"Created note {note.id}")
    if note.summary:
        typer.echo("Summary:")
        typer.echo(note.summary)


@app.command()
def edit(
    note_id: str = typer.Argument(..., help="Note id"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New body"),
    summarize: bool = typer.Option(True, "--summarize/--no-summarize", help="Regenerate the AI summary"),
    store: Optional[str] = StoreOption,
    summarizer: Optional[str] = SummarizerOption,
) -> None:
    """Edit a note's title and/or content."""

    workspace = _build(store, summarizer)

    async def action(ws: NotesWorkspace):
        current = await ws.open_note(note_id)
        return await ws.update_note(
            note_id,
            title if title is not None else current.title,
            content if content is not None else current.content,
            summarize=summarize and content is not None,
        )

    note = _run(workspace, action)
    typer.echo(f"Updated note {note.id}")


@app.command()
def delete(
    note_id: str = typer.Argument(..., help="Note id"),
    now: bool = typer.Option(False, "--now", help="Skip the grace period"),
    store: Optional[str] = StoreOption,
) -> None:
    """Delete a note after the grace period. Press Ctrl+C while waiting to undo."""

    workspace = _build(store, "none")

    async def action(ws: NotesWorkspace):
        await ws.open_note(note_id)
        entry = ws.request_delete(note_id)
        if now:
            ws.scheduler.commit_now(note_id)
        else:
            typer.echo(
                f"Note will be permanently deleted in {ws.scheduler.grace_period:g} seconds. "
                "Press Ctrl+C to undo."
            )
        try:
            return await entry.wait()
        except asyncio.CancelledError:
            if ws.scheduler.state(note_id) is DeletionState.PENDING:
                ws.undo_delete(note_id)
            raise

    try:
        outcome = _run(workspace, action)
    except KeyboardInterrupt:
        typer.echo("Deletion cancelled; note restored.")
        raise typer.Exit(code=130)

    if outcome.status is DeletionStatus.COMMITTED:
        typer.echo(f"Deleted note {note_id}")
    else:
        typer.echo(f"Failed to delete note {note_id}: {outcome.error}", err=True)
        raise typer.Exit(code=1)


@app.command()
def ui(
    store: Optional[str] = StoreOption,
    summarizer: Optional[str] = SummarizerOption,
) -> None:
    """Launch the interactive console."""

    _launch_ui(store=store, summarizer=summarizer)


def _launch_ui(store: Optional[str], summarizer: Optional[str]) -> None:
    configure_logging()
    settings = get_settings()
    try:
        console = NotesConsoleUI(
            settings=settings,
            store_backend_name=store,
            summarizer_backend_name=summarizer,
        )
    except ServiceConfigurationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    console.run()


if __name__ == "__main__":  # pragma: no cover
    app()
