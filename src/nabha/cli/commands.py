"""CLI commands for the offline sync client.

Commands:
- status: show connectivity assumption and pending queue entries
- sync: drain the pending queue now
- save-progress: save a progress update (deliver or queue)
- submit-assignment: submit assignment answers (deliver or queue)
- cache-content: prefetch content from a JSON file
- content: list cached content
- progress: list cached progress for a student
"""

from __future__ import annotations

import asyncio
import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncGenerator

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from nabha.config.app_config import load_app_config
from nabha.offline.connectivity import ConnectivityMonitor
from nabha.offline.errors import OfflineSyncError
from nabha.offline.models import AssignmentSubmission, ContentItem, ProgressRecord
from nabha.offline.remote import RemoteClient
from nabha.offline.store import OfflineStore
from nabha.offline.sync import SaveOutcome, SyncCoordinator, SyncStatus

app = typer.Typer(
    name="nabha",
    help="Offline-first progress sync for the Nabha learning platform.",
    no_args_is_help=True,
)

console = Console()

OFFLINE_OPTION_HELP = "Treat the network as unreachable"


@asynccontextmanager
async def _coordinator(offline: bool) -> AsyncGenerator[SyncCoordinator, None]:
    """Build a coordinator from app config and tear it down afterwards."""
    config = load_app_config().sync
    online = config.start_online and not offline

    store = OfflineStore(Path(config.offline_db_path))
    monitor = ConnectivityMonitor(online=online)
    remote = RemoteClient(config)
    coordinator = SyncCoordinator(store, remote, monitor)
    try:
        yield coordinator
    finally:
        coordinator.close()
        await monitor.aclose()
        await remote.aclose()


def _format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def _print_outcome(outcome: SaveOutcome, what: str) -> None:
    if outcome is SaveOutcome.DELIVERED:
        console.print(f"[green]✓ {what} saved and synced[/green]")
    else:
        console.print(f"[green]✓ {what} saved[/green] [dim](queued, will sync when online)[/dim]")


@app.command()
def status(
    offline: bool = typer.Option(False, "--offline", help=OFFLINE_OPTION_HELP),
) -> None:
    """Show connectivity and pending sync entries."""
    from rich.table import Table

    async def _run():
        async with _coordinator(offline) as coordinator:
            return coordinator.monitor.state, await coordinator.pending_entries()

    try:
        state, entries = asyncio.run(_run())
    except OfflineSyncError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[dim]connectivity:[/dim] {state.value}")
    if not entries:
        console.print("[green]✓ Nothing pending[/green]")
        return

    console.print(f"[yellow]⚠ {len(entries)} pending entries[/yellow]")
    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("Queued at (UTC)")
    table.add_column("Student")

    for entry in entries:
        table.add_row(
            str(entry.id),
            entry.type,
            _format_timestamp(entry.timestamp),
            entry.write.data.student_id,
        )

    console.print(table)


@app.command()
def sync() -> None:
    """Replay pending entries against the remote API."""

    async def _run():
        async with _coordinator(offline=False) as coordinator:
            return await coordinator.sync_pending_data()

    try:
        result = asyncio.run(_run())
    except OfflineSyncError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if result.status is SyncStatus.COMPLETED:
        console.print(f"[green]✓ Synced {result.replayed} entries[/green]")
    elif result.status is SyncStatus.EMPTY:
        console.print("[green]✓ Nothing to sync[/green]")
    elif result.status is SyncStatus.OFFLINE:
        console.print("[yellow]⚠ Offline, nothing sent[/yellow]")
    elif result.status is SyncStatus.IN_PROGRESS:
        console.print("[yellow]⚠ A sync is already running[/yellow]")
    else:
        console.print(f"[red]✗ Sync aborted: {escape(str(result.error))}[/red]")
        console.print(f"  [dim]still pending:[/dim] {result.pending}")
        raise typer.Exit(code=1)


@app.command(name="save-progress")
def save_progress(
    student_id: str = typer.Argument(..., help="Student ID"),
    content_item_id: str = typer.Argument(..., help="Content item ID"),
    percentage: int = typer.Argument(..., help="Progress percentage (0-100)"),
    score: int | None = typer.Option(None, "--score", "-s", help="Quiz score"),
    time_spent: int = typer.Option(0, "--time-spent", "-t", help="Minutes spent"),
    offline: bool = typer.Option(False, "--offline", help=OFFLINE_OPTION_HELP),
) -> None:
    """Save lesson progress locally and sync it when possible."""
    try:
        record = ProgressRecord(
            student_id=student_id,
            content_item_id=content_item_id,
            progress_percentage=percentage,
            score=score,
            time_spent=time_spent,
        )
    except ValidationError as e:
        console.print(f"[red]✗ Invalid progress: {e.errors()[0]['msg']}[/red]")
        raise typer.Exit(code=1)

    async def _run():
        async with _coordinator(offline) as coordinator:
            return await coordinator.save_progress(record)

    try:
        outcome = asyncio.run(_run())
    except OfflineSyncError as e:
        console.print(f"[red]✗ Could not save progress: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    _print_outcome(outcome, "Progress")


@app.command(name="submit-assignment")
def submit_assignment(
    assignment_id: str = typer.Argument(..., help="Assignment ID"),
    student_id: str = typer.Argument(..., help="Student ID"),
    answers: str = typer.Argument(..., help="Answers as JSON"),
    offline: bool = typer.Option(False, "--offline", help=OFFLINE_OPTION_HELP),
) -> None:
    """Submit assignment answers, queueing them if delivery fails."""
    try:
        parsed_answers = json.loads(answers)
    except json.JSONDecodeError as e:
        console.print(f"[red]✗ Answers are not valid JSON: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    try:
        submission = AssignmentSubmission(
            assignment_id=assignment_id,
            student_id=student_id,
            answers=parsed_answers,
            submitted_at=datetime.now(timezone.utc).isoformat(),
        )
    except ValidationError as e:
        console.print(f"[red]✗ Invalid submission: {escape(e.errors()[0]['msg'])}[/red]")
        raise typer.Exit(code=1)

    async def _run():
        async with _coordinator(offline) as coordinator:
            return await coordinator.submit_assignment(submission)

    try:
        outcome = asyncio.run(_run())
    except OfflineSyncError as e:
        console.print(f"[red]✗ Could not submit assignment: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    _print_outcome(outcome, "Submission")


@app.command(name="cache-content")
def cache_content(
    file: str = typer.Argument(..., help="JSON file with a list of content items"),
) -> None:
    """Prefetch content for offline use."""
    file_path = Path(file).expanduser()
    if not file_path.exists():
        console.print(f"[red]✗ File not found: {file_path}[/red]")
        raise typer.Exit(code=1)

    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
        items = [ContentItem.model_validate(item) for item in raw]
    except (json.JSONDecodeError, TypeError, ValidationError) as e:
        console.print(f"[red]✗ Invalid content file: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    async def _run():
        async with _coordinator(offline=True) as coordinator:
            await coordinator.cache_content(items)

    try:
        asyncio.run(_run())
    except OfflineSyncError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Cached {len(items)} content items[/green]")


@app.command()
def content(
    category: str | None = typer.Option(None, "--category", "-c", help="Category ID"),
) -> None:
    """List cached content."""
    config = load_app_config().sync
    store = OfflineStore(Path(config.offline_db_path))

    try:
        if category:
            items = asyncio.run(store.get_content_by_category(category))
        else:
            items = asyncio.run(store.get_offline_content())
    except OfflineSyncError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if not items:
        console.print("[dim]No cached content[/dim]")
        return

    for item in items:
        console.print(f"  {item.id} [dim]({item.category_id})[/dim]")


@app.command()
def progress(
    student_id: str = typer.Argument(..., help="Student ID"),
) -> None:
    """List cached progress for a student."""
    config = load_app_config().sync
    store = OfflineStore(Path(config.offline_db_path))

    try:
        records = asyncio.run(store.get_stored_progress(student_id))
    except OfflineSyncError as e:
        console.print(f"[red]✗ {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    if not records:
        console.print(f"[dim]No cached progress for {student_id}[/dim]")
        return

    for record in records:
        console.print(
            f"  {record.content_item_id}: {record.progress_percentage}%"
            + (f" [dim](score {record.score})[/dim]" if record.score is not None else "")
        )


def main() -> None:
    app()
