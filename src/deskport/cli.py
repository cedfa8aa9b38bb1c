"""
Deskport CLI - Move desktop message history into a mobile backup database.
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from deskport.logging_config import setup_logging

app = typer.Typer(
    name="deskport",
    help="Deskport - Migrate desktop conversation history into a mobile database",
    no_args_is_help=True,
)

console = Console()


def _init_logging() -> None:
    # Fall back to console logging if file logging is not permitted
    try:
        setup_logging(context="cli")
    except PermissionError:
        import logging

        logging.basicConfig(level=logging.INFO)


def _run_checks(
    source: Path, target: Path, ignore_wal: bool, attachments_dir: Optional[Path] = None
) -> None:
    from deskport.startup import StartupCheckError, run_all_startup_checks

    try:
        run_all_startup_checks(source, target, ignore_wal, attachments_dir)
    except StartupCheckError as e:
        console.print(str(e))
        raise typer.Exit(1)


def _summary_table(summary) -> Table:
    from deskport.migration.results import Unit

    table = Table(title="Migration Summary")
    table.add_column("Unit", style="cyan")
    table.add_column("Inserted", justify="right", style="green")
    table.add_column("Skipped", justify="right", style="yellow")
    for unit in Unit:
        table.add_row(
            unit.value, str(summary.inserted(unit)), str(summary.skipped(unit))
        )
    return table


@app.command()
def migrate(
    source: Path = typer.Argument(..., help="Decrypted desktop database (db.sqlite)"),
    target: Path = typer.Argument(..., help="Decrypted mobile backup database"),
    attachments_dir: Optional[Path] = typer.Option(
        None,
        "--attachments-dir",
        help="Desktop attachments directory (default: attachments.noindex beside SOURCE)",
    ),
    ignore_wal: bool = typer.Option(
        False, "--ignore-wal", help="Migrate even if the source has a write-ahead log"
    ),
    create_recipients: bool = typer.Option(
        False,
        "--create-recipients",
        help="Create target recipients for unknown senders instead of skipping",
    ),
    manifest: Optional[Path] = typer.Option(
        None, "--manifest", help="Write the attachment payload manifest to this file"
    ),
    fail_on_skip: bool = typer.Option(
        False, "--fail-on-skip", help="Exit with status 1 if anything was skipped"
    ),
) -> None:
    """
    Migrate all desktop conversations into matching target threads.

    Threads must already exist in the target; conversations without exactly
    one matching thread are skipped.
    """
    from deskport.config import settings
    from deskport.db.connection import (
        create_source_engine,
        create_target_engine,
        session_scope,
    )
    from deskport.migration import MigrationDriver

    _init_logging()

    ignore_wal = ignore_wal or settings.ignore_wal
    create_recipients = create_recipients or settings.create_missing_recipients
    attachments_dir = attachments_dir or settings.attachments_directory(source)
    if manifest is None and settings.payload_manifest_path:
        manifest = Path(settings.payload_manifest_path)

    console.print(f"[bold blue]Migrating:[/bold blue] {source} -> {target}")
    console.print(f"  Attachments: {attachments_dir}")
    console.print(f"  Ignore WAL: {ignore_wal}")
    console.print(f"  Create recipients: {create_recipients}")
    console.print()

    _run_checks(source, target, ignore_wal, attachments_dir)

    source_engine = create_source_engine(source)
    target_engine = create_target_engine(target)
    try:
        with session_scope(source_engine) as source_session, session_scope(
            target_engine
        ) as target_session:
            driver = MigrationDriver(
                source_session,
                target_session,
                attachments_dir=attachments_dir,
                create_missing_recipients=create_recipients,
            )
            summary = driver.run()
    finally:
        source_engine.dispose()
        target_engine.dispose()

    console.print()
    console.print(_summary_table(summary))
    console.print(f"  Simple messages: {summary.simple_messages}")
    console.print(f"  Extended messages: {summary.extended_messages}")

    if manifest is not None:
        driver.registry.write_manifest(manifest)
        console.print(f"[green]✓ Payload manifest written:[/green] {manifest}")

    if summary.has_skips:
        console.print(
            f"[yellow]⚠ {summary.total_skipped} unit(s) skipped, "
            "see the log for details[/yellow]"
        )
        if fail_on_skip:
            raise typer.Exit(1)


@app.command()
def match(
    source: Path = typer.Argument(..., help="Decrypted desktop database (db.sqlite)"),
    target: Path = typer.Argument(..., help="Decrypted mobile backup database"),
    ignore_wal: bool = typer.Option(
        False, "--ignore-wal", help="Read the source even if it has a write-ahead log"
    ),
) -> None:
    """
    Preview which desktop conversations match a target thread (no writes).
    """
    from deskport.db.connection import (
        create_source_engine,
        create_target_engine,
        session_scope,
    )
    from deskport.migration import MigrationDriver

    _init_logging()
    _run_checks(source, target, ignore_wal)

    source_engine = create_source_engine(source)
    target_engine = create_target_engine(target)
    try:
        with session_scope(source_engine) as source_session, session_scope(
            target_engine
        ) as target_session:
            matches = MigrationDriver(source_session, target_session).match_all()
    finally:
        source_engine.dispose()
        target_engine.dispose()

    table = Table(title="Conversation Matches")
    table.add_column("Conversation", style="cyan")
    table.add_column("Kind")
    table.add_column("Key")
    table.add_column("Thread", justify="right")
    table.add_column("Status")
    for conversation, result in matches:
        if result.matched:
            status = "[green]matched[/green]"
        else:
            status = f"[yellow]{result.reason}[/yellow]"
        table.add_row(
            conversation.id,
            conversation.kind.value,
            result.key or "",
            str(result.thread_id) if result.matched else "",
            status,
        )
    console.print(table)

    matched = sum(1 for _, result in matches if result.matched)
    console.print(f"  Matched: {matched} of {len(matches)} conversations")


if __name__ == "__main__":
    app()
