"""Command Line Interface for TuneVault."""

import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import click
from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from .backup import (
    BackupEngine,
    BackupError,
    FileSink,
    PartialRestoreFailure,
    SnapshotCodec,
    all_sections,
    resolve_selection,
)
from .config import TuneVaultConfig, get_config, load_config
from .stores import Database, PreferencesStore
from .util import epoch_millis_to_iso, format_duration, format_size, setup_logging

console = Console()


def setup_cli_logging(verbose: bool = False, level: str = "INFO"):
    """Setup logging for CLI."""
    setup_logging(level="DEBUG" if verbose else level)


def _get_config(ctx: click.Context) -> TuneVaultConfig:
    if ctx.obj and "config" in ctx.obj:
        return ctx.obj["config"]
    return get_config()


@contextmanager
def _open_engine(config: TuneVaultConfig) -> Iterator[BackupEngine]:
    """Open the live stores and build an engine over them."""
    database = Database(config.database_path)
    try:
        yield BackupEngine.from_stores(
            database,
            PreferencesStore(config.preferences_path),
            codec=SnapshotCodec(indent=config.backup.json_indent),
        )
    finally:
        database.close()


@contextmanager
def _progress(desc: str):
    """tqdm bar driven by the engine's progress callback."""
    with tqdm(total=1, desc=desc, unit="step") as pbar:
        def callback(message: str, current: int, total: int) -> None:
            pbar.total = max(total, 1)
            pbar.n = current
            pbar.set_postfix_str(message)
            pbar.refresh()

        yield callback


def _selection(sections: Tuple[str, ...], config: TuneVaultConfig) -> List[str]:
    chosen = list(sections) if sections else config.backup.default_sections
    unknown = [key for key in chosen if not resolve_selection([key])]
    if unknown:
        console.print(f"[yellow]Ignoring unknown section(s): {', '.join(unknown)}[/yellow]")
    return chosen


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--config", "-c", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.pass_context
def cli(ctx, verbose: bool, config: Optional[Path]):
    """TuneVault - selective backup and restore of music player app data."""
    ctx.ensure_object(dict)
    if config:
        ctx.obj["config"] = load_config(config)

    setup_cli_logging(verbose, _get_config(ctx).log_level)


@cli.command("sections")
def sections_list():
    """List the sections that can be backed up."""
    table = Table(title="Backup Sections")
    table.add_column("Key", style="cyan")
    table.add_column("Snapshot field", style="white")
    table.add_column("Description", style="white")

    for section in all_sections():
        table.add_row(section.key, section.field, section.label)

    console.print(table)


@cli.command("export")
@click.argument("destination", type=click.Path(dir_okay=False, path_type=Path))
@click.option("--section", "-s", "sections", multiple=True, help="Section key to include (repeatable)")
@click.pass_context
def export_cmd(ctx, destination: Path, sections: Tuple[str, ...]):
    """Export selected sections into a snapshot file."""
    config = _get_config(ctx)
    selection = _selection(sections, config)

    try:
        with _open_engine(config) as engine, _progress("Exporting") as callback:
            report = engine.export(selection, FileSink(destination), progress_callback=callback)
    except BackupError as e:
        console.print(f"[red]Export failed: {e}[/red]")
        sys.exit(1)

    table = Table(title="Exported Sections")
    table.add_column("Section", style="cyan")
    table.add_column("Records", style="white")
    for section, count in report.sections.items():
        table.add_row(section.label, str(count))
    console.print(table)

    console.print(
        f"[bold green]Backup written to {destination}[/bold green] "
        f"({format_size(report.size)}, {format_duration(report.duration)})"
    )


@cli.command("inspect")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def inspect_cmd(ctx, source: Path):
    """Show what a snapshot file contains."""
    config = _get_config(ctx)

    try:
        with _open_engine(config) as engine:
            plan = engine.inspect(FileSink(source))
    except BackupError as e:
        console.print(f"[red]Invalid backup: {e}[/red]")
        sys.exit(1)

    table = Table(title=f"Backup {source.name}")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("Format version", f"v{plan.format_version}")
    table.add_row("Exported at", epoch_millis_to_iso(plan.exported_at_epoch_millis))
    for section, count in plan.available.items():
        table.add_row(section.label, f"{count} record(s)")
    console.print(table)

    for warning in plan.warnings:
        console.print(f"[yellow]{warning}[/yellow]")


@cli.command("restore")
@click.argument("source", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--section", "-s", "sections", multiple=True, help="Section key to restore (repeatable)")
@click.pass_context
def restore_cmd(ctx, source: Path, sections: Tuple[str, ...]):
    """Replace selected sections with the contents of a snapshot file."""
    config = _get_config(ctx)
    selection = _selection(sections, config)

    try:
        with _open_engine(config) as engine, _progress("Restoring") as callback:
            report = engine.restore(selection, FileSink(source), progress_callback=callback)
    except PartialRestoreFailure as e:
        if e.succeeded:
            console.print(f"[yellow]Restored: {', '.join(s.label for s in e.succeeded)}[/yellow]")
        for section, error in e.failed.items():
            console.print(f"[red]Failed {section.label}: {error}[/red]")
        sys.exit(1)
    except BackupError as e:
        console.print(f"[red]Restore failed: {e}[/red]")
        sys.exit(1)

    for section, count in report.restored.items():
        console.print(f"Restored {section.label}: {count} record(s)")
    for section in report.skipped:
        console.print(f"[yellow]{section.label} not in backup, left unchanged[/yellow]")

    console.print("[bold green]Restore completed successfully![/bold green]")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
