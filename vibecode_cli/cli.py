"""Typer-based CLI for vibe-code dependency analysis and change application."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config
from .config_manager import init_config, load_config, load_llm_config, toggle_debug
from .diff_engine import DiffEngine
from .graph_builder import GraphBuilder
from .graph_export import export_json, export_selection, load_selection
from .llm import LLMClient
from .models import DependencyGraph, PendingChange
from .prompt_export import export_files_for_llm
from .scanner import format_file_size, scan_repository
from .suggestions import (
    SuggestionFormatError,
    load_applied_changes,
    load_suggestions,
    parse_suggestions,
    save_suggestions,
)

console = Console()

app = typer.Typer(
    help="📊 vibe-code: file dependency graphs and LLM-assisted refactoring.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

ROOT_OPTION = typer.Option(
    Path("."), "--root", "-r", exists=True, file_okay=False, help="Repository root."
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"vibe-code v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """vibe-code: dependency visualization data and reviewed code edits."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str) -> None:
    console.print(f"[red]❌ {message}[/red]")
    raise typer.Exit(code=1)


def _resolve_input(root: Path, path: Path, label: str) -> Path:
    full = path if path.is_absolute() else root / path
    if not full.exists():
        _fail(f"{label} not found: {full}")
    return full


def _build(root: Path) -> Tuple[DependencyGraph, GraphBuilder]:
    scan_config = load_config(root)
    if scan_config.debug_mode:
        logging.getLogger().setLevel(logging.DEBUG)

    records = scan_repository(root, scan_config)
    builder = GraphBuilder(root, scan_config)
    graph = builder.build(records)
    for file_path, error in builder.errors.items():
        console.print(f"[yellow]⚠ Could not analyze {file_path}: {error}[/yellow]")
    return graph, builder


# ------------------------------------------------------------------
# Configuration
# ------------------------------------------------------------------

@app.command("init")
def init(root: Path = ROOT_OPTION):
    """Create .vibe-code/config.toml with default settings."""
    root = root.resolve()
    path = init_config(root)
    typer.echo(f"Created {path.relative_to(root)}")


@app.command("debug")
def debug(root: Path = ROOT_OPTION):
    """Toggle debug mode on or off."""
    enabled = toggle_debug(root.resolve())
    typer.echo(f"Debug mode is now {'ON' if enabled else 'OFF'}")


# ------------------------------------------------------------------
# Analysis
# ------------------------------------------------------------------

@app.command("graph")
def graph(
    output: Path = typer.Argument(Path(config.GRAPH_FILE), help="Output JSON file."),
    root: Path = ROOT_OPTION,
):
    """Scan the repository and write the dependency graph as JSON."""
    root = root.resolve()
    dependency_graph, _ = _build(root)
    out = output if output.is_absolute() else root / output
    export_json(dependency_graph, out)

    typer.echo(f"Found {len(dependency_graph.nodes)} files to analyze")
    typer.echo(f"Files: {len(dependency_graph.nodes)} | Dependencies: {len(dependency_graph.links)}")
    typer.echo(f"Wrote dependency graph to {out}")


@app.command("stats")
def stats(root: Path = ROOT_OPTION):
    """Show file and dependency statistics for the repository."""
    root = root.resolve()
    dependency_graph, _ = _build(root)
    meta = dependency_graph.metadata

    console.print(f"\n[bold cyan]Repository Statistics for: {root.name}[/bold cyan]\n")

    files = Table(title="File Statistics", show_header=True)
    files.add_column("Metric")
    files.add_column("Value", justify="right")
    files.add_row("Total Files", str(meta.total_files))
    if meta.average_file_size:
        files.add_row("Average File Size", format_file_size(meta.average_file_size))
    if meta.average_line_count:
        files.add_row("Average Line Count", str(round(meta.average_line_count)))
    files.add_row("Total Dependencies", str(meta.total_imports))
    files.add_row("Average Dependencies per File", f"{meta.average_imports_per_file:.2f}")
    console.print(files)

    for title, counts in (("Files by Type", meta.files_by_type), ("Files by Directory", meta.files_by_directory)):
        table = Table(title=title, show_header=False)
        for key, count in sorted(counts.items(), key=lambda item: item[1], reverse=True):
            table.add_row(key, str(count))
        console.print(table)

    for title, ranked in (("Most Imported Files", meta.most_imported), ("Files with Most Dependencies", meta.most_importing)):
        table = Table(title=title, show_header=False)
        for i, item in enumerate(ranked, start=1):
            table.add_row(f"{i}.", item.file, str(item.count))
        console.print(table)


# ------------------------------------------------------------------
# LLM workflow
# ------------------------------------------------------------------

@app.command("select")
def select(
    file_ids: List[int] = typer.Argument(..., help="Node ids from the dependency graph."),
    output: Path = typer.Option(Path(config.SELECTION_FILE), "--output", "-o", help="Selection JSON file."),
    root: Path = ROOT_OPTION,
):
    """Write a selection file for the given node ids."""
    root = root.resolve()
    dependency_graph, _ = _build(root)
    out = output if output.is_absolute() else root / output
    export_selection(dependency_graph, file_ids, root, out)
    typer.echo(f"Exported selection to {out}")


@app.command("export")
def export(
    selection: Path = typer.Option(Path(config.SELECTION_FILE), "--selection", "-s", help="Selection JSON file."),
    output: Path = typer.Option(Path(config.PROMPT_FILE), "--output", "-o", help="Prompt file to write."),
    root: Path = ROOT_OPTION,
):
    """Export selected files as an LLM prompt."""
    root = root.resolve()
    selection_path = _resolve_input(root, selection, "Selection file")
    file_ids = load_selection(selection_path)

    dependency_graph, _ = _build(root)
    out = output if output.is_absolute() else root / output
    prompt = export_files_for_llm(dependency_graph, file_ids, root, out)
    if prompt is None:
        _fail("No valid files selected for export.")
    typer.echo(f"✅ Prompt exported to {out}")


@app.command("process")
def process(
    prompt: Path = typer.Option(Path(config.PROMPT_FILE), "--prompt", "-p", help="Prompt file."),
    output: Path = typer.Option(Path(config.SUGGESTIONS_FILE), "--output", "-o", help="Suggestions JSON to write."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model name."),
    api: Optional[str] = typer.Option(None, "--api", "-a", help="LLM provider: openai, anthropic, generic, mock."),
    root: Path = ROOT_OPTION,
):
    """Send a prompt to the LLM and save the parsed suggestions."""
    root = root.resolve()
    prompt_text = _resolve_input(root, prompt, "Prompt file").read_text(encoding="utf-8")

    llm_config = load_llm_config(root)
    client = LLMClient(
        model=model or llm_config.get("model"),
        provider=api or llm_config.get("provider"),
        api_key=llm_config.get("api_key") or None,
        endpoint=llm_config.get("endpoint") or None,
        response_field=llm_config.get("response_field", ""),
        openai_endpoint=llm_config.get("openai_endpoint") or None,
    )
    typer.echo(f"Sending to {client.provider_name}@{client.model}...")
    response = client.generate(prompt_text)
    if response is None:
        _fail(f"LLM provider '{client.provider_name}' returned no response.")

    suggestions = parse_suggestions(response)
    out = output if output.is_absolute() else root / output
    save_suggestions(suggestions, out)

    if suggestions.is_empty:
        console.print(f"[yellow]⚠ {suggestions.summary}[/yellow]")
    typer.echo(f"✅ Saved {suggestions.num_changes} suggested change(s) to {out}")


@app.command("apply")
def apply(
    changes: Path = typer.Option(Path(config.APPLIED_CHANGES_FILE), "--changes", "-c", help="Applied-changes JSON."),
    suggestions_file: Optional[Path] = typer.Option(
        None, "--suggestions", "-s", help="Apply every change of a suggestions file instead."
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the diff without writing files."),
    backup: bool = typer.Option(False, "--backup", help="Back up files before modifying them."),
    root: Path = ROOT_OPTION,
):
    """Apply accepted changes to the codebase."""
    root = root.resolve()
    try:
        if suggestions_file is not None:
            pending: List[PendingChange] = load_suggestions(
                _resolve_input(root, suggestions_file, "Suggestions file")
            ).flatten()
        else:
            pending = load_applied_changes(_resolve_input(root, changes, "Changes file"))
    except (json.JSONDecodeError, SuggestionFormatError) as exc:
        _fail(f"Invalid changes file: {exc}")

    engine = DiffEngine(root)
    if dry_run:
        typer.echo(engine.preview_changes(pending))

    try:
        result = engine.apply_changes(pending, backup=backup, dry_run=dry_run)
    except OSError as exc:
        _fail(f"Could not create backup: {exc}")

    verb = "Would apply" if dry_run else "Applied"
    typer.echo(f"✅ {verb} changes to {len(result.files_changed)} files:")
    for file_path in result.files_changed:
        typer.echo(f"  - {file_path}")
    for file_path, error in result.errors.items():
        console.print(f"[red]  ✗ {file_path}: {error}[/red]")
    if result.backup_id:
        typer.echo(f"💾 Backup created: {result.backup_id}")
        typer.echo(f"   Rollback with: vibe rollback {result.backup_id}")


@app.command("rollback")
def rollback(
    backup_id: str = typer.Argument(..., help="Backup ID to restore."),
    root: Path = ROOT_OPTION,
):
    """Restore files from a backup made by 'vibe apply --backup'."""
    engine = DiffEngine(root.resolve())
    if not engine.rollback(backup_id):
        _fail(f"Failed to rollback - backup not found: {backup_id}")
    typer.echo("✅ Successfully rolled back changes")


@app.command("backups")
def backups(root: Path = ROOT_OPTION):
    """List available backups, newest first."""
    entries = DiffEngine(root.resolve()).list_backups()
    if not entries:
        typer.echo("No backups found.")
        raise typer.Exit(code=0)
    for entry in entries:
        typer.echo(f"{entry['backup_id']}  {entry['timestamp']}  ({len(entry['files'])} files)")


if __name__ == "__main__":
    app()
