"""Typer-based CLI for keeping codebase-map.json in sync."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import ScannerConfig, build_config
from .config_manager import config_file_for, load_scanner_settings, save_scanner_settings
from .errors import CodemapError
from .graph_export import export_dot, export_html
from .models import RunSummary
from .orchestrator import ScanOrchestrator
from .storage import ManifestStore

logger = logging.getLogger(__name__)
console = Console()

T = TypeVar("T")

app = typer.Typer(
    help="🗺️  CodeMap CLI: keep codebase-map.json in sync with your source tree.",
    invoke_without_command=True,
    rich_markup_mode="rich",
)


def _say(message: str, style: Optional[str] = None) -> None:
    console.print(message, style=style, markup=False, highlight=False, soft_wrap=True)


def _guarded(action: Callable[[], T], what: str) -> T:
    """Run one command body; any failure ends the process with status 1."""
    try:
        return action()
    except CodemapError as exc:
        _say(f"❌ {exc}", style="bold red")
        raise typer.Exit(code=1)
    except Exception as exc:
        logger.exception("%s failed", what)
        _say(f"❌ {what} failed: {exc}", style="bold red")
        raise typer.Exit(code=1)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("codemap_cli").setLevel(logging.INFO if verbose else logging.WARNING)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"CodeMap CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    root: Optional[Path] = typer.Option(None, "--root", "-r", help="Project root (default: current directory)."),
    manifest: Optional[Path] = typer.Option(None, "--manifest", "-m", help="Codebase map JSON file."),
    src: Optional[Path] = typer.Option(None, "--src", "-s", help="Source directory to mirror."),
    backup_dir: Optional[Path] = typer.Option(None, "--backup-dir", help="Where manifest backups go."),
    report_dir: Optional[Path] = typer.Option(None, "--report-dir", help="Where dependency reports go."),
    sync_path: Optional[str] = typer.Option(
        None, "--sync-path", help="Directory pattern of the synced node, e.g. '*/src'."
    ),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML config file."),
    tests: Optional[bool] = typer.Option(None, "--tests/--no-tests", help="Discover test files."),
    dependents: Optional[bool] = typer.Option(
        None, "--dependents/--no-dependents", help="Compute dependents from reverse edges."
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log every sync decision."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Sync the codebase map with the filesystem and dependency-cruiser output.

    Without a command this runs [bold]update[/bold].
    """
    _configure_logging(verbose)

    project_root = (root or Path.cwd()).expanduser().resolve()
    settings = load_scanner_settings(config_file_for(project_root, config_file))
    ctx.obj = build_config(
        project_root,
        settings,
        {
            "manifest": manifest,
            "source_dir": src,
            "backup_dir": backup_dir,
            "report_dir": report_dir,
            "sync_path": sync_path,
            "discover_tests": tests,
            "compute_dependents": dependents,
        },
    )

    if ctx.invoked_subcommand is None:
        _update(ctx.obj)


def _print_summary(summary: RunSummary, config: ScannerConfig) -> None:
    _say(f"💾 Backup created: {summary.backup_path}")
    if summary.report_modules:
        _say(f"📊 Dependency report: {summary.report_modules} modules")
    for rel in summary.removed:
        _say(f"🗑️  Removed deleted file: {rel}")
    for rel in summary.added:
        _say(f"➕ Added new file: {rel}")
    for stats in summary.result.sync:
        sign = "+" if stats.delta > 0 else ""
        _say(f"📊 Files synced: {stats.before} → {stats.after} ({sign}{stats.delta})")
    _say(f"✅ {config.manifest_path.name} has been updated", style="green")
    _say(f"📊 Total files processed: {summary.total_files}")


def _update(config: ScannerConfig) -> None:
    _say(f"🔍 Updating {config.manifest_path}")
    summary = _guarded(lambda: ScanOrchestrator(config).update(), "Update")
    _print_summary(summary, config)


@app.command("update")
def update(ctx: typer.Context):
    """🔄 Update the codebase map from the existing dependency report."""
    _update(ctx.obj)


@app.command("freshscan")
def freshscan(ctx: typer.Context):
    """🚀 Run dependency-cruiser, then update the codebase map."""
    config: ScannerConfig = ctx.obj
    _say("🚀 Starting fresh codebase scan...")
    summary = _guarded(lambda: ScanOrchestrator(config).fresh_scan(), "Fresh scan")
    _print_summary(summary, config)
    _say("📁 Artifacts:")
    for artifact in (config.report_path, config.html_report_path, config.svg_graph_path):
        if artifact.exists():
            _say(f"   - {artifact}")


@app.command("help")
def show_help(ctx: typer.Context):
    """❓ Show this help message."""
    typer.echo(ctx.parent.get_help())


@app.command("backups")
def list_backups(ctx: typer.Context):
    """📦 List codebase map backups, newest first."""
    config: ScannerConfig = ctx.obj
    backups = ManifestStore(config.manifest_path, config.backup_dir).list_backups()
    if not backups:
        _say("No backups found")
        return
    _say(f"📦 Found {len(backups)} backup(s):")
    for backup in backups:
        _say(f"  {backup.name}  ({backup.stat().st_size / 1024:.1f}K)")


@app.command("restore")
def restore(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Backup file name, as printed by 'codemap backups'."),
):
    """⏪ Restore the codebase map from a backup."""
    config: ScannerConfig = ctx.obj
    store = ManifestStore(config.manifest_path, config.backup_dir)
    _guarded(lambda: store.restore(name), "Restore")
    _say(f"✅ Restored {config.manifest_path.name} from {name}", style="green")


@app.command("export-graph")
def export_graph(
    ctx: typer.Context,
    focus: str = typer.Argument("", help="Optional file name fragment to focus on."),
    fmt: str = typer.Option("html", "--format", "-f", help="Export format: html or dot."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output file path."),
):
    """📈 Export the codebase map's dependency graph to HTML or Graphviz DOT."""
    fmt = fmt.lower()
    if fmt not in {"html", "dot"}:
        raise typer.BadParameter("Format must be one of: html, dot")

    config: ScannerConfig = ctx.obj
    manifest = _guarded(ManifestStore(config.manifest_path, config.backup_dir).load, "Export")

    if output is None:
        output = config.report_dir / f"codebase-map-graph.{fmt}"
    output.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "html":
        export_html(manifest, output, focus=focus)
    else:
        export_dot(manifest, output, focus=focus)

    _say(f"Exported graph to {output}")


@app.command("show-config")
def show_config(ctx: typer.Context):
    """⚙️  Show the effective configuration."""
    config: ScannerConfig = ctx.obj
    table = Table(title="CodeMap configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", overflow="fold")
    for key, value in config.as_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("init")
def init_config(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing config file."),
):
    """📝 Write the effective settings to codemap.toml in the project root."""
    config: ScannerConfig = ctx.obj
    target = config_file_for(config.project_root)
    if target.exists() and not force:
        _say(f"❌ {target} already exists (use --force to overwrite)", style="bold red")
        raise typer.Exit(code=1)

    def relative(path: Path) -> str:
        try:
            return path.relative_to(config.project_root).as_posix()
        except ValueError:
            return str(path)

    save_scanner_settings(
        target,
        {
            "manifest": relative(config.manifest_path),
            "source_dir": relative(config.source_dir),
            "backup_dir": relative(config.backup_dir),
            "report_dir": relative(config.report_dir),
            "sync_path": config.sync_path,
            "discover_tests": config.discover_tests,
            "compute_dependents": config.compute_dependents,
            "source_prefixes": list(config.source_prefixes),
            "analyzer_command": list(config.analyzer_command),
        },
    )
    _say(f"📝 Wrote {target}")


if __name__ == "__main__":
    app()
