"""Main CLI entry point - subcommand architecture."""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import typer
from rich.console import Console
from rich.table import Table

from askai.cache.prewarming import prewarm
from askai.cache.response import ResponseCache
from askai.config import Settings, get_pid_path, get_settings
from askai.context import (
    ProjectScanner,
    ScanResult,
    get_context_with_project,
    normalize_project_type,
)
from askai.context.project import UNKNOWN
from askai.daemon.client import DaemonClient, is_daemon_enabled, start_daemon_process
from askai.daemon.protocol import Error, Pong, Success
from askai.daemon.session import SessionPool
from askai.errors import AskAiError, DangerousCommandError, TransportError
from askai.executor.batch import BatchExecutor, TaskResult
from askai.executor.planner import ExecutionPlan, Task
from askai.executor.runner import CommandRunner
from askai.executor.validator import CommandValidator, DangerLevel
from askai.providers.factory import create_provider
from askai.ui.output import UIManager

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="askai - turn natural language into shell commands.",
)
cache_app = typer.Typer(no_args_is_help=True, help="Inspect and manage the response cache.")
daemon_app = typer.Typer(no_args_is_help=True, help="Control the background daemon.")
app.add_typer(cache_app, name="cache")
app.add_typer(daemon_app, name="daemon")

ui = UIManager()
console = Console(stderr=True)


# ============================================================================
# Shared setup
# ============================================================================

@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_settings() -> Settings:
    """Load settings or exit with a readable message."""
    try:
        return get_settings()
    except AskAiError as e:
        ui.error(f"Error loading configuration: {e}")
        raise typer.Exit(1)


async def _generate_local(
    requests: Sequence[Tuple[str, str]],
    provider_name: str,
    settings: Settings,
    use_cache: bool,
) -> List[Tuple[str, bool]]:
    """
    Generate one command per (prompt, context) pair in this process.

    Returns (command, from_cache) pairs in request order.
    """
    if not use_cache:
        provider = create_provider(provider_name, settings)
        await provider.check_installation()
        return [(await provider.generate_command(p, c), False) for p, c in requests]

    with ResponseCache.from_config(settings) as cache:
        pool = SessionPool(cache, settings)
        return [await pool.generate_command(p, c, provider_name) for p, c in requests]


def _generate_via_daemon(prompt: str, context: str, provider_name: str) -> Optional[str]:
    """
    Ask a running daemon for the command.

    Returns None when no daemon is reachable so the caller can fall back
    to local generation. A daemon-side error exits the CLI.
    """
    client = DaemonClient()
    if not client.is_daemon_running():
        return None

    try:
        response = asyncio.run(client.generate_command(prompt, context, provider_name))
    except TransportError as e:
        logger.debug(f"Daemon unavailable, falling back to local mode: {e}")
        return None
    except AskAiError as e:
        ui.warning(f"Unreadable daemon response, falling back to local mode: {e}")
        return None

    if isinstance(response, Success):
        if response.from_cache:
            ui.dim("[cache hit]")
        return response.command
    if isinstance(response, Error):
        ui.error(f"Error generating command: {response.message}")
        raise typer.Exit(1)

    ui.warning(f"Unexpected daemon response: {response}")
    return None


# ============================================================================
# Commands
# ============================================================================

@app.command("run")
def run_command(
    prompt: List[str] = typer.Argument(..., help="What you want to do, in plain words"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider to use"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the command without running it"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache"),
    no_daemon: bool = typer.Option(False, "--no-daemon", help="Do not use the background daemon"),
) -> None:
    """
    Generate a shell command and execute it.

    Example: askai run "find all python files modified today"
    """
    settings = _load_settings()
    prompt_text = " ".join(prompt)
    provider_name = (provider or settings.default_provider).lower()
    context = get_context_with_project()

    command = None
    if not no_daemon and not no_cache and is_daemon_enabled():
        command = _generate_via_daemon(prompt_text, context, provider_name)

    if command is None:
        try:
            [(command, from_cache)] = asyncio.run(
                _generate_local([(prompt_text, context)], provider_name, settings, not no_cache)
            )
        except AskAiError as e:
            ui.error(f"Error generating command: {e}")
            raise typer.Exit(1)
        if from_cache:
            ui.dim("[cache hit]")

    try:
        level = CommandValidator().validate(command)
    except DangerousCommandError as e:
        ui.error(f"Refusing to run {command!r}: {e}")
        raise typer.Exit(1)

    ui.assessed_command(f"→ {command}", level)

    if dry_run:
        typer.echo(command)
        return

    if yes and level is DangerLevel.HIGH:
        ui.warning("High-risk command: confirmation is required even with --yes.")
        yes = False

    if not yes and not typer.confirm("Execute this command?", default=False, err=True):
        ui.warning("Cancelled by user.")
        raise typer.Exit(1)

    try:
        output = asyncio.run(CommandRunner().execute(command))
    except AskAiError as e:
        ui.error(str(e))
        raise typer.Exit(1)

    typer.echo(output, nl=False)


def _scan_projects(root: Path, project_type: Optional[str], max_depth: int) -> ScanResult:
    """Scan root and keep projects that have project_type among their types."""
    result = ProjectScanner(max_depth=max_depth).scan(root)
    if project_type:
        wanted = normalize_project_type(project_type)
        if wanted == UNKNOWN:
            ui.error(f"Unknown project type: {project_type}")
            raise typer.Exit(1)
        result.projects = [p for p in result.projects if p.has_type(wanted)]
    return result


def _report_task(result: TaskResult) -> None:
    if result.success:
        ui.success(f"  [ok] {result.description} ({result.duration_ms:.0f}ms)")
    else:
        ui.error(f"  [fail] {result.description} ({result.duration_ms:.0f}ms)")


@app.command()
def batch(
    prompt: List[str] = typer.Argument(..., help="What to do in every project"),
    project_type: Optional[str] = typer.Option(
        None, "--project-type", "-t", help="Only projects of this type (rust, nodejs, python, ...)"
    ),
    max_parallel: Optional[int] = typer.Option(
        None, "--max-parallel", min=1, help="Tasks run at once (default from config)"
    ),
    max_depth: int = typer.Option(3, "--max-depth", min=0, help="Scan depth (0 = unlimited)"),
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Provider to use"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show the commands without running them"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the response cache"),
) -> None:
    """
    Run the same request in every project below the current directory.

    Example: askai batch -t rust "run the tests"
    """
    settings = _load_settings()
    prompt_text = " ".join(prompt)
    provider_name = (provider or settings.default_provider).lower()

    projects = _scan_projects(Path.cwd(), project_type, max_depth).projects
    if not projects:
        ui.error("No projects found.")
        return

    ui.info(f"Found {len(projects)} projects.")
    for idx, project in enumerate(projects, 1):
        ui.dim(f"  {idx}. {project.root_dir} ({project.primary_type})")

    ui.info(f"Generating commands using {provider_name} provider...")
    requests = [(prompt_text, project.to_context_string()) for project in projects]
    try:
        generated = asyncio.run(_generate_local(requests, provider_name, settings, not no_cache))
    except AskAiError as e:
        ui.error(f"Error generating command: {e}")
        raise typer.Exit(1)

    validator = CommandValidator()
    levels = []
    refused = []
    plan = ExecutionPlan()
    for idx, (project, (command, from_cache)) in enumerate(zip(projects, generated)):
        suffix = " [cache hit]" if from_cache else ""
        try:
            level = validator.validate(command)
        except DangerousCommandError as e:
            ui.error(f"  {project.name} - {command} ({e})")
            refused.append(project.name)
            continue
        levels.append(level)
        ui.assessed_command(f"  {project.name} - {command}{suffix}", level)
        plan.add_task(
            Task(idx, command)
            .with_dir(str(project.root_dir))
            .with_description(f"{project.name}: {prompt_text}")
        )

    if refused:
        ui.error(f"Refusing to run the batch: dangerous command for {', '.join(refused)}.")
        raise typer.Exit(1)

    if yes and DangerLevel.HIGH in levels and not dry_run:
        ui.warning("High-risk commands: confirmation is required even with --yes.")
        yes = False

    if not yes and not dry_run:
        ui.info(f"Execute {plan.task_count()} tasks (parallel: {'yes' if plan.can_parallelize else 'no'})?")
        if not typer.confirm("Proceed?", default=False, err=True):
            ui.warning("Cancelled by user.")
            raise typer.Exit(1)

    executor = BatchExecutor(
        max_parallel=max_parallel or settings.max_parallel_jobs,
        dry_run=dry_run,
        on_task_done=_report_task,
    )
    result = asyncio.run(executor.execute(plan))
    ui.batch_summary(result)

    if not result.all_succeeded():
        raise typer.Exit(1)


@app.command()
def scan(
    path: Path = typer.Argument(Path("."), help="Directory to scan"),
    project_type: Optional[str] = typer.Option(None, "--project-type", "-t", help="Filter by type"),
    max_depth: int = typer.Option(3, "--max-depth", min=0, help="Scan depth (0 = unlimited)"),
) -> None:
    """List the projects batch mode would target."""
    result = _scan_projects(path, project_type, max_depth)

    table = Table(title=f"Projects ({result.total_scanned} directories scanned)")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Type", style="yellow", no_wrap=True)
    table.add_column("Branch")
    table.add_column("Path", style="dim")
    for project in result.projects:
        table.add_row(
            project.name, project.primary_type, project.git_branch or "-", str(project.root_dir)
        )
    console.print(table)


# ============================================================================
# cache subcommands
# ============================================================================

@cache_app.command("stats")
def cache_stats() -> None:
    """Show cache size, hit count and limits."""
    settings = _load_settings()
    cache = ResponseCache.from_config(settings)
    stats = cache.stats()

    table = Table(title="Response cache", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Entries", f"{stats.total_entries} / {stats.max_entries}")
    table.add_row("Total hits", str(stats.total_hits))
    table.add_row("TTL", f"{stats.ttl_seconds // 86400} days")
    table.add_row("File", str(cache.cache_file))
    console.print(table)


@cache_app.command("clear")
def cache_clear() -> None:
    """Delete every cached command."""
    settings = _load_settings()
    cache = ResponseCache.from_config(settings)
    cache.clear()
    ui.success("Cache cleared.")
    if DaemonClient().is_daemon_running():
        ui.warning("The daemon keeps its own copy; restart it to drop that too.")


@cache_app.command("prewarm")
def cache_prewarm() -> None:
    """Seed the cache with common commands for the current directory."""
    settings = _load_settings()
    with ResponseCache.from_config(settings) as cache:
        count = prewarm(cache, get_context_with_project())
    ui.success(f"Added {count} commands to cache.")


# ============================================================================
# daemon subcommands
# ============================================================================

@daemon_app.command("start")
def daemon_start(
    foreground: bool = typer.Option(False, "--foreground", help="Run in this terminal"),
    idle_timeout: float = typer.Option(
        0.0, "--idle-timeout", min=0.0, help="Stop after this many idle seconds (0 = never)"
    ),
) -> None:
    """Start the daemon (background by default)."""
    if not is_daemon_enabled():
        ui.error("Daemon mode is disabled (ASKAI_NO_DAEMON or unsupported platform).")
        raise typer.Exit(1)

    client = DaemonClient()
    if client.is_daemon_running():
        try:
            if isinstance(asyncio.run(client.ping()), Pong):
                ui.warning("Daemon is already running.")
                return
        except AskAiError:
            logger.debug("Stale daemon socket found, starting a new daemon")

    if foreground:
        from askai.daemon.server import run_daemon

        ui.info("Starting daemon server in the foreground (Ctrl+C to stop)...")
        run_daemon(idle_timeout=idle_timeout)
        return

    ui.info("Starting daemon server...")
    if start_daemon_process(idle_timeout=idle_timeout):
        ui.success(f"Daemon started (pid file: {get_pid_path()}).")
    else:
        ui.error("Daemon did not come up; see the daemon log for details.")
        raise typer.Exit(1)


@daemon_app.command("stop")
def daemon_stop() -> None:
    """Ask the running daemon to shut down."""
    client = DaemonClient()
    if not client.is_daemon_running():
        ui.warning("Daemon server is not running.")
        return

    try:
        asyncio.run(client.shutdown())
    except AskAiError as e:
        ui.error(f"Failed to stop daemon server: {e}")
        raise typer.Exit(1)
    ui.success("Daemon server stopped.")


@daemon_app.command("status")
def daemon_status() -> None:
    """Report uptime and loaded providers of the running daemon."""
    client = DaemonClient()
    if not client.is_daemon_running():
        ui.error("Daemon server is not running.")
        ui.plain("To start it: askai daemon start")
        raise typer.Exit(1)

    try:
        response = asyncio.run(client.ping())
    except AskAiError as e:
        ui.error(f"Failed to check daemon status: {e}")
        raise typer.Exit(1)

    if not isinstance(response, Pong):
        ui.warning(f"Unexpected response: {response}")
        raise typer.Exit(1)

    ui.success("Daemon server is running.")
    ui.plain(f"  Uptime: {response.uptime_seconds} seconds")
    ui.plain(f"  Loaded providers: {response.session_count}")
    ui.plain(f"  PID: {_read_pid()}")


def _read_pid() -> str:
    try:
        return get_pid_path().read_text().strip()
    except OSError:
        return "unknown"


def run() -> None:
    """Entry point for console script mapping."""
    app()


if __name__ == "__main__":
    run()
