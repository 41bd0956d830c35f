"""Main CLI entry point for snapvcs."""

import logging
import shutil
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from snapvcs.constants import (
    DEFAULT_IGNORE_CONTENT,
    EXIT_DATA_ERROR,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    IGNORE_FILE,
    SNAPVCS_DIR,
)
from snapvcs.core import (
    CommitResult,
    PathStatus,
    Repository,
    SnapshotEngine,
    StagingManager,
    default_author,
)
from snapvcs.errors import (
    AlreadyInitialized,
    CorruptManifest,
    CorruptState,
    HistoryError,
    SnapVCSError,
    UninitializedRepository,
)

console = Console()
app = typer.Typer(
    name="snapvcs",
    help="Minimal local version control: track files and snapshot their changes",
    add_completion=False,
)


def _configure_logging(verbose: bool) -> None:
    """Configure logging for a CLI run."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


@app.callback()
def cli(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log debug output to stderr",
    ),
) -> None:
    """Minimal local version control: track files and snapshot their changes."""
    _configure_logging(verbose)


def _open_repository() -> Repository:
    """Open the repository in the current directory or exit with a hint."""
    workspace_root = Path.cwd()
    try:
        return Repository.open(workspace_root)
    except UninitializedRepository:
        console.print(
            "[bold red]Error:[/bold red] Not a snapvcs repository",
            style="red",
        )
        console.print(
            f"  No {SNAPVCS_DIR}/ directory found in {workspace_root}",
            style="dim",
        )
        console.print(
            "\nRun [bold]snapvcs init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)


def _fail(e: Exception) -> NoReturn:
    """Print an error and exit with the code matching its kind."""
    console.print(f"[bold red]Error:[/bold red] {e}", style="red")
    if isinstance(e, (CorruptManifest, CorruptState)):
        raise typer.Exit(EXIT_DATA_ERROR)
    if isinstance(e, SnapVCSError):
        raise typer.Exit(EXIT_USER_ERROR)
    raise typer.Exit(EXIT_SYSTEM_ERROR)


@app.command()
def version() -> None:
    """Show snapvcs version."""
    from snapvcs import __version__
    typer.echo(f"snapvcs version {__version__}")


@app.command()
def init(
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a snapvcs repository in the current directory."""
    workspace_root = Path.cwd()
    repo_dir = workspace_root / SNAPVCS_DIR

    try:
        Repository.initialize(workspace_root)
    except AlreadyInitialized:
        console.print(
            f"[bold red]Error:[/bold red] snapvcs repository already exists in {workspace_root}",
            style="red",
        )
        console.print(f"  {SNAPVCS_DIR}/ directory found at: {repo_dir}", style="dim")
        raise typer.Exit(EXIT_USER_ERROR)
    except (OSError, SnapVCSError) as e:
        console.print(
            f"[bold red]Error:[/bold red] Failed to initialize repository: {e}",
            style="red",
        )
        # Clean up partial initialization
        if repo_dir.exists():
            shutil.rmtree(repo_dir)
        raise typer.Exit(EXIT_SYSTEM_ERROR)

    ignore_path = workspace_root / IGNORE_FILE
    if not ignore_path.exists():
        ignore_path.write_text(DEFAULT_IGNORE_CONTENT, encoding="utf-8")

    if not quiet:
        message = f"""[bold green]✓[/bold green] Initialized snapvcs repository

[dim]Repository root:[/dim] {workspace_root}
[dim]Storage location:[/dim] {repo_dir}
[dim]Default author:[/dim] {default_author()}

[bold]Next steps:[/bold]
  1. Track files: [cyan]snapvcs track notes.txt src/[/cyan]
  2. Take a snapshot: [cyan]snapvcs snapshot -m "First snapshot"[/cyan]
  3. Edit files, then snapshot again to capture only what changed
"""
        console.print(Panel(message, border_style="green", title="snapvcs Initialized"))


@app.command()
def track(
    paths: List[str] = typer.Argument(..., help="Files or directories to track"),
    force: bool = typer.Option(
        False,
        "--force",
        help=f"Override {IGNORE_FILE} rules",
    ),
) -> None:
    """Track files so every snapshot checks them for changes."""
    repo = _open_repository()

    try:
        result = StagingManager(repo).track([Path(p) for p in paths], force=force)
    except (OSError, SnapVCSError) as e:
        _fail(e)

    if result.added:
        console.print("[bold green]Tracking:[/bold green]")
        for path_str in result.added:
            console.print(f"  [green]+[/green] {path_str}")

    if result.updated:
        console.print("[bold yellow]Updated:[/bold yellow]")
        for path_str in result.updated:
            console.print(f"  [yellow]*[/yellow] {path_str}")

    if result.unchanged:
        console.print("[dim]Already tracked:[/dim]")
        for path_str in result.unchanged:
            console.print(f"  [dim]=[/dim] {path_str}")

    if result.ignored:
        console.print("[bold dim]Ignored:[/bold dim]")
        for path_str in result.ignored:
            console.print(f"  [dim]-[/dim] {path_str}  [dim]({IGNORE_FILE})[/dim]")

    if result.errors:
        console.print("[bold red]Errors:[/bold red]")
        for failure in result.errors:
            console.print(f"  [red]x[/red] {failure}")

    total = len(result.added) + len(result.updated)
    if total > 0:
        console.print(f"\n[bold green]>[/bold green] {total} file(s) recorded for the next snapshot")
    elif result.ignored and not result.unchanged:
        console.print("\n[yellow]No files tracked. All files were ignored.[/yellow]")
        console.print("  Use [bold]--force[/bold] to override ignore rules")

    if result.errors:
        raise typer.Exit(EXIT_USER_ERROR)


@app.command()
def snapshot(
    message: str = typer.Option(
        "",
        "--message",
        "-m",
        help="Snapshot message",
    ),
    author: Optional[str] = typer.Option(
        None,
        "--author",
        help="Override default author (format: name@host)",
    ),
) -> None:
    """Copy every tracked file that changed into a new numbered commit."""
    repo = _open_repository()

    try:
        result = SnapshotEngine(repo).snapshot(message=message, author=author)
    except HistoryError as e:
        if e.result is not None:
            _print_commit_result(e.result)
        console.print(f"\n[bold red]Error:[/bold red] {e}", style="red")
        console.print(
            "  The commit was written but is missing from the snapshot log",
            style="dim",
        )
        raise typer.Exit(EXIT_SYSTEM_ERROR)
    except (OSError, SnapVCSError) as e:
        _fail(e)

    _print_commit_result(result)
    if result.errors:
        raise typer.Exit(EXIT_USER_ERROR)


def _print_commit_result(result: CommitResult) -> None:
    if result.created:
        console.print(
            f"[bold green]✓[/bold green] Created commit [bold]{result.commit_index}[/bold] "
            f"({len(result.changed)} file(s) changed)"
        )
        for path_str in result.changed:
            console.print(f"  [green]+[/green] {path_str}")
    else:
        console.print("[yellow]Nothing to commit[/yellow] (no tracked file changed)")

    if result.errors:
        console.print("\n[bold red]Errors:[/bold red]")
        for failure in result.errors:
            console.print(f"  [red]x[/red] {failure}")


_STATUS_MARKS = {
    PathStatus.NEW: ("A", "green", "new"),
    PathStatus.MODIFIED: ("M", "yellow", "modified"),
    PathStatus.MISSING: ("D", "red", "missing"),
    PathStatus.UNCHANGED: (" ", "dim", "unchanged"),
}


@app.command()
def status(
    short: bool = typer.Option(
        False,
        "--short",
        help="Show short format output",
    ),
) -> None:
    """Show which tracked files changed since the last snapshot."""
    repo = _open_repository()

    try:
        statuses = SnapshotEngine(repo).status()
    except (OSError, SnapVCSError) as e:
        _fail(e)

    if short:
        for item in statuses:
            if item.state != PathStatus.UNCHANGED:
                mark = _STATUS_MARKS[item.state][0]
                console.print(f"{mark}  {item.path}", highlight=False)
        return

    latest = repo.latest_commit()
    if latest is not None:
        console.print(f"[bold]Latest commit:[/bold] {latest}")
    else:
        console.print("[bold]Latest commit:[/bold] [dim](no commits yet)[/dim]")
    console.print()

    if not statuses:
        console.print("[yellow]No files tracked[/yellow]")
        console.print("  Use [bold]snapvcs track <file>[/bold] to track files\n")
        return

    changed = [item for item in statuses if item.state != PathStatus.UNCHANGED]
    if not changed:
        console.print(f"[dim]Nothing to commit ({len(statuses)} tracked file(s) unchanged)[/dim]")
        return

    console.print("[bold]Changes for the next snapshot:[/bold]")
    console.print("  [dim](use \"snapvcs snapshot -m <message>\" to capture them)[/dim]\n")
    for item in changed:
        _, color, label = _STATUS_MARKS[item.state]
        console.print(f"  [{color}]{label:>9}:[/{color}] {item.path}")
    console.print()


@app.command()
def log(
    max_count: Optional[int] = typer.Option(
        None,
        "--max-count",
        "-n",
        help="Limit number of snapshots to show",
    ),
    oneline: bool = typer.Option(
        False,
        "--oneline",
        help="Show each snapshot on a single line",
    ),
) -> None:
    """Show snapshot history."""
    repo = _open_repository()
    history = repo.history()
    if history is None:
        console.print("[dim]No history index for this repository[/dim]")
        return

    try:
        with history:
            history.init_schema()
            snapshots = history.get_history(limit=max_count)
            files = {
                item["commit_index"]: history.get_files(item["commit_index"])
                for item in snapshots
            }
    except SnapVCSError as e:
        _fail(e)

    if not snapshots:
        console.print("[dim]No commits yet[/dim]")
        return

    for i, item in enumerate(snapshots):
        commit_index = item["commit_index"]
        message = item["message"] or "(no message)"

        if oneline:
            console.print(
                f"[yellow]{commit_index}[/yellow] {message.splitlines()[0]} "
                f"[dim]({item['file_count']} file(s))[/dim]"
            )
            continue

        console.print(f"[bold yellow]commit {commit_index}[/bold yellow]")
        console.print(f"[bold]Author:[/bold] {item['author']}")
        console.print(f"[bold]Date:[/bold]   {item['timestamp']}")
        console.print()
        for line in message.splitlines():
            console.print(f"    {line}")
        console.print()
        for file_info in files[commit_index]:
            console.print(f"    [green]+[/green] {file_info['path']}  [dim]{file_info['fingerprint'][:12]}[/dim]")

        if i < len(snapshots) - 1:
            console.print()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
