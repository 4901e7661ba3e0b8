"""[Layer: Presentation] Typer CLI Commands."""

import uuid
from datetime import datetime, timezone
from importlib.metadata import PackageNotFoundError, version as get_package_version
from typing import TYPE_CHECKING, NoReturn, Optional, Type

import typer

from daylog.config import get_settings
from daylog.core.capture import CaptureStateError, resolve_unplanned_reason
from daylog.core.engine import DayNotStartedError, Engine
from daylog.core.summary import format_duration
from daylog.database.sqlite import StoreError
from daylog.integrations.linear import (
    LinearError,
    client_from_settings,
    normalize_linear_project,
)
from daylog.models import UNPLANNED_REASONS, IssueFilters, UnifiedProject, WorkLogItem

if TYPE_CHECKING:
    from textual.screen import Screen


def _get_version() -> str:
    """Get version from package metadata (single source of truth: pyproject.toml)."""
    try:
        return get_package_version("daylog")
    except PackageNotFoundError:
        return "0.0.0-dev"


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"daylog {_get_version()}")
        raise typer.Exit()


app = typer.Typer(
    name="daylog",
    help="Pick today's focus projects, log the work, and close the day with a summary.",
)


def _launch_tui(initial_screen: "Optional[Type[Screen]]" = None) -> None:
    # Lazy import: Textual is only needed for interactive sessions
    from daylog.tui.app import DaylogApp

    DaylogApp(initial_screen=initial_screen).run()


def _fail(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Launch TUI by default when no command is provided."""
    if ctx.invoked_subcommand is None:
        _launch_tui()


@app.command()
def tui() -> None:
    """Launch the interactive TUI."""
    _launch_tui()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
) -> None:
    """Run the HTTP API (Linear OAuth, proxies and day-plan endpoints)."""
    import uvicorn

    from daylog.web.app import create_app

    settings = get_settings()
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )


def _resolve_projects(names: list[str]) -> list[UnifiedProject]:
    """Match ids or names against Linear; unknown values become ad-hoc projects."""
    try:
        _, live, _ = client_from_settings().fetch_projects()
    except LinearError as e:
        typer.echo(f"Linear unavailable ({e}); using names as given.", err=True)
        live = []
    by_key = {}
    for project in live:
        by_key[project.id] = project
        by_key[project.name.lower()] = project
    resolved: list[UnifiedProject] = []
    for name in names:
        match = by_key.get(name) or by_key.get(name.lower())
        if match is not None:
            resolved.append(normalize_linear_project(match))
        else:
            resolved.append(UnifiedProject(id=name, name=name, source="app"))
    return resolved


@app.command()
def start(
    projects: list[str] = typer.Argument(..., help="Linear project ids or names to focus on"),
) -> None:
    """Start today's plan with the given focus projects."""
    engine = Engine()
    focused = _resolve_projects(projects)
    try:
        day_plan_id = engine.start_day(focused)
    except (StoreError, ValueError) as e:
        _fail(f"Failed to start day: {e}")
    typer.echo(f"Day plan {day_plan_id} started.")
    typer.echo("Focus: " + ", ".join(p.name for p in focused))


def _pick_project(focused: list[UnifiedProject], project: Optional[str]) -> Optional[str]:
    if project is None:
        return focused[0].id if len(focused) == 1 else None
    wanted = project.lower()
    for candidate in focused:
        if candidate.id == project or candidate.name.lower() == wanted:
            return candidate.id
    return None


@app.command()
def log(
    text: str = typer.Argument(..., help="What you worked on"),
    project: Optional[str] = typer.Option(
        None, "--project", "-p", help="Focused project id or name"
    ),
    unplanned: Optional[str] = typer.Option(
        None,
        "--unplanned",
        "-u",
        help="Log as unplanned: 'Urgent bug', 'Support request', 'Meeting' or free text",
    ),
    minutes: int = typer.Option(0, "--minutes", "-m", help="Time spent in minutes"),
) -> None:
    """Log a unit of work against today's plan."""
    description = text.strip()
    if not description:
        _fail("Nothing to log.")
    engine = Engine()
    focused = engine.focused_projects()
    if not focused:
        _fail("No day in progress. Run 'daylog start' first.")

    project_id: Optional[str] = None
    reason: Optional[str] = None
    if unplanned is not None:
        try:
            if unplanned in UNPLANNED_REASONS:
                reason = resolve_unplanned_reason(unplanned, None)
            else:
                reason = resolve_unplanned_reason("Other", unplanned)
        except CaptureStateError as e:
            _fail(str(e))
    else:
        project_id = _pick_project(focused, project)
        if project_id is None:
            names = ", ".join(p.name for p in focused)
            _fail(f"Pick a project with --project ({names}) or use --unplanned.")

    item = WorkLogItem(
        id=str(uuid.uuid4()),
        description=description,
        timestamp=datetime.now(timezone.utc),
        project_id=project_id,
        unplanned_reason=reason,
        duration_minutes=minutes if minutes > 0 else None,
    )
    try:
        engine.log_work(item, focused)
    except DayNotStartedError as e:
        _fail(str(e))
    except StoreError as e:
        _fail(f"Saved locally, sync failed: {e}")
    typer.echo(f"Logged: {description[:60]}{'...' if len(description) > 60 else ''}")


@app.command()
def summary() -> None:
    """Print today's shareable report."""
    engine = Engine()
    stats = engine.summary()
    typer.echo(engine.share_text())
    typer.echo(
        f"\n{stats.total_tasks} tasks │ {format_duration(stats.total_minutes)} │ "
        f"{stats.unplanned_count} unplanned"
    )


@app.command()
def end(
    reflection: Optional[str] = typer.Option(
        None, "--reflection", "-r", help="Final reflection to store on the plan"
    ),
) -> None:
    """Close today's plan."""
    engine = Engine()
    if engine.current_day_plan() is None:
        _fail("No day in progress.")
    try:
        engine.end_day(reflection)
    except StoreError as e:
        _fail(f"Failed to close the day: {e}")
    typer.echo("Day complete.")


@app.command()
def projects() -> None:
    """List Linear projects available for focus."""
    try:
        _, live, _ = client_from_settings().fetch_projects()
    except LinearError as e:
        _fail(str(e))
    for project in live:
        progress = f"{round(project.progress * 100)}%"
        typer.echo(f"{project.id}  {project.name}  [{project.state or '-'} {progress}]")


@app.command()
def issues(
    state: Optional[str] = typer.Option(None, "--state", help="Exact state name"),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Text filter"),
    assignee: Optional[str] = typer.Option(None, "--assignee", help="Assignee email"),
) -> None:
    """List assigned Linear issues."""
    filters = IssueFilters(state=state, query=query, assignee=assignee)
    try:
        _, found = client_from_settings().fetch_issues(filters)
    except LinearError as e:
        _fail(str(e))
    for issue in found:
        typer.echo(f"{issue.identifier}  {issue.title}  [{issue.state_name or '-'}]")


@app.command()
def version() -> None:
    """Show daylog version."""
    typer.echo(f"daylog {_get_version()}")
