"""Focus screen: choose the Linear projects to work on today."""

import asyncio
from typing import Callable, Optional

from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Footer, Header, OptionList, Static
from textual.widgets.option_list import Option

from daylog.core.engine import Engine
from daylog.database.sqlite import StoreError
from daylog.integrations.linear import (
    LinearClient,
    LinearError,
    client_from_settings,
    normalize_linear_project,
)
from daylog.models import UnifiedProject
from daylog.tui.common.base_screen import DaylogScreen
from daylog.tui.common.keybindings import (
    REFRESH_BINDING,
    START_DAY_BINDING,
    TOGGLE_PROJECT_BINDING,
    with_global_bindings,
)


class FocusScreen(DaylogScreen):
    """Project selection for the day.

    Layout:
    - Header: title + connection status
    - Center: project list with selection marks
    - Footer: Toggle, Start day, Refresh
    """

    BINDINGS = with_global_bindings(
        TOGGLE_PROJECT_BINDING,
        START_DAY_BINDING,
        REFRESH_BINDING,
    )

    DEFAULT_CSS = """
    #focus-header {
        height: auto;
        padding: 1 2;
    }

    #focus-title {
        text-style: bold;
    }

    #focus-status {
        color: $text-muted;
    }

    #focus-projects {
        height: 1fr;
        margin: 0 2;
    }

    #focus-empty {
        display: none;
        align: center middle;
    }

    #focus-help {
        height: auto;
        padding: 0 2;
        color: $text-muted;
    }
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        client_factory: Optional[Callable[[], LinearClient]] = None,
        changing_focus: bool = False,
    ) -> None:
        super().__init__()
        self._changing_focus = changing_focus
        self._engine = engine or Engine()
        self._client_factory = client_factory or client_from_settings
        self._projects: list[UnifiedProject] = []
        self._selected: list[str] = []
        self._status = "Loading projects…"

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="focus-header"):
            yield Static("🎯 What are you focusing on today?", id="focus-title")
            yield Static("", id="focus-status")
        yield OptionList(id="focus-projects")
        with Vertical(id="focus-empty"):
            yield Static("No Linear projects found", id="focus-empty-text")
            yield Static(
                "Set DAYLOG_LINEAR_API_KEY or connect Linear from the web settings page",
                id="focus-empty-hint",
            )
        with Container(id="focus-help"):
            yield Static(
                "j/k: Navigate │ Space/Enter: Toggle │ Ctrl+S: Start day │ r: Refresh",
                id="focus-help-text",
            )
        yield Footer()

    def on_mount(self) -> None:
        self._selected = [p.id for p in self._engine.focused_projects()]
        self.run_worker(self._load_projects_async(), exclusive=True, group="projects")

    def _fetch_projects(self) -> list[UnifiedProject]:
        _, projects, _ = self._client_factory().fetch_projects()
        return [normalize_linear_project(p) for p in projects]

    async def _load_projects_async(self) -> None:
        try:
            self._projects = await asyncio.to_thread(self._fetch_projects)
            self._status = f"{len(self._projects)} projects │ {len(self._selected)} selected"
        except LinearError as e:
            self._projects = self._engine.focused_projects()
            self._status = f"[red]{e}[/]"
            self.notify(f"Could not load Linear projects: {e}", severity="error", timeout=4)
        self._update_ui()

    @property
    def selected_projects(self) -> list[UnifiedProject]:
        """Selected projects in selection order."""
        by_id = {p.id: p for p in self._projects}
        return [by_id[pid] for pid in self._selected if pid in by_id]

    def project_label(self, project: UnifiedProject) -> str:
        mark = "[green]■[/]" if project.id in self._selected else "□"
        extra = []
        if project.state:
            extra.append(project.state)
        if project.progress is not None:
            extra.append(f"{round(project.progress * 100)}%")
        suffix = f"  [dim]{' · '.join(extra)}[/]" if extra else ""
        return f" {mark}  {project.name}{suffix}"

    def _update_ui(self) -> None:
        if not self.is_mounted:
            return
        options = self.query_one("#focus-projects", OptionList)
        empty = self.query_one("#focus-empty", Vertical)
        self.query_one("#focus-status", Static).update(self._status)

        highlighted = options.highlighted
        options.clear_options()
        if not self._projects:
            options.display = False
            empty.display = True
            return
        options.display = True
        empty.display = False
        for project in self._projects:
            options.add_option(Option(self.project_label(project), id=project.id))
        if highlighted is not None and highlighted < len(self._projects):
            options.highlighted = highlighted
        else:
            options.highlighted = 0
        options.focus()

    def toggle(self, project_id: str) -> None:
        if project_id in self._selected:
            self._selected.remove(project_id)
        else:
            self._selected.append(project_id)
        self._status = f"{len(self._projects)} projects │ {len(self._selected)} selected"

    def action_toggle_project(self) -> None:
        options = self.query_one("#focus-projects", OptionList)
        index = options.highlighted
        if index is None or not (0 <= index < len(self._projects)):
            return
        self.toggle(self._projects[index].id)
        self._update_ui()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option.id:
            self.toggle(event.option.id)
            self._update_ui()

    def action_cursor_down(self) -> None:
        self.query_one("#focus-projects", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#focus-projects", OptionList).action_cursor_up()

    def action_refresh(self) -> None:
        self._status = "Loading projects…"
        self.run_worker(self._load_projects_async(), exclusive=True, group="projects")

    def action_start_day(self) -> None:
        projects = self.selected_projects
        if not projects:
            self.notify("Select at least one project", severity="warning", timeout=2)
            return
        asyncio.create_task(self._start_day_async(projects))

    async def _start_day_async(self, projects: list[UnifiedProject]) -> None:
        try:
            if self._changing_focus:
                await asyncio.to_thread(self._engine.change_focus, projects)
            else:
                await asyncio.to_thread(self._engine.start_day, projects)
        except StoreError as e:
            self.notify(f"Failed to save focus: {e}", severity="error", timeout=4)
            return
        if self._changing_focus:
            self.app.pop_screen()
            return
        from daylog.tui.screens.worklog.worklog import WorkLogScreen

        self.app.switch_screen(WorkLogScreen(self._engine, self._client_factory))

    def action_show_help(self) -> None:
        self.notify(
            "Focus Help:\n"
            "[Space/Enter] Toggle project\n"
            "[Ctrl+S] Start the day with the selected projects\n"
            "[R] Reload projects from Linear",
            title="Help",
            timeout=5,
        )
