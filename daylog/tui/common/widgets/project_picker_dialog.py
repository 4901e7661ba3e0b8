"""Project picker for a work-log entry: one of today's focused projects or unplanned."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from daylog.models import UNPLANNED_PROJECT_ID, UnifiedProject
from daylog.tui.common.base_screen import DaylogModalScreen

UNPLANNED_LABEL = "Unplanned work"


class ProjectPickerDialog(DaylogModalScreen[dict[str, str] | None]):
    """Modal for picking which project a captured entry belongs to."""

    DEFAULT_CSS = """
    ProjectPickerDialog {
        align: center middle;
    }

    #project-picker-dialog {
        width: 72;
        height: auto;
        max-height: 24;
        border: round $primary;
        background: $surface;
        padding: 1 2;
    }

    #project-picker-title {
        content-align: center middle;
        margin-bottom: 1;
        text-style: bold;
    }

    #project-picker-search {
        margin-bottom: 1;
    }
    """

    def __init__(self, projects: list[UnifiedProject], description: str = "") -> None:
        super().__init__()
        self._projects = projects
        self._visible = projects
        self._description = description

    def compose(self) -> ComposeResult:
        with Vertical(id="project-picker-dialog"):
            yield Static("Which project is this for?", id="project-picker-title")
            if self._description:
                yield Static(f"[dim]{self._description}[/]", id="project-picker-description")
            yield Input(placeholder="Search projects...", id="project-picker-search")
            yield OptionList(id="project-picker-options")

    def on_mount(self) -> None:
        self._render_options()
        self.query_one("#project-picker-search", Input).focus()

    def _render_options(self) -> None:
        """Focused projects first, then the unplanned choice."""
        options = self.query_one("#project-picker-options", OptionList)
        options.clear_options()
        for project in self._visible:
            options.add_option(Option(project.name, id=project.id))
        options.add_option(Option(f"[yellow]{UNPLANNED_LABEL}[/]", id=UNPLANNED_PROJECT_ID))
        options.highlighted = 0

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_cursor_down(self) -> None:
        self.query_one("#project-picker-options", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#project-picker-options", OptionList).action_cursor_up()

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter projects by name as the query changes."""
        if event.input.id != "project-picker-search":
            return
        query = event.value.strip().lower()
        if not query:
            self._visible = self._projects
        else:
            self._visible = [p for p in self._projects if query in p.name.lower()]
        self._render_options()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in the search box picks the highlighted option."""
        options = self.query_one("#project-picker-options", OptionList)
        index = options.highlighted
        if index is None:
            return
        option = options.get_option_at_index(index)
        if option.id:
            self.dismiss({"project_id": option.id})

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        project_id = event.option.id
        if not project_id:
            self.dismiss(None)
            return
        self.dismiss({"project_id": project_id})
