"""Work log screen: today's focus, logged entries and quick capture."""

import asyncio
import logging
from typing import Callable, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Footer, Header, OptionList, Static
from textual.widgets.option_list import Option

from daylog.core.engine import DayNotStartedError, Engine
from daylog.core.summary import format_duration
from daylog.database.sqlite import StoreError
from daylog.integrations.linear import (
    LinearClient,
    LinearError,
    client_from_settings,
    rank_issues_for_focus,
)
from daylog.models import LinearIssue, UnifiedProject, WorkLogItem
from daylog.tui.common.base_screen import DaylogScreen
from daylog.tui.common.keybindings import (
    CHANGE_FOCUS_BINDING,
    DELETE_ENTRY_BINDING,
    NEW_ENTRY_BINDING,
    REFRESH_BINDING,
    SUMMARY_BINDING,
    with_global_bindings,
)
from daylog.tui.common.render import work_log_row
from daylog.tui.common.widgets.capture_dialog import CaptureDialog

logger = logging.getLogger(__name__)


class WorkLogScreen(DaylogScreen):
    """Today's work log. Default screen once the day has started."""

    BINDINGS = with_global_bindings(
        NEW_ENTRY_BINDING,
        DELETE_ENTRY_BINDING,
        CHANGE_FOCUS_BINDING,
        SUMMARY_BINDING,
        REFRESH_BINDING,
    )

    DEFAULT_CSS = """
    #worklog-header {
        height: auto;
        padding: 1 2;
    }

    #worklog-title {
        text-style: bold;
    }

    #worklog-focus, #worklog-clock, #worklog-split {
        color: $text-muted;
    }

    #worklog-list {
        height: 1fr;
        margin: 0 2;
    }

    #worklog-empty {
        display: none;
        align: center middle;
    }

    #worklog-help {
        height: auto;
        padding: 0 2;
        color: $text-muted;
    }
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        client_factory: Optional[Callable[[], LinearClient]] = None,
    ) -> None:
        super().__init__()
        self._engine = engine or Engine()
        self._client_factory = client_factory or client_from_settings
        self._items: list[WorkLogItem] = []
        self._projects: list[UnifiedProject] = []
        self._issues: list[LinearIssue] = []

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="worklog-header"):
            yield Static("📝 Today's work", id="worklog-title")
            yield Static("", id="worklog-focus")
            yield Static("", id="worklog-clock")
            yield Static("", id="worklog-split")
        yield OptionList(id="worklog-list")
        with Vertical(id="worklog-empty"):
            yield Static("Nothing logged yet", id="worklog-empty-text")
            yield Static("Press n to log what you worked on", id="worklog-empty-hint")
        with Container(id="worklog-help"):
            yield Static(
                "n: Log work │ d: Delete │ f: Change focus │ s: Summary │ r: Refresh │ q: Quit",
                id="worklog-help-text",
            )
        yield Footer()

    def on_mount(self) -> None:
        asyncio.create_task(self._refresh_async())
        self._load_issues()
        self.set_interval(60, self._update_clock)

    def on_screen_resume(self) -> None:
        """Reload after returning from focus or summary screens."""
        if self.is_mounted:
            asyncio.create_task(self._refresh_async())
            self._load_issues()

    def _load_issues(self) -> None:
        # Exclusive: a newer load cancels a stale one.
        self.run_worker(self._load_issues_async(), exclusive=True, group="issues")

    def _fetch_issues(self, projects: list[UnifiedProject]) -> list[LinearIssue]:
        _, issues = self._client_factory().fetch_issues()
        return rank_issues_for_focus(issues, projects)

    async def _load_issues_async(self) -> None:
        projects = await asyncio.to_thread(self._engine.focused_projects)
        if not projects:
            self._issues = []
            return
        try:
            self._issues = await asyncio.to_thread(self._fetch_issues, projects)
        except LinearError as e:
            logger.info("Issue suggestions unavailable: %s", e)
            self._issues = []

    async def _refresh_async(self) -> None:
        try:
            self._projects = await asyncio.to_thread(self._engine.focused_projects)
            self._items = await asyncio.to_thread(self._engine.work_log)
        except StoreError as e:
            self.notify(f"Failed to load work log: {e}", severity="error", timeout=4)
        if self.is_mounted:
            self._update_ui()

    def project_for(self, item: WorkLogItem) -> Optional[UnifiedProject]:
        if item.is_unplanned:
            return None
        return next((p for p in self._projects if p.id == item.project_id), None)

    def _update_clock(self) -> None:
        if not self.is_mounted:
            return
        remaining = self._engine.session.format_time_until_midnight()
        self.query_one("#worklog-clock", Static).update(f"Day resets in {remaining}")

    def _update_ui(self) -> None:
        if not self.is_mounted:
            return
        options = self.query_one("#worklog-list", OptionList)
        empty = self.query_one("#worklog-empty", Vertical)
        focus = self.query_one("#worklog-focus", Static)
        split_widget = self.query_one("#worklog-split", Static)

        if self._projects:
            focus.update("Focus: " + " · ".join(p.name for p in self._projects))
        else:
            focus.update("[yellow]No focused projects. Press f to choose.[/]")

        split = self._engine.time_split()
        if split.total:
            split_widget.update(
                f"Total {format_duration(split.total)} │ "
                f"In projects {format_duration(split.in_projects)} │ "
                f"Other {format_duration(split.in_other)}"
            )
        else:
            split_widget.update("")
        self._update_clock()

        options.clear_options()
        if not self._items:
            options.display = False
            empty.display = True
            return
        options.display = True
        empty.display = False
        for item in reversed(self._items):
            options.add_option(Option(self.row(item), id=item.id))
        options.highlighted = 0
        options.focus()

    def row(self, item: WorkLogItem) -> Text:
        return work_log_row(item, self.project_for(item))

    def action_cursor_down(self) -> None:
        self.query_one("#worklog-list", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#worklog-list", OptionList).action_cursor_up()

    def action_new_entry(self) -> None:
        if not self._projects:
            self.notify("Choose today's focus first (f)", severity="warning", timeout=2)
            return
        self.app.push_screen(
            CaptureDialog(self._issues, self._projects), self._on_captured
        )

    def _on_captured(self, item: Optional[WorkLogItem]) -> None:
        if item is None:
            return
        asyncio.create_task(self._log_async(item))

    async def _log_async(self, item: WorkLogItem) -> None:
        try:
            await asyncio.to_thread(self._engine.log_work, item, list(self._projects))
            self.notify(f"Logged: {item.description[:40]}", timeout=2)
        except DayNotStartedError as e:
            self.notify(f"Saved locally. {e}", severity="warning", timeout=4)
        except StoreError as e:
            self.notify(f"Saved locally, sync failed: {e}", severity="error", timeout=4)
        await self._refresh_async()

    def action_delete_entry(self) -> None:
        options = self.query_one("#worklog-list", OptionList)
        index = options.highlighted
        if index is None:
            return
        item_id = options.get_option_at_index(index).id
        if item_id:
            asyncio.create_task(self._delete_async(item_id))

    async def _delete_async(self, item_id: str) -> None:
        try:
            await asyncio.to_thread(self._engine.delete_work, item_id)
        except StoreError as e:
            self.notify(f"Removed locally, sync failed: {e}", severity="error", timeout=4)
        await self._refresh_async()

    def action_change_focus(self) -> None:
        from daylog.tui.screens.focus.focus import FocusScreen

        self.app.push_screen(
            FocusScreen(self._engine, self._client_factory, changing_focus=True)
        )

    def action_show_summary(self) -> None:
        from daylog.tui.screens.summary.summary import DaySummaryScreen

        self.app.push_screen(DaySummaryScreen(self._engine))

    def action_refresh(self) -> None:
        asyncio.create_task(self._refresh_async())
        self._load_issues()
        self.notify("Refreshed", timeout=2)

    def action_show_help(self) -> None:
        self.notify(
            "Work Log Help:\n"
            "[N] Log work (type @ to mention issues or projects)\n"
            "[D] Delete highlighted entry\n"
            "[F] Change today's focus\n"
            "[S] Day summary and reflection",
            title="Help",
            timeout=5,
        )
