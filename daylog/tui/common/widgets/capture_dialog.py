"""Capture dialog: describe the work, pick its project, accept."""

from __future__ import annotations

from typing import Optional

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from daylog.core.capture import CaptureSession, CaptureStateError, CaptureStep
from daylog.core.mentions import MentionOption
from daylog.models import (
    UNPLANNED_PROJECT_ID,
    LinearIssue,
    UnifiedProject,
    WorkLogItem,
)
from daylog.tui.common.base_screen import DaylogModalScreen
from daylog.tui.common.keybindings import with_modal_bindings
from daylog.tui.common.widgets.project_picker_dialog import ProjectPickerDialog
from daylog.tui.common.widgets.unplanned_reason_dialog import UnplannedReasonDialog


def mention_option_label(option: MentionOption) -> str:
    if option.kind == "issue" and option.issue is not None:
        return f"[cyan]{option.issue.identifier}[/]  {option.issue.title}"
    return f"[green]◆[/] {option.label}"


class CaptureDialog(DaylogModalScreen[Optional[WorkLogItem]]):
    """Modal that drives a CaptureSession and returns the committed item."""

    BINDINGS = with_modal_bindings(
        ("ctrl+s", "start_now", "Start now"),
        ("ctrl+l", "log_it", "Just log it"),
    )

    DEFAULT_CSS = """
    CaptureDialog {
        align: center middle;
    }

    #capture-dialog {
        width: 80;
        height: auto;
        max-height: 30;
        border: round $primary;
        background: $surface;
        padding: 1 2;
    }

    #capture-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #capture-mentions {
        display: none;
        max-height: 10;
    }

    #capture-accept {
        display: none;
        height: auto;
        margin-top: 1;
    }

    #capture-duration Input {
        width: 12;
    }

    #capture-hint {
        color: $text-muted;
        margin-top: 1;
    }
    """

    def __init__(
        self,
        issues: list[LinearIssue],
        focused_projects: list[UnifiedProject],
        session: Optional[CaptureSession] = None,
    ) -> None:
        super().__init__()
        self._projects = list(focused_projects)
        self._session = session or CaptureSession(issues, focused_projects)

    @property
    def session(self) -> CaptureSession:
        return self._session

    def compose(self) -> ComposeResult:
        with Vertical(id="capture-dialog"):
            yield Static("Log work", id="capture-title")
            yield Input(
                placeholder="What did you work on? Type @ to mention an issue or project",
                id="capture-description",
            )
            yield OptionList(id="capture-mentions")
            with Vertical(id="capture-accept"):
                yield Static("", id="capture-accept-summary")
                with Horizontal(id="capture-duration"):
                    yield Input(placeholder="hours", id="capture-hours", type="integer")
                    yield Input(placeholder="minutes", id="capture-minutes", type="integer")
            yield Static(
                "Enter: Next │ ↑/↓: Pick mention │ Esc: Cancel",
                id="capture-hint",
            )

    def on_mount(self) -> None:
        self.query_one("#capture-description", Input).focus()

    # ---- Description step ----
    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "capture-description":
            return
        if self._session.step is not CaptureStep.PROVIDE_DESCRIPTION:
            return
        self._session.update_text(event.value, event.input.cursor_position)
        self._render_mentions()

    def _render_mentions(self) -> None:
        mentions = self.query_one("#capture-mentions", OptionList)
        options = self._session.mention_options()
        if not self._session.dropdown_open or not options:
            mentions.display = False
            return
        mentions.clear_options()
        for index, option in enumerate(options):
            mentions.add_option(Option(mention_option_label(option), id=str(index)))
        mentions.highlighted = self._session.selected_mention_index
        mentions.display = True

    def action_cursor_down(self) -> None:
        if self._session.dropdown_open:
            self._session.move_selection(1)
            self._render_mentions()

    def action_cursor_up(self) -> None:
        if self._session.dropdown_open:
            self._session.move_selection(-1)
            self._render_mentions()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if event.option_list.id != "capture-mentions" or event.option.id is None:
            return
        options = self._session.mention_options()
        index = int(event.option.id)
        if 0 <= index < len(options):
            self._insert_mention(options[index])

    def _insert_mention(self, option: Optional[MentionOption] = None) -> None:
        if not self._session.pick_mention(option):
            self._session.close_dropdown()
        description = self.query_one("#capture-description", Input)
        description.value = self._session.description
        description.cursor_position = len(self._session.description)
        description.focus()
        self._render_mentions()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "capture-description":
            self._submit_description()
        elif event.input.id in ("capture-hours", "capture-minutes"):
            self._confirm(start_now=False)

    def _submit_description(self) -> None:
        if self._session.step is not CaptureStep.PROVIDE_DESCRIPTION:
            return
        if self._session.dropdown_open:
            self._insert_mention()
            return
        step = self._session.submit_description()
        if step is CaptureStep.PROVIDE_PROJECT:
            self.app.push_screen(
                ProjectPickerDialog(self._projects, self._session.description),
                self._on_project_picked,
            )
        elif step is CaptureStep.ACCEPT:
            self._show_accept()

    # ---- Project step ----
    def _on_project_picked(self, result: dict[str, str] | None) -> None:
        if not result:
            self._cancel()
            return
        project_id = result["project_id"]
        if project_id == UNPLANNED_PROJECT_ID:
            self.app.push_screen(UnplannedReasonDialog(), self._on_reason_picked)
            return
        self._session.choose_project(project_id)
        self._show_accept()

    def _on_reason_picked(self, result: dict[str, str] | None) -> None:
        if not result:
            self._cancel()
            return
        try:
            self._session.choose_project(
                UNPLANNED_PROJECT_ID,
                reason=result.get("reason"),
                custom_reason=result.get("custom_reason"),
            )
        except CaptureStateError as e:
            self.notify(str(e), severity="error", timeout=3)
            self._cancel()
            return
        self._show_accept()

    # ---- Accept step ----
    def accept_summary(self) -> str:
        project_id = self._session.selected_project_id
        if project_id == UNPLANNED_PROJECT_ID:
            reason = self._session.unplanned_reason
            target = f"[yellow]Unplanned{f' ({reason})' if reason else ''}[/]"
        else:
            name = next((p.name for p in self._projects if p.id == project_id), project_id)
            target = f"[green]{name}[/]"
        return f"{target}\n{self._session.description.strip()}"

    def _show_accept(self) -> None:
        if not self.is_mounted:
            return
        self.query_one("#capture-mentions", OptionList).display = False
        self.query_one("#capture-description", Input).disabled = True
        self.query_one("#capture-accept-summary", Static).update(self.accept_summary())
        self.query_one("#capture-accept", Vertical).display = True
        self.query_one("#capture-hint", Static).update(
            "Optional duration │ Enter / Ctrl+L: Just log it │ Ctrl+S: Start now"
        )
        self.query_one("#capture-hours", Input).focus()

    def action_start_now(self) -> None:
        self._confirm(start_now=True)

    def action_log_it(self) -> None:
        self._confirm(start_now=False)

    def _confirm(self, start_now: bool) -> None:
        if self._session.step is not CaptureStep.ACCEPT:
            return
        hours = self.query_one("#capture-hours", Input).value
        minutes = self.query_one("#capture-minutes", Input).value
        self._session.set_duration(hours, minutes)
        self.dismiss(self._session.confirm(start_now=start_now))

    # ---- Escape ----
    def action_cancel(self) -> None:
        """Close the dropdown first; otherwise discard the draft. Ignored on accept."""
        if self._session.dropdown_open:
            self._session.close_dropdown()
            self._render_mentions()
            return
        if self._session.step is CaptureStep.ACCEPT:
            return
        self._cancel()

    def _cancel(self) -> None:
        if not self._session.closed:
            self._session.cancel()
        self.dismiss(None)
