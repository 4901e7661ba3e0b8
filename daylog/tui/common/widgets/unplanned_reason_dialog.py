"""Reason picker for work outside today's focused projects."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Input, OptionList, Static
from textual.widgets.option_list import Option

from daylog.models import UNPLANNED_REASONS
from daylog.tui.common.base_screen import DaylogModalScreen

OTHER_REASON = "Other"


class UnplannedReasonDialog(DaylogModalScreen[dict[str, str] | None]):
    """Pick a fixed reason; "Other" asks for free text."""

    DEFAULT_CSS = """
    UnplannedReasonDialog {
        align: center middle;
    }

    #reason-dialog {
        width: 60;
        height: auto;
        border: round $warning;
        background: $surface;
        padding: 1 2;
    }

    #reason-title {
        text-style: bold;
        margin-bottom: 1;
    }

    #reason-custom {
        display: none;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="reason-dialog"):
            yield Static("Why was this unplanned?", id="reason-title")
            yield OptionList(
                *[Option(reason, id=reason) for reason in UNPLANNED_REASONS],
                id="reason-options",
            )
            yield Input(placeholder="Describe the reason...", id="reason-custom")

    def on_mount(self) -> None:
        self.query_one("#reason-options", OptionList).focus()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_cursor_down(self) -> None:
        self.query_one("#reason-options", OptionList).action_cursor_down()

    def action_cursor_up(self) -> None:
        self.query_one("#reason-options", OptionList).action_cursor_up()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        reason = event.option.id
        if not reason:
            return
        if reason == OTHER_REASON:
            custom = self.query_one("#reason-custom", Input)
            custom.display = True
            custom.focus()
            return
        self.dismiss({"reason": reason})

    def on_input_submitted(self, event: Input.Submitted) -> None:
        custom = event.value.strip()
        if not custom:
            self.notify("Enter a reason", severity="warning", timeout=2)
            return
        self.dismiss({"reason": OTHER_REASON, "custom_reason": custom})
