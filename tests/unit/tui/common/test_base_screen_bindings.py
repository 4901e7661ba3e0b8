"""Contract tests for shared TUI base screen classes."""

from daylog.tui.common.base_screen import DaylogModalScreen, DaylogScreen
from daylog.tui.common.keybindings import (
    CHANGE_FOCUS_BINDING,
    COMPLETE_DAY_BINDING,
    HELP_BINDING,
    NEW_ENTRY_BINDING,
    QUIT_Q_BINDING,
    START_DAY_BINDING,
)
from daylog.tui.screens.focus.focus import FocusScreen
from daylog.tui.screens.summary.summary import DaySummaryScreen
from daylog.tui.screens.worklog.worklog import WorkLogScreen


def test_daylog_screen_includes_global_bindings() -> None:
    """DaylogScreen should expose shared global keybindings."""
    assert QUIT_Q_BINDING in DaylogScreen.BINDINGS
    assert HELP_BINDING in DaylogScreen.BINDINGS


def test_daylog_modal_screen_includes_escape_cancel() -> None:
    """DaylogModalScreen should expose modal cancel keybinding."""
    assert any(binding[0] == "escape" for binding in DaylogModalScreen.BINDINGS)


def test_screens_keep_global_bindings_and_add_their_own() -> None:
    for screen_cls, own in (
        (FocusScreen, START_DAY_BINDING),
        (WorkLogScreen, NEW_ENTRY_BINDING),
        (WorkLogScreen, CHANGE_FOCUS_BINDING),
        (DaySummaryScreen, COMPLETE_DAY_BINDING),
    ):
        assert issubclass(screen_cls, DaylogScreen)
        assert QUIT_Q_BINDING in screen_cls.BINDINGS
        assert own in screen_cls.BINDINGS
