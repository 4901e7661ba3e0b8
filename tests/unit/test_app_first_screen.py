"""Unit tests for the TUI's opening screen choice."""

from daylog.core.engine import Engine
from daylog.tui.app import DaylogApp
from daylog.tui.screens.focus.focus import FocusScreen
from daylog.tui.screens.worklog.worklog import WorkLogScreen


def _no_client() -> None:
    raise AssertionError("Linear should not be contacted")


def test_opens_on_focus_picker_before_the_day_starts(engine: Engine) -> None:
    app = DaylogApp(engine=engine, client_factory=_no_client)
    assert isinstance(app.first_screen(), FocusScreen)


def test_opens_on_work_log_once_the_day_is_running(engine: Engine, projects) -> None:
    engine.start_day(projects)
    app = DaylogApp(engine=engine, client_factory=_no_client)
    assert isinstance(app.first_screen(), WorkLogScreen)
