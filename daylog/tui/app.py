"""Main TUI app and lifecycle."""

from typing import Callable, Optional, Type

from textual.app import App
from textual.screen import Screen

from daylog.core.engine import Engine
from daylog.integrations.linear import LinearClient, client_from_settings
from daylog.tui.screens.focus.focus import FocusScreen
from daylog.tui.screens.worklog.worklog import WorkLogScreen


class DaylogApp(App):
    """Daily focus and work-log TUI.

    Opens on the work log when today's plan is already running, otherwise on
    the focus picker.
    """

    TITLE = "daylog"
    SUB_TITLE = "Plan the day, log the work"

    BINDINGS = []

    def __init__(
        self,
        initial_screen: Optional[Type[Screen]] = None,
        engine: Optional[Engine] = None,
        client_factory: Optional[Callable[[], LinearClient]] = None,
        **kwargs,
    ):  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self._initial_screen = initial_screen
        self.engine = engine or Engine()
        self.client_factory = client_factory or client_from_settings

    def first_screen(self) -> Screen:
        if self._initial_screen is not None:
            screen_cls = self._initial_screen
        elif self.engine.current_day_plan() is not None and self.engine.focused_projects():
            screen_cls = WorkLogScreen
        else:
            screen_cls = FocusScreen
        if screen_cls in (FocusScreen, WorkLogScreen):
            return screen_cls(self.engine, self.client_factory)
        return screen_cls(self.engine)

    def on_mount(self) -> None:
        self.push_screen(self.first_screen())

    def restart_day(self) -> None:
        """Drop every pushed screen and start over on the focus picker."""
        while len(self.screen_stack) > 1:
            self.pop_screen()
        self.push_screen(FocusScreen(self.engine, self.client_factory))
