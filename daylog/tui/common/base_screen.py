"""Shared base screen classes for the daylog TUI."""

from __future__ import annotations

from typing import Generic, TypeVar

from textual.screen import ModalScreen, Screen

from daylog.tui.common.keybindings import with_global_bindings, with_modal_bindings

_T = TypeVar("_T")


class DaylogScreen(Screen):
    """Base class for daylog screens with unified global bindings."""

    BINDINGS = with_global_bindings()

    def action_quit(self) -> None:
        """Quit the app from any screen."""
        self.app.exit()

    def action_go_back(self) -> None:
        """Pop this screen; leave the app from the first screen."""
        if len(self.app.screen_stack) <= 2:
            self.app.exit()
        else:
            self.app.pop_screen()

    def action_show_help(self) -> None:
        """Fallback help action when a screen does not override it."""
        self.notify("No additional help for this screen.", timeout=2)

    def action_cursor_down(self) -> None:
        """No-op cursor hook; list screens move their highlight."""
        return

    def action_cursor_up(self) -> None:
        """No-op cursor hook; list screens move their highlight."""
        return


class DaylogModalScreen(ModalScreen[_T], Generic[_T]):
    """Base class for daylog modals with unified modal bindings."""

    BINDINGS = with_modal_bindings()
