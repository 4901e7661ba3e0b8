"""Shared keybinding contract for daylog screens and modals."""

from __future__ import annotations

from typing import TypeAlias

Binding: TypeAlias = tuple[str, str, str]

QUIT_Q_BINDING: Binding = ("q", "quit", "Quit")
BACK_ESCAPE_BINDING: Binding = ("escape", "go_back", "Back")
HELP_BINDING: Binding = ("?", "show_help", "Help")
NAV_DOWN_BINDING: Binding = ("j", "cursor_down", "Down")
NAV_UP_BINDING: Binding = ("k", "cursor_up", "Up")

MODAL_CANCEL_ESCAPE_BINDING: Binding = ("escape", "cancel", "Cancel")
MODAL_NAV_DOWN_BINDING: Binding = ("down", "cursor_down", "Down")
MODAL_NAV_UP_BINDING: Binding = ("up", "cursor_up", "Up")


def compose_bindings(*bindings: Binding) -> list[Binding]:
    """Return keybinding tuples in order."""
    return list(bindings)


def with_global_bindings(*bindings: Binding) -> list[Binding]:
    """Prefix bindings with the global screen contract."""
    return compose_bindings(
        QUIT_Q_BINDING,
        BACK_ESCAPE_BINDING,
        NAV_DOWN_BINDING,
        NAV_UP_BINDING,
        HELP_BINDING,
        *bindings,
    )


def with_modal_bindings(*bindings: Binding) -> list[Binding]:
    """Prefix bindings with the modal contract.

    Modals hold text inputs, so navigation uses the arrow keys instead of j/k.
    """
    return compose_bindings(
        MODAL_CANCEL_ESCAPE_BINDING,
        MODAL_NAV_DOWN_BINDING,
        MODAL_NAV_UP_BINDING,
        *bindings,
    )


# Screen-specific keys
NEW_ENTRY_BINDING: Binding = ("n", "new_entry", "Log work")
DELETE_ENTRY_BINDING: Binding = ("d", "delete_entry", "Delete")
CHANGE_FOCUS_BINDING: Binding = ("f", "change_focus", "Focus")
SUMMARY_BINDING: Binding = ("s", "show_summary", "Summary")
TOGGLE_PROJECT_BINDING: Binding = ("space", "toggle_project", "Toggle")
START_DAY_BINDING: Binding = ("ctrl+s", "start_day", "Start day")
REFRESH_BINDING: Binding = ("r", "refresh", "Refresh")
COPY_SHARE_BINDING: Binding = ("ctrl+y", "copy_share", "Copy report")
COMPLETE_DAY_BINDING: Binding = ("ctrl+e", "complete_day", "Complete day")
