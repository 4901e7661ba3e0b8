"""Contract tests for shared modal dialog bindings."""

from __future__ import annotations

from daylog.tui.common.base_screen import DaylogModalScreen
from daylog.tui.common.widgets import (
    CaptureDialog,
    ProjectPickerDialog,
    UnplannedReasonDialog,
)


def _keys(dialog_cls: type) -> set[str]:
    return {
        binding[0] if isinstance(binding, tuple) else binding.key
        for binding in dialog_cls.BINDINGS
    }


def test_dialogs_inherit_daylog_modal_screen() -> None:
    """Every dialog should inherit the shared modal keybinding base."""
    for dialog_cls in (CaptureDialog, ProjectPickerDialog, UnplannedReasonDialog):
        assert issubclass(dialog_cls, DaylogModalScreen)


def test_dialogs_keep_escape_cancel_binding() -> None:
    for dialog_cls in (CaptureDialog, ProjectPickerDialog, UnplannedReasonDialog):
        assert "escape" in _keys(dialog_cls)


def test_capture_dialog_accept_shortcuts() -> None:
    """Capture dialog offers both accept actions from the keyboard."""
    assert {"ctrl+s", "ctrl+l"}.issubset(_keys(CaptureDialog))
