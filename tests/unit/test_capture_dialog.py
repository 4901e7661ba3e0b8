"""Unit tests for the capture dialog's escape handling and accept summary."""

from __future__ import annotations

from typing import Any

import pytest

from daylog.core.capture import CaptureSession, CaptureStep
from daylog.core.mentions import MentionOption
from daylog.models import UNPLANNED_PROJECT_ID
from daylog.tui.common.widgets.capture_dialog import CaptureDialog, mention_option_label


class _FakeOptionList:
    def __init__(self) -> None:
        self.display = False
        self.options: list[Any] = []
        self.highlighted: int | None = None

    def clear_options(self) -> None:
        self.options = []

    def add_option(self, option: Any) -> None:
        self.options.append(option)


@pytest.fixture
def dialog(monkeypatch: pytest.MonkeyPatch, issues, projects) -> tuple[CaptureDialog, list]:
    """Dialog with a fake mention list; dismiss results are recorded."""
    mentions = _FakeOptionList()
    dismissed: list = []
    screen = CaptureDialog(issues, projects, session=CaptureSession(issues, projects))
    monkeypatch.setattr(
        screen, "query_one", lambda selector, *_args, **_kwargs: mentions
    )
    monkeypatch.setattr(screen, "dismiss", lambda result=None: dismissed.append(result))
    return screen, dismissed


def test_escape_with_dropdown_open_only_closes_dropdown(dialog) -> None:
    screen, dismissed = dialog
    screen.session.update_text("@LIN")
    screen._render_mentions()
    assert len(screen.query_one("#capture-mentions").options) == 3

    screen.action_cancel()

    assert not screen.session.dropdown_open
    assert screen.query_one("#capture-mentions").display is False
    assert dismissed == []


def test_escape_without_dropdown_discards_draft(dialog) -> None:
    screen, dismissed = dialog
    screen.session.update_text("half-written note")

    screen.action_cancel()

    assert screen.session.step is CaptureStep.CLOSED
    assert dismissed == [None]


def test_escape_is_ignored_on_accept(dialog) -> None:
    screen, dismissed = dialog
    screen.session.update_text("@be")
    screen.session.pick_mention()
    screen.session.submit_description()

    screen.action_cancel()

    assert screen.session.step is CaptureStep.ACCEPT
    assert dismissed == []


def test_accept_summary_names_target(dialog) -> None:
    screen, _ = dialog
    screen.session.update_text("Planning")
    screen.session.submit_description()
    screen.session.choose_project("proj-a")
    assert screen.accept_summary() == "[green]Alpha[/]\nPlanning"


def test_accept_summary_for_unplanned_work(dialog) -> None:
    screen, _ = dialog
    screen.session.update_text("Pager duty")
    screen.session.submit_description()
    screen.session.choose_project(UNPLANNED_PROJECT_ID, reason="Urgent bug")
    assert screen.accept_summary() == "[yellow]Unplanned (Urgent bug)[/]\nPager duty"


def test_mention_option_labels(issues, projects) -> None:
    issue_option = MentionOption(kind="issue", label="LIN-1", url="u", issue=issues[0])
    project_option = MentionOption(kind="project", label="Alpha", url="u", project=projects[0])
    assert mention_option_label(issue_option) == "[cyan]LIN-1[/]  Fix login redirect"
    assert mention_option_label(project_option) == "[green]◆[/] Alpha"
