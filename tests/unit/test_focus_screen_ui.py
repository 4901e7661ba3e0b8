"""Unit tests for Focus screen project selection UI."""

from __future__ import annotations

from typing import Any

import pytest

from daylog.core.engine import Engine
from daylog.models import UnifiedProject
from daylog.tui.screens.focus.focus import FocusScreen


class _FakeStatic:
    def __init__(self) -> None:
        self.value: object = ""

    def update(self, value: object) -> None:
        self.value = value


class _FakeContainer:
    def __init__(self) -> None:
        self.display = False


class _FakeOptionList:
    def __init__(self) -> None:
        self.display = True
        self.options: list[Any] = []
        self.highlighted: int | None = None

    def clear_options(self) -> None:
        self.options = []

    def add_option(self, option: Any) -> None:
        self.options.append(option)

    def focus(self) -> None:
        return


@pytest.fixture
def widgets(monkeypatch: pytest.MonkeyPatch) -> dict[str, Any]:
    widget_map: dict[str, Any] = {
        "#focus-projects": _FakeOptionList(),
        "#focus-empty": _FakeContainer(),
        "#focus-status": _FakeStatic(),
    }
    monkeypatch.setattr(FocusScreen, "is_mounted", property(lambda self: True))
    monkeypatch.setattr(
        FocusScreen,
        "query_one",
        lambda self, selector, *_args, **_kwargs: widget_map[selector],
    )
    return widget_map


def test_toggle_keeps_selection_order(engine: Engine, projects) -> None:
    """Selected projects come back in the order they were picked."""
    screen = FocusScreen(engine, client_factory=lambda: None)
    screen._projects = projects

    screen.toggle("proj-b")
    screen.toggle("proj-a")
    assert [p.id for p in screen.selected_projects] == ["proj-b", "proj-a"]

    screen.toggle("proj-b")
    assert [p.id for p in screen.selected_projects] == ["proj-a"]


def test_project_label_marks_selection_and_progress(engine: Engine) -> None:
    screen = FocusScreen(engine, client_factory=lambda: None)
    project = UnifiedProject(id="p1", name="Alpha", state="started", progress=0.42)

    assert screen.project_label(project).startswith(" □  Alpha")
    assert "started · 42%" in screen.project_label(project)

    screen.toggle("p1")
    assert "[green]■[/]" in screen.project_label(project)


def test_focus_ui_lists_projects(widgets, engine: Engine, projects) -> None:
    screen = FocusScreen(engine, client_factory=lambda: None)
    screen._projects = projects
    screen.toggle("proj-a")
    screen._update_ui()

    options = widgets["#focus-projects"]
    assert [o.id for o in options.options] == ["proj-a", "proj-b"]
    assert options.highlighted == 0
    assert widgets["#focus-empty"].display is False
    assert widgets["#focus-status"].value == "2 projects │ 1 selected"


def test_focus_ui_empty_state(widgets, engine: Engine) -> None:
    screen = FocusScreen(engine, client_factory=lambda: None)
    screen._update_ui()

    assert widgets["#focus-projects"].display is False
    assert widgets["#focus-empty"].display is True


def test_start_day_requires_selection(monkeypatch: pytest.MonkeyPatch, engine: Engine) -> None:
    screen = FocusScreen(engine, client_factory=lambda: None)
    notes: list[str] = []
    monkeypatch.setattr(screen, "notify", lambda message, **_kwargs: notes.append(message))

    screen.action_start_day()

    assert notes == ["Select at least one project"]
    assert engine.current_day_plan() is None
