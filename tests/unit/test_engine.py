"""Unit tests for Engine (focus, work log, summary, end of day)."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest

from daylog.core.capture import CaptureSession, CaptureStep
from daylog.core.engine import DayNotStartedError, Engine, zone_name
from daylog.core.session import MemoryStorage, SessionStore
from daylog.models import UNPLANNED_PROJECT_ID, LinearProject, UnifiedProject, WorkLogItem


def _item(
    item_id: str, description: str, project_id=None, minutes=None, reason=None, hour=13
) -> WorkLogItem:
    return WorkLogItem(
        id=item_id,
        description=description,
        timestamp=datetime(2024, 5, 14, hour, tzinfo=timezone.utc),
        project_id=project_id,
        duration_minutes=minutes,
        unplanned_reason=reason,
    )


def test_start_day_requires_projects(engine: Engine) -> None:
    with pytest.raises(ValueError):
        engine.start_day([])


def test_full_day_flow(engine: Engine, projects) -> None:
    """Focus two projects, log planned and unplanned work, end the day."""
    day_plan_id = engine.start_day(projects)

    plan = engine.current_day_plan()
    assert plan is not None and plan.id == day_plan_id
    assert plan.plan_date == "2024-05-14"
    focus = engine.session.get_focus_session()
    assert focus is not None and focus.project_ids == ["proj-a", "proj-b"]

    logged = engine.log_work(_item("w1", "Fixed @LIN-1", "proj-a", 90))
    engine.log_work(_item("w2", "Prod incident", reason="Urgent bug", minutes=30, hour=14))
    assert logged.project_source == "linear"
    assert [i.id for i in engine.work_log()] == ["w1", "w2"]
    assert [i.id for i in engine.service.get_day_plan_work_log(day_plan_id)] == ["w1", "w2"]

    stats = engine.summary()
    assert stats.total_tasks == 2
    assert stats.planned_count == 1
    assert stats.unplanned_count == 1
    assert engine.time_split().in_projects == 90

    engine.save_reflection("Draft")
    assert engine.reflection() == "Draft"
    text = engine.share_text()
    assert "• [Alpha] Fixed @LIN-1 (1h 30m)" in text
    assert "• Prod incident (Urgent bug) - 30m" in text
    assert text.endswith("Reflection:\nDraft")

    engine.end_day("Shipped the login fix")
    closed = engine.service.get_day_plan(day_plan_id)
    assert closed is not None
    assert closed.is_open is False
    assert closed.reflection == "Shipped the login fix"
    assert engine.current_day_plan() is None
    assert engine.session.get_focus_session() is None
    assert engine.work_log() == []
    assert engine.focused_projects() == []


def test_starting_again_same_day_reuses_plan(engine: Engine, projects) -> None:
    first = engine.start_day(projects)
    second = engine.start_day(projects[:1])
    assert first == second
    assert [p.project_id for p in engine.service.get_day_plan_projects(first)] == ["proj-a"]


def test_change_focus_replaces_plan_projects(engine: Engine, projects) -> None:
    day_plan_id = engine.start_day(projects[:1])
    engine.change_focus(projects[1:])
    assert [p.project_id for p in engine.service.get_day_plan_projects(day_plan_id)] == ["proj-b"]
    assert [p.name for p in engine.focused_projects()] == ["Beta"]


def test_delete_work_removes_from_cache_and_store(engine: Engine, projects) -> None:
    day_plan_id = engine.start_day(projects)
    engine.log_work(_item("w1", "One", "proj-a"))
    engine.log_work(_item("w2", "Two", "proj-b", hour=14))

    engine.delete_work("w1")
    assert [i.id for i in engine.work_log()] == ["w2"]
    assert [i.id for i in engine.service.get_day_plan_work_log(day_plan_id)] == ["w2"]


def test_restart_recovers_plan_and_work_log(
    temp_db_path: Path, engine: Engine, projects, clock
) -> None:
    day_plan_id = engine.start_day(projects)
    engine.log_work(_item("w1", "Before restart", "proj-a", 15))

    restarted = Engine(
        db_path=temp_db_path, session=SessionStore(MemoryStorage(), clock=clock), clock=clock
    )
    assert [p.name for p in restarted.focused_projects()] == ["Alpha", "Beta"]
    plan = restarted.current_day_plan()
    assert plan is not None and plan.id == day_plan_id
    assert [i.id for i in restarted.work_log()] == ["w1"]
    # the store result refills the cache
    assert [i.id for i in restarted.session.get_work_log()] == ["w1"]


def test_focused_projects_merge_live_metadata(engine: Engine, projects) -> None:
    engine.start_day(projects)
    live = [LinearProject(id="proj-a", name="Alpha v2", state="started", progress=0.5)]
    unified = engine.focused_projects(live)
    assert [(p.id, p.name) for p in unified] == [("proj-a", "Alpha v2"), ("proj-b", "Beta")]
    assert unified[0].progress == 0.5


def test_day_expires_at_local_midnight(engine: Engine, projects, clock) -> None:
    first = engine.start_day(projects)
    engine.log_work(_item("w1", "Yesterday's work", "proj-a"))

    clock.advance(hours=14, minutes=1)
    assert engine.current_day_plan() is None
    assert engine.focused_projects() == []
    assert engine.work_log() == []

    second = engine.start_day(projects[:1])
    assert second != first
    plan = engine.current_day_plan()
    assert plan is not None and plan.plan_date == "2024-05-15"
    assert engine.work_log() == []
    old = engine.service.get_day_plan(first)
    assert old is not None and old.is_open is False


def test_first_entry_after_midnight_opens_todays_plan(engine: Engine, projects, clock) -> None:
    """Work logged past midnight lands in a new plan, not only in the cache."""
    first = engine.start_day(projects)
    clock.advance(hours=14, minutes=1)

    logged = engine.log_work(_item("late", "Still debugging", "proj-a", hour=3))
    assert logged.project_source == "linear"
    assert [i.id for i in engine.session.get_work_log()] == ["late"]

    second = engine.start_day(projects)
    assert second != first
    plan = engine.current_day_plan()
    assert plan is not None and plan.plan_date == "2024-05-15"
    assert [i.id for i in engine.service.get_day_plan_work_log(second)] == ["late"]
    assert [i.id for i in engine.work_log()] == ["late"]
    assert engine.service.get_day_plan_work_log(first) == []


def test_log_work_uses_the_callers_focus_once_the_session_expired(
    temp_db_path: Path, engine: Engine, projects, clock
) -> None:
    engine.start_day(projects)
    clock.advance(hours=14, minutes=1)
    restarted = Engine(
        db_path=temp_db_path, session=SessionStore(MemoryStorage(), clock=clock), clock=clock
    )

    restarted.log_work(_item("late", "Night shift", "proj-b"), focus=projects)

    plan = restarted.current_day_plan()
    assert plan is not None and plan.plan_date == "2024-05-15"
    assert [i.id for i in restarted.service.get_day_plan_work_log(plan.id)] == ["late"]
    assert [p.id for p in restarted.focused_projects()] == ["proj-a", "proj-b"]


def test_log_work_without_focus_raises_and_keeps_the_entry(engine: Engine, projects) -> None:
    with pytest.raises(DayNotStartedError):
        engine.log_work(_item("w1", "Inbox zero", reason="Other"))
    assert [i.id for i in engine.session.get_work_log()] == ["w1"]
    assert engine.current_day_plan() is None

    day_plan_id = engine.start_day(projects)
    assert [i.id for i in engine.service.get_day_plan_work_log(day_plan_id)] == ["w1"]
    assert [i.id for i in engine.work_log()] == ["w1"]


def test_new_plan_does_not_take_entries_of_a_closed_plan(engine: Engine, projects) -> None:
    first = engine.start_day(projects)
    engine.log_work(_item("w1", "Morning", "proj-a"))
    engine.service.close_day_plan(first)
    engine.session.clear_day_plan_session()

    second = engine.start_day(projects)
    assert second != first
    assert engine.service.get_day_plan_work_log(second) == []
    assert [i.id for i in engine.service.get_day_plan_work_log(first)] == ["w1"]
    assert engine.work_log() == []


def test_capture_to_summary_for_the_sole_focused_project(engine: Engine, clock) -> None:
    alpha = UnifiedProject(id="p1", name="Alpha")
    engine.start_day([alpha])
    capture = CaptureSession([], [alpha], clock=clock)

    capture.update_text("Reviewed PR")
    assert capture.submit_description() is CaptureStep.ACCEPT
    engine.log_work(capture.confirm())

    stats = engine.summary()
    assert [(b.project_id, b.project_name, b.count) for b in stats.project_breakdown] == [
        ("p1", "Alpha", 1)
    ]
    assert stats.unplanned_count == 0


def test_capture_to_store_for_unplanned_meeting(engine: Engine, projects, clock) -> None:
    day_plan_id = engine.start_day(projects)
    capture = CaptureSession([], projects, clock=clock)

    capture.update_text("Sprint planning")
    assert capture.submit_description() is CaptureStep.PROVIDE_PROJECT
    capture.choose_project(UNPLANNED_PROJECT_ID, reason="Meeting")
    engine.log_work(capture.confirm())

    [stored] = engine.service.get_day_plan_work_log(day_plan_id)
    assert stored.project_id is None
    assert stored.unplanned_reason == "Meeting"
    stats = engine.summary()
    assert stats.unplanned_count == 1
    assert stats.project_breakdown == []


def test_plan_row_keeps_the_zone_key(temp_db_path: Path, projects) -> None:
    def clock() -> datetime:
        return datetime(2024, 5, 14, 10, tzinfo=ZoneInfo("America/Sao_Paulo"))

    engine = Engine(
        db_path=temp_db_path, session=SessionStore(MemoryStorage(), clock=clock), clock=clock
    )
    day_plan_id = engine.start_day(projects)
    plan = engine.service.get_day_plan(day_plan_id)
    assert plan is not None and plan.timezone == "America/Sao_Paulo"


def test_zone_name_prefers_configured_then_key_then_abbreviation() -> None:
    fixed = datetime(2024, 5, 14, 10, tzinfo=timezone(timedelta(hours=-3)))
    assert zone_name(fixed, "Europe/Lisbon") == "Europe/Lisbon"
    assert zone_name(fixed.astimezone(ZoneInfo("Asia/Tokyo"))) == "Asia/Tokyo"
    assert zone_name(fixed) == "UTC-03:00"


def test_end_day_without_plan_clears_session(engine: Engine) -> None:
    engine.session.save_focus_session(["proj-a"])
    engine.end_day()
    assert engine.session.get_focus_session() is None
