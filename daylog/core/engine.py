"""Main workflow: Focus -> Log work -> Summarize -> Close the day."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Sequence
from zoneinfo import ZoneInfo

from daylog.config import get_settings
from daylog.core.services import DayPlanService
from daylog.core.session import JsonFileStorage, SessionStore
from daylog.core.summary import (
    DaySummaryStatistics,
    TimeSplit,
    calculate_statistics,
    generate_share_text,
    work_log_time_split,
)
from daylog.database.sqlite import DayPlanDB
from daylog.integrations.linear import unify_focused_projects
from daylog.models import DayPlan, LinearProject, UnifiedProject, WorkLogItem

logger = logging.getLogger(__name__)


class DayNotStartedError(Exception):
    """No plan for today and no focus to open one from."""

    def __init__(self, message: str = "No day in progress. Choose today's focus first.") -> None:
        super().__init__(message)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _local_clock(zone: Optional[str]) -> Callable[[], datetime]:
    if not zone:
        return _local_now
    tz = ZoneInfo(zone)
    return lambda: datetime.now(tz)


def zone_name(now: datetime, configured: Optional[str] = None) -> Optional[str]:
    """IANA zone key for the plan row; the abbreviation only when no key is known."""
    if configured:
        return configured
    return getattr(now.tzinfo, "key", None) or now.tzname()


class Engine:
    """Orchestrates the day plan lifecycle. Depends on Config + DB + session."""

    def __init__(
        self,
        db_path: Optional[Path] = None,
        session: Optional[SessionStore] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        settings = get_settings()
        self._zone = settings.timezone
        self._clock = clock or _local_clock(self._zone)
        self._db_path = db_path or settings.db_path
        self._db = DayPlanDB(self._db_path)
        self._db.init_db()
        self._service = DayPlanService(self._db)
        self._session = session or SessionStore(
            JsonFileStorage(settings.session_path), clock=self._clock
        )
        self._focused: list[UnifiedProject] = []

    @property
    def service(self) -> DayPlanService:
        return self._service

    @property
    def session(self) -> SessionStore:
        return self._session

    def today(self) -> str:
        """Local calendar date as YYYY-MM-DD."""
        return self._clock().date().isoformat()

    # ---- Day plan ----
    def current_day_plan(self) -> Optional[DayPlan]:
        """Return today's plan from the session pointer, else today's open plan."""
        pointer = self._session.get_day_plan_session()
        if pointer:
            plan = self._service.get_day_plan(pointer.day_plan_id)
            if plan is not None:
                return plan
            self._session.clear_day_plan_session()
        plan = self._service.get_open_day_plan()
        if plan is not None and plan.plan_date == self.today():
            self._session.save_day_plan_session(plan.id, plan.plan_date)
            return plan
        return None

    def ensure_day_plan_id(self, focus: Sequence[UnifiedProject] = ()) -> str:
        """Today's plan id, creating the plan from the focus when there is none.

        ``focus`` is the caller's held focus, used once the session focus has
        expired (e.g. the first entry logged after midnight). Raises
        DayNotStartedError when there is nothing to open a plan from.
        """
        plan = self.current_day_plan()
        if plan is not None:
            return plan.id
        focused = self.focused_projects() or list(focus)
        if not focused:
            raise DayNotStartedError()
        if not self._focused:
            self._focused = focused
            self._session.save_focus_session([p.id for p in focused])
        plan_date = self.today()
        day_plan_id = self._service.start_day_plan(
            plan_date,
            [p.to_focused() for p in focused],
            timezone=zone_name(self._clock(), self._zone),
        )
        self._session.save_day_plan_session(day_plan_id, plan_date)
        self._sync_cached_work_log(day_plan_id)
        return day_plan_id

    def start_day(self, projects: Sequence[UnifiedProject]) -> str:
        """Commit today's focus and open (or reuse) today's plan.

        Cached entries that never reached the store are written to the plan.
        """
        if not projects:
            raise ValueError("Select at least one project to focus on")
        new_plan = self.current_day_plan() is None
        self._focused = list(projects)
        self._session.save_focus_session([p.id for p in projects])
        day_plan_id = self.ensure_day_plan_id()
        self._service.sync_day_plan_projects(
            day_plan_id, [p.to_focused() for p in self._focused]
        )
        self._sync_cached_work_log(day_plan_id)
        if new_plan:
            # entries of an earlier plan stay with that plan; reload from the store
            self._session.clear_work_log()
        return day_plan_id

    def _sync_cached_work_log(self, day_plan_id: str) -> None:
        """Write cached entries that never reached the store to this plan."""
        for item in self._session.get_work_log():
            if not self._service.work_log_item_exists(item.id):
                logger.info("Syncing cached work log item %s", item.id)
                self._service.upsert_work_log_item(day_plan_id, item)

    def change_focus(self, projects: Sequence[UnifiedProject]) -> Optional[str]:
        """Replace today's focus set (full replace on the open plan)."""
        self._focused = list(projects)
        self._session.save_focus_session([p.id for p in projects])
        if not self._focused and self.current_day_plan() is None:
            return None
        day_plan_id = self.ensure_day_plan_id()
        self._service.sync_day_plan_projects(
            day_plan_id, [p.to_focused() for p in self._focused]
        )
        return day_plan_id

    def focused_projects(
        self, live: Sequence[LinearProject] = ()
    ) -> list[UnifiedProject]:
        """Today's focused projects, enriched with live metadata when given."""
        plan = self.current_day_plan()
        if plan is None and self._session.get_focus_session() is None:
            # the day rolled over (or never started)
            self._focused = []
            return []
        if self._focused and not live:
            return list(self._focused)
        if plan is not None:
            rows = self._service.get_day_plan_projects(plan.id)
            unified = unify_focused_projects(rows, live)
        elif self._focused:
            unified = unify_focused_projects([p.to_focused() for p in self._focused], live)
        else:
            return []
        if unified:
            self._focused = unified
        return unified

    # ---- Work log ----
    def work_log(self) -> list[WorkLogItem]:
        """Cached work log; falls back to the store after a restart."""
        items = self._session.get_work_log()
        if items:
            return items
        plan = self.current_day_plan()
        if plan is None:
            return []
        items = self._service.get_day_plan_work_log(plan.id)
        if items:
            self._session.set_work_log(items)
        return items

    def log_work(
        self, item: WorkLogItem, focus: Sequence[UnifiedProject] = ()
    ) -> WorkLogItem:
        """Cache the item locally, then persist it to today's plan.

        ``focus`` is the focus the caller is showing. When today's plan is
        gone (midnight passed) a new plan is opened from it, falling back to
        the focus this engine still holds. Raises DayNotStartedError when
        neither exists; the item stays cached and is synced by the next
        start_day.
        """
        held = list(focus) or list(self._focused)
        focused = self.focused_projects() or held
        if item.project_id and not item.project_source:
            source = next(
                (p.source for p in focused if p.id == item.project_id), None
            )
            item = item.model_copy(update={"project_source": source})
        self._session.add_work_log_item(item)
        day_plan_id = self.ensure_day_plan_id(held)
        self._service.upsert_work_log_item(day_plan_id, item)
        return item

    def delete_work(self, item_id: str) -> None:
        """Drop an entry from the cache and, when a plan exists, the store."""
        self._session.remove_work_log_item(item_id)
        plan = self.current_day_plan()
        if plan is not None:
            self._service.delete_work_log_item(plan.id, item_id)

    # ---- Summary ----
    def save_reflection(self, reflection: str) -> None:
        """Persist the reflection draft on today's plan (autosave target)."""
        plan = self.current_day_plan()
        if plan is None:
            logger.debug("No day plan to attach reflection to")
            return
        self._service.update_day_plan_reflection(plan.id, reflection)

    def reflection(self) -> str:
        plan = self.current_day_plan()
        return (plan.reflection or "") if plan else ""

    def summary(self) -> DaySummaryStatistics:
        """Per-project and unplanned totals for today."""
        return calculate_statistics(self.work_log(), self.focused_projects())

    def time_split(self) -> TimeSplit:
        return work_log_time_split(self.work_log())

    def share_text(self, reflection: Optional[str] = None) -> str:
        """Plain-text report; pass the unsaved reflection to include it."""
        if reflection is None:
            reflection = self.reflection()
        return generate_share_text(self.work_log(), self.focused_projects(), reflection)

    def end_day(self, reflection: Optional[str] = None) -> None:
        """Close today's plan and clear the day's session entries."""
        plan = self.current_day_plan()
        if plan is not None:
            self._service.close_day_plan(plan.id, reflection)
        self._session.clear_current_day()
        self._focused = []
