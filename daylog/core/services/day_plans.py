"""Day-plan actions: thin parameter-to-row mappers over the store.

Every operation lets StoreError propagate with the store's message; the
caller decides whether to show it or ignore it.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from daylog.database.sqlite import DayPlanDB
from daylog.models import DayPlan, FocusedProject, WorkLogItem

logger = logging.getLogger(__name__)


def _dedupe(projects: Iterable[FocusedProject]) -> list[FocusedProject]:
    """Keep the first occurrence of each project id, in input order."""
    seen: set[str] = set()
    unique: list[FocusedProject] = []
    for project in projects:
        if project.project_id in seen:
            continue
        seen.add(project.project_id)
        unique.append(project)
    return unique


class DayPlanService:
    """Encapsulates day-plan CRUD and the open/closed lifecycle."""

    def __init__(self, db: DayPlanDB) -> None:
        self._db = db

    def start_day_plan(
        self,
        plan_date: str,
        projects: list[FocusedProject],
        timezone: Optional[str] = None,
    ) -> str:
        """Create an open plan with its initial project set; return its id."""
        plan = DayPlan(id=str(uuid.uuid4()), plan_date=plan_date, timezone=timezone)
        self._db.insert_day_plan(plan)
        if projects:
            self._db.replace_projects(plan.id, _dedupe(projects))
        logger.info("Started day plan %s for %s", plan.id, plan_date)
        return plan.id

    def sync_day_plan_projects(
        self, day_plan_id: str, projects: list[FocusedProject]
    ) -> None:
        """Replace the focused-project set (full replace, not merge)."""
        self._db.replace_projects(day_plan_id, _dedupe(projects))

    def upsert_work_log_item(self, day_plan_id: str, item: WorkLogItem) -> None:
        self._db.upsert_work_log_item(day_plan_id, item)

    def delete_work_log_item(self, day_plan_id: str, item_id: str) -> None:
        self._db.delete_work_log_item(day_plan_id, item_id)

    def update_day_plan_reflection(self, day_plan_id: str, reflection: str) -> None:
        self._db.update_reflection(day_plan_id, reflection)

    def close_day_plan(
        self, day_plan_id: str, reflection: Optional[str] = None
    ) -> None:
        """End the day: optionally store the final reflection, then close."""
        if reflection is not None:
            self._db.update_reflection(day_plan_id, reflection)
        self._db.set_open(day_plan_id, False)
        logger.info("Closed day plan %s", day_plan_id)

    def get_open_day_plan(self) -> Optional[DayPlan]:
        return self._db.get_open_day_plan()

    def get_day_plan(self, day_plan_id: str) -> Optional[DayPlan]:
        return self._db.get_day_plan(day_plan_id)

    def get_day_plan_projects(self, day_plan_id: str) -> list[FocusedProject]:
        return self._db.list_projects(day_plan_id)

    def get_day_plan_work_log(self, day_plan_id: str) -> list[WorkLogItem]:
        return self._db.list_work_log(day_plan_id)

    def work_log_item_exists(self, item_id: str) -> bool:
        """True when the item is stored under any plan."""
        return self._db.has_work_log_item(item_id)
