"""Day plan, focused project and work-log records."""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

TaskSource = Literal["github", "linear", "app"]

# Sentinel picked in the capture form for work outside today's focus.
UNPLANNED_PROJECT_ID = "__unplanned__"

UNPLANNED_REASONS = ("Urgent bug", "Support request", "Meeting", "Other")


class DayPlan(BaseModel):
    """One calendar day of focused work. At most one plan is open."""

    id: str
    plan_date: str = Field(description="Plan date as YYYY-MM-DD")
    timezone: Optional[str] = None
    is_open: bool = True
    reflection: Optional[str] = None
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class FocusedProject(BaseModel):
    """Association between a day plan and an external project."""

    project_id: str
    project_source: TaskSource = "linear"
    project_name: Optional[str] = None


class WorkLogItem(BaseModel):
    """One logged unit of work. project_id None means unplanned."""

    id: str
    description: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    project_id: Optional[str] = None
    project_source: Optional[TaskSource] = None
    unplanned_reason: Optional[str] = None
    mentioned_issues: Optional[dict[str, str]] = None
    duration_minutes: Optional[int] = None

    @property
    def is_unplanned(self) -> bool:
        return self.project_id is None


class UnifiedProject(BaseModel):
    """Focused project merged with live metadata from its source system."""

    id: str
    name: str
    source: TaskSource = "linear"
    url: Optional[str] = None
    description: Optional[str] = None
    state: Optional[str] = None
    progress: Optional[float] = None
    icon: Optional[str] = None
    color: Optional[str] = None
    target_date: Optional[str] = None
    start_date: Optional[str] = None

    def to_focused(self) -> FocusedProject:
        return FocusedProject(
            project_id=self.id, project_source=self.source, project_name=self.name
        )
