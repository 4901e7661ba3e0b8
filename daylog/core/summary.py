"""Day summary: statistics over a day's work log and the shareable report."""

from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel, Field

from daylog.models import UnifiedProject, WorkLogItem

UNKNOWN_PROJECT_NAME = "Unknown Project"


class ProjectBreakdown(BaseModel):
    project_id: str
    project_name: str
    count: int = 0
    minutes: int = 0


class DaySummaryStatistics(BaseModel):
    total_tasks: int = 0
    total_minutes: int = 0
    project_breakdown: list[ProjectBreakdown] = Field(default_factory=list)
    unplanned_count: int = 0
    unplanned_minutes: int = 0

    @property
    def planned_count(self) -> int:
        return sum(p.count for p in self.project_breakdown)


class TimeSplit(BaseModel):
    """Minutes invested overall, in focused projects and in other work."""

    total: int = 0
    in_projects: int = 0
    in_other: int = 0


def _minutes(item: WorkLogItem) -> int:
    return item.duration_minutes or 0


def calculate_statistics(
    items: Sequence[WorkLogItem], projects: Sequence[UnifiedProject]
) -> DaySummaryStatistics:
    """Aggregate counts and durations per project; absent durations count as 0."""
    names = {p.id: p.name for p in projects}
    breakdown: dict[str, ProjectBreakdown] = {}
    stats = DaySummaryStatistics(total_tasks=len(items))

    for item in items:
        minutes = _minutes(item)
        stats.total_minutes += minutes
        if item.is_unplanned:
            stats.unplanned_count += 1
            stats.unplanned_minutes += minutes
            continue
        entry = breakdown.setdefault(
            item.project_id,
            ProjectBreakdown(
                project_id=item.project_id,
                project_name=names.get(item.project_id, UNKNOWN_PROJECT_NAME),
            ),
        )
        entry.count += 1
        entry.minutes += minutes

    stats.project_breakdown = list(breakdown.values())
    return stats


def work_log_time_split(items: Sequence[WorkLogItem]) -> TimeSplit:
    split = TimeSplit()
    for item in items:
        minutes = _minutes(item)
        split.total += minutes
        if item.is_unplanned:
            split.in_other += minutes
        else:
            split.in_projects += minutes
    return split


def format_duration(minutes: int) -> str:
    """Format minutes as `1h 5m`, `2h` or `45m`."""
    hours, mins = divmod(max(0, minutes), 60)
    if hours and mins:
        return f"{hours}h {mins}m"
    if hours:
        return f"{hours}h"
    return f"{mins}m"


def generate_share_text(
    items: Sequence[WorkLogItem],
    projects: Sequence[UnifiedProject],
    reflection: str = "",
) -> str:
    """Plain-text bulleted report for clipboard export."""
    stats = calculate_statistics(items, projects)
    lines: list[str] = ["Today's Work:", ""]

    if stats.project_breakdown:
        lines.append("Projects:")
        for entry in stats.project_breakdown:
            for task in items:
                if task.project_id != entry.project_id:
                    continue
                duration = (
                    f" ({format_duration(task.duration_minutes)})"
                    if task.duration_minutes
                    else ""
                )
                lines.append(f"• [{entry.project_name}] {task.description}{duration}")
        lines.append("")

    unplanned = [task for task in items if task.is_unplanned]
    if unplanned:
        lines.append("Unplanned:")
        for task in unplanned:
            reason = f" ({task.unplanned_reason})" if task.unplanned_reason else ""
            duration = (
                f" - {format_duration(task.duration_minutes)}"
                if task.duration_minutes
                else ""
            )
            lines.append(f"• {task.description}{reason}{duration}")
        lines.append("")

    if stats.total_minutes > 0:
        lines.append(f"Total time: {format_duration(stats.total_minutes)}")
        lines.append("")

    if reflection.strip():
        lines.append("Reflection:")
        lines.append(reflection.strip())

    return "\n".join(lines)
