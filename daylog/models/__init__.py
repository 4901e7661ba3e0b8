"""Domain models."""

from .day_plan import (
    UNPLANNED_PROJECT_ID,
    UNPLANNED_REASONS,
    DayPlan,
    FocusedProject,
    TaskSource,
    UnifiedProject,
    WorkLogItem,
)
from .linear import IssueFilters, LinearIssue, LinearProject, LinearUser, NamedRef

__all__ = [
    "UNPLANNED_PROJECT_ID",
    "UNPLANNED_REASONS",
    "DayPlan",
    "FocusedProject",
    "IssueFilters",
    "LinearIssue",
    "LinearProject",
    "LinearUser",
    "NamedRef",
    "TaskSource",
    "UnifiedProject",
    "WorkLogItem",
]
