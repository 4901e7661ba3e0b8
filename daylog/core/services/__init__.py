"""Core service layer modules."""

from .day_plans import DayPlanService

__all__ = ["DayPlanService"]
