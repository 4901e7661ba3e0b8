"""Database layer - SQLite wrapper for day plans and work log."""

from .sqlite import DayPlanDB, StoreError

__all__ = ["DayPlanDB", "StoreError"]
