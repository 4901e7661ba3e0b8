"""Relational wrapper for SQLite (day plans, focused projects, work log)."""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from daylog.models import DayPlan, FocusedProject, WorkLogItem


class StoreError(RuntimeError):
    """A store operation failed. Carries the driver's message verbatim."""


def _iso(dt: Optional[datetime]) -> Optional[str]:
    """Normalize to UTC so lexical order matches chronological order."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat()


def _parse_dt(s: Optional[str]) -> Optional[datetime]:
    """Parse ISO datetime string, returning None for invalid input."""
    if not s:
        return None
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


class DayPlanDB:
    """SQLite wrapper for day-plan tables. All I/O stays in this module."""

    def __init__(self, db_path: Path) -> None:
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Open a connection; commit on success and surface driver errors."""
        try:
            with sqlite3.connect(self._path) as conn:
                conn.row_factory = sqlite3.Row
                yield conn
                conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(str(exc)) from exc

    def init_db(self) -> None:
        """Create tables and indexes if they do not exist."""
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS day_plans (
                    id TEXT PRIMARY KEY,
                    plan_date TEXT NOT NULL,
                    timezone TEXT,
                    is_open INTEGER NOT NULL DEFAULT 1,
                    reflection TEXT,
                    created_at DATETIME
                )
            """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS day_plan_projects (
                    day_plan_id TEXT NOT NULL,
                    project_id TEXT NOT NULL,
                    project_source TEXT NOT NULL,
                    project_name TEXT,
                    PRIMARY KEY (day_plan_id, project_id)
                )
            """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS work_log_items (
                    id TEXT PRIMARY KEY,
                    day_plan_id TEXT NOT NULL,
                    description TEXT NOT NULL,
                    timestamp DATETIME NOT NULL,
                    project_id TEXT,
                    project_source TEXT,
                    unplanned_reason TEXT,
                    mentioned_issues TEXT,
                    duration_minutes INTEGER
                )
            """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_day_plans_open ON day_plans(is_open)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_work_log_plan_ts "
                "ON work_log_items(day_plan_id, timestamp)"
            )

    # ---- day_plans ----
    def insert_day_plan(self, plan: DayPlan) -> None:
        """Insert a plan row. Any other open plan is closed first."""
        with self._connect() as conn:
            if plan.is_open:
                conn.execute("UPDATE day_plans SET is_open = 0 WHERE is_open = 1")
            conn.execute(
                """
                INSERT INTO day_plans (id, plan_date, timezone, is_open, reflection,
                                       created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    plan.id,
                    plan.plan_date,
                    plan.timezone,
                    int(plan.is_open),
                    plan.reflection,
                    _iso(plan.created_at),
                ),
            )

    def get_day_plan(self, day_plan_id: str) -> Optional[DayPlan]:
        """Return one plan by id or None."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM day_plans WHERE id = ?", (day_plan_id,)
            ).fetchone()
        return _row_to_day_plan(row) if row else None

    def get_open_day_plan(self) -> Optional[DayPlan]:
        """Return the most recently created open plan, if any."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM day_plans WHERE is_open = 1 "
                "ORDER BY created_at DESC LIMIT 1"
            ).fetchone()
        return _row_to_day_plan(row) if row else None

    def update_reflection(self, day_plan_id: str, reflection: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE day_plans SET reflection = ? WHERE id = ?",
                (reflection, day_plan_id),
            )

    def set_open(self, day_plan_id: str, is_open: bool) -> None:
        with self._connect() as conn:
            conn.execute(
                "UPDATE day_plans SET is_open = ? WHERE id = ?",
                (int(is_open), day_plan_id),
            )

    # ---- day_plan_projects ----
    def replace_projects(
        self, day_plan_id: str, projects: list[FocusedProject]
    ) -> None:
        """Delete every project row for the plan, then insert the given set.

        Both statements share one transaction.
        """
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM day_plan_projects WHERE day_plan_id = ?", (day_plan_id,)
            )
            conn.executemany(
                """
                INSERT INTO day_plan_projects (day_plan_id, project_id,
                                               project_source, project_name)
                VALUES (?, ?, ?, ?)
                """,
                [
                    (day_plan_id, p.project_id, p.project_source, p.project_name)
                    for p in projects
                ],
            )

    def list_projects(self, day_plan_id: str) -> list[FocusedProject]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT project_id, project_source, project_name "
                "FROM day_plan_projects WHERE day_plan_id = ? ORDER BY rowid ASC",
                (day_plan_id,),
            ).fetchall()
        return [
            FocusedProject(
                project_id=r["project_id"],
                project_source=r["project_source"],
                project_name=r["project_name"],
            )
            for r in rows
        ]

    # ---- work_log_items ----
    def upsert_work_log_item(self, day_plan_id: str, item: WorkLogItem) -> None:
        """Insert the item or overwrite the row with the same id."""
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO work_log_items (id, day_plan_id, description, timestamp,
                                            project_id, project_source,
                                            unplanned_reason, mentioned_issues,
                                            duration_minutes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    day_plan_id=excluded.day_plan_id,
                    description=excluded.description,
                    timestamp=excluded.timestamp,
                    project_id=excluded.project_id,
                    project_source=excluded.project_source,
                    unplanned_reason=excluded.unplanned_reason,
                    mentioned_issues=excluded.mentioned_issues,
                    duration_minutes=excluded.duration_minutes
                """,
                (
                    item.id,
                    day_plan_id,
                    item.description,
                    _iso(item.timestamp),
                    item.project_id,
                    item.project_source,
                    item.unplanned_reason,
                    json.dumps(item.mentioned_issues)
                    if item.mentioned_issues is not None
                    else None,
                    item.duration_minutes,
                ),
            )

    def delete_work_log_item(self, day_plan_id: str, item_id: str) -> None:
        with self._connect() as conn:
            conn.execute(
                "DELETE FROM work_log_items WHERE id = ? AND day_plan_id = ?",
                (item_id, day_plan_id),
            )

    def has_work_log_item(self, item_id: str) -> bool:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT 1 FROM work_log_items WHERE id = ?", (item_id,)
            ).fetchone()
        return row is not None

    def list_work_log(self, day_plan_id: str) -> list[WorkLogItem]:
        """Return the plan's work log ordered by timestamp ascending."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM work_log_items WHERE day_plan_id = ? "
                "ORDER BY timestamp ASC",
                (day_plan_id,),
            ).fetchall()
        return [_row_to_work_log_item(r) for r in rows]


def _row_to_day_plan(row: sqlite3.Row) -> DayPlan:
    return DayPlan(
        id=row["id"],
        plan_date=row["plan_date"],
        timezone=row["timezone"],
        is_open=bool(row["is_open"]),
        reflection=row["reflection"],
        created_at=_parse_dt(row["created_at"]),
    )


def _row_to_work_log_item(row: sqlite3.Row) -> WorkLogItem:
    """Convert database row to WorkLogItem, handling malformed data gracefully."""
    try:
        mentioned = json.loads(row["mentioned_issues"]) if row["mentioned_issues"] else None
    except json.JSONDecodeError:
        mentioned = None
    if not isinstance(mentioned, dict):
        mentioned = None

    return WorkLogItem(
        id=row["id"],
        description=row["description"],
        timestamp=_parse_dt(row["timestamp"]) or datetime.now(timezone.utc),
        project_id=row["project_id"],
        project_source=row["project_source"],
        unplanned_reason=row["unplanned_reason"],
        mentioned_issues=mentioned,
        duration_minutes=row["duration_minutes"],
    )
