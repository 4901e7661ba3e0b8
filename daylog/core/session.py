"""Client-side session store: focus pointer, day-plan pointer, work-log cache.

Entries are only valid for the local calendar day they were written on.
Storage and clock are injected so the expiry rules can be tested.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from pydantic import BaseModel, ValidationError

from daylog.models import WorkLogItem

logger = logging.getLogger(__name__)

FOCUS_KEY = "daylog_focus_projects"
DAY_PLAN_KEY = "daylog_day_plan"
WORK_LOG_KEY = "daylog_work_log"

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage (one TUI run)."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """String values persisted in a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        """Write JSON to a temp file then atomically rename to target."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self._path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
            raise

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._write(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._write(data)


class FocusSession(BaseModel):
    project_ids: list[str]
    timestamp: datetime


class DayPlanSession(BaseModel):
    day_plan_id: str
    plan_date: str
    timestamp: datetime


class WorkLogCache(BaseModel):
    items: list[WorkLogItem]
    timestamp: datetime


def is_expired(timestamp: datetime, now: datetime) -> bool:
    """True once the local date of now is past the local date of timestamp."""
    if timestamp.tzinfo is not None and now.tzinfo is not None:
        timestamp = timestamp.astimezone(now.tzinfo)
    return now.date() > timestamp.date()


class SessionStore:
    """Typed access to the day-scoped client entries."""

    def __init__(
        self,
        storage: Optional[KeyValueStorage] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._storage: KeyValueStorage = storage or MemoryStorage()
        self._clock = clock or _local_now

    def now(self) -> datetime:
        return self._clock()

    def _read(self, key: str, model: type[BaseModel]) -> Optional[Any]:
        raw = self._storage.get_item(key)
        if not raw:
            return None
        try:
            entry = model.model_validate_json(raw)
        except ValidationError as e:
            logger.warning("Failed to parse session entry %s: %s", key, e)
            self._storage.remove_item(key)
            return None
        if is_expired(entry.timestamp, self.now()):
            self._storage.remove_item(key)
            return None
        return entry

    def _write(self, key: str, entry: BaseModel) -> None:
        self._storage.set_item(key, entry.model_dump_json())

    # ---- focus ----
    def save_focus_session(self, project_ids: list[str]) -> None:
        self._write(FOCUS_KEY, FocusSession(project_ids=project_ids, timestamp=self.now()))

    def get_focus_session(self) -> Optional[FocusSession]:
        return self._read(FOCUS_KEY, FocusSession)

    def clear_focus_session(self) -> None:
        self._storage.remove_item(FOCUS_KEY)

    # ---- day plan pointer ----
    def save_day_plan_session(self, day_plan_id: str, plan_date: str) -> None:
        self._write(
            DAY_PLAN_KEY,
            DayPlanSession(day_plan_id=day_plan_id, plan_date=plan_date, timestamp=self.now()),
        )

    def get_day_plan_session(self) -> Optional[DayPlanSession]:
        return self._read(DAY_PLAN_KEY, DayPlanSession)

    def clear_day_plan_session(self) -> None:
        self._storage.remove_item(DAY_PLAN_KEY)

    # ---- work log cache ----
    def get_work_log(self) -> list[WorkLogItem]:
        cache = self._read(WORK_LOG_KEY, WorkLogCache)
        return list(cache.items) if cache else []

    def set_work_log(self, items: list[WorkLogItem]) -> None:
        self._write(WORK_LOG_KEY, WorkLogCache(items=items, timestamp=self.now()))

    def add_work_log_item(self, item: WorkLogItem) -> None:
        items = [i for i in self.get_work_log() if i.id != item.id]
        items.append(item)
        self.set_work_log(items)

    def remove_work_log_item(self, item_id: str) -> None:
        self.set_work_log([i for i in self.get_work_log() if i.id != item_id])

    def clear_work_log(self) -> None:
        self._storage.remove_item(WORK_LOG_KEY)

    def clear_current_day(self) -> None:
        self.clear_focus_session()
        self.clear_day_plan_session()
        self.clear_work_log()

    # ---- midnight ----
    def time_until_midnight(self) -> timedelta:
        now = self.now()
        tomorrow = (now + timedelta(days=1)).replace(
            hour=0, minute=0, second=0, microsecond=0
        )
        return tomorrow - now

    def format_time_until_midnight(self) -> str:
        total_minutes = int(self.time_until_midnight().total_seconds() // 60)
        hours, minutes = divmod(total_minutes, 60)
        if hours > 0:
            return f"{hours}h {minutes}m"
        return f"{minutes}m"
