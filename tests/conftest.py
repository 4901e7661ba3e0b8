"""Global fixtures: temp DB, fixed clock, in-memory session storage."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from daylog.core.engine import Engine
from daylog.core.session import MemoryStorage, SessionStore
from daylog.database.sqlite import DayPlanDB
from daylog.models import LinearIssue, NamedRef, UnifiedProject

LOCAL_TZ = timezone(timedelta(hours=-3))


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def temp_db_path() -> Path:
    """Temporary SQLite path (cleaned up after test)."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        path = Path(f.name)
    yield path
    if path.exists():
        path.unlink(missing_ok=True)


@pytest.fixture
def db(temp_db_path: Path) -> DayPlanDB:
    """Initialized DayPlanDB with temp path."""
    d = DayPlanDB(temp_db_path)
    d.init_db()
    return d


@pytest.fixture
def clock() -> FixedClock:
    """Local time 2024-05-14 10:00 (UTC-3)."""
    return FixedClock(datetime(2024, 5, 14, 10, 0, tzinfo=LOCAL_TZ))


@pytest.fixture
def session(clock: FixedClock) -> SessionStore:
    return SessionStore(MemoryStorage(), clock=clock)


@pytest.fixture
def engine(temp_db_path: Path, session: SessionStore, clock: FixedClock) -> Engine:
    """Engine with temp DB, in-memory session and fixed clock."""
    return Engine(db_path=temp_db_path, session=session, clock=clock)


@pytest.fixture
def projects() -> list[UnifiedProject]:
    return [
        UnifiedProject(id="proj-a", name="Alpha", url="https://linear.app/p/alpha"),
        UnifiedProject(id="proj-b", name="Beta", url="https://linear.app/p/beta"),
    ]


@pytest.fixture
def issues() -> list[LinearIssue]:
    return [
        LinearIssue(
            id="i1",
            identifier="LIN-1",
            title="Fix login redirect",
            url="https://linear.app/i/LIN-1",
            state=NamedRef(name="In Progress"),
            project=NamedRef(name="Alpha"),
        ),
        LinearIssue(
            id="i10",
            identifier="LIN-10",
            title="Billing export",
            url="https://linear.app/i/LIN-10",
            state=NamedRef(name="Todo"),
            project=NamedRef(name="Beta"),
        ),
        LinearIssue(
            id="i20",
            identifier="LIN-20",
            title="Orphan cleanup",
            url="https://linear.app/i/LIN-20",
            state=NamedRef(name="Backlog"),
        ),
    ]
