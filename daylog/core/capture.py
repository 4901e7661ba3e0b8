"""Unit-of-work capture: the three-step state machine behind the capture form.

ProvideDescription -> (ProvideProject) -> Accept -> Closed. Mention
autocomplete lives inside ProvideDescription; Escape before Accept discards
the draft.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Sequence

from daylog.core.mentions import (
    MentionOption,
    MentionTrigger,
    apply_mention,
    detect_mention,
    filter_mentions,
)
from daylog.models import (
    UNPLANNED_PROJECT_ID,
    UNPLANNED_REASONS,
    LinearIssue,
    UnifiedProject,
    WorkLogItem,
)

logger = logging.getLogger(__name__)


class CaptureStep(str, Enum):
    PROVIDE_DESCRIPTION = "provide_description"
    PROVIDE_PROJECT = "provide_project"
    ACCEPT = "accept"
    CLOSED = "closed"


class CaptureEvent(str, Enum):
    PROJECT_KNOWN = "project_known"
    PROJECT_NEEDED = "project_needed"
    PROJECT_CHOSEN = "project_chosen"
    CONFIRM = "confirm"
    CANCEL = "cancel"


TRANSITIONS: dict[tuple[CaptureStep, CaptureEvent], CaptureStep] = {
    (CaptureStep.PROVIDE_DESCRIPTION, CaptureEvent.PROJECT_KNOWN): CaptureStep.ACCEPT,
    (
        CaptureStep.PROVIDE_DESCRIPTION,
        CaptureEvent.PROJECT_NEEDED,
    ): CaptureStep.PROVIDE_PROJECT,
    (CaptureStep.PROVIDE_DESCRIPTION, CaptureEvent.CANCEL): CaptureStep.CLOSED,
    (CaptureStep.PROVIDE_PROJECT, CaptureEvent.PROJECT_CHOSEN): CaptureStep.ACCEPT,
    (CaptureStep.PROVIDE_PROJECT, CaptureEvent.CANCEL): CaptureStep.CLOSED,
    (CaptureStep.ACCEPT, CaptureEvent.CONFIRM): CaptureStep.CLOSED,
}


class CaptureStateError(ValueError):
    """An operation was attempted in a step that does not allow it."""


class CaptureSession:
    """Draft state for one capture form session."""

    def __init__(
        self,
        issues: Sequence[LinearIssue],
        focused_projects: Sequence[UnifiedProject],
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        self._issues = list(issues)
        self._projects = list(focused_projects)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._id_factory = id_factory or (lambda: str(uuid.uuid4()))
        self.step = CaptureStep.PROVIDE_DESCRIPTION
        self._reset_draft()

    def _reset_draft(self) -> None:
        self.description = ""
        self.mentioned_issues: dict[str, str] = {}
        self.selected_project_id: Optional[str] = None
        self.unplanned_reason: Optional[str] = None
        self.duration_minutes: Optional[int] = None
        self._reset_mention()

    def _reset_mention(self) -> None:
        self.mention: Optional[MentionTrigger] = None
        self.selected_mention_index = 0

    def _transition(self, event: CaptureEvent) -> None:
        target = TRANSITIONS.get((self.step, event))
        if target is None:
            raise CaptureStateError(f"Cannot {event.value} while in {self.step.value}")
        logger.debug("Capture %s -> %s (%s)", self.step.value, target.value, event.value)
        self.step = target

    def _require(self, step: CaptureStep) -> None:
        if self.step is not step:
            raise CaptureStateError(
                f"Expected step {step.value}, current step is {self.step.value}"
            )

    # ---- ProvideDescription ----
    @property
    def dropdown_open(self) -> bool:
        return self.mention is not None

    @property
    def mention_query(self) -> str:
        return self.mention.query.lower() if self.mention else ""

    def mention_options(self) -> list[MentionOption]:
        if self.mention is None:
            return []
        return filter_mentions(self.mention_query, self._issues, self._projects)

    def update_text(self, value: str, cursor: Optional[int] = None) -> None:
        """Record new input text and open/close the mention dropdown."""
        self._require(CaptureStep.PROVIDE_DESCRIPTION)
        self.description = value
        self.mention = detect_mention(value, cursor)
        self.selected_mention_index = 0

    def move_selection(self, delta: int) -> None:
        """Move the dropdown highlight, clamped to the option list."""
        options = self.mention_options()
        if not options:
            self.selected_mention_index = 0
            return
        index = self.selected_mention_index + delta
        self.selected_mention_index = max(0, min(index, len(options) - 1))

    def close_dropdown(self) -> None:
        self._reset_mention()

    def pick_mention(self, option: Optional[MentionOption] = None) -> bool:
        """Insert the highlighted (or given) mention. Returns False if none."""
        self._require(CaptureStep.PROVIDE_DESCRIPTION)
        if self.mention is None:
            return False
        if option is None:
            options = self.mention_options()
            if not options:
                return False
            option = options[min(self.selected_mention_index, len(options) - 1)]

        label = option.label.strip()
        self.description = apply_mention(
            self.description, self.mention.start, self.mention.query, label
        )
        self.mentioned_issues[label] = option.url
        self._reset_mention()
        self._infer_project(option)
        return True

    def _infer_project(self, option: MentionOption) -> None:
        if option.kind == "project" and option.project is not None:
            self.selected_project_id = option.project.id
            return
        if option.issue is None:
            return
        issue_project = option.issue.project_name
        if issue_project:
            wanted = issue_project.lower()
            for project in self._projects:
                if project.name.lower() == wanted:
                    self.selected_project_id = project.id
                    return
        if len(self._projects) == 1 and not self.selected_project_id:
            self.selected_project_id = self._projects[0].id

    @property
    def inferred_project_id(self) -> Optional[str]:
        if self.selected_project_id:
            return self.selected_project_id
        if len(self._projects) == 1:
            return self._projects[0].id
        return None

    def submit_description(self) -> CaptureStep:
        """Enter with no dropdown open. Empty descriptions are ignored."""
        self._require(CaptureStep.PROVIDE_DESCRIPTION)
        if not self.description.strip():
            return self.step
        inferred = self.inferred_project_id
        if inferred:
            self.selected_project_id = inferred
            self._transition(CaptureEvent.PROJECT_KNOWN)
        else:
            self._transition(CaptureEvent.PROJECT_NEEDED)
        return self.step

    # ---- ProvideProject ----
    def choose_project(
        self,
        project_id: str,
        reason: Optional[str] = None,
        custom_reason: Optional[str] = None,
    ) -> None:
        """Pick a focused project or UNPLANNED_PROJECT_ID."""
        self._require(CaptureStep.PROVIDE_PROJECT)
        if project_id == UNPLANNED_PROJECT_ID:
            self.unplanned_reason = resolve_unplanned_reason(reason, custom_reason)
        elif not any(p.id == project_id for p in self._projects):
            raise CaptureStateError(f"Project {project_id} is not in today's focus")
        else:
            self.unplanned_reason = None
        self.selected_project_id = project_id
        self._transition(CaptureEvent.PROJECT_CHOSEN)

    def set_duration(self, hours: int | str = 0, minutes: int | str = 0) -> None:
        """Set the optional duration; totals of zero or less clear it."""
        total = _to_int(hours) * 60 + _to_int(minutes)
        self.duration_minutes = total if total > 0 else None

    # ---- Accept ----
    def confirm(self, start_now: bool = False) -> WorkLogItem:
        """Commit the draft. "Start now" and "just log it" behave the same."""
        self._require(CaptureStep.ACCEPT)
        project_id = self.selected_project_id
        if project_id == UNPLANNED_PROJECT_ID:
            project_id = None
        item = WorkLogItem(
            id=self._id_factory(),
            description=self.description.strip(),
            timestamp=self._clock(),
            project_id=project_id,
            unplanned_reason=self.unplanned_reason if project_id is None else None,
            mentioned_issues=dict(self.mentioned_issues) or None,
            duration_minutes=self.duration_minutes,
        )
        self._transition(CaptureEvent.CONFIRM)
        self._reset_draft()
        return item

    def cancel(self) -> None:
        """Discard the draft and close. Only allowed before Accept."""
        self._transition(CaptureEvent.CANCEL)
        self._reset_draft()

    @property
    def closed(self) -> bool:
        return self.step is CaptureStep.CLOSED

    def handle_key(self, key: str) -> None:
        """Keyboard handling for the description step."""
        if self.step is not CaptureStep.PROVIDE_DESCRIPTION:
            if key == "escape" and self.step is CaptureStep.PROVIDE_PROJECT:
                self.cancel()
            return
        if self.dropdown_open:
            if key == "down":
                self.move_selection(1)
            elif key == "up":
                self.move_selection(-1)
            elif key == "enter":
                self.pick_mention()
            elif key == "escape":
                self.close_dropdown()
        elif key == "enter":
            self.submit_description()
        elif key == "escape":
            self.cancel()


def resolve_unplanned_reason(reason: Optional[str], custom_reason: Optional[str]) -> Optional[str]:
    if not reason:
        return None
    if reason == "Other":
        custom = (custom_reason or "").strip()
        if not custom:
            raise CaptureStateError("A custom reason is required for 'Other'")
        return custom
    if reason not in UNPLANNED_REASONS:
        raise CaptureStateError(f"Unknown unplanned reason: {reason}")
    return reason


def _to_int(value: int | str) -> int:
    if isinstance(value, int):
        return value
    try:
        return int(value.strip() or 0)
    except ValueError:
        return 0
