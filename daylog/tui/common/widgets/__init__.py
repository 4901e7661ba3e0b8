"""Common reusable Textual widgets."""

from .capture_dialog import CaptureDialog
from .project_picker_dialog import ProjectPickerDialog
from .unplanned_reason_dialog import UnplannedReasonDialog

__all__ = ["CaptureDialog", "ProjectPickerDialog", "UnplannedReasonDialog"]
