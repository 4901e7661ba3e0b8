"""Application logic layer."""

from .capture import CaptureSession, CaptureStateError, CaptureStep
from .debounce import Debouncer
from .engine import Engine
from .session import SessionStore

__all__ = [
    "CaptureSession",
    "CaptureStateError",
    "CaptureStep",
    "Debouncer",
    "Engine",
    "SessionStore",
]
