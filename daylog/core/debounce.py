"""Trailing-edge debounce for autosave (reflection text)."""

import logging
import threading
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """Run callback once, delay seconds after the last call. Last timer wins."""

    def __init__(self, delay: float, callback: Callable[..., Any]) -> None:
        self._delay = delay
        self._callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[tuple[tuple, dict]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def call(self, *args: Any, **kwargs: Any) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = (args, kwargs)
            timer = threading.Timer(self._delay, lambda: self._fire(timer))
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _take(self, owner: Optional[threading.Timer] = None) -> Optional[tuple[tuple, dict]]:
        """Pop the pending args. A timer only gets the args it was started with."""
        with self._lock:
            if owner is not None and owner is not self._timer:
                # superseded by a later call() while waiting on the lock
                return None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            pending, self._pending = self._pending, None
            return pending

    def _fire(self, owner: Optional[threading.Timer] = None) -> None:
        pending = self._take(owner)
        if pending is None:
            return
        args, kwargs = pending
        try:
            self._callback(*args, **kwargs)
        except Exception as e:
            logger.warning("Debounced call failed: %s", e)

    def flush(self) -> None:
        """Run the pending call now, if any."""
        self._fire()

    def cancel(self) -> None:
        self._take()
