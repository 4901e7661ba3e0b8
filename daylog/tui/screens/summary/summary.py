"""Day summary screen: statistics, reflection autosave, share text, close the day."""

import asyncio
import logging
from typing import Optional

from textual.app import ComposeResult
from textual.containers import Container, Vertical
from textual.widgets import Footer, Header, Static, TextArea

from daylog.config import get_settings
from daylog.core.debounce import Debouncer
from daylog.core.engine import Engine
from daylog.core.summary import DaySummaryStatistics, format_duration
from daylog.database.sqlite import StoreError
from daylog.tui.common.base_screen import DaylogScreen
from daylog.tui.common.keybindings import (
    COMPLETE_DAY_BINDING,
    COPY_SHARE_BINDING,
    with_global_bindings,
)

logger = logging.getLogger(__name__)


def statistics_markup(stats: DaySummaryStatistics) -> str:
    """Headline numbers plus per-project breakdown, as console markup."""
    lines = [
        f"[bold]{stats.total_tasks}[/] tasks │ "
        f"[bold]{format_duration(stats.total_minutes)}[/] logged │ "
        f"[green]{stats.planned_count}[/] planned │ "
        f"[yellow]{stats.unplanned_count}[/] unplanned",
        "",
    ]
    for entry in stats.project_breakdown:
        duration = f" · {format_duration(entry.minutes)}" if entry.minutes else ""
        lines.append(f"[green]■[/] {entry.project_name}: {entry.count} tasks{duration}")
    if stats.unplanned_count:
        duration = (
            f" · {format_duration(stats.unplanned_minutes)}" if stats.unplanned_minutes else ""
        )
        lines.append(f"[yellow]■[/] Unplanned: {stats.unplanned_count} tasks{duration}")
    return "\n".join(lines)


class DaySummaryScreen(DaylogScreen):
    """End-of-day review. Reflection is saved shortly after typing stops."""

    BINDINGS = with_global_bindings(COPY_SHARE_BINDING, COMPLETE_DAY_BINDING)

    DEFAULT_CSS = """
    #summary-header {
        height: auto;
        padding: 1 2;
    }

    #summary-title {
        text-style: bold;
    }

    #summary-stats {
        padding: 0 2 1 2;
    }

    #summary-reflection {
        height: 1fr;
        margin: 0 2;
    }

    #summary-save-status, #summary-help {
        height: auto;
        padding: 0 2;
        color: $text-muted;
    }
    """

    def __init__(self, engine: Optional[Engine] = None, autosave_delay: Optional[float] = None) -> None:
        super().__init__()
        self._engine = engine or Engine()
        delay = autosave_delay if autosave_delay is not None else get_settings().reflection_autosave_delay
        self._autosave = Debouncer(delay, self._save_reflection)
        self._reflection = ""
        self._loaded = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="summary-header"):
            yield Static("📊 Day summary", id="summary-title")
        yield Static("", id="summary-stats")
        with Vertical(id="summary-reflection-box"):
            yield Static("Reflection", id="summary-reflection-label")
            yield TextArea(id="summary-reflection")
        yield Static("", id="summary-save-status")
        with Container(id="summary-help"):
            yield Static(
                "Ctrl+Y: Copy report │ Ctrl+E: Complete day │ Esc: Back",
                id="summary-help-text",
            )
        yield Footer()

    def on_mount(self) -> None:
        asyncio.create_task(self._load_async())

    async def _load_async(self) -> None:
        try:
            stats = await asyncio.to_thread(self._engine.summary)
            self._reflection = await asyncio.to_thread(self._engine.reflection)
        except StoreError as e:
            self.notify(f"Failed to load summary: {e}", severity="error", timeout=4)
            return
        if not self.is_mounted:
            return
        self.query_one("#summary-stats", Static).update(statistics_markup(stats))
        self.query_one("#summary-reflection", TextArea).load_text(self._reflection)
        self._loaded = True

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if not self._loaded:
            return
        text = event.text_area.text
        if text == self._reflection:
            return
        self._reflection = text
        self._set_status("Saving…")
        self._autosave.call(text)

    def _save_reflection(self, text: str) -> None:
        """Runs on the debounce timer thread."""
        try:
            self._engine.save_reflection(text)
        except StoreError as e:
            logger.warning("Reflection autosave failed: %s", e)
            self._from_thread(self._set_status, f"[red]Not saved: {e}[/]")
            return
        self._from_thread(self._set_status, "Saved")

    def _from_thread(self, callback, *args) -> None:  # type: ignore[no-untyped-def]
        try:
            self.app.call_from_thread(callback, *args)
        except RuntimeError:
            # App already stopped
            return

    def _set_status(self, message: str) -> None:
        if self.is_mounted:
            self.query_one("#summary-save-status", Static).update(message)

    def share_text(self) -> str:
        return self._engine.share_text(self._reflection)

    def action_copy_share(self) -> None:
        self.app.copy_to_clipboard(self.share_text())
        self.notify("Report copied to clipboard", timeout=2)

    def action_complete_day(self) -> None:
        self._autosave.cancel()
        asyncio.create_task(self._complete_async())

    async def _complete_async(self) -> None:
        try:
            await asyncio.to_thread(self._engine.end_day, self._reflection)
        except StoreError as e:
            self.notify(f"Failed to close the day: {e}", severity="error", timeout=4)
            return
        self.notify("Day complete. See you tomorrow!", timeout=3)
        self.app.restart_day()

    def on_unmount(self) -> None:
        # Persist a pending reflection before leaving.
        self._autosave.flush()

    def action_show_help(self) -> None:
        self.notify(
            "Summary Help:\n"
            "Type a reflection; it saves automatically\n"
            "[Ctrl+Y] Copy the shareable report\n"
            "[Ctrl+E] Complete the day and close the plan",
            title="Help",
            timeout=5,
        )
