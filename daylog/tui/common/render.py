"""Rich renderables for work-log rows."""

from rich.style import Style
from rich.text import Text

from daylog.core.mentions import render_description
from daylog.core.summary import format_duration
from daylog.models import UnifiedProject, WorkLogItem

MENTION_STYLE = "bold cyan"


def description_text(item: WorkLogItem) -> Text:
    """Description with known @mentions as terminal hyperlinks."""
    text = Text()
    for segment in render_description(item.description, item.mentioned_issues):
        if segment.url:
            text.append(segment.text, style=Style.parse(MENTION_STYLE) + Style(link=segment.url))
        else:
            text.append(segment.text)
    return text


def work_log_row(item: WorkLogItem, project: UnifiedProject | None) -> Text:
    """One line: time, project badge (or unplanned reason), description, duration."""
    row = Text()
    row.append(item.timestamp.astimezone().strftime("%I:%M %p").lstrip("0"), style="dim")
    row.append("  ")
    if project is not None:
        row.append(f"[{project.name}]", style="green")
    elif item.is_unplanned:
        label = f"Unplanned: {item.unplanned_reason}" if item.unplanned_reason else "Unplanned"
        row.append(f"[{label}]", style="yellow")
    else:
        row.append("[Unknown Project]", style="dim")
    row.append(" ")
    row.append_text(description_text(item))
    if item.duration_minutes:
        row.append(f"  {format_duration(item.duration_minutes)}", style="blue")
    return row
