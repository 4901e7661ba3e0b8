"""@mention parsing, autocomplete matching and rendering for work-log text."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence

from daylog.models import LinearIssue, UnifiedProject

MentionKind = Literal["issue", "project"]


@dataclass(frozen=True)
class MentionTrigger:
    """An in-progress mention: `@` position and the text typed after it."""

    start: int
    query: str


@dataclass(frozen=True)
class MentionOption:
    """One autocomplete candidate shown in the mention dropdown."""

    kind: MentionKind
    label: str
    url: str
    issue: Optional[LinearIssue] = None
    project: Optional[UnifiedProject] = None


@dataclass(frozen=True)
class DescriptionSegment:
    """A run of description text; url is set for linked mentions."""

    text: str
    url: Optional[str] = None


def detect_mention(text: str, cursor: Optional[int] = None) -> Optional[MentionTrigger]:
    """Return the mention being typed at cursor, or None.

    Scans backwards for the nearest `@` that sits at position 0 or right after
    a space. A space between that `@` and the cursor ends the mention, and an
    `@` glued to a word (e.g. an email address) never starts one.
    """
    if cursor is None:
        cursor = len(text)
    cursor = max(0, min(cursor, len(text)))
    for pos in range(cursor - 1, -1, -1):
        char = text[pos]
        if char == " ":
            return None
        if char == "@" and (pos == 0 or text[pos - 1] == " "):
            return MentionTrigger(start=pos, query=text[pos + 1 : cursor])
    return None


def filter_mentions(
    query: str,
    issues: Sequence[LinearIssue],
    projects: Sequence[UnifiedProject],
) -> list[MentionOption]:
    """Match issues (identifier + title) and projects (name); issues first."""
    needle = query.strip().lower()
    options = [
        MentionOption(kind="issue", label=issue.identifier, url=issue.url, issue=issue)
        for issue in issues
        if needle in f"{issue.identifier} {issue.title}".lower()
    ]
    options.extend(
        MentionOption(
            kind="project", label=project.name, url=project.url or "", project=project
        )
        for project in projects
        if needle in project.name.lower()
    )
    return options


def apply_mention(text: str, start: int, query: str, label: str) -> str:
    """Replace `@query` at start with `@label ` and keep the rest of the text."""
    before = text[:start]
    after = text[start + len(query) + 1 :]
    return f"{before}@{label.strip()} {after}"


def render_description(
    description: str, mentions: Optional[dict[str, str]]
) -> list[DescriptionSegment]:
    """Split description into plain and linked segments.

    Only `@token` sequences whose token is a key of mentions become links.
    Longer keys are tried first, and a key never matches a prefix of a longer
    token (`@LIN-1` does not link inside `@LIN-10`).
    """
    if not mentions:
        return [DescriptionSegment(description)] if description else []

    keys = sorted((k for k in mentions if k), key=len, reverse=True)
    if not keys:
        return [DescriptionSegment(description)] if description else []
    pattern = re.compile(
        "@(" + "|".join(re.escape(k) for k in keys) + r")(?![\w-])"
    )

    segments: list[DescriptionSegment] = []
    last = 0
    for match in pattern.finditer(description):
        if match.start() > last:
            segments.append(DescriptionSegment(description[last : match.start()]))
        segments.append(DescriptionSegment(match.group(0), mentions[match.group(1)]))
        last = match.end()
    if last < len(description):
        segments.append(DescriptionSegment(description[last:]))
    return segments
