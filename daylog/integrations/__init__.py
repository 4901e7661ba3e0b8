"""External task sources."""

from .linear import (
    LinearClient,
    LinearError,
    LinearNotConnectedError,
    LinearRequestError,
    rank_issues_for_focus,
    unify_focused_projects,
)

__all__ = [
    "LinearClient",
    "LinearError",
    "LinearNotConnectedError",
    "LinearRequestError",
    "rank_issues_for_focus",
    "unify_focused_projects",
]
