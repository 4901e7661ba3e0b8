"""Linear API payload shapes."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _LinearModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LinearUser(_LinearModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class NamedRef(_LinearModel):
    name: str


class LinearProject(_LinearModel):
    id: str
    name: str
    description: Optional[str] = None
    url: str = ""
    state: str = ""
    progress: float = 0.0
    icon: Optional[str] = None
    color: Optional[str] = None
    target_date: Optional[str] = Field(None, alias="targetDate")
    start_date: Optional[str] = Field(None, alias="startDate")


class LinearIssue(_LinearModel):
    id: str
    identifier: str
    title: str
    url: str = ""
    priority: Optional[float] = None
    estimate: Optional[float] = None
    state: Optional[NamedRef] = None
    project: Optional[NamedRef] = None

    @property
    def state_name(self) -> str:
        return self.state.name if self.state else ""

    @property
    def project_name(self) -> Optional[str]:
        return self.project.name if self.project else None

    @property
    def is_in_progress(self) -> bool:
        return "progress" in self.state_name.lower()


class IssueFilters(BaseModel):
    """Issue list filters: state name, text query and assignee email."""

    state: Optional[str] = None
    query: Optional[str] = None
    assignee: Optional[str] = None

    def normalized(self) -> "IssueFilters":
        """Strip whitespace and drop empty values."""
        return IssueFilters(
            state=(self.state or "").strip() or None,
            query=(self.query or "").strip() or None,
            assignee=(self.assignee or "").strip() or None,
        )
