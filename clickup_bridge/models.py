"""
Pydantic models shared by the resolution engine.

Remote entities (teams, spaces, folders, lists, users) are passed around as
the plain dicts ClickUp returns; only their shape is documented here. The
models below describe caller input and the per-request artifacts produced
while resolving it.
"""

from datetime import date
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Priority(str, Enum):
    """Task priority levels"""
    URGENT = "urgent"
    HIGH = "high"
    NORMAL = "normal"
    LOW = "low"


# ClickUp encodes priority as an ordinal, 1 being the most urgent
PRIORITY_ORDINALS = {
    Priority.URGENT: 1,
    Priority.HIGH: 2,
    Priority.NORMAL: 3,
    Priority.LOW: 4,
}


class TaskRequest(BaseModel):
    """Explicit caller input for task creation. Every field is optional; free
    text in `text` is extracted and merged underneath the explicit values."""
    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    team_id: Optional[str] = Field(None, description="Workspace (team) ID, defaults to CLICKUP_TEAM_ID")
    space_name: Optional[str] = Field(None, description="Space name or alias")
    folder_filter: Optional[str] = Field(None, description="Search term for the folder")
    list_filter: Optional[str] = Field(None, description="Search term for the list")
    task_name: Optional[str] = Field(None, max_length=500, description="Task name")
    description: Optional[str] = Field(None, max_length=10000, description="Task description")
    priority: Optional[Priority] = Field(None, description="urgent, high, normal or low")
    assignees: Optional[list[str]] = Field(None, description="Usernames or emails")
    due_date: Optional[str] = Field(None, description="Due date, YYYY-MM-DD or DD/MM/YYYY")
    text: Optional[str] = Field(None, max_length=5000, description="Free-text instruction")


class ExtractedCommand(BaseModel):
    """Structured candidate command parsed out of free text"""

    space_name: Optional[str] = None
    folder_terms: list[str] = Field(default_factory=list)
    task_name: Optional[str] = None
    description: str
    priority: Priority = Priority.NORMAL
    assignee_names: list[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    confidence: dict[str, float] = Field(default_factory=dict)

    @field_validator("confidence")
    @classmethod
    def _scores_in_range(cls, value: dict[str, float]) -> dict[str, float]:
        for field_name, score in value.items():
            if not 0.0 <= score <= 1.0:
                raise ValueError(f"confidence for '{field_name}' out of range: {score}")
        return value


class TaskCommand(BaseModel):
    """Fully merged command, ready for validation and resolution"""

    team_id: Optional[str] = None
    space_name: Optional[str] = None
    folder_filter: Optional[str] = None
    list_filter: Optional[str] = None
    folder_terms: list[str] = Field(default_factory=list)
    task_name: Optional[str] = None
    description: Optional[str] = None
    priority: Priority = Priority.NORMAL
    assignee_names: list[str] = Field(default_factory=list)
    due_date: Optional[date] = None
    nlp_used: bool = False


class ResolutionAttempt(BaseModel):
    """One recorded strategy attempt in the resolution trace"""

    target: str
    strategy: str
    terms: list[str] = Field(default_factory=list)
    outcome: Literal["found", "not_found"]
    entity: Optional[dict] = None
    explanation: str = ""
