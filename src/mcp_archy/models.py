"""
Data model for diagram generation.

Plain dataclasses carry data between the pure pipeline stages (extractor,
renderers, validator, repair). Pydantic models describe the validated input of
each MCP tool so the orchestrator only ever sees well-formed requests.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

# ============================================================================
# Diagram types
# ============================================================================

DIAGRAM_TYPES = {
    "flowchart": "Flowcharts for visualizing processes and workflows",
    "sequenceDiagram": "Sequence diagrams for showing interactions between components",
    "classDiagram": "Class diagrams for showing object-oriented structures",
    "stateDiagram": "State diagrams for showing state transitions",
    "entityRelationshipDiagram": "ER diagrams for database schema visualization",
    "userJourney": "User journey diagrams for mapping user experiences",
    "gantt": "Gantt charts for project planning and scheduling",
    "pieChart": "Pie charts for showing proportions",
    "quadrantChart": "Quadrant charts for categorizing items",
    "requirementDiagram": "Requirement diagrams for software requirements",
    "gitGraph": "Git graphs for visualizing Git workflows",
    "c4Diagram": "C4 diagrams for software architecture visualization",
}

DIAGRAM_TYPE_HELP = "Type of diagram to generate: " + ", ".join(DIAGRAM_TYPES)


# ============================================================================
# Extraction and validation results
# ============================================================================

@dataclass(frozen=True)
class Relationship:
    """Directed, labeled association between two entities."""
    source: str
    target: str
    label: str


@dataclass
class ValidationError:
    message: str
    line: Optional[int] = None
    column: Optional[int] = None
    details: Optional[str] = None


@dataclass
class ValidationResult:
    is_valid: bool
    error: Optional[ValidationError] = None

    @property
    def message(self) -> str:
        if self.error is None:
            return ""
        return self.error.message


class RepairOutcome(str, Enum):
    """How the repair pipeline arrived at its result."""
    ORIGINAL_VALID = "original_valid"
    AI_FIXED = "ai_fixed"
    RULE_FIXED = "rule_fixed"
    UNREPAIRED = "unrepaired"


@dataclass
class RepairResult:
    code: str
    outcome: RepairOutcome


# ============================================================================
# Repository data (produced by the GitHub client and git history reader)
# ============================================================================

@dataclass
class CodeFile:
    path: str
    content: str
    language: str


@dataclass
class RepositoryData:
    info: dict = field(default_factory=dict)
    contents: list = field(default_factory=list)
    languages: dict = field(default_factory=dict)
    code_files: list[CodeFile] = field(default_factory=list)


@dataclass
class CommitAuthor:
    name: str
    email: str
    timestamp: int


@dataclass
class FileChange:
    path: str
    type: Literal["add", "modify", "delete"]


@dataclass
class CommitInfo:
    sha: str
    message: str
    author: CommitAuthor
    files: list[FileChange] = field(default_factory=list)

    @property
    def short_sha(self) -> str:
        return self.sha[:7]


@dataclass
class FileVersion:
    sha: str
    message: str
    content: str


# ============================================================================
# Tool requests
# ============================================================================

class TextDiagramRequest(BaseModel):
    description: str = Field(min_length=1)
    diagram_type: str = Field(min_length=1)


class AITextDiagramRequest(TextDiagramRequest):
    use_advanced_model: bool = False


class GithubDiagramRequest(BaseModel):
    repo_url: str = Field(min_length=1)
    diagram_type: str = Field(min_length=1)


class CodeDiagramRequest(BaseModel):
    code: str = Field(min_length=1)
    diagram_type: str = Field(min_length=1)


class DiffDiagramRequest(BaseModel):
    before_code: str = Field(min_length=1)
    after_code: str = Field(min_length=1)
    diagram_type: str = Field(min_length=1)


class ExportImageRequest(BaseModel):
    mermaid_code: str = Field(min_length=1)
    format: Literal["png", "svg", "pdf"] = "png"
    width: int = Field(default=800, gt=0)
    height: int = Field(default=600, gt=0)
    background_color: str = "#ffffff"
    output_path: Optional[str] = None


class EvolutionDiagramRequest(BaseModel):
    repo_url: str = Field(min_length=1)
    diagram_type: str = Field(min_length=1)
    filepath: Optional[str] = None
    commit_limit: int = Field(default=10, gt=0)
