"""Data model shared by every pipeline stage.

Plain dataclasses carry what the PR source hands us and what the CLI reads
back. The model's verdict is validated with pydantic because it is the only
data that comes from an untrusted source (the LLM's free-form text).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Category = Literal["QUALITY", "SECURITY", "FUNCTIONALITY", "MAINTAINABILITY"]
Severity = Literal["HIGH", "MEDIUM", "LOW"]


class Recommendation(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEEDS_CHANGES = "NEEDS_CHANGES"


class Stack(str, Enum):
    REACT = "react"
    NEXT = "next"
    VUE = "vue"
    NUXT = "nuxt"
    LARAVEL = "laravel"
    WORDPRESS = "wordpress"
    DJANGO = "django"
    FLASK = "flask"
    GENERIC = "generic"


@dataclass(frozen=True)
class PullRequestRef:
    owner: str
    repo: str
    number: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class PullRequestInfo:
    title: str
    body: str
    number: int


@dataclass(frozen=True)
class ChangedFile:
    filename: str
    additions: int = 0
    deletions: int = 0
    status: str = "modified"  # "added" | "modified" | "removed" | "renamed"
    patch: Optional[str] = None


class ReviewFinding(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    category: Category
    severity: Severity
    file: str
    line: Optional[int] = Field(default=None, gt=0, strict=True)
    issue: str
    suggestion: str


class StructuredReview(BaseModel):
    """The model's verdict after validation.

    ``findings`` is read from ``detailed_findings`` (the key the prompt asks
    for) or ``findings``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    overall_score: int = Field(ge=1, le=10, strict=True)
    recommendation: Recommendation
    summary: str
    findings: list[ReviewFinding] = Field(validation_alias=AliasChoices("detailed_findings", "findings"))
    positive_aspects: list[str]
    areas_for_improvement: list[str]


@dataclass
class ReviewResult:
    """Public outcome of one review run: the only thing the CLI needs."""

    success: bool
    recommendation: Optional[str] = None
    score: Optional[int] = None
    issues_count: Optional[int] = None
    summary: Optional[str] = None
    error: Optional[str] = None
    stack: Optional[str] = None
    report: Optional[str] = None
