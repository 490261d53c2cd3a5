"""Quality report models for generated code."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

IssueType = Literal["error", "warning", "info"]


class CodeIssue(BaseModel):
    """A single finding in a generated file."""

    type: IssueType
    message: str
    file: str
    rule: str | None = None
    line: int | None = None


class QualitySummary(BaseModel):
    errors: int = 0
    warnings: int = 0
    suggestions: int = 0


class QualityReport(BaseModel):
    """Heuristic quality assessment of a generated file set."""

    passed: bool
    score: int = Field(ge=0, le=100)
    issues: list[CodeIssue] = Field(default_factory=list)
    summary: QualitySummary = Field(default_factory=QualitySummary)
