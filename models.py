"""Data models for security findings and the fixes built from them."""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

Severity = Literal["critical", "high", "medium", "low"]
Action = Literal["replace", "add", "delete"]

SEVERITY_ORDER: tuple[str, ...] = ("critical", "high", "medium", "low")
ACTIONS: tuple[str, ...] = ("replace", "add", "delete")


def _as_int(value: Any, default: int) -> int:
    """Coerce *value* to int, falling back to *default*."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class Finding(BaseModel):
    """A single proposed, line-addressed edit."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="", description="Unique within one analysis")
    severity: Severity = Field(default="medium")
    file: str = Field(default="", description="Path relative to repo root")
    line: int = Field(default=1, description="1-indexed start line (original content)")
    end_line: int = Field(
        default=1, alias="endLine", description="1-indexed inclusive end line"
    )
    action: Action = Field(default="replace")
    fix: str = Field(default="", description="Replacement or inserted text")
    title: str = Field(default="")
    description: str = Field(default="")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> dict:
        """Normalize untrusted model output instead of rejecting it."""
        if isinstance(data, BaseModel):
            data = data.model_dump(by_alias=True)
        if not isinstance(data, dict):
            data = {}

        severity = _as_text(data.get("severity")).lower().strip()
        if severity not in SEVERITY_ORDER:
            severity = "medium"

        action = _as_text(data.get("action")).lower().strip()
        if action not in ACTIONS:
            action = "replace"

        line = _as_int(data.get("line"), 1)
        raw_end = data.get("endLine", data.get("end_line"))
        end_line = _as_int(raw_end, 1)
        if action == "add" or end_line < line:
            end_line = line

        fix = _as_text(data.get("fix"))
        if action == "delete" and fix:
            logger.warning(
                "Finding %s: delete action carries fix text, clearing it",
                data.get("id") or "?",
            )
            fix = ""

        return {
            "id": _as_text(data.get("id")),
            "severity": severity,
            "file": _as_text(data.get("file")).strip(),
            "line": line,
            "endLine": end_line,
            "action": action,
            "fix": fix,
            "title": _as_text(data.get("title")),
            "description": _as_text(data.get("description")),
        }

    @property
    def is_actionable(self) -> bool:
        """True when the finding carries enough information to apply."""
        if not self.file:
            return False
        return self.action == "delete" or bool(self.fix.strip())


class AnalysisResult(BaseModel):
    """Output of one detection run: overall score plus findings."""

    score: int = Field(default=0, ge=0, le=100)
    findings: list[Finding] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> int:
        try:
            score = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            score = 0
        return max(0, min(100, score))

    @field_validator("findings", mode="before")
    @classmethod
    def _number_findings(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        findings = []
        for i, item in enumerate(value):
            if isinstance(item, Finding):
                findings.append(item)
                continue
            if not isinstance(item, dict):
                continue
            item = dict(item)
            if not item.get("id"):
                item["id"] = f"finding-{i + 1}"
            findings.append(item)
        return findings


# ---------------------------------------------------------------------------
# Patch / commit data classes
# ---------------------------------------------------------------------------
@dataclass
class FileEditBatch:
    """All actionable findings for one file path."""

    path: str
    findings: list[Finding] = field(default_factory=list)


@dataclass
class FileChange:
    """A file whose patched content differs from the original."""

    path: str
    original: str
    patched: str
    additions: int = 0
    deletions: int = 0


@dataclass
class PRResult:
    """Outcome of a successful fix pull request."""

    pr_url: str
    pr_number: int
    branch: str
    files_changed: list[FileChange] = field(default_factory=list)
    skipped_files: list[str] = field(default_factory=list)
