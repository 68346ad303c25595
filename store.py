"""Local JSON store for analysis records and the PRs opened from them."""

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from models import AnalysisResult, Finding

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"^[\w-]+$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisRecord(BaseModel):
    """One stored analysis of a repository."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    repo_full_name: str
    score: int = 0
    findings: list[Finding] = Field(default_factory=list)
    pr_url: str | None = None
    pr_number: int | None = None
    created_at: str = Field(default_factory=_now)


class AnalysisStore:
    """Stores one JSON file per analysis under *root*."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, analysis_id: str) -> Path:
        if not _ID_PATTERN.match(analysis_id):
            raise KeyError(f"Invalid analysis id: {analysis_id!r}")
        return self.root / f"{analysis_id}.json"

    def save(self, record: AnalysisRecord) -> AnalysisRecord:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(record.id).write_text(
            record.model_dump_json(by_alias=True, indent=2), encoding="utf-8"
        )
        return record

    def save_analysis(self, repo: str, result: AnalysisResult) -> AnalysisRecord:
        """Persist a fresh detection result and return its record."""
        record = AnalysisRecord(
            repo_full_name=repo, score=result.score, findings=result.findings
        )
        logger.info("💾 Saved analysis %s for %s", record.id, repo)
        return self.save(record)

    def load(self, analysis_id: str) -> AnalysisRecord:
        """Load a record; raises KeyError when it does not exist."""
        path = self._path(analysis_id)
        if not path.is_file():
            raise KeyError(f"Analysis not found: {analysis_id}")
        return AnalysisRecord.model_validate_json(path.read_text(encoding="utf-8"))

    def record_pull_request(
        self, analysis_id: str, pr_url: str, pr_number: int
    ) -> AnalysisRecord:
        """Attach the opened PR to its originating analysis."""
        record = self.load(analysis_id)
        record.pr_url = pr_url
        record.pr_number = pr_number
        logger.info("💾 Recorded PR #%d for analysis %s", pr_number, analysis_id)
        return self.save(record)

    def list_analyses(self, repo: str | None = None) -> list[AnalysisRecord]:
        """All stored analyses, newest first, optionally for one *repo*."""
        if not self.root.is_dir():
            return []
        records = []
        for path in self.root.glob("*.json"):
            try:
                record = AnalysisRecord.model_validate_json(
                    path.read_text(encoding="utf-8")
                )
            except ValidationError as e:
                logger.warning("Skipping unreadable analysis %s: %s", path.name, e)
                continue
            if repo is None or record.repo_full_name == repo:
                records.append(record)
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records
