"""Group actionable findings into per-file edit batches."""

import logging
from collections.abc import Iterable

from models import FileEditBatch, Finding

logger = logging.getLogger(__name__)


def plan_patches(findings: Iterable[Finding]) -> list[FileEditBatch]:
    """
    Build one FileEditBatch per file, in first-seen order.

    Non-actionable findings are dropped here. Ordering inside a batch is
    left to the patch engine.

    Args:
        findings: Normalized findings for one repository snapshot

    Returns:
        List of batches; empty when there is nothing to commit
    """
    batches: dict[str, FileEditBatch] = {}
    dropped = 0

    for finding in findings:
        if not finding.is_actionable:
            dropped += 1
            continue
        batch = batches.get(finding.file)
        if batch is None:
            batch = batches[finding.file] = FileEditBatch(path=finding.file)
        batch.findings.append(finding)

    if dropped:
        logger.info("Skipping %d non-actionable finding(s)", dropped)

    return list(batches.values())
