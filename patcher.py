"""
Line patch engine.

Applies a batch of line-addressed findings to one file's content. Line
numbers in every finding refer to the ORIGINAL file, so edits are applied
from the bottom of the file upwards: each splice only moves lines below
it, and every finding still pending targets a line above the current one.
Keep the descending order if you touch this module.
"""

import logging
from collections.abc import Iterable

from models import Finding

logger = logging.getLogger(__name__)


def detect_separator(content: str) -> str:
    """Return the line separator used by *content* (CRLF or LF)."""
    return "\r\n" if "\r\n" in content else "\n"


def split_lines(content: str, separator: str = "\n") -> list[str]:
    """
    Split *content* on *separator*.

    Unlike str.splitlines(), a trailing separator yields an empty last
    element, so joining the result gives back the exact input.
    """
    return content.split(separator)


def split_fix(fix: str) -> list[str]:
    """Split replacement text into lines, accepting LF or CRLF."""
    if not fix:
        return []
    return fix.replace("\r\n", "\n").split("\n")


def apply_finding(lines: list[str], finding: Finding) -> bool:
    """
    Apply one finding to *lines* in place.

    Returns False when the start line falls outside the current file
    (the finding is skipped), True otherwise.
    """
    start = finding.line - 1
    if start < 0 or start >= len(lines):
        logger.warning(
            "Skipping finding %s: line %d outside %s (%d lines)",
            finding.id,
            finding.line,
            finding.file,
            len(lines),
        )
        return False

    # Inclusive end, clamped to the last line
    end = min(finding.end_line - 1, len(lines) - 1)

    if finding.action == "replace":
        lines[start : end + 1] = split_fix(finding.fix)
    elif finding.action == "add":
        lines[start + 1 : start + 1] = split_fix(finding.fix)
    elif finding.action == "delete":
        del lines[start : end + 1]

    return True


def apply_findings(content: str, findings: Iterable[Finding]) -> str:
    """
    Apply all *findings* to *content* and return the patched text.

    Findings are sorted by line, highest first. Overlapping spans are not
    merged: each one is applied on its own in that order.

    Args:
        content: Original file content
        findings: Actionable findings for this file

    Returns:
        Patched content, joined with the file's original separator
    """
    separator = detect_separator(content)
    lines = split_lines(content, separator)

    for finding in sorted(findings, key=lambda f: f.line, reverse=True):
        apply_finding(lines, finding)

    return separator.join(lines)
