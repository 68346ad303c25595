"""Unified diffs of patched files, parsed with the unidiff library."""

import difflib
from dataclasses import dataclass

from unidiff import PatchSet


@dataclass
class FileDiff:
    """Parsed diff for a single file."""
    filename: str
    additions: int                        # count of added lines
    deletions: int                        # count of deleted lines


def render_diff(path: str, original: str, patched: str) -> str:
    """
    Render a unified diff between two versions of *path*.

    Both versions are split on LF only, so a CRLF file shows its
    carriage returns as part of each line. Returns "" when identical.
    """
    diff_lines = difflib.unified_diff(
        original.split("\n"),
        patched.split("\n"),
        fromfile=f"a/{path}",
        tofile=f"b/{path}",
        lineterm="",
    )
    diff_text = "\n".join(diff_lines)
    return diff_text + "\n" if diff_text else ""


def parse_diff(diff_text: str) -> list[FileDiff]:
    """
    Parse a unified diff into structured FileDiff objects.

    Args:
        diff_text: Raw unified diff string

    Returns:
        List of FileDiff objects, one per file
    """
    patch_set = PatchSet(diff_text)
    files = []

    for patched_file in patch_set:
        files.append(FileDiff(
            filename=patched_file.path,
            additions=patched_file.added,
            deletions=patched_file.removed,
        ))

    return files


def diff_stats(path: str, original: str, patched: str) -> tuple[int, int]:
    """Return (additions, deletions) between two versions of *path*."""
    files = parse_diff(render_diff(path, original, patched))
    if not files:
        return 0, 0
    return files[0].additions, files[0].deletions
