"""Markdown body for QuickPatch pull requests."""

import textwrap
from collections.abc import Iterable, Sequence

from models import SEVERITY_ORDER, Finding

_SEVERITY_EMOJI: dict[str, str] = {
    "critical": "🔴",
    "high": "🟠",
    "medium": "🔵",
    "low": "⚪",
}

_ACTION_LABEL: dict[str, str] = {
    "replace": "Modified",
    "add": "Added",
    "delete": "Removed",
}

_MANUAL_LABEL = "Manual review"

FOOTER = "---\n_Generated by QuickPatch • [Learn more](https://quickpatch.dev)_\n"


def action_label(finding: Finding) -> str:
    """Label describing what the PR did for *finding*."""
    if not finding.is_actionable:
        return _MANUAL_LABEL
    return _ACTION_LABEL.get(finding.action, "Fixed")


def build_pr_body(
    findings: Sequence[Finding],
    skipped_files: Iterable[str] = (),
) -> str:
    """
    Render the pull request body.

    Findings are grouped critical -> high -> medium -> low, keeping input
    order inside each group. Empty groups are left out. The output depends
    only on the arguments.
    """
    lines: list[str] = [
        "## 🔒 QuickPatch Automated Security Fixes",
        "",
        "This PR was automatically generated by "
        "[QuickPatch](https://quickpatch.dev) to address security vulnerabilities.",
        "",
    ]

    for severity in SEVERITY_ORDER:
        group = [f for f in findings if f.severity == severity]
        if not group:
            continue

        lines.append(
            f"### {_SEVERITY_EMOJI[severity]} {severity.capitalize()} ({len(group)})"
        )
        lines.append("")
        for f in group:
            title = f.title or "Untitled finding"
            location = f"{f.file or 'unknown'}:{f.line}"
            lines.append(f"- [ ] **{title}** in `{location}` ({action_label(f)})")
            if f.description:
                lines.append(textwrap.indent(f.description, "  "))
        lines.append("")

    skipped = list(skipped_files)
    if skipped:
        lines.append("### ⚠️ Files not modified")
        lines.append("")
        lines.append("_These files could not be fetched or patched:_")
        lines.append("")
        lines.extend(f"- `{path}`" for path in skipped)
        lines.append("")

    return "\n".join(lines) + "\n" + FOOTER
