"""
Commit graph builder - turns findings into a fix branch and pull request.

Order of remote operations:

    head sha -> base tree -> fetch + patch files (read-only)
    -> branch -> blobs -> tree -> commit -> ref update -> pull request

Nothing is written to the repository until at least one file has been
patched. There is no rollback: if a write step fails, the new branch
may be left behind. It is unreachable from the base branch, and the
next run uses a fresh branch name.
"""

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import requests.exceptions

from config import BRANCH_PREFIX, COMMIT_MESSAGE, FETCH_WORKERS, PR_TITLE
from diff_parser import diff_stats
from github_client import GitHubError, GitHubHost, TreeEntry
from models import FileChange, FileEditBatch, Finding, PRResult
from narrative import build_pr_body
from patcher import apply_findings
from planner import plan_patches

logger = logging.getLogger(__name__)


class NothingToCommitError(Exception):
    """No file would change: no actionable findings, or none applied."""


def make_branch_name() -> str:
    """Unique fix branch name derived from the current time in ms."""
    return f"{BRANCH_PREFIX}{int(time.time() * 1000)}"


# ---------------------------------------------------------------------------
# Fetch & patch (read-only)
# ---------------------------------------------------------------------------
def _patch_file(host: GitHubHost, batch: FileEditBatch, ref: str) -> FileChange | None:
    """Fetch one file and apply its batch; None when the file is skipped."""
    try:
        raw = host.get_file_content(batch.path, ref)
    except (GitHubError, requests.exceptions.RequestException) as e:
        logger.warning("Skipping %s: fetch failed: %s", batch.path, e)
        return None

    if raw is None:
        logger.warning("Skipping %s: not found at %s", batch.path, ref[:7])
        return None

    try:
        original = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Skipping %s: not UTF-8 text", batch.path)
        return None

    patched = apply_findings(original, batch.findings)
    if patched == original:
        logger.warning("Skipping %s: no finding could be applied", batch.path)
        return None

    additions, deletions = diff_stats(batch.path, original, patched)
    logger.info("   Patched %s (+%d -%d)", batch.path, additions, deletions)
    return FileChange(
        path=batch.path,
        original=original,
        patched=patched,
        additions=additions,
        deletions=deletions,
    )


def prepare_changes(
    host: GitHubHost,
    findings: Sequence[Finding],
    ref: str,
    max_workers: int = FETCH_WORKERS,
) -> tuple[list[FileChange], list[str]]:
    """
    Compute patched contents for every file with actionable findings.

    Makes no writes to the repository.

    Args:
        host: Source-hosting client for the repository
        findings: Normalized findings from one analysis
        ref: Commit sha (or branch) to read original contents from
        max_workers: Parallel file fetches

    Returns:
        Tuple of (changes, skipped_paths), both in first-seen file order

    Raises:
        NothingToCommitError: If no finding is actionable or no file changed
    """
    batches = plan_patches(findings)
    if not batches:
        raise NothingToCommitError("No actionable findings to apply")

    logger.info("📝 Patching %d file(s)...", len(batches))

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        results = list(pool.map(lambda b: _patch_file(host, b, ref), batches))

    changes = [change for change in results if change is not None]
    skipped = [b.path for b, change in zip(batches, results) if change is None]

    if not changes:
        raise NothingToCommitError("No files were modified")

    return changes, skipped


# ---------------------------------------------------------------------------
# Commit graph
# ---------------------------------------------------------------------------
def create_fix_pr(
    host: GitHubHost,
    findings: Sequence[Finding],
    base_branch: str,
    branch_name: str | None = None,
    max_workers: int = FETCH_WORKERS,
) -> PRResult:
    """
    Apply *findings* on a new branch and open a pull request.

    Args:
        host: Source-hosting client for the repository
        findings: All findings of the analysis (non-actionable ones only
            show up in the PR body)
        base_branch: Branch to fork from and target with the PR
        branch_name: Override for the generated fix branch name
        max_workers: Parallel file fetches

    Returns:
        PRResult with the PR url/number and per-file stats

    Raises:
        NothingToCommitError: Before any write, if nothing would change
        GitHubError: If any GitHub call fails
    """
    branch_name = branch_name or make_branch_name()

    head_sha = host.get_branch_head_sha(base_branch)
    base_tree_sha = host.get_commit_tree_sha(head_sha)
    logger.info("🌿 %s is at %s", base_branch, head_sha[:7])

    changes, skipped = prepare_changes(host, findings, head_sha, max_workers)

    host.create_branch(branch_name, head_sha)

    entries = [
        TreeEntry(path=change.path, sha=host.create_blob(change.patched))
        for change in changes
    ]
    tree_sha = host.create_tree(base_tree_sha, entries)
    commit_sha = host.create_commit(tree_sha, head_sha, COMMIT_MESSAGE)
    host.update_branch_ref(branch_name, commit_sha)

    pr = host.create_pull_request(
        head=branch_name,
        base=base_branch,
        title=PR_TITLE,
        body=build_pr_body(findings, skipped),
    )

    logger.info(
        "✅ PR #%d opened with %d file(s) changed, %d skipped",
        pr.number,
        len(changes),
        len(skipped),
    )
    return PRResult(
        pr_url=pr.url,
        pr_number=pr.number,
        branch=branch_name,
        files_changed=changes,
        skipped_files=skipped,
    )
