"""QuickPatch command line entry point."""

import argparse
import logging
import sys

from google.genai import errors as genai_errors

from config import STORE_DIR, validate_repo
from agent import (
    STATUS_FAILED,
    STATUS_FIXED,
    STATUS_NOTHING_TO_COMMIT,
    create_agent,
    finish_status,
)
from analyzer import AnalysisError, analyze_repo
from commit_builder import NothingToCommitError, create_fix_pr, prepare_changes
from diff_parser import render_diff
from github_client import GitHubError, GitHubHost
from models import AnalysisResult, PRResult
from narrative import build_pr_body
from store import AnalysisRecord, AnalysisStore

logger = logging.getLogger(__name__)


def print_analysis(analysis_id: str, result: AnalysisResult) -> None:
    """Pretty print an analysis."""
    icon = {"critical": "🔴", "high": "🟠", "medium": "🔵", "low": "⚪"}

    print(f"\n📋 Analysis {analysis_id}: score {result.score}/100\n")
    for f in result.findings:
        marker = "" if f.is_actionable else " (manual)"
        print(f"{icon[f.severity]} [{f.severity}] {f.file}:{f.line} {f.title}{marker}")
        if f.description:
            print(f"   {f.description}")


def print_pr(pr: PRResult) -> None:
    print(f"\n✅ Fix succeeded with {len(pr.files_changed)} file(s) changed")
    print(f"   PR #{pr.pr_number}: {pr.pr_url}")
    print(f"   Branch: {pr.branch}")
    for change in pr.files_changed:
        print(f"   📄 {change.path} (+{change.additions} -{change.deletions})")
    for path in pr.skipped_files:
        print(f"   ⚠️  {path} (skipped)")


def print_reports(records: list[AnalysisRecord]) -> None:
    if not records:
        print("No analyses stored")
        return
    for record in records:
        pr = f"PR #{record.pr_number}: {record.pr_url}" if record.pr_url else "no PR"
        print(
            f"{record.id}  {record.repo_full_name}  score {record.score}/100  "
            f"{len(record.findings)} finding(s)  {pr}  ({record.created_at})"
        )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------
def cmd_analyze(args: argparse.Namespace, host: GitHubHost, store: AnalysisStore) -> int:
    branch = args.branch or host.get_default_branch()
    result = analyze_repo(host, branch)
    record = store.save_analysis(host.repo, result)
    print_analysis(record.id, result)
    return 0


def cmd_fix(args: argparse.Namespace, host: GitHubHost, store: AnalysisStore) -> int:
    record = store.load(args.analysis_id)
    if record.repo_full_name != host.repo:
        raise KeyError(
            f"Analysis {record.id} belongs to {record.repo_full_name}, not {host.repo}"
        )
    branch = args.branch or host.get_default_branch()

    if args.dry_run:
        head_sha = host.get_branch_head_sha(branch)
        changes, skipped = prepare_changes(host, record.findings, head_sha)
        for change in changes:
            print(render_diff(change.path, change.original, change.patched))
        for path in skipped:
            print(f"⚠️  {path} (skipped)")
        print(build_pr_body(record.findings, skipped))
        return 0

    pr = create_fix_pr(host, record.findings, branch)
    store.record_pull_request(record.id, pr.pr_url, pr.pr_number)
    print_pr(pr)
    return 0


def cmd_run(args: argparse.Namespace, host: GitHubHost, store: AnalysisStore) -> int:
    branch = args.branch or host.get_default_branch()
    agent = create_agent(host, store)
    final = agent.invoke({"repo": host.repo, "base_branch": branch})

    status = finish_status(final)
    if status == STATUS_FIXED:
        print_pr(final["pr"])
        return 0
    if status == STATUS_FAILED:
        print(f"❌ Fix generation failed: {final.get('error')}")
        return 1
    if status == STATUS_NOTHING_TO_COMMIT:
        reason = final.get("error") or "no finding could be applied automatically"
        print(f"ℹ️  No changes to commit: {reason}")
        return 0

    print("✨ No vulnerabilities to fix")
    return 0


def cmd_reports(args: argparse.Namespace, store: AnalysisStore) -> int:
    print_reports(store.list_analyses(args.repo))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quickpatch",
        description="Scan a GitHub repository and open a PR with security fixes.",
    )
    parser.add_argument("--store", default=STORE_DIR, help="analysis store directory")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="scan a repository and store findings")
    analyze.add_argument("repo", type=validate_repo, help="owner/repo")
    analyze.add_argument("--branch", help="branch to scan (default branch if omitted)")
    analyze.set_defaults(handler=cmd_analyze)

    fix = sub.add_parser("fix", help="open a fix PR from a stored analysis")
    fix.add_argument("repo", type=validate_repo, help="owner/repo")
    fix.add_argument("--analysis-id", required=True)
    fix.add_argument("--branch", help="base branch (default branch if omitted)")
    fix.add_argument(
        "--dry-run", action="store_true", help="print diffs, change nothing"
    )
    fix.set_defaults(handler=cmd_fix)

    run = sub.add_parser("run", help="scan and open a fix PR in one go")
    run.add_argument("repo", type=validate_repo, help="owner/repo")
    run.add_argument("--branch", help="branch to scan and target")
    run.set_defaults(handler=cmd_run)

    reports = sub.add_parser("reports", help="list stored analyses and their PRs")
    reports.add_argument(
        "repo", nargs="?", type=validate_repo, help="only analyses of owner/repo"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    store = AnalysisStore(args.store)
    if args.command == "reports":
        return cmd_reports(args, store)

    try:
        host = GitHubHost.from_token(args.repo)
        return args.handler(args, host, store)

    except NothingToCommitError as e:
        print(f"ℹ️  No changes to commit: {e}")
        return 0
    except KeyError as e:
        logger.error("%s", e.args[0] if e.args else e)
        return 1
    except (ValueError, AnalysisError, genai_errors.APIError) as e:
        # GitHubError is a ValueError too
        logger.error("Fix generation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
