"""
QuickPatch Agent - LangGraph-based fix workflow

This module implements the scan-and-fix workflow as a state machine using
LangGraph. A repository is analysed (or a stored analysis is loaded), the
actionable findings are committed to a fresh branch, a pull request is
opened, and the PR is recorded against the analysis.
"""

import logging
from dataclasses import dataclass, field

from google.genai import errors as genai_errors
from langgraph.graph import END, START, StateGraph

import config as _config  # noqa: F401 - ensures env & logging are initialised
from analyzer import AnalysisError, analyze_repo
from commit_builder import NothingToCommitError, create_fix_pr
from github_client import GitHubError, GitHubHost
from models import Finding, PRResult
from store import AnalysisStore

logger = logging.getLogger(__name__)

# Terminal outcomes reported to the caller
STATUS_FIXED = "fixed"
STATUS_NO_VULNERABILITIES = "no_vulnerabilities"
STATUS_NOTHING_TO_COMMIT = "nothing_to_commit"
STATUS_FAILED = "failed"


# =============================================================================
# STATE DEFINITION
# =============================================================================
@dataclass
class FixState:
    """
    State that flows through the fix graph.

    Each node can read any field and return updates to specific fields.
    LangGraph automatically merges the updates into the state.
    """

    # Input (required)
    repo: str  # e.g., "octocat/hello-world"
    base_branch: str  # branch to scan and target with the PR

    # Optional input: reuse a stored analysis instead of scanning
    analysis_id: str | None = None

    # Populated by nodes
    score: int | None = None
    findings: list[Finding] = field(default_factory=list)
    pr: PRResult | None = None

    # Output
    status: str = ""
    error: str | None = None


# =============================================================================
# NODE FUNCTIONS
# =============================================================================
def analyze_node(state: FixState, host: GitHubHost, store: AnalysisStore) -> dict:
    """
    Node 1: Load the stored analysis, or scan the repository.

    Reads: repo, base_branch, analysis_id
    Updates: analysis_id, score, findings, status, error
    """
    try:
        if state.analysis_id:
            logger.info("📥 Loading analysis %s...", state.analysis_id)
            record = store.load(state.analysis_id)
            if record.repo_full_name != state.repo:
                raise KeyError(
                    f"Analysis {record.id} belongs to {record.repo_full_name}, "
                    f"not {state.repo}"
                )
            return {"score": record.score, "findings": record.findings}

        result = analyze_repo(host, state.base_branch)
        record = store.save_analysis(state.repo, result)
        return {
            "analysis_id": record.id,
            "score": result.score,
            "findings": result.findings,
        }

    except KeyError as e:
        message = e.args[0] if e.args else str(e)
        logger.error("Analysis failed: %s", message)
        return {"status": STATUS_FAILED, "error": message}

    except (AnalysisError, ValueError, genai_errors.APIError) as e:
        # GitHubError and a missing GEMINI_API_KEY are ValueErrors
        logger.error("Analysis failed: %s", e)
        return {"status": STATUS_FAILED, "error": str(e)}


def create_pr_node(state: FixState, host: GitHubHost) -> dict:
    """
    Node 2: Commit the fixes and open the pull request.

    Reads: base_branch, findings
    Updates: pr, status, error
    """
    logger.info("🔧 Creating fix PR for %s...", state.repo)

    try:
        pr = create_fix_pr(host, state.findings, state.base_branch)
        return {"pr": pr, "status": STATUS_FIXED}

    except NothingToCommitError as e:
        logger.info("   Nothing to commit: %s", e)
        return {"status": STATUS_NOTHING_TO_COMMIT, "error": str(e)}

    except GitHubError as e:
        logger.error("   ❌ Failed to create PR: %s", e)
        return {"status": STATUS_FAILED, "error": str(e)}


def record_pr_node(state: FixState, store: AnalysisStore) -> dict:
    """
    Node 3: Store the PR url/number on the originating analysis.

    Reads: analysis_id, pr
    """
    if state.analysis_id and state.pr:
        store.record_pull_request(
            state.analysis_id, state.pr.pr_url, state.pr.pr_number
        )
    return {}


# =============================================================================
# DECISION FUNCTIONS (for conditional edges)
# =============================================================================
def _get(state, key: str):
    # LangGraph may pass state as dict or dataclass
    return state.get(key) if isinstance(state, dict) else getattr(state, key)


def should_create_pr(state: FixState) -> str:
    """
    Decide whether to build a fix PR or end.

    Returns:
        "create_pr" if any finding can be applied
        "end" on failure or when nothing is actionable
    """
    if _get(state, "status") == STATUS_FAILED:
        return "end"

    findings = _get(state, "findings") or []
    actionable = [f for f in findings if f.is_actionable]

    if actionable:
        logger.info(
            "🔀 Decision: %d actionable finding(s) → creating PR", len(actionable)
        )
        return "create_pr"

    logger.info("🔀 Decision: nothing actionable → ending")
    return "end"


def should_record_pr(state: FixState) -> str:
    return "record_pr" if _get(state, "pr") else "end"


# =============================================================================
# GRAPH CONSTRUCTION
# =============================================================================
def build_fix_graph(host: GitHubHost, store: AnalysisStore) -> StateGraph:
    """Build the fix workflow graph around explicit host/store handles."""

    def analyze(state: FixState) -> dict:
        return analyze_node(state, host, store)

    def create_pr(state: FixState) -> dict:
        return create_pr_node(state, host)

    def record_pr(state: FixState) -> dict:
        return record_pr_node(state, store)

    graph = StateGraph(FixState)

    graph.add_node("analyze", analyze)
    graph.add_node("create_pr", create_pr)
    graph.add_node("record_pr", record_pr)

    graph.add_edge(START, "analyze")
    graph.add_conditional_edges(
        "analyze",
        should_create_pr,
        {"create_pr": "create_pr", "end": END},
    )
    graph.add_conditional_edges(
        "create_pr",
        should_record_pr,
        {"record_pr": "record_pr", "end": END},
    )
    graph.add_edge("record_pr", END)

    return graph


def create_agent(host: GitHubHost, store: AnalysisStore):
    """Create and compile the fix agent."""
    return build_fix_graph(host, store).compile()


def finish_status(final: dict) -> str:
    """Terminal status of a graph run (from the dict LangGraph returns)."""
    if final.get("status"):
        return final["status"]
    if final.get("findings"):
        # findings exist but none could be applied
        return STATUS_NOTHING_TO_COMMIT
    return STATUS_NO_VULNERABILITIES
