"""Repository security analysis - connects GitHub + Gemini."""

import logging
import re
from dataclasses import dataclass

import requests.exceptions
from google import genai
from google.genai import errors as genai_errors

from config import (
    DEFAULT_MODEL,
    USE_MOCK,
    call_gemini,
    get_gemini_client,
    parse_llm_json,
)
from github_client import GitHubError, GitHubHost
from mock_data import MOCK_RESPONSE
from models import AnalysisResult
from prompts import ANALYZE_PROMPT, FILE_BLOCK, SECURITY_AUDIT_INSTRUCTION

logger = logging.getLogger(__name__)

# Keep one request within a comfortable context size
MAX_FILES = 40
MAX_LINES_PER_FILE = 500

FILE_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(r"\.(ts|tsx|js|jsx|py)$"),
    re.compile(r"\.env"),
    re.compile(r"package\.json$"),
    re.compile(r"requirements\.txt$"),
    re.compile(r"Dockerfile$"),
    re.compile(r"\.(yaml|yml)$"),
)


class AnalysisError(RuntimeError):
    """The model response could not be turned into findings."""


@dataclass
class SourceFile:
    """A file selected for analysis (possibly truncated)."""

    path: str
    content: str


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------
def is_relevant(path: str) -> bool:
    return any(pattern.search(path) for pattern in FILE_PATTERNS)


def select_files(paths: list[str], max_files: int = MAX_FILES) -> list[str]:
    """Keep the first *max_files* paths that look like source or config."""
    return [p for p in paths if is_relevant(p)][:max_files]


def truncate_lines(content: str, max_lines: int = MAX_LINES_PER_FILE) -> str:
    return "\n".join(content.split("\n")[:max_lines])


def fetch_sources(host: GitHubHost, paths: list[str], ref: str) -> list[SourceFile]:
    """Fetch and truncate each path; unreadable files are skipped."""
    sources: list[SourceFile] = []

    for path in paths:
        try:
            raw = host.get_file_content(path, ref)
            if not raw:
                continue
            content = raw.decode("utf-8")
        except (GitHubError, requests.exceptions.RequestException, UnicodeDecodeError) as e:
            # Binary, too large, gone since listing...
            logger.debug("Skipping %s: %s", path, e)
            continue
        sources.append(SourceFile(path=path, content=truncate_lines(content)))

    return sources


def build_prompt(sources: list[SourceFile]) -> str:
    files = "\n\n".join(
        FILE_BLOCK.format(path=s.path, content=s.content) for s in sources
    )
    return ANALYZE_PROMPT.format(files=files)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------
def parse_analysis(text: str) -> AnalysisResult:
    """Parse a model response; raises AnalysisError when unusable."""
    result = parse_llm_json(text)
    if result is None:
        raise AnalysisError("Failed to parse Gemini response")
    return result


def analyze_repo(
    host: GitHubHost,
    branch: str,
    client: genai.Client | None = None,
    model: str = DEFAULT_MODEL,
) -> AnalysisResult:
    """
    Scan *branch* of the repository for security issues.

    Args:
        host: Source-hosting client for the repository
        branch: Branch (or sha) to analyze
        client: Gemini client; built from GEMINI_API_KEY when omitted
        model: Gemini model to use

    Returns:
        AnalysisResult with normalized findings

    Raises:
        AnalysisError: If Gemini fails or its output cannot be parsed
        ValueError: If GEMINI_API_KEY is missing
    """
    if USE_MOCK:
        logger.info("[MOCK MODE - No API call made]")
        return parse_analysis(MOCK_RESPONSE)

    logger.info("🔍 Listing files in %s@%s...", host.repo, branch)
    paths = select_files(host.list_files(branch))

    if not paths:
        logger.info("   No relevant files found")
        return AnalysisResult(score=100, findings=[])

    sources = fetch_sources(host, paths, branch)
    logger.info("   Analysing %d of %d selected file(s)", len(sources), len(paths))

    if not sources:
        return AnalysisResult(score=100, findings=[])

    client = client or get_gemini_client()
    try:
        text = call_gemini(
            build_prompt(sources), SECURITY_AUDIT_INSTRUCTION, client, model
        )
    except genai_errors.APIError as e:
        logger.error("Gemini request failed: %s", e)
        raise AnalysisError(f"Gemini request failed: {e}") from e
    result = parse_analysis(text)

    logger.info(
        "   Score %d/100, %d finding(s)", result.score, len(result.findings)
    )
    return result
