"""Shared configuration and utilities for QuickPatch."""

import functools
import json
import logging
import os
import re
import time
from collections.abc import Callable

from dotenv import load_dotenv
from google import genai
from google.genai import errors as genai_errors
from pydantic import ValidationError

from models import AnalysisResult

# ---------------------------------------------------------------------------
# Environment & logging (initialised once on first import)
# ---------------------------------------------------------------------------
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
def _env_int(name: str, default: int) -> int:
    """Read a positive int from the environment, warn and fall back on junk."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = 0
    if value < 1:
        logger.warning("Ignoring %s=%r, using %d", name, raw, default)
        return default
    return value


USE_MOCK: bool = os.getenv("USE_MOCK", "false").lower() == "true"
DEFAULT_MODEL: str = os.getenv("QUICKPATCH_MODEL", "gemini-2.5-pro")
STORE_DIR: str = os.getenv("QUICKPATCH_STORE_DIR", ".quickpatch")
FETCH_WORKERS: int = _env_int("QUICKPATCH_FETCH_WORKERS", 4)

BRANCH_PREFIX: str = "quickpatch/fix-"
COMMIT_MESSAGE: str = "fix: QuickPatch automated security fixes"
PR_TITLE: str = "[QuickPatch] Automated Security Fixes"

# Repo format: "owner/repo"
_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")

# Gemini errors worth retrying: 5xx, and 429 rate limiting
_RETRYABLE_GEMINI_ERRORS: tuple[type[Exception], ...] = (
    genai_errors.ServerError,
    genai_errors.ClientError,
)


def _is_transient_gemini_error(exc: Exception) -> bool:
    if isinstance(exc, genai_errors.ClientError):
        return exc.code == 429
    return True


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------
def validate_repo(repo: str) -> str:
    """Validate repository string matches 'owner/repo' format.

    Returns *repo* unchanged on success; raises ``ValueError`` otherwise.
    """
    if not _REPO_PATTERN.match(repo):
        raise ValueError(
            f"Invalid repo format: {repo!r}. Expected 'owner/repo' "
            f"(e.g. 'octocat/hello-world')."
        )
    return repo


def require_env(name: str, hint: str = "") -> str:
    """Return the environment variable *name*, fail fast if missing."""
    value = os.getenv(name)
    if not value:
        message = f"{name} not found. Set it in .env file."
        if hint:
            message += f"\n{hint}"
        raise ValueError(message)
    return value


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------
def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
    retry_if: Callable[[Exception], bool] | None = None,
):
    """Decorator: retry a function with exponential back-off.

    *retry_if* narrows *retryable*: an exception it rejects is raised at once.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exc: Exception | None = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except retryable as exc:
                    if retry_if is not None and not retry_if(exc):
                        raise
                    last_exc = exc
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Attempt %d/%d for %s failed: %s. Retrying in %.1fs...",
                            attempt + 1,
                            max_retries,
                            func.__name__,
                            exc,
                            delay,
                        )
                        time.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Gemini client
# ---------------------------------------------------------------------------
def get_gemini_client(api_key: str | None = None) -> genai.Client:
    """Build a Gemini client from *api_key* or ``GEMINI_API_KEY``."""
    api_key = api_key or require_env("GEMINI_API_KEY")
    return genai.Client(api_key=api_key)


@with_retry(
    max_retries=3,
    base_delay=2.0,
    retryable=_RETRYABLE_GEMINI_ERRORS,
    retry_if=_is_transient_gemini_error,
)
def call_gemini(
    prompt: str,
    system_instruction: str,
    client: genai.Client,
    model: str = DEFAULT_MODEL,
) -> str:
    """Call Gemini and return the raw response text.

    Retries automatically on transient API errors.
    """
    response = client.models.generate_content(
        model=model,
        contents=prompt,
        config={
            "system_instruction": system_instruction,
            "response_mime_type": "application/json",
        },
    )
    return response.text or ""


# ---------------------------------------------------------------------------
# LLM response parsing
# ---------------------------------------------------------------------------
def parse_llm_json(text: str) -> AnalysisResult | None:
    """Extract the first JSON object from *text* and validate as AnalysisResult."""
    start = text.find("{")
    if start == -1:
        logger.warning("No JSON object found in LLM response")
        return None

    try:
        decoder = json.JSONDecoder()
        obj, _ = decoder.raw_decode(text[start:])
        if not isinstance(obj.get("findings"), list):
            logger.warning("LLM response has no findings list")
            return None
        return AnalysisResult.model_validate(obj)
    except json.JSONDecodeError as e:
        logger.warning("JSON decode error: %s", e)
        return None
    except ValidationError as e:
        logger.warning("Pydantic validation error: %s", e)
        return None
