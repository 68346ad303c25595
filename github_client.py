"""GitHub API client for the git data operations behind a fix PR."""

import functools
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from urllib.parse import quote

import requests
import requests.exceptions
from github import Auth, Github
from github.InputGitTreeElement import InputGitTreeElement
from github.GithubException import GithubException
from github.Repository import Repository

from config import require_env, validate_repo, with_retry

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"


class GitHubError(ValueError):
    """A GitHub call failed (transport or API error)."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------
@dataclass
class TreeEntry:
    """A blob to place in a new tree."""

    path: str
    sha: str
    mode: str = "100644"  # regular file
    type: str = "blob"


@dataclass
class PullRequestInfo:
    """The parts of a created pull request we keep."""

    url: str
    number: int


# ---------------------------------------------------------------------------
# Client construction
# ---------------------------------------------------------------------------
def get_github_token() -> str:
    return require_env(
        "GITHUB_TOKEN", "Get your token at: https://github.com/settings/tokens"
    )


def get_github_client(token: str) -> Github:
    """Create a GitHub client authenticated with *token*."""
    return Github(auth=Auth.Token(token))


def _error_message(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    return data.get("message", str(e))


@contextmanager
def _github_call(action: str) -> Iterator[None]:
    """Translate PyGithub failures into GitHubError."""
    try:
        yield
    except GithubException as e:
        logger.error("GitHub %s failed: %s", action, _error_message(e))
        raise GitHubError(f"Failed to {action}: {_error_message(e)}") from e


# ---------------------------------------------------------------------------
# Repository handle
# ---------------------------------------------------------------------------
class GitHubHost:
    """
    Source-hosting operations for one repository.

    Every method is a single request/response against the GitHub API.
    Failures raise GitHubError, except get_file_content which returns
    None for a missing file.
    """

    def __init__(self, repo: str, client: Github, token: str):
        self.repo = validate_repo(repo)
        self._client = client
        self._token = token

    @classmethod
    def from_token(cls, repo: str, token: str | None = None) -> "GitHubHost":
        token = token or get_github_token()
        return cls(repo, get_github_client(token), token)

    @functools.cached_property
    def repository(self) -> Repository:
        with _github_call(f"open {self.repo}"):
            return self._client.get_repo(self.repo)

    # -- Read operations ----------------------------------------------------
    def get_default_branch(self) -> str:
        return self.repository.default_branch

    def get_branch_head_sha(self, branch: str) -> str:
        with _github_call(f"read branch {branch}"):
            return self.repository.get_git_ref(f"heads/{branch}").object.sha

    def get_commit_tree_sha(self, sha: str) -> str:
        with _github_call(f"read commit {sha[:7]}"):
            return self.repository.get_git_commit(sha).tree.sha

    def list_files(self, ref: str) -> list[str]:
        """Return every blob path in the recursive tree at *ref*."""
        with _github_call(f"list tree at {ref}"):
            tree = self.repository.get_git_tree(ref, recursive=True)
            return [item.path for item in tree.tree if item.type == "blob"]

    @with_retry(
        max_retries=3,
        base_delay=1.0,
        retryable=(
            requests.exceptions.ConnectionError,
            requests.exceptions.Timeout,
        ),
    )
    def get_file_content(self, path: str, ref: str) -> bytes | None:
        """
        Fetch the raw bytes of *path* at *ref*.

        This uses the REST API directly with the raw media type, which
        also serves files too large for the JSON contents endpoint.

        Returns:
            File content, or None when the file does not exist at *ref*
        """
        url = f"{API_URL}/repos/{self.repo}/contents/{quote(path)}"
        headers = {
            "Authorization": f"token {self._token}",
            "Accept": "application/vnd.github.raw",
        }

        response = requests.get(url, headers=headers, params={"ref": ref}, timeout=30)

        if response.status_code == 404:
            return None
        response.raise_for_status()

        return response.content

    # -- Write operations ---------------------------------------------------
    def create_branch(self, name: str, sha: str) -> None:
        with _github_call(f"create branch {name}"):
            self.repository.create_git_ref(ref=f"refs/heads/{name}", sha=sha)
        logger.info("Created branch %s at %s", name, sha[:7])

    def create_blob(self, content: str) -> str:
        with _github_call("create blob"):
            return self.repository.create_git_blob(content, "utf-8").sha

    def create_tree(self, base_tree_sha: str, entries: list[TreeEntry]) -> str:
        elements = [
            InputGitTreeElement(
                path=entry.path, mode=entry.mode, type=entry.type, sha=entry.sha
            )
            for entry in entries
        ]
        with _github_call("create tree"):
            base_tree = self.repository.get_git_tree(base_tree_sha)
            return self.repository.create_git_tree(elements, base_tree).sha

    def create_commit(self, tree_sha: str, parent_sha: str, message: str) -> str:
        with _github_call("create commit"):
            tree = self.repository.get_git_tree(tree_sha)
            parent = self.repository.get_git_commit(parent_sha)
            return self.repository.create_git_commit(message, tree, [parent]).sha

    def update_branch_ref(self, name: str, sha: str) -> None:
        with _github_call(f"update branch {name}"):
            self.repository.get_git_ref(f"heads/{name}").edit(sha)
        logger.info("Moved %s to %s", name, sha[:7])

    def create_pull_request(
        self, head: str, base: str, title: str, body: str
    ) -> PullRequestInfo:
        with _github_call("open pull request"):
            pr = self.repository.create_pull(
                base=base, head=head, title=title, body=body
            )
        logger.info("Opened PR #%d: %s", pr.number, pr.html_url)
        return PullRequestInfo(url=pr.html_url, number=pr.number)
