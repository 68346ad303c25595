"""Shared fixtures for quickpatch tests."""

import pytest

from github_client import PullRequestInfo

WRITE_CALLS = {
    "create_branch",
    "create_blob",
    "create_tree",
    "create_commit",
    "update_branch_ref",
    "create_pull_request",
}


class FakeHost:
    """In-memory stand-in for GitHubHost that records every call."""

    repo = "octocat/hello-world"

    def __init__(self, files=None, head_sha="head000", tree_sha="tree000"):
        # path -> str | bytes | None (missing) | Exception (raised on fetch)
        self.files = dict(files or {})
        self.head_sha = head_sha
        self.tree_sha = tree_sha
        self.calls: list[tuple] = []
        self.blobs: dict[str, str] = {}
        self.trees: dict[str, tuple[str, list]] = {}
        self.commits: dict[str, tuple[str, str, str]] = {}
        self.refs: dict[str, str] = {}
        self.pulls: list[dict] = []
        self.fail_on: str | None = None

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if name == self.fail_on:
            from github_client import GitHubError

            raise GitHubError(f"Failed to {name}: boom")

    @property
    def writes(self) -> list[str]:
        return [c[0] for c in self.calls if c[0] in WRITE_CALLS]

    def get_default_branch(self):
        return "main"

    def get_branch_head_sha(self, branch):
        self._record("get_branch_head_sha", branch)
        return self.head_sha

    def get_commit_tree_sha(self, sha):
        self._record("get_commit_tree_sha", sha)
        return self.tree_sha

    def list_files(self, ref):
        self._record("list_files", ref)
        return list(self.files)

    def get_file_content(self, path, ref):
        self._record("get_file_content", path, ref)
        value = self.files.get(path)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, str):
            return value.encode("utf-8")
        return value

    def create_branch(self, name, sha):
        self._record("create_branch", name, sha)
        self.refs[name] = sha

    def create_blob(self, content):
        self._record("create_blob")
        sha = f"blob{len(self.blobs) + 1}"
        self.blobs[sha] = content
        return sha

    def create_tree(self, base_tree_sha, entries):
        self._record("create_tree", base_tree_sha)
        sha = f"tree{len(self.trees) + 1}"
        self.trees[sha] = (base_tree_sha, list(entries))
        return sha

    def create_commit(self, tree_sha, parent_sha, message):
        self._record("create_commit", tree_sha, parent_sha)
        sha = f"commit{len(self.commits) + 1}"
        self.commits[sha] = (tree_sha, parent_sha, message)
        return sha

    def update_branch_ref(self, name, sha):
        self._record("update_branch_ref", name, sha)
        self.refs[name] = sha

    def create_pull_request(self, head, base, title, body):
        self._record("create_pull_request", head, base)
        self.pulls.append({"head": head, "base": base, "title": title, "body": body})
        number = len(self.pulls)
        return PullRequestInfo(
            url=f"https://github.com/{self.repo}/pull/{number}", number=number
        )


@pytest.fixture
def make_host():
    """Factory: make_host({"path": "content"}) -> FakeHost."""
    return FakeHost
