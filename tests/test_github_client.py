"""Tests for the GitHub client wrapper (no network)."""

from types import SimpleNamespace

import pytest
import requests
from github.GithubException import GithubException

import github_client
from github_client import GitHubError, GitHubHost, _github_call


class FakeGithub:
    """Stands in for github.Github; get_repo returns or raises *repo*."""

    def __init__(self, repo):
        self._repo = repo

    def get_repo(self, name):
        if isinstance(self._repo, Exception):
            raise self._repo
        return self._repo


def _response(status: int, content: bytes = b"") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response._content = content
    response.url = "https://api.github.com/repos/octocat/hello-world/contents/a.py"
    return response


@pytest.fixture
def fetched(monkeypatch):
    """Replace requests.get; returns the list of (url, headers, params) calls."""
    calls = []

    def install(response):
        def fake_get(url, headers, params, timeout):
            calls.append((url, headers, params))
            return response

        monkeypatch.setattr(github_client.requests, "get", fake_get)
        return calls

    return install


# ----- error translation -----


def test_github_call_translates_exceptions():
    with pytest.raises(GitHubError, match="Failed to create blob: Not Found"):
        with _github_call("create blob"):
            raise GithubException(404, {"message": "Not Found"})


def test_github_call_without_message_uses_exception_text():
    with pytest.raises(GitHubError, match="Failed to read branch main"):
        with _github_call("read branch main"):
            raise GithubException(500, None)


def test_repository_lookup_failure_is_github_error():
    host = GitHubHost(
        "octocat/hello-world",
        FakeGithub(GithubException(401, {"message": "Bad credentials"})),
        "t0ken",
    )

    with pytest.raises(GitHubError, match="Bad credentials"):
        host.get_default_branch()


def test_host_rejects_malformed_repo():
    with pytest.raises(ValueError, match="Invalid repo format"):
        GitHubHost("not-a-repo", FakeGithub(None), "t0ken")


def test_get_default_branch():
    host = GitHubHost(
        "octocat/hello-world", FakeGithub(SimpleNamespace(default_branch="trunk")), "t"
    )

    assert host.get_default_branch() == "trunk"


# ----- raw content -----


def test_get_file_content_missing_file_is_none(fetched):
    fetched(_response(404))
    host = GitHubHost("octocat/hello-world", FakeGithub(None), "t0ken")

    assert host.get_file_content("a.py", "abc123") is None


def test_get_file_content_returns_raw_bytes(fetched):
    calls = fetched(_response(200, b"print('hi')\n"))
    host = GitHubHost("octocat/hello-world", FakeGithub(None), "t0ken")

    assert host.get_file_content("src/a b.py", "abc123") == b"print('hi')\n"

    url, headers, params = calls[0]
    assert url.endswith("/repos/octocat/hello-world/contents/src/a%20b.py")
    assert headers["Accept"] == "application/vnd.github.raw"
    assert headers["Authorization"] == "token t0ken"
    assert params == {"ref": "abc123"}


def test_get_file_content_server_error_raises(fetched):
    calls = fetched(_response(500))
    host = GitHubHost("octocat/hello-world", FakeGithub(None), "t0ken")

    with pytest.raises(requests.exceptions.HTTPError):
        host.get_file_content("a.py", "abc123")
    assert len(calls) == 1
