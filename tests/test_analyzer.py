"""Tests for repository analysis (Gemini replaced by a fake client)."""

from types import SimpleNamespace

import pytest
from google.genai import errors as genai_errors

import analyzer
from analyzer import (
    AnalysisError,
    analyze_repo,
    build_prompt,
    fetch_sources,
    select_files,
    truncate_lines,
)
from github_client import GitHubError


class FakeGemini:
    """Mimics genai.Client().models.generate_content."""

    def __init__(self, text: str):
        self.prompts: list[str] = []
        self.configs: list[dict] = []
        self.models = SimpleNamespace(generate_content=self._generate)
        self._text = text

    def _generate(self, model, contents, config):
        self.prompts.append(contents)
        self.configs.append(config)
        return SimpleNamespace(text=self._text)


@pytest.fixture(autouse=True)
def no_mock(monkeypatch):
    monkeypatch.setattr(analyzer, "USE_MOCK", False)


def test_select_files_filters_and_caps():
    paths = [
        "README.md",
        "src/app.py",
        "web/index.tsx",
        ".env.example",
        "Dockerfile",
        "deploy/k8s.yaml",
        "logo.png",
        "requirements.txt",
    ]

    assert select_files(paths) == [
        "src/app.py",
        "web/index.tsx",
        ".env.example",
        "Dockerfile",
        "deploy/k8s.yaml",
        "requirements.txt",
    ]
    assert select_files(paths, max_files=2) == ["src/app.py", "web/index.tsx"]


def test_truncate_lines():
    assert truncate_lines("1\n2\n3\n4", max_lines=2) == "1\n2"


def test_fetch_sources_skips_unreadable(make_host):
    host = make_host(
        {
            "a.py": "print(1)",
            "b.py": None,
            "c.py": b"\xff\xfe",
            "d.py": GitHubError("Failed"),
        }
    )

    sources = fetch_sources(host, ["a.py", "b.py", "c.py", "d.py"], "main")

    assert [s.path for s in sources] == ["a.py"]


def test_build_prompt_wraps_each_file(make_host):
    host = make_host({"a.py": "x = 1"})
    prompt = build_prompt(fetch_sources(host, ["a.py"], "main"))

    assert "--- FILE: a.py ---\nx = 1\n--- END FILE ---" in prompt


def test_analyze_repo_normalizes_model_output(make_host):
    host = make_host({"app.py": "import os\n", "notes.txt": "hi"})
    gemini = FakeGemini(
        '{"score": 130, "findings": [{"severity": "HIGH", "file": "app.py", '
        '"line": "1", "title": "t", "fix": "import shlex"}]}'
    )

    result = analyze_repo(host, "main", client=gemini)

    assert result.score == 100
    assert result.findings[0].id == "finding-1"
    assert result.findings[0].severity == "high"
    assert result.findings[0].line == 1
    assert "--- FILE: app.py ---" in gemini.prompts[0]
    assert "notes.txt" not in gemini.prompts[0]
    assert gemini.configs[0]["response_mime_type"] == "application/json"


def test_analyze_repo_without_relevant_files_skips_model(make_host):
    host = make_host({"README.md": "docs"})
    gemini = FakeGemini("unused")

    result = analyze_repo(host, "main", client=gemini)

    assert result.score == 100
    assert result.findings == []
    assert gemini.prompts == []


def test_analyze_repo_unparseable_response(make_host):
    host = make_host({"app.py": "x"})

    with pytest.raises(AnalysisError):
        analyze_repo(host, "main", client=FakeGemini("sorry, no JSON"))


def test_analyze_repo_wraps_gemini_api_errors(make_host):
    class RejectingGemini(FakeGemini):
        def _generate(self, model, contents, config):
            raise genai_errors.ClientError(
                400, {"error": {"message": "bad request", "status": "INVALID_ARGUMENT"}}
            )

    host = make_host({"app.py": "x"})

    with pytest.raises(AnalysisError, match="Gemini request failed"):
        analyze_repo(host, "main", client=RejectingGemini(""))


def test_mock_mode_needs_no_network(make_host, monkeypatch):
    monkeypatch.setattr(analyzer, "USE_MOCK", True)
    host = make_host({})

    result = analyze_repo(host, "main")

    assert result.score == 42
    assert len(result.findings) == 3
    assert host.calls == []
