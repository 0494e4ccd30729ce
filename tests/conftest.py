"""Pytest configuration and fixtures for repohealth tests."""

from pathlib import Path
from typing import Dict, Iterable, Optional

import pytest

from repohealth.sources import Found, NotFound, Source, TransportError
from repohealth.types import AuditResult, Category, SourceMode

CI_WORKFLOW = """\
name: CI
on:
  push:
    branches: [main]
  pull_request:
permissions:
  contents: read
jobs:
  lint:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - run: ruff check .
  test:
    runs-on: ubuntu-latest
    strategy:
      matrix:
        python: ["3.10", "3.11"]
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-python@v5
        with:
          cache: pip
      - run: pytest
"""

CODEQL_WORKFLOW = """\
name: CodeQL
on: [push]
permissions:
  security-events: write
jobs:
  analyze:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: github/codeql-action/analyze@v3
"""

RELEASE_WORKFLOW = """\
name: Release
on:
  release:
    types: [published]
permissions:
  contents: write
jobs:
  publish:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - run: echo publishing
"""

# Every local check in every category passes against this tree.
HEALTHY_FILES: Dict[str, str] = {
    "README.md": (
        "# Widget\n\n"
        "![CI](https://github.com/acme/widget/actions/workflows/ci.yml/badge.svg)\n\n"
        "## Overview\nWhat the widget does.\n\n"
        "## Installation\npip install widget\n\n"
        "## Usage\nExample: `widget run`\n\n"
        "## Contributing\nSee CONTRIBUTING.md\n\n"
        "## License\nMIT\n"
    ),
    "CHANGELOG.md": "# Changelog\n\n## [1.0.0] - 2024-01-01\n\n### Added\n- First release\n",
    "CONTRIBUTING.md": (
        "# Contributing\n\n## Development setup\nCreate a virtualenv.\n\n"
        "## Pull requests\nOpen a pull request; a maintainer will review and approve it.\n\n"
        "## Testing\nRun the test suite with pytest.\n"
    ),
    "CODE_OF_CONDUCT.md": "# Contributor Covenant Code of Conduct\n",
    "LICENSE": "MIT License\n\nCopyright (c) 2024 Acme\n",
    ".github/ISSUE_TEMPLATE/bug_report.md": "---\nname: Bug report\n---\n",
    ".github/ISSUE_TEMPLATE/feature_request.md": "---\nname: Feature request\n---\n",
    ".github/PULL_REQUEST_TEMPLATE.md": "## Description\n\n## Checklist\n- [ ] Tests added\n",
    "SECURITY.md": (
        "# Security Policy\n\n## Supported Versions\n1.x\n\n"
        "## Reporting a Vulnerability\nEmail security@acme.example\n"
    ),
    "requirements.txt": "requests==2.31.0\n",
    ".github/dependabot.yml": "version: 2\n",
    ".gitignore": ".env\n*.log\n__pycache__/\n",
    ".pre-commit-config.yaml": "repos:\n  - repo: https://github.com/gitleaks/gitleaks\n",
    ".github/workflows/ci.yml": CI_WORKFLOW,
    ".github/workflows/codeql.yml": CODEQL_WORKFLOW,
    ".github/workflows/release.yml": RELEASE_WORKFLOW,
    ".github/CODEOWNERS": "* @acme/maintainers\n",
    ".git/HEAD": "ref: refs/heads/feature/widgets\n",
    ".git/refs/remotes/origin/HEAD": "ref: refs/remotes/origin/main\n",
}


def write_tree(root: Path, files: Dict[str, str]) -> Path:
    for rel, content in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    return root


class DictSource(Source):
    """In-memory source: files are strings, directories are derived from paths."""

    def __init__(
        self,
        files: Optional[Dict[str, object]] = None,
        mode: SourceMode = SourceMode.REMOTE,
        errors: Iterable[str] = (),
        fail_all: Optional[str] = None,
    ):
        self.files = dict(files or {})
        self.mode = mode
        self.errors = set(errors)
        self.fail_all = fail_all
        self.requested = []

    def fetch(self, path):
        self.requested.append(path)
        if self.fail_all is not None:
            return TransportError(path, self.fail_all)
        if path in self.errors:
            return TransportError(path, f"cannot read {path}")
        if path in self.files:
            return Found(self.files[path])
        prefix = path.rstrip("/") + "/"
        children = sorted({p[len(prefix):].split("/", 1)[0] for p in self.files if p.startswith(prefix)})
        if children:
            return Found(children)
        return NotFound(path)


class StubAuditor:
    """Auditor returning canned results per source mode and counting calls."""

    def __init__(self, category: Category, remote: Optional[AuditResult] = None,
                 local: Optional[AuditResult] = None, crash: bool = False):
        self.category = category
        self.results = {SourceMode.REMOTE: remote, SourceMode.LOCAL: local}
        self.crash = crash
        self.calls = []

    def audit(self, source):
        self.calls.append(source.mode)
        if self.crash:
            raise RuntimeError("boom")
        result = self.results[source.mode]
        if result is None:
            return AuditResult(self.category, 100, source.mode)
        return result


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Stands in for ``requests.Session``; unknown URLs answer 404."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append(url)
        response = self.responses.get(url, FakeResponse(404, {"message": "Not Found"}))
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def healthy_repo(tmp_path) -> Path:
    """A local checkout where every check passes."""
    return write_tree(tmp_path / "healthy", HEALTHY_FILES)


@pytest.fixture
def empty_repo(tmp_path) -> Path:
    root = tmp_path / "empty"
    root.mkdir()
    return root


@pytest.fixture
def result():
    """Build an AuditResult with sensible defaults."""
    def _make(category, score=100, source=SourceMode.LOCAL, error=None, transport_failure=False):
        return AuditResult(category, score, source, error=error, transport_failure=transport_failure)
    return _make
