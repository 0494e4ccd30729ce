"""GitHub REST API data source."""

from __future__ import annotations

import base64
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from repohealth import __version__
from repohealth.config import RemoteConfig
from repohealth.sources import (
    BRANCHES,
    COMMITS,
    REPOSITORY,
    VULNERABILITY_REPORTING,
    FetchResult,
    Found,
    NotFound,
    Source,
    TransportError,
)
from repohealth.types import SourceMode

logger = logging.getLogger(__name__)

HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
    "User-Agent": f"repohealth/{__version__}",
}


def _requests_session(config: RemoteConfig, token: Optional[str]) -> requests.Session:
    retry = Retry(
        total=config.retries,
        backoff_factor=config.backoff_factor,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD", "OPTIONS"),
    )
    sess = requests.Session()
    sess.headers.update(HEADERS)
    if token:
        sess.headers["Authorization"] = f"Bearer {token}"
    sess.mount("https://", HTTPAdapter(max_retries=retry))
    sess.mount("http://", HTTPAdapter(max_retries=retry))
    return sess


def _rate_limit_reason(response) -> Optional[str]:
    if response.status_code == 429:
        return "GitHub API rate limit exceeded"
    if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
        reset_ts = int(response.headers.get("X-RateLimit-Reset", 0) or 0)
        reset_time = datetime.fromtimestamp(reset_ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")
        return f"GitHub API rate limit reached, resets at {reset_time}"
    return None


class GitHubSource(Source):
    """Answers ``fetch(path)`` from the GitHub REST API.

    File paths map to the contents API; reserved ``@`` paths map to repository
    settings endpoints. The repository itself is fetched once before the first
    fetch: GitHub answers 404 for private repositories the token cannot see,
    so a missing repository is reported as a transport failure rather than
    letting every artifact look absent.

    Args:
        owner: Repository owner (user or organization)
        repo: Repository name
        token: Optional API token; anonymous access is rate limited and cannot
            read security settings
        config: Client settings
        session: Pre-built session, mostly for tests
    """

    mode = SourceMode.REMOTE

    def __init__(
        self,
        owner: str,
        repo: str,
        token: Optional[str] = None,
        config: Optional[RemoteConfig] = None,
        session: Optional[Any] = None,
    ):
        self.owner = owner
        self.repo = repo
        self.config = config or RemoteConfig()
        self.session = session if session is not None else _requests_session(self.config, token)
        self._repository_result: Optional[FetchResult] = None
        self._repository_lock = threading.Lock()

    def describe(self) -> str:
        return f"github:{self.owner}/{self.repo}"

    @property
    def _repo_url(self) -> str:
        return f"{self.config.api_base.rstrip('/')}/repos/{self.owner}/{self.repo}"

    def _get(self, path: str, url: str, params: Optional[Dict[str, Any]] = None) -> FetchResult:
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, params=params, timeout=self.config.timeout)
        except requests.RequestException as e:
            return TransportError(path, f"GitHub request failed: {e}")

        if r.status_code == 200:
            try:
                return Found(r.json())
            except ValueError as e:
                return TransportError(path, f"GitHub returned malformed JSON: {e}")
        if r.status_code == 404:
            return NotFound(path)

        reason = _rate_limit_reason(r)
        if reason is None:
            if r.status_code == 401:
                reason = "GitHub authentication failed (check the token)"
            elif r.status_code == 403:
                reason = f"GitHub denied access to {path} (token lacks permission)"
            else:
                reason = f"GitHub API returned HTTP {r.status_code} for {path}"
        return TransportError(path, reason)

    def _repository(self) -> FetchResult:
        with self._repository_lock:
            if self._repository_result is None:
                result = self._get(REPOSITORY, self._repo_url)
                if isinstance(result, NotFound):
                    result = TransportError(
                        REPOSITORY,
                        f"repository {self.owner}/{self.repo} is not accessible (missing or private)",
                    )
                self._repository_result = result
            return self._repository_result

    def fetch(self, path: str) -> FetchResult:
        repository = self._repository()
        if not isinstance(repository, Found):
            return TransportError(path, repository.reason)
        if path == REPOSITORY:
            return repository

        if path == COMMITS:
            return self._get(path, f"{self._repo_url}/commits", {"per_page": self.config.commit_depth})
        if path == VULNERABILITY_REPORTING:
            return self._get(path, f"{self._repo_url}/private-vulnerability-reporting")
        if path == BRANCHES:
            result = self._get(path, f"{self._repo_url}/branches", {"per_page": 100})
            if isinstance(result, Found):
                return Found(self._decode_contents(result.content))
            return result
        if path.startswith("@branches/") and path.endswith("/protection"):
            branch = path[len("@branches/"):-len("/protection")]
            return self._get(path, f"{self._repo_url}/branches/{quote(branch, safe='')}/protection")
        if path.startswith("@"):
            return NotFound(path)

        result = self._get(path, f"{self._repo_url}/contents/{quote(path.strip('/'))}")
        if isinstance(result, Found):
            return Found(self._decode_contents(result.content))
        return result

    @staticmethod
    def _decode_contents(data: Any) -> Any:
        """Turn a contents API payload into the shape LocalSource produces."""
        if isinstance(data, list):
            return sorted(entry.get("name", "") for entry in data)
        if isinstance(data, dict) and data.get("encoding") == "base64":
            raw = base64.b64decode(data.get("content", ""))
            return raw.decode("utf-8", errors="replace")
        if isinstance(data, dict):
            return data.get("content") or ""
        return data
