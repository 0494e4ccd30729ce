"""Data sources the auditors read repository state from.

Every source answers ``fetch(path)`` with one of three typed values:

- :class:`Found` carrying the content (``str`` for a file, a sorted ``list`` of
  entry names for a directory, decoded JSON for reserved API paths),
- :class:`NotFound` when the path does not exist, which is a compliance
  finding and never an error,
- :class:`TransportError` when the source could not answer at all.

Paths starting with ``@`` are reserved for repository settings that only the
hosting API knows about (see :data:`REPOSITORY`, :data:`BRANCHES`,
:func:`branch_protection_path`).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from repohealth.types import SourceMode

logger = logging.getLogger(__name__)

REPOSITORY = "@repository"
COMMITS = "@commits"
VULNERABILITY_REPORTING = "@private-vulnerability-reporting"
BRANCHES = "@branches"


def branch_protection_path(branch: str) -> str:
    return f"@branches/{branch}/protection"


def is_reserved(path: str) -> bool:
    return path.startswith("@")


@dataclass(frozen=True)
class Found:
    content: Any


@dataclass(frozen=True)
class NotFound:
    path: str


@dataclass(frozen=True)
class TransportError:
    path: str
    reason: str


FetchResult = Union[Found, NotFound, TransportError]


class Source:
    """Base class for repository data sources."""

    mode: SourceMode

    def fetch(self, path: str) -> FetchResult:
        raise NotImplementedError

    def describe(self) -> str:
        return self.mode.value


class LocalSource(Source):
    """Reads a checked-out repository straight from the filesystem."""

    mode = SourceMode.LOCAL

    def __init__(self, root: Union[str, Path] = "."):
        self.root = Path(root)

    def describe(self) -> str:
        return str(self.root)

    def fetch(self, path: str) -> FetchResult:
        """Read a file or list a directory below the repository root.

        Args:
            path: Repository-relative path; reserved ``@`` paths are never
                present locally

        Returns:
            Found with text or a sorted list of entry names, NotFound, or
            TransportError when the filesystem refused the read
        """
        if is_reserved(path):
            return NotFound(path)
        target = self.root / path.strip("/")
        try:
            if not self.root.is_dir():
                return TransportError(path, f"repository root {self.root} is not a readable directory")
            if target.is_dir():
                return Found(sorted(entry.name for entry in target.iterdir()))
            if target.is_file():
                return Found(target.read_text(encoding="utf-8", errors="replace"))
        except OSError as e:
            logger.debug("Local read of %s failed: %s", target, e)
            return TransportError(path, f"cannot read {path}: {e.strerror or e}")
        return NotFound(path)
