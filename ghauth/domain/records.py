"""
Desired-state and local-state domain objects.

A RepoRecord is one line of the declarative repository list; a
Classification is what the engine found at that record's destination.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

REPO_ID_PATTERN = re.compile(r'^[A-Za-z0-9._-]+/[A-Za-z0-9._-]+$')

GITHUB_HOST = "github.com"


@dataclass(frozen=True)
class RepoRecord:
    """A repository to synchronize and where it should live."""
    repo: str  # owner/name
    destination: str
    line_number: int = 0

    @property
    def remote_url(self) -> str:
        """Token-free HTTPS URL stored as origin."""
        return f"https://{GITHUB_HOST}/{self.repo}.git"

    def clone_url(self, token: str) -> str:
        """Transient URL with the access token embedded, used for clone only."""
        return f"https://x-access-token:{token}@{GITHUB_HOST}/{self.repo}.git"


@dataclass(frozen=True)
class SpecEntry:
    """
    One non-skipped line of the repository list.

    Exactly one of ``record`` and ``error`` is set.
    """
    line_number: int
    raw: str
    record: Optional[RepoRecord] = None
    error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.record is not None


class LocalRepoState(Enum):
    """Mutually exclusive states a destination path can be in."""
    ABSENT = "absent"
    EMPTY_DIR = "empty_dir"
    NON_GIT_DIR = "non_git_dir"
    GIT_MATCHING = "git_matching"
    GIT_MISMATCHED = "git_mismatched"


@dataclass(frozen=True)
class Classification:
    """Snapshot of a destination taken once, before any mutation."""
    state: LocalRepoState
    path: str
    origin_url: Optional[str] = None
    origin_repo: Optional[str] = None
    entry_count: int = 0
    details: Dict[str, Any] = field(default_factory=dict)


def parse_github_repo(url: Optional[str]) -> Optional[str]:
    """
    Extract ``owner/name`` from a GitHub remote URL.

    Handles HTTPS (with or without embedded credentials) and SSH forms.
    Returns None when the URL does not point at github.com.
    """
    if not url:
        return None
    match = re.search(r"github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$", url.strip())
    if match:
        return f"{match.group(1)}/{match.group(2)}"
    return None
