"""
Domain layer for ghauth.

Contains pure domain objects with no I/O or side effects:
- RepoRecord / SpecEntry: declared desired state
- Classification / LocalRepoState: what exists at a destination
- AppCredentials, Assertion, InstallationRecord, AccessToken: issuance
- RepoOutcome / SyncSummary: reconciliation results
"""

from .records import (
    RepoRecord,
    SpecEntry,
    LocalRepoState,
    Classification,
    REPO_ID_PATTERN,
    parse_github_repo,
)
from .credentials import AppCredentials, Assertion, InstallationRecord, AccessToken
from .operation import OutcomeStatus, RepoOutcome, SyncSummary

__all__ = [
    'RepoRecord',
    'SpecEntry',
    'LocalRepoState',
    'Classification',
    'REPO_ID_PATTERN',
    'parse_github_repo',
    'AppCredentials',
    'Assertion',
    'InstallationRecord',
    'AccessToken',
    'OutcomeStatus',
    'RepoOutcome',
    'SyncSummary',
]
