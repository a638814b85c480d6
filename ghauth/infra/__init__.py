"""
Infrastructure layer for ghauth.

Contains abstractions for external systems:
- GitClient: Git command execution
- GitHubAppClient: GitHub App REST API access
- TokenHandoff / GitCredentialStore: owner-only secret files

These provide clean interfaces that can be mocked for testing.
"""

from .git_client import GitClient, redact
from .github_client import GitHubAppClient, ApiResponse
from .secret_store import TokenHandoff, GitCredentialStore, write_private

__all__ = [
    'GitClient',
    'redact',
    'GitHubAppClient',
    'ApiResponse',
    'TokenHandoff',
    'GitCredentialStore',
    'write_private',
]
