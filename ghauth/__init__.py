"""
ghauth - GitHub App installation tokens and declarative repository sync.

ghauth turns an encrypted GitHub App private key into a short-lived
installation access token, then uses that token to clone or update a
declared list of repositories without leaving it in any remote URL.

Quick Start:
    from ghauth import load_config, load_app_credentials, TokenIssuer

    config = load_config()
    result = TokenIssuer(load_app_credentials(config)).issue()
    print(result.installation.id, result.token.expires_at)

    from ghauth import ReconciliationEngine, iter_spec_entries, read_repo_file

    engine = ReconciliationEngine()
    entries = iter_spec_entries(read_repo_file("repos.txt"), "./repositories")
    for outcome in engine.sync(entries, result.token.value):
        print(outcome["repo"], outcome["status"])

Domain Objects:
    RepoRecord - One declared repository and its destination
    Classification - What was found at a destination before any change
    RepoOutcome / SyncSummary - Reconciliation results
    AccessToken - Installation token (masked when printed)

Services:
    TokenIssuer - Key vault, assertion signing, installation lookup, exchange
    ReconciliationEngine - Clone, update, or refuse per record
"""

__version__ = "0.1.0"

# Domain objects
from .domain import (
    RepoRecord,
    SpecEntry,
    LocalRepoState,
    Classification,
    OutcomeStatus,
    RepoOutcome,
    SyncSummary,
    AppCredentials,
    Assertion,
    InstallationRecord,
    AccessToken,
)

# Core components
from .vault import KeyVault, SigningKeyHandle, encrypt_private_key, decrypt_private_key
from .assertion import AssertionSigner
from .repo_spec import iter_spec_entries, parse_repo_spec, read_repo_file

# Services
from .services import (
    InstallationResolver,
    TokenExchanger,
    TokenIssuer,
    ReconciliationEngine,
    classify,
)

# Configuration
from .config import load_config, load_app_credentials

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "RepoRecord",
    "SpecEntry",
    "LocalRepoState",
    "Classification",
    "OutcomeStatus",
    "RepoOutcome",
    "SyncSummary",
    "AppCredentials",
    "Assertion",
    "InstallationRecord",
    "AccessToken",
    # Core components
    "KeyVault",
    "SigningKeyHandle",
    "encrypt_private_key",
    "decrypt_private_key",
    "AssertionSigner",
    "iter_spec_entries",
    "parse_repo_spec",
    "read_repo_file",
    # Services
    "InstallationResolver",
    "TokenExchanger",
    "TokenIssuer",
    "ReconciliationEngine",
    "classify",
    # Configuration
    "load_config",
    "load_app_credentials",
]
