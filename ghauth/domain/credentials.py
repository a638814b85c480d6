"""
Credential domain objects for the token issuance pipeline.

None of these objects serialize their secret fields; ``to_dict`` is safe
to print or log.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AppCredentials:
    """Validated configuration needed to issue a token."""
    app_id: str
    client_id: str
    key_path: Path
    password_hash: str = field(repr=False)
    api_url: str = "https://api.github.com"
    timeout: Optional[float] = None

    @property
    def issuer(self) -> str:
        """Value of the ``iss`` claim; GitHub accepts the client id here."""
        return self.client_id


@dataclass(frozen=True)
class Assertion:
    """A signed, time-bounded App identity claim (a JWT)."""
    token: str = field(repr=False)
    issuer: str
    issued_at: int
    expires_at: int

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class InstallationRecord:
    """A deployment of the App on a user or organization account."""
    id: int
    account: Optional[str] = None
    target_type: Optional[str] = None
    repository_selection: Optional[str] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'InstallationRecord':
        """Create from a GitHub ``/app/installations`` element."""
        account = data.get('account') or {}
        return cls(
            id=data['id'],
            account=account.get('login') if isinstance(account, dict) else None,
            target_type=data.get('target_type'),
            repository_selection=data.get('repository_selection'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'installation_id': self.id,
            'account': self.account,
            'target_type': self.target_type,
            'repository_selection': self.repository_selection,
        }


@dataclass(frozen=True)
class AccessToken:
    """
    Installation-scoped bearer credential.

    Remaining validity is unknown locally; ``expires_at`` is whatever
    GitHub reported and is only displayed.
    """
    value: str = field(repr=False)
    installation_id: int
    expires_at: Optional[str] = None

    def __str__(self) -> str:
        return "AccessToken(****)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'installation_id': self.installation_id,
            'expires_at': self.expires_at,
        }
