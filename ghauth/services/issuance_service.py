"""
Token issuance service for ghauth.

Orchestrates the pipeline that turns the encrypted App key into an
installation access token:

    KeyVault -> AssertionSigner -> InstallationResolver
             -> AssertionSigner (fresh) -> TokenExchanger

The decrypted key exists only inside the ``with`` block of issue(), so
it is released on success, on every error, and on SystemExit.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from ..assertion import AssertionSigner
from ..domain.credentials import AccessToken, AppCredentials, Assertion, InstallationRecord
from ..exit_codes import (
    AuthRejected,
    InstallationLookupFailed,
    NoInstallationFound,
    TokenRequestFailed,
)
from ..infra.github_client import ApiResponse, GitHubAppClient
from ..vault import KeyVault

logger = logging.getLogger(__name__)


def _describe(response: ApiResponse) -> str:
    return f"HTTP {response.status_code}: {response.message or 'no message'}"


class InstallationResolver:
    """Finds the installation to mint a token for (first in response order)."""

    def __init__(self, client: GitHubAppClient):
        self.client = client

    def resolve(self, assertion: Assertion) -> InstallationRecord:
        """
        Raises:
            AuthRejected: GitHub answered 401/403
            NoInstallationFound: the list is empty
            InstallationLookupFailed: transport error or unexpected response
        """
        try:
            response = self.client.list_installations(assertion)
        except requests.RequestException as e:
            raise InstallationLookupFailed(f"Could not reach GitHub to list installations: {e}") from e

        if response.status_code in (401, 403):
            raise AuthRejected(
                f"GitHub rejected the App assertion ({_describe(response)}). "
                "Check the App ID, Client ID and private key",
                status_code=response.status_code,
            )
        if not response.ok:
            raise InstallationLookupFailed(f"Listing installations failed ({_describe(response)})")
        if not isinstance(response.data, list):
            raise InstallationLookupFailed("Unexpected response from /app/installations (expected a list)")
        if not response.data:
            raise NoInstallationFound(
                "Could not auto-discover Installation ID: make sure your GitHub App "
                "is installed on at least one repository"
            )

        first = response.data[0]
        if not isinstance(first, dict) or first.get('id') is None:
            raise InstallationLookupFailed("First installation in the response has no id")

        installation = InstallationRecord.from_api_response(first)
        if len(response.data) > 1:
            logger.info(f"{len(response.data)} installations found, using the first")
        logger.info(f"Auto-discovered Installation ID: {installation.id}")
        return installation


class TokenExchanger:
    """Exchanges an assertion for an installation access token."""

    def __init__(self, client: GitHubAppClient):
        self.client = client

    def exchange(self, assertion: Assertion, installation: InstallationRecord) -> AccessToken:
        """
        Raises:
            TokenRequestFailed: on any failure, including a null token field
        """
        try:
            response = self.client.create_access_token(assertion, installation.id)
        except requests.RequestException as e:
            raise TokenRequestFailed(f"Could not reach GitHub to request an access token: {e}") from e

        if not response.ok:
            raise TokenRequestFailed(
                f"Failed to get installation access token ({_describe(response)}). "
                "Check your App ID and Client ID"
            )

        data = response.data if isinstance(response.data, dict) else {}
        token = data.get('token')
        if not isinstance(token, str) or not token.strip() or token == 'null':
            raise TokenRequestFailed("GitHub response did not contain an access token")

        return AccessToken(
            value=token.strip(),
            installation_id=installation.id,
            expires_at=data.get('expires_at'),
        )


@dataclass
class IssuanceResult:
    """Outcome of a successful issuance run."""
    installation: InstallationRecord
    token: AccessToken

    def to_dict(self) -> Dict[str, Any]:
        result = self.installation.to_dict()
        result['expires_at'] = self.token.expires_at
        return result


class TokenIssuer:
    """
    Runs the whole issuance pipeline for one set of App credentials.

    Example:
        issuer = TokenIssuer(load_app_credentials(config))
        result = issuer.issue()
        print(result.installation.id)
    """

    def __init__(
        self,
        credentials: AppCredentials,
        client: Optional[GitHubAppClient] = None,
        signer: Optional[AssertionSigner] = None,
        vault: Optional[KeyVault] = None
    ):
        self.credentials = credentials
        self.client = client or GitHubAppClient(credentials.api_url, timeout=credentials.timeout)
        self.signer = signer or AssertionSigner()
        self.vault = vault or KeyVault(credentials.key_path)
        self.resolver = InstallationResolver(self.client)
        self.exchanger = TokenExchanger(self.client)

    def issue(self) -> IssuanceResult:
        issuer = self.credentials.issuer

        logger.info("Decrypting GitHub App PEM key using stored hash...")
        with self.vault.decrypt(self.credentials.password_hash) as handle:
            logger.info("Querying installations...")
            installation = self.resolver.resolve(self.signer.sign(issuer, handle))

            logger.info("Requesting installation access token...")
            token = self.exchanger.exchange(self.signer.sign(issuer, handle), installation)

        return IssuanceResult(installation=installation, token=token)
