"""
GitHub App API client infrastructure for ghauth.

Provides a thin abstraction over the two App endpoints the issuance
pipeline needs:
- GET  /app/installations
- POST /app/installations/{id}/access_tokens

Both are authenticated with ``Bearer <assertion>``. The client performs
exactly one request per call: no retries, no backoff, and no timeout
unless one is configured.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import requests

from ..domain.credentials import Assertion

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
ACCEPT = "application/vnd.github.v3+json"
USER_AGENT = "ghauth"


@dataclass
class ApiResponse:
    """Status and decoded body of one API call."""
    status_code: int
    data: Any = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class GitHubAppClient:
    """
    GitHub REST client authenticated as the App itself.

    Example:
        client = GitHubAppClient()
        response = client.list_installations(assertion)
        if response.ok:
            print(response.data[0]["id"])
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitHubAppClient.

        Args:
            api_url: API base URL (GitHub Enterprise hosts differ)
            timeout: Request timeout in seconds, None for the transport default
            session: requests.Session to reuse (creates a new one if None)
        """
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self, assertion: Assertion) -> dict:
        return {
            'Accept': ACCEPT,
            'Authorization': assertion.authorization,
            'User-Agent': USER_AGENT,
        }

    def _request(self, method: str, endpoint: str, assertion: Assertion) -> ApiResponse:
        """
        Call the API once.

        Raises:
            requests.RequestException: on transport failure
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        logger.debug(f"{method} {url}")
        response = self.session.request(
            method,
            url,
            headers=self._headers(assertion),
            timeout=self.timeout
        )

        try:
            data = response.json()
        except ValueError:
            data = None

        message = None
        if isinstance(data, dict):
            message = data.get('message')

        if not 200 <= response.status_code < 300:
            logger.debug(f"GitHub API error {response.status_code} for {endpoint}: {message}")

        return ApiResponse(status_code=response.status_code, data=data, message=message)

    def list_installations(self, assertion: Assertion) -> ApiResponse:
        """List every installation visible to the signing App."""
        return self._request('GET', 'app/installations', assertion)

    def create_access_token(self, assertion: Assertion, installation_id: int) -> ApiResponse:
        """Mint an installation access token."""
        return self._request('POST', f'app/installations/{installation_id}/access_tokens', assertion)
