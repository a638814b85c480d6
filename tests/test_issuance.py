"""
Tests for the token issuance pipeline.

HTTP is mocked at the requests.Session level; keys are real.
"""

from unittest.mock import MagicMock

import jwt
import pytest
import requests

from ghauth.assertion import AssertionSigner
from ghauth.domain.credentials import AppCredentials, InstallationRecord
from ghauth.exit_codes import (
    API_ERROR,
    AUTH_ERROR,
    NO_INSTALLATION,
    AuthRejected,
    DecryptionFailed,
    InstallationLookupFailed,
    NoInstallationFound,
    TokenRequestFailed,
)
from ghauth.infra.github_client import GitHubAppClient
from ghauth.services.issuance_service import (
    InstallationResolver,
    TokenExchanger,
    TokenIssuer,
)
from ghauth.vault import SigningKeyHandle

INSTALLATIONS = [
    {"id": 42, "account": {"login": "acme"}, "target_type": "Organization",
     "repository_selection": "selected"},
    {"id": 43, "account": {"login": "other"}, "target_type": "User"},
]

TOKEN_RESPONSE = {"token": "ghs_examplevalue123", "expires_at": "2026-10-16T12:00:00Z"}


def make_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    if data is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = data
    return response


def make_client(*responses):
    session = MagicMock()
    session.request.side_effect = list(responses)
    return GitHubAppClient("https://api.github.test", session=session), session


@pytest.fixture
def assertion(rsa_key):
    with SigningKeyHandle(rsa_key) as handle:
        return AssertionSigner().sign("Iv1.abc", handle)


# ============================================================================
# GitHubAppClient
# ============================================================================

class TestGitHubAppClient:
    """Tests for the REST client."""

    def test_list_installations_request(self, assertion):
        client, session = make_client(make_response(200, INSTALLATIONS))
        response = client.list_installations(assertion)

        assert response.ok
        assert response.data == INSTALLATIONS
        method, url = session.request.call_args.args
        headers = session.request.call_args.kwargs['headers']
        assert method == 'GET'
        assert url == "https://api.github.test/app/installations"
        assert headers['Authorization'] == f"Bearer {assertion.token}"
        assert headers['Accept'] == "application/vnd.github.v3+json"

    def test_create_access_token_request(self, assertion):
        client, session = make_client(make_response(201, TOKEN_RESPONSE))
        client.create_access_token(assertion, 42)

        method, url = session.request.call_args.args
        assert method == 'POST'
        assert url == "https://api.github.test/app/installations/42/access_tokens"

    def test_timeout_passed_through(self, assertion):
        session = MagicMock()
        session.request.return_value = make_response(200, [])
        GitHubAppClient(session=session, timeout=7.5).list_installations(assertion)
        assert session.request.call_args.kwargs['timeout'] == 7.5

    def test_non_json_body(self, assertion):
        client, _ = make_client(make_response(502))
        response = client.list_installations(assertion)
        assert not response.ok
        assert response.data is None

    def test_error_message_extracted(self, assertion):
        client, _ = make_client(make_response(401, {"message": "Bad credentials"}))
        response = client.list_installations(assertion)
        assert response.message == "Bad credentials"


# ============================================================================
# InstallationResolver
# ============================================================================

class TestInstallationResolver:
    """Tests for installation discovery."""

    def test_first_installation_wins(self, assertion):
        client, _ = make_client(make_response(200, INSTALLATIONS))
        installation = InstallationResolver(client).resolve(assertion)

        assert installation.id == 42
        assert installation.account == "acme"
        assert installation.target_type == "Organization"

    def test_empty_list(self, assertion):
        client, _ = make_client(make_response(200, []))
        with pytest.raises(NoInstallationFound) as exc_info:
            InstallationResolver(client).resolve(assertion)
        assert exc_info.value.exit_code == NO_INSTALLATION

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_assertion(self, assertion, status):
        client, _ = make_client(make_response(status, {"message": "A JSON web token could not be decoded"}))
        with pytest.raises(AuthRejected) as exc_info:
            InstallationResolver(client).resolve(assertion)
        assert exc_info.value.exit_code == AUTH_ERROR
        assert exc_info.value.status_code == status

    def test_server_error(self, assertion):
        client, _ = make_client(make_response(500, {"message": "boom"}))
        with pytest.raises(InstallationLookupFailed) as exc_info:
            InstallationResolver(client).resolve(assertion)
        assert exc_info.value.exit_code == API_ERROR

    def test_non_list_body(self, assertion):
        client, _ = make_client(make_response(200, {"installations": []}))
        with pytest.raises(InstallationLookupFailed):
            InstallationResolver(client).resolve(assertion)

    def test_missing_id(self, assertion):
        client, _ = make_client(make_response(200, [{"account": {"login": "acme"}}]))
        with pytest.raises(InstallationLookupFailed):
            InstallationResolver(client).resolve(assertion)

    def test_transport_error(self, assertion):
        client, _ = make_client(requests.ConnectionError("unreachable"))
        with pytest.raises(InstallationLookupFailed, match="unreachable"):
            InstallationResolver(client).resolve(assertion)


# ============================================================================
# TokenExchanger
# ============================================================================

class TestTokenExchanger:
    """Tests for the token exchange."""

    installation = InstallationRecord(id=42, account="acme")

    def test_success(self, assertion):
        client, _ = make_client(make_response(201, TOKEN_RESPONSE))
        token = TokenExchanger(client).exchange(assertion, self.installation)

        assert token.value == "ghs_examplevalue123"
        assert token.installation_id == 42
        assert token.expires_at == "2026-10-16T12:00:00Z"
        assert "ghs_" not in str(token)
        assert "ghs_" not in repr(token)

    @pytest.mark.parametrize("data", [
        {"token": None},
        {"token": "null"},
        {"token": ""},
        {"expires_at": "2026-10-16T12:00:00Z"},
        ["not", "a", "dict"],
    ])
    def test_unusable_token(self, assertion, data):
        client, _ = make_client(make_response(201, data))
        with pytest.raises(TokenRequestFailed):
            TokenExchanger(client).exchange(assertion, self.installation)

    def test_http_error(self, assertion):
        client, _ = make_client(make_response(404, {"message": "Not Found"}))
        with pytest.raises(TokenRequestFailed, match="404"):
            TokenExchanger(client).exchange(assertion, self.installation)

    def test_transport_error(self, assertion):
        client, _ = make_client(requests.Timeout("timed out"))
        with pytest.raises(TokenRequestFailed):
            TokenExchanger(client).exchange(assertion, self.installation)


# ============================================================================
# TokenIssuer
# ============================================================================

class TestTokenIssuer:
    """Tests for the full pipeline."""

    @pytest.fixture
    def credentials(self, sealed_key, password_hash):
        return AppCredentials(
            app_id="123456",
            client_id="Iv1.abc",
            key_path=sealed_key,
            password_hash=password_hash,
        )

    def test_issue(self, credentials, rsa_key):
        client, session = make_client(
            make_response(200, INSTALLATIONS),
            make_response(201, TOKEN_RESPONSE),
        )
        result = TokenIssuer(credentials, client=client).issue()

        assert result.installation.id == 42
        assert result.token.value == "ghs_examplevalue123"
        assert result.to_dict()['installation_id'] == 42
        assert 'ghs_examplevalue123' not in str(result.to_dict())

        # Both calls carry a valid assertion issued for the client id
        for call in session.request.call_args_list:
            bearer = call.kwargs['headers']['Authorization'].split(' ', 1)[1]
            claims = jwt.decode(bearer, rsa_key.public_key(), algorithms=["RS256"])
            assert claims['iss'] == "Iv1.abc"

    def test_fresh_assertion_for_each_call(self, credentials):
        times = iter([1_000, 1_001])
        signer = AssertionSigner(clock=lambda: next(times) + 1_700_000_000)
        client, session = make_client(
            make_response(200, INSTALLATIONS),
            make_response(201, TOKEN_RESPONSE),
        )
        TokenIssuer(credentials, client=client, signer=signer).issue()

        bearers = [c.kwargs['headers']['Authorization'] for c in session.request.call_args_list]
        assert len(bearers) == 2
        assert bearers[0] != bearers[1]

    def test_key_released_after_success(self, credentials):
        client, _ = make_client(
            make_response(200, INSTALLATIONS),
            make_response(201, TOKEN_RESPONSE),
        )
        issuer = TokenIssuer(credentials, client=client)
        handles = []
        original = issuer.vault.decrypt

        def tracking_decrypt(password_hash):
            handle = original(password_hash)
            handles.append(handle)
            return handle

        issuer.vault.decrypt = tracking_decrypt
        issuer.issue()
        assert handles and handles[0].closed

    def test_key_released_after_failure(self, credentials):
        client, _ = make_client(make_response(200, []))
        issuer = TokenIssuer(credentials, client=client)
        handles = []
        original = issuer.vault.decrypt

        def tracking_decrypt(password_hash):
            handle = original(password_hash)
            handles.append(handle)
            return handle

        issuer.vault.decrypt = tracking_decrypt
        with pytest.raises(NoInstallationFound):
            issuer.issue()
        assert handles[0].closed

    def test_no_network_on_decryption_failure(self, sealed_key):
        credentials = AppCredentials(
            app_id="123456",
            client_id="Iv1.abc",
            key_path=sealed_key,
            password_hash="wrong",
        )
        client, session = make_client()
        with pytest.raises(DecryptionFailed):
            TokenIssuer(credentials, client=client).issue()
        session.request.assert_not_called()

    def test_null_token_is_fatal(self, credentials):
        client, _ = make_client(
            make_response(200, INSTALLATIONS),
            make_response(201, {"token": None}),
        )
        with pytest.raises(TokenRequestFailed):
            TokenIssuer(credentials, client=client).issue()
