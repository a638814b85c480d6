"""
Shared fixtures for ghauth tests.

Every test runs with a private HOME and working directory so neither the
user's git configuration nor a real github-app.env can leak in.
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from ghauth.vault import encrypt_private_key

PASSWORD_HASH = "$6$c2FsdHNhbHQ$Zm9vYmFyYmF6cXV4Zm9vYmFyYmF6cXV4Zm9vYmFyYmF6cXV4"

ISOLATED_VARIABLES = [
    'GHAUTH_CONFIG',
    'GHAUTH_GITHUB_TIMEOUT',
    'GHAUTH_SYNC_REPOS_FILE',
    'GHAUTH_SYNC_DEFAULT_DESTINATION',
    'GITHUB_APP_ID',
    'GITHUB_CLIENT_ID',
    'GITHUB_APP_PRIVATE_KEY_ENCRYPTED',
    'MASTER_PASSWORD_HASH',
    'SALT_VALUE',
    'GITHUB_ACCESS_TOKEN',
]


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Private HOME, cwd and git identity for each test."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()

    for name in ISOLATED_VARIABLES:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("GHAUTH_CREDENTIALS_HANDOFF_PATH", str(tmp_path / "handoff" / "token"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "ghauth tests")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "tests@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "ghauth tests")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "tests@example.com")
    monkeypatch.setattr("ghauth.progress._progress", None)
    monkeypatch.chdir(work)
    return work


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def pem_bytes(rsa_key):
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )


@pytest.fixture
def password_hash():
    return PASSWORD_HASH


@pytest.fixture
def sealed_key(tmp_path, pem_bytes, password_hash):
    """Encrypted key artifact on disk."""
    path = tmp_path / "keys" / "github-app.pem.enc"
    path.parent.mkdir()
    path.write_bytes(encrypt_private_key(pem_bytes, password_hash))
    return path


@pytest.fixture
def app_env(monkeypatch, sealed_key, password_hash):
    """Complete App configuration supplied through the environment."""
    monkeypatch.setenv("GITHUB_APP_ID", "123456")
    monkeypatch.setenv("GITHUB_CLIENT_ID", "Iv1.0123456789abcdef")
    monkeypatch.setenv("GITHUB_APP_PRIVATE_KEY_ENCRYPTED", str(sealed_key))
    monkeypatch.setenv("MASTER_PASSWORD_HASH", password_hash)
    return sealed_key
