"""
Secret file infrastructure for ghauth.

Provides the two places an access token is allowed to live after
issuance:
- TokenHandoff: a write-once/read-once file that carries the token from
  ``ghauth auth`` to ``ghauth sync``
- GitCredentialStore: the ``credential.helper store`` file git reads
  for github.com, so remotes never carry the token

All writes are atomic (temp file, then rename) and owner-only (0600).
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union
import logging

from .git_client import GitClient

logger = logging.getLogger(__name__)

GITHUB_CREDENTIAL_PREFIX = "https://x-access-token:"
GITHUB_CREDENTIAL_HOST = "@github.com"


def write_private(path: Path, data: Union[str, bytes]) -> None:
    """Write data atomically to path with mode 0600."""
    path.parent.mkdir(parents=True, exist_ok=True)
    # mkstemp creates the file with mode 0600
    fd, temp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp"
    )

    try:
        mode = 'wb' if isinstance(data, bytes) else 'w'
        with os.fdopen(fd, mode) as f:
            f.write(data)
        os.chmod(temp_path, 0o600)
        os.replace(temp_path, path)

    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def default_handoff_path() -> Path:
    return Path(tempfile.gettempdir()) / "ghauth-access-token"


class TokenHandoff:
    """
    Single well-known location passing the token between commands.

    Example:
        TokenHandoff(path).publish(token.value)
        ...
        value = TokenHandoff(path).consume()  # file is gone afterwards
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path).expanduser() if path else default_handoff_path()

    def publish(self, token: str) -> Path:
        write_private(self.path, token + "\n")
        logger.debug(f"Token handed off via {self.path}")
        return self.path

    def consume(self) -> Optional[str]:
        """Read the token and delete the file. Returns None if absent or empty."""
        try:
            value = self.path.read_text().strip()
        except FileNotFoundError:
            return None
        finally:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass
        return value or None


class GitCredentialStore:
    """
    Keeps the github.com entry of git's plain-text credential store.

    Entries for other hosts are preserved; earlier github.com entries are
    replaced by the new token.
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        git_client: Optional[GitClient] = None,
        configure_helper: bool = True
    ):
        self.path = Path(path).expanduser() if path else Path.home() / ".git-credentials"
        self.git = git_client or GitClient()
        self.configure_helper = configure_helper

    @staticmethod
    def credential_line(token: str) -> str:
        return f"{GITHUB_CREDENTIAL_PREFIX}{token}{GITHUB_CREDENTIAL_HOST}"

    def _existing_lines(self) -> List[str]:
        try:
            return self.path.read_text().splitlines()
        except FileNotFoundError:
            return []

    def store(self, token: str) -> Path:
        """
        Record token for github.com and enable the store helper.

        Returns:
            Path of the credentials file
        """
        kept = [
            line for line in self._existing_lines()
            if line.strip() and not line.strip().endswith(GITHUB_CREDENTIAL_HOST)
        ]
        kept.append(self.credential_line(token))
        write_private(self.path, "\n".join(kept) + "\n")

        if self.configure_helper:
            helper = "store"
            if self.path != Path.home() / ".git-credentials":
                helper = f"store --file={self.path}"
            if not self.git.set_global_config("credential.helper", helper):
                logger.warning("Could not set 'credential.helper store' in global git config")

        logger.debug(f"Git credentials for github.com written to {self.path}")
        return self.path
