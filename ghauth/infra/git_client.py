"""
Git client infrastructure for ghauth.

Provides a clean abstraction over git command execution.
All git operations go through this client, making them:
- Easy to mock for testing
- Consistent in error handling
- Free of credentials in anything they log or return
"""

import os
import subprocess
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)

REDACTED = "****"


def redact(text: Optional[str], secrets: Iterable[str]) -> Optional[str]:
    """Replace every occurrence of each secret in text."""
    if not text:
        return text
    for secret in secrets:
        if secret:
            text = text.replace(secret, REDACTED)
    return text


class GitClient:
    """
    Abstraction over git commands.

    Provides methods for the operations reconciliation needs with
    consistent error handling and return types. Commands never prompt:
    a missing credential fails the command instead of blocking.

    Example:
        client = GitClient()
        if client.has_uncommitted_changes("/path/to/repo"):
            client.stash_push("/path/to/repo", "before update")
    """

    def __init__(self, timeout: Optional[int] = None, git: str = "git"):
        """
        Initialize GitClient.

        Args:
            timeout: Command timeout in seconds (default: none)
            git: git executable
        """
        self.timeout = timeout
        self.git = git

    def _env(self) -> dict:
        env = os.environ.copy()
        env['GIT_TERMINAL_PROMPT'] = '0'
        return env

    def _run(
        self,
        args: List[str],
        cwd: Optional[str] = None,
        capture_stderr: bool = False,
        secrets: Iterable[str] = ()
    ) -> Tuple[Optional[str], int]:
        """
        Run a git command.

        Args:
            args: git arguments, without the executable
            cwd: Working directory
            capture_stderr: Include stderr in output
            secrets: Strings to redact from logs and output

        Returns:
            Tuple of (output, returncode); returncode is -1 if git could not run
        """
        secrets = list(secrets)
        shown = redact(' '.join(['git'] + args), secrets)
        try:
            result = subprocess.run(
                [self.git] + args,
                cwd=cwd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                env=self._env()
            )

            output = result.stdout or ""
            if capture_stderr and result.stderr:
                output += result.stderr

            if result.returncode != 0:
                logger.debug(f"{shown} exited {result.returncode}: "
                             f"{redact(result.stderr.strip(), secrets)}")

            output = redact(output.strip(), secrets)
            return output or None, result.returncode

        except subprocess.TimeoutExpired:
            logger.warning(f"Git command timed out: {shown}")
            return "git command timed out", -1
        except OSError as e:
            logger.error(f"Git command failed: {shown} - {e}")
            return str(e), -1

    def is_git_repo(self, path: str) -> bool:
        """Check if path is a git repository (``.git`` dir or worktree file)."""
        return (Path(path) / ".git").exists()

    def remote_url(self, path: str, remote: str = "origin") -> Optional[str]:
        """
        Get remote URL.

        Args:
            path: Path to git repository
            remote: Remote name (default: "origin")

        Returns:
            Remote URL or None if not found
        """
        output, code = self._run(["config", "--get", f"remote.{remote}.url"], cwd=path)
        if code == 0 and output:
            return output.strip()
        return None

    def set_remote_url(self, path: str, url: str, remote: str = "origin") -> bool:
        """Point a remote at url. Returns True if successful."""
        _, code = self._run(["remote", "set-url", remote, url], cwd=path)
        return code == 0

    def has_uncommitted_changes(self, path: str) -> bool:
        """Check if tracked files have staged or unstaged modifications."""
        output, code = self._run(["status", "--porcelain", "--untracked-files=no"], cwd=path)
        return code == 0 and bool(output and output.strip())

    def clone(self, url: str, destination: str, secrets: Iterable[str] = ()) -> Tuple[bool, Optional[str]]:
        """
        Clone url into destination.

        Returns:
            (success, redacted git output)
        """
        output, code = self._run(
            ["clone", url, destination],
            capture_stderr=True,
            secrets=secrets
        )
        return code == 0, output

    def stash_push(self, path: str, message: str) -> Tuple[bool, Optional[str]]:
        """Stash tracked modifications under message."""
        output, code = self._run(["stash", "push", "-m", message], cwd=path, capture_stderr=True)
        return code == 0, output

    def find_stash(self, path: str, message: str) -> Optional[str]:
        """
        Locate the stash entry whose subject contains message.

        Returns:
            Stash ref such as ``stash@{0}``, or None
        """
        output, code = self._run(["stash", "list", "--format=%gd%x09%s"], cwd=path)
        if code != 0 or not output:
            return None
        for line in output.splitlines():
            ref, _, subject = line.partition('\t')
            if message in subject:
                return ref.strip()
        return None

    def stash_pop(self, path: str, ref: str) -> Tuple[bool, Optional[str]]:
        """Reapply and drop a stash entry."""
        output, code = self._run(["stash", "pop", ref], cwd=path, capture_stderr=True)
        return code == 0, output

    def pull(self, path: str) -> Tuple[bool, Optional[str]]:
        """
        Pull the current branch from its upstream.

        Fast-forward or merge is left to the user's git configuration.
        """
        output, code = self._run(["pull"], cwd=path, capture_stderr=True)
        return code == 0, output

    def set_global_config(self, key: str, value: str) -> bool:
        """Set a value in the user's global git configuration."""
        _, code = self._run(["config", "--global", key, value])
        return code == 0
