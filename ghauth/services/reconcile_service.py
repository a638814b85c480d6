"""
Reconciliation service for ghauth.

Brings each declared repository to the state the list asks for:

    absent          -> clone
    empty_dir       -> remove the directory, clone
    non_git_dir     -> skipped_conflict (never touched)
    git_matching    -> normalize origin, stash, pull, restore stash
    git_mismatched  -> skipped_conflict (never touched)

Classification happens once per record, before anything is changed.
Records are processed sequentially and one record's failure never
stops the next one.
"""

import logging
import os
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Generator, Iterable, Optional

from ..domain.operation import OutcomeStatus, RepoOutcome, SyncSummary
from ..domain.records import (
    Classification,
    LocalRepoState,
    RepoRecord,
    SpecEntry,
    parse_github_repo,
)
from ..exit_codes import (
    DestinationConflict,
    InvalidRecordFormat,
    OperationFailed,
    RecordError,
)
from ..infra.git_client import GitClient, redact

logger = logging.getLogger(__name__)

STASH_PREFIX = "ghauth auto-stash before update"

_USERINFO = re.compile(r'(://)[^/@]+@')


def _strip_userinfo(url: Optional[str]) -> Optional[str]:
    """Drop ``user:secret@`` from a URL before it is logged or reported."""
    if not url:
        return url
    return _USERINFO.sub(r'\1', url)


def _last_line(output: Optional[str]) -> str:
    if not output:
        return "no output from git"
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    return lines[-1] if lines else "no output from git"


def classify(record: RepoRecord, git: GitClient) -> Classification:
    """
    Inspect a record's destination without modifying it.

    Any existing path that is not a directory (a file, a dangling
    symlink) is reported as non_git_dir so it is never overwritten.
    A git repository whose origin is missing or not on github.com is
    treated as mismatched.
    """
    path = Path(record.destination)
    shown = str(path)

    if not os.path.lexists(path):
        return Classification(LocalRepoState.ABSENT, shown)

    if not path.is_dir():
        return Classification(
            LocalRepoState.NON_GIT_DIR, shown,
            entry_count=1, details={'kind': 'file'},
        )

    if git.is_git_repo(shown):
        origin_url = _strip_userinfo(git.remote_url(shown))
        origin_repo = parse_github_repo(origin_url)
        if origin_repo and origin_repo.lower() == record.repo.lower():
            state = LocalRepoState.GIT_MATCHING
        else:
            state = LocalRepoState.GIT_MISMATCHED
        return Classification(state, shown, origin_url=origin_url, origin_repo=origin_repo)

    with os.scandir(path) as it:
        entry_count = sum(1 for _ in it)
    if entry_count == 0:
        return Classification(LocalRepoState.EMPTY_DIR, shown)
    return Classification(LocalRepoState.NON_GIT_DIR, shown, entry_count=entry_count)


class ReconciliationEngine:
    """
    Applies the repository list to the local filesystem.

    Example:
        engine = ReconciliationEngine()
        for outcome in engine.sync(entries, token):
            print(outcome)
        print(engine.last_result.to_dict())
    """

    def __init__(
        self,
        git_client: Optional[GitClient] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc)
    ):
        self.git = git_client or GitClient()
        self.clock = clock
        self.last_result: Optional[SyncSummary] = None

    def stash_message(self) -> str:
        """Unique message so the stash can be found again after the pull."""
        stamp = self.clock().strftime('%Y-%m-%dT%H:%M:%SZ')
        return f"{STASH_PREFIX} {stamp} {uuid.uuid4().hex[:8]}"

    def reconcile(self, record: RepoRecord, token: Optional[str]) -> RepoOutcome:
        """
        Reconcile a single record.

        Never raises for per-record problems: conflicts and git failures
        come back as skipped_conflict / failed outcomes.
        """
        state = None
        try:
            try:
                classification = classify(record, self.git)
            except OSError as e:
                raise OperationFailed(f"Could not inspect {record.destination}: {e}") from e
            state = classification.state
            logger.debug(f"{record.repo} -> {record.destination}: {state.value}")

            if state == LocalRepoState.ABSENT:
                return self._clone(record, token, classification)

            if state == LocalRepoState.EMPTY_DIR:
                try:
                    os.rmdir(record.destination)
                except OSError as e:
                    raise OperationFailed(f"Could not remove empty directory {record.destination}: {e}") from e
                return self._clone(record, token, classification)

            if state == LocalRepoState.NON_GIT_DIR:
                if classification.details.get('kind') == 'file':
                    reason = f"Destination exists and is not a directory: {record.destination}"
                else:
                    reason = (f"Directory exists but is not a git repository "
                              f"({classification.entry_count} entries): {record.destination}")
                raise DestinationConflict(reason)

            if state == LocalRepoState.GIT_MISMATCHED:
                found = classification.origin_repo or classification.origin_url or "no origin remote"
                raise DestinationConflict(
                    f"Directory contains a different repository: expected {record.repo}, found {found}"
                )

            return self._update(record, classification)

        except RecordError as e:
            status = (OutcomeStatus.SKIPPED_CONFLICT if isinstance(e, DestinationConflict)
                      else OutcomeStatus.FAILED)
            error = redact(str(e), [token] if token else [])
            log = logger.warning if status == OutcomeStatus.SKIPPED_CONFLICT else logger.error
            log(f"{record.repo}: {error}")
            return RepoOutcome(
                repo=record.repo,
                destination=record.destination,
                status=status,
                state=state.value if state else None,
                error=error,
                error_kind=e.kind,
                stash=e.details.get('stash'),
                line_number=record.line_number,
            )

    def _clone(self, record: RepoRecord, token: Optional[str],
               classification: Classification) -> RepoOutcome:
        if not token:
            raise OperationFailed("No access token available to clone with")

        parent = Path(record.destination).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OperationFailed(f"Could not create {parent}: {e}") from e

        logger.info(f"Cloning {record.repo} to {record.destination}")
        ok, output = self.git.clone(record.clone_url(token), record.destination, secrets=[token])
        if not ok:
            raise OperationFailed(f"Clone failed: {_last_line(output)}")

        # The token is only valid in the clone URL; never leave it in .git/config
        if not self.git.set_remote_url(record.destination, record.remote_url):
            raise OperationFailed(
                f"Cloned, but could not reset origin to {record.remote_url}; "
                f"run 'git remote set-url origin {record.remote_url}' in {record.destination}"
            )

        return RepoOutcome(
            repo=record.repo,
            destination=record.destination,
            status=OutcomeStatus.CLONED,
            state=classification.state.value,
            message="Cloned successfully",
            line_number=record.line_number,
        )

    def _update(self, record: RepoRecord, classification: Classification) -> RepoOutcome:
        path = record.destination

        # Always rewritten: origin_url was reported with credentials stripped
        if not self.git.set_remote_url(path, record.remote_url):
            raise OperationFailed(f"Could not normalize origin URL to {record.remote_url}")

        stash_message = None
        if self.git.has_uncommitted_changes(path):
            stash_message = self.stash_message()
            logger.info(f"{record.repo}: stashing local changes")
            ok, output = self.git.stash_push(path, stash_message)
            if not ok:
                raise OperationFailed(f"Local changes detected but stashing failed: {_last_line(output)}")

        logger.info(f"Updating {record.repo} in {path}")
        ok, output = self.git.pull(path)
        if not ok:
            if stash_message:
                raise OperationFailed(
                    f"Pull failed: {_last_line(output)}; local changes kept in stash '{stash_message}'",
                    stash=stash_message,
                )
            raise OperationFailed(f"Pull failed: {_last_line(output)}")

        message = "Updated successfully"
        warnings = []
        kept_stash = None
        if stash_message:
            ref = self.git.find_stash(path, stash_message)
            if ref is None:
                warnings.append(f"Could not find stash '{stash_message}' to restore local changes")
                kept_stash = stash_message
            else:
                ok, output = self.git.stash_pop(path, ref)
                if ok:
                    message = "Updated successfully; local changes restored"
                else:
                    warnings.append(
                        f"Merge conflicts while restoring local changes - check manually "
                        f"(stash '{stash_message}' was kept)"
                    )
                    kept_stash = stash_message

        for warning in warnings:
            logger.warning(f"{record.repo}: {warning}")

        return RepoOutcome(
            repo=record.repo,
            destination=record.destination,
            status=OutcomeStatus.UPDATED,
            state=classification.state.value,
            message=message,
            stash=kept_stash,
            warnings=warnings,
            line_number=record.line_number,
        )

    def sync(
        self,
        entries: Iterable[SpecEntry],
        token: Optional[str]
    ) -> Generator[Dict[str, Any], None, SyncSummary]:
        """
        Reconcile every entry in order.

        Args:
            entries: Parsed lines of the repository list
            token: Installation access token used for clones

        Yields:
            One result dict per entry (outcome or invalid line)

        Returns:
            SyncSummary, also kept as ``last_result``
        """
        summary = SyncSummary()
        self.last_result = summary

        for entry in entries:
            if not entry.valid:
                logger.warning(f"Line {entry.line_number}: {entry.error}")
                summary.add_invalid(entry.line_number, entry.raw, entry.error)
                yield {
                    'line': entry.line_number,
                    'status': 'invalid',
                    'error': entry.error,
                    'error_kind': InvalidRecordFormat.kind,
                }
                continue

            outcome = self.reconcile(entry.record, token)
            summary.add_outcome(outcome)
            yield outcome.to_dict()

        return summary
