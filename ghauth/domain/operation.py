"""
Reconciliation result domain objects for ghauth.

Provides standardized result types for the per-record outcome of a sync
run and the summary accumulated across all records.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional


class OutcomeStatus(Enum):
    """Status of an individual record."""
    CLONED = "cloned"
    UPDATED = "updated"
    SKIPPED_CONFLICT = "skipped_conflict"
    FAILED = "failed"

    @property
    def ok(self) -> bool:
        return self in (OutcomeStatus.CLONED, OutcomeStatus.UPDATED)


@dataclass
class RepoOutcome:
    """
    What happened to one declared repository.

    ``error_kind`` names the RecordError subclass for non-successful
    outcomes so operators can tell a foreign repository apart from a
    clone failure without reading logs.
    """
    repo: str
    destination: str
    status: OutcomeStatus
    state: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    stash: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    line_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            'repo': self.repo,
            'destination': self.destination,
            'status': self.status.value,
        }
        if self.state:
            result['state'] = self.state
        if self.message:
            result['message'] = self.message
        if self.error:
            result['error'] = self.error
            result['error_kind'] = self.error_kind
        if self.stash:
            result['stash'] = self.stash
        if self.warnings:
            result['warnings'] = list(self.warnings)
        if self.line_number:
            result['line'] = self.line_number
        return result


@dataclass
class SyncSummary:
    """
    Summary of a reconciliation run across every line of the list.

    Invalid lines count as failures so the exit status reflects them.
    """
    total: int = 0
    cloned: int = 0
    updated: int = 0
    conflicts: int = 0
    failed: int = 0
    invalid: int = 0
    details: List[RepoOutcome] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return self.cloned + self.updated

    @property
    def success(self) -> bool:
        """True if every record was cloned or updated."""
        return self.conflicts == 0 and self.failed == 0 and self.invalid == 0

    def add_outcome(self, outcome: RepoOutcome) -> None:
        """Add a record outcome and update counts."""
        self.details.append(outcome)
        self.total += 1

        if outcome.status == OutcomeStatus.CLONED:
            self.cloned += 1
        elif outcome.status == OutcomeStatus.UPDATED:
            self.updated += 1
        elif outcome.status == OutcomeStatus.SKIPPED_CONFLICT:
            self.conflicts += 1
            self.errors.append(f"{outcome.repo} -> {outcome.destination}: {outcome.error}")
        elif outcome.status == OutcomeStatus.FAILED:
            self.failed += 1
            self.errors.append(f"{outcome.repo} -> {outcome.destination}: {outcome.error}")

    def add_invalid(self, line_number: int, raw: str, reason: str) -> None:
        self.total += 1
        self.invalid += 1
        self.errors.append(f"line {line_number}: {reason} ({raw.strip()!r})")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'type': 'summary',
            'total': self.total,
            'cloned': self.cloned,
            'updated': self.updated,
            'skipped_conflict': self.conflicts,
            'failed': self.failed,
            'invalid': self.invalid,
            'errors': self.errors,
        }
