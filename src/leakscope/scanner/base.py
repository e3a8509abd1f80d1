"""Core data model for the secret-detection engine.

Defines the records that flow through a scan:
- FileRecord: one unit of scan input
- Finding: one classified detection
- ScanSummary / ScanResult: the aggregate views handed to callers

and the exception taxonomy shared by every scanner module.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

UNKNOWN = "unknown"


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a fresh identifier for scans and findings."""
    return str(uuid.uuid4())


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class ScanError(Exception):
    """Base exception for scan engine errors."""

    pass


class UnknownProfileError(ScanError):
    """Requested scanner profile is not registered."""

    def __init__(self, profile: str, available: list[str] | None = None) -> None:
        self.profile = profile
        self.available = available or []
        message = f"Unknown scanner profile: {profile!r}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


class NoScannerSelectedError(ScanError):
    """A scan was requested without any scanner profile."""

    def __init__(self) -> None:
        super().__init__("At least one scanner profile is required")


class RuleConfigurationError(ScanError):
    """A detection rule cannot be compiled or would never advance."""

    pass


class FileReadError(ScanError):
    """The content of a file could not be obtained or decoded."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Could not read {path}: {reason}")


class ScanAbortedError(ScanError):
    """Cancellation was observed before a unit of work started."""

    pass


class InvalidTransitionError(ScanError):
    """A scan result was asked to leave a terminal state."""

    pass


class FindingSeverity(str, Enum):
    """Severity band of a finding.

    Members compare by rank, so ``FindingSeverity.HIGH > FindingSeverity.LOW``.
    """

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more severe."""
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FindingSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK: dict[FindingSeverity, int] = {
    FindingSeverity.HIGH: 4,
    FindingSeverity.MEDIUM: 3,
    FindingSeverity.LOW: 2,
    FindingSeverity.INFO: 1,
}


class FileKind(Enum):
    """Kind of entry in a scanned file collection."""

    FILE = "file"
    DIRECTORY = "directory"


class ScanStatus(Enum):
    """Lifecycle state of a scan run."""

    PENDING = "pending"
    SCANNING = "scanning"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Check if no transition may leave this state."""
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {ScanStatus.COMPLETED, ScanStatus.FAILED, ScanStatus.CANCELLED}
)


class WarningKind(Enum):
    """Why a unit of work contributed no findings."""

    FILE_READ_FAILURE = "file_read_failure"
    EVALUATION_ERROR = "evaluation_error"


@dataclass(frozen=True)
class Provenance:
    """Version-control context for a file."""

    commit: str | None = None
    author: str | None = None
    date: datetime | None = None


@dataclass(frozen=True)
class FileRecord:
    """One unit of scan input.

    Attributes:
        path: Repository-relative identifier, unique within a scan.
        content: Text content; empty for directories and unfetched binaries.
        kind: File or directory.
        size_bytes: Size reported by the collector, if known.
        read_error: Set by the collector when the content could not be read.
        provenance: Optional commit metadata for findings in this file.
    """

    path: str
    content: str = ""
    kind: FileKind = FileKind.FILE
    size_bytes: int | None = None
    read_error: str | None = None
    provenance: Provenance | None = None

    def __post_init__(self) -> None:
        if self.size_bytes is not None and self.size_bytes < 0:
            raise ValueError(f"size_bytes must be >= 0, got {self.size_bytes}")

    @property
    def is_scannable(self) -> bool:
        """Check if the line scanner has anything to look at."""
        return self.kind == FileKind.FILE and bool(self.content)

    def to_dict(self) -> dict[str, Any]:
        """Serialize without content (callers rarely want it echoed back)."""
        return {
            "path": self.path,
            "type": self.kind.value,
            "size": self.size_bytes,
        }


@dataclass(frozen=True)
class Finding:
    """One detection instance tied to a file, line and rule."""

    id: str
    scan_id: str
    file_path: str
    line_number: int
    secret_type: str
    severity: FindingSeverity
    description: str
    code_snippet: str
    rule_name: str
    profile: str
    column: int = 1
    secret_preview: str = ""
    commit: str = UNKNOWN
    author: str = UNKNOWN
    date: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape consumed by reporting collaborators."""
        return {
            "id": self.id,
            "scanId": self.scan_id,
            "filePath": self.file_path,
            "lineNumber": self.line_number,
            "column": self.column,
            "secretType": self.secret_type,
            "ruleName": self.rule_name,
            "profile": self.profile,
            "severity": self.severity.value,
            "description": self.description,
            "codeSnippet": self.code_snippet,
            "secretPreview": self.secret_preview,
            "commit": self.commit,
            "author": self.author,
            "date": _isoformat(self.date),
        }


@dataclass(frozen=True)
class ScanWarning:
    """A unit of work that was skipped without failing the scan."""

    kind: WarningKind
    file_path: str
    message: str
    profile: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "filePath": self.file_path,
            "profile": self.profile,
            "message": self.message,
        }


@dataclass(frozen=True)
class ScanSummary:
    """Counts of findings per severity band."""

    total_secrets: int = 0
    high_severity: int = 0
    medium_severity: int = 0
    low_severity: int = 0
    info_severity: int = 0

    def count(self, severity: FindingSeverity) -> int:
        """Number of findings in one severity band."""
        return {
            FindingSeverity.HIGH: self.high_severity,
            FindingSeverity.MEDIUM: self.medium_severity,
            FindingSeverity.LOW: self.low_severity,
            FindingSeverity.INFO: self.info_severity,
        }[severity]

    def has_blocking(self, fail_on: FindingSeverity) -> bool:
        """Check if any finding is at or above the given severity."""
        return any(
            self.count(severity) > 0 for severity in FindingSeverity if severity >= fail_on
        )

    def exit_code(self, fail_on: FindingSeverity = FindingSeverity.HIGH) -> int:
        """Pass/fail code for CI use.

        Returns:
            0 if nothing is at or above ``fail_on``; otherwise 1 for high,
            2 for medium, 3 for low, 4 for info, by the most severe band present.
        """
        if not self.has_blocking(fail_on):
            return 0
        for code, severity in enumerate(FindingSeverity, start=1):
            if self.count(severity) > 0:
                return code
        return 0

    def to_dict(self) -> dict[str, int]:
        return {
            "totalSecrets": self.total_secrets,
            "highSeverity": self.high_severity,
            "mediumSeverity": self.medium_severity,
            "lowSeverity": self.low_severity,
            "infoSeverity": self.info_severity,
        }


@dataclass
class ScanBatch:
    """Output of one orchestrator run.

    ``cancelled`` is True when at least one unit of work was skipped because
    cancellation was requested, so an empty ``findings`` list is only a clean
    result when ``cancelled`` is False.
    """

    scan_id: str
    findings: list[Finding] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    cancelled: bool = False
    files_scanned: int = 0
    units_skipped: int = 0


@dataclass
class ScanResult:
    """Top-level scan output with its lifecycle state.

    Transitions go PENDING -> SCANNING -> COMPLETED | FAILED | CANCELLED.
    The summary is always derived from ``findings``.
    """

    id: str
    repository_id: str
    profiles: list[str] = field(default_factory=list)
    status: ScanStatus = ScanStatus.PENDING
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime | None = None
    findings: list[Finding] = field(default_factory=list)
    warnings: list[ScanWarning] = field(default_factory=list)
    error_message: str | None = None

    @property
    def summary(self) -> ScanSummary:
        from leakscope.scanner.aggregate import summarize

        return summarize(self.findings)

    def _transition(self, target: ScanStatus) -> None:
        allowed = {
            ScanStatus.PENDING: {ScanStatus.SCANNING},
            ScanStatus.SCANNING: _TERMINAL_STATUSES,
        }.get(self.status, frozenset())
        if target not in allowed:
            raise InvalidTransitionError(
                f"Scan {self.id} cannot move from {self.status.value} to {target.value}"
            )
        self.status = target

    def start(self) -> None:
        """Move from PENDING to SCANNING."""
        self._transition(ScanStatus.SCANNING)

    def complete(
        self, findings: list[Finding], warnings: list[ScanWarning] | None = None
    ) -> None:
        """Finish successfully, possibly with skipped files."""
        self._transition(ScanStatus.COMPLETED)
        self.findings = list(findings)
        self.warnings = list(warnings or [])
        self.completed_at = utc_now()

    def fail(self, message: str) -> None:
        """Finish with a whole-scan failure."""
        self._transition(ScanStatus.FAILED)
        self.error_message = message or "Scan failed"
        self.completed_at = utc_now()

    def cancel(
        self,
        findings: list[Finding],
        warnings: list[ScanWarning] | None = None,
        message: str = "Scan cancelled before all files were processed",
    ) -> None:
        """Finish early, keeping the partial findings."""
        self._transition(ScanStatus.CANCELLED)
        self.findings = list(findings)
        self.warnings = list(warnings or [])
        self.error_message = message or "Scan cancelled"
        self.completed_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape consumed by persistence and UI."""
        return {
            "id": self.id,
            "repositoryId": self.repository_id,
            "profiles": list(self.profiles),
            "status": self.status.value,
            "startedAt": _isoformat(self.started_at),
            "completedAt": _isoformat(self.completed_at),
            "secrets": [finding.to_dict() for finding in self.findings],
            "summary": self.summary.to_dict(),
            "warnings": [warning.to_dict() for warning in self.warnings],
            "errorMessage": self.error_message,
        }
