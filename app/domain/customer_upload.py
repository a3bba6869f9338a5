"""
app/domain/customer_upload.py

Domain models used by the customer bulk upload pipeline.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


class UploadJobStatus:
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class RowOutcomeKind:
    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"
    FAILED = "failed"


class ValidationErrorKind:
    MALFORMED_ROW = "malformed_row"
    MISSING_REQUIRED = "missing_required"
    TOO_LONG = "too_long"
    INVALID_FORMAT = "invalid_format"


REQUIRED_COLUMNS: tuple[str, ...] = ("external_ref", "name", "email")
OPTIONAL_COLUMNS: tuple[str, ...] = ("phone", "company")

# Fields compared by the reconciler to decide between update and skip.
PROFILE_FIELDS: tuple[str, ...] = ("name", "email", "phone", "company")


@dataclass(frozen=True)
class RowCandidate:
    """
    One parsed CSV record before validation.

    ``issue`` carries a row-level structural problem detected by the parser
    (column count mismatch, undecodable bytes).
    """

    line_number: int
    fields: tuple[str, ...]
    columns: tuple[str, ...]
    issue: str | None = None

    def get(self, column: str) -> str | None:
        try:
            index = self.columns.index(column)
        except ValueError:
            return None
        if index >= len(self.fields):
            return None
        return self.fields[index]


@dataclass(frozen=True)
class NormalizedRecord:
    """
    Typed customer record that passed validation.
    """

    line_number: int
    external_ref: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None

    @property
    def natural_key(self) -> str:
        return self.external_ref

    def profile(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in PROFILE_FIELDS}


@dataclass(frozen=True)
class RowValidationError:
    """
    One row-level validation failure.
    """

    line_number: int
    field: str | None
    kind: str
    message: str

    def as_reason(self) -> str:
        if self.field:
            return f"{self.kind}: {self.field}: {self.message}"
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class CustomerSnapshot:
    """
    Read-only view of a stored customer as seen by the reconciler.
    """

    id: uuid.UUID
    natural_key: str
    name: str
    email: str
    phone: str | None
    company: str | None
    version: int

    def profile(self) -> dict[str, str | None]:
        return {name: getattr(self, name) for name in PROFILE_FIELDS}


@dataclass(frozen=True)
class RowOutcome:
    line_number: int
    outcome: str
    reason: str | None = None


@dataclass(frozen=True)
class OutcomeCounts:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "created": self.created,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass(frozen=True)
class OutcomeReport:
    """
    Final, immutable summary of one upload job.
    """

    job_id: str
    status: str
    counts: OutcomeCounts
    rows: tuple[RowOutcome, ...]
    total_rows: int
    rows_omitted: int = 0
    reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status,
            "reason": self.reason,
            "counts": self.counts.as_dict(),
            "total_rows": self.total_rows,
            "rows": [
                {"line": row.line_number, "outcome": row.outcome, "reason": row.reason}
                for row in self.rows
            ],
            "rows_omitted": self.rows_omitted,
        }


class JobStateError(RuntimeError):
    """
    Raised on an attempt to leave a terminal job status.
    """


@dataclass
class UploadJob:
    """
    Lifecycle state of one submitted upload.

    Transitions: running -> completed, running -> failed. Both are terminal.
    """

    job_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    total_rows: int = 0
    status: str = UploadJobStatus.RUNNING
    reason: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in {UploadJobStatus.COMPLETED, UploadJobStatus.FAILED}

    def complete(self) -> None:
        self._require_running(UploadJobStatus.COMPLETED)
        self.status = UploadJobStatus.COMPLETED

    def fail(self, reason: str) -> None:
        self._require_running(UploadJobStatus.FAILED)
        self.status = UploadJobStatus.FAILED
        self.reason = reason

    def _require_running(self, target: str) -> None:
        if self.status != UploadJobStatus.RUNNING:
            raise JobStateError(
                f"Upload job {self.job_id} cannot move from {self.status} to {target}."
            )
