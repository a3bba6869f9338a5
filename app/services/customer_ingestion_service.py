"""
app/services/customer_ingestion_service.py

Coordinates parsing, validation and reconciliation for one customer upload.

Rows are pulled from the parser one at a time, validated, reconciled and
committed before the next row is read. Failures of a single row are recorded
in the report and processing continues; structural parse errors, cancellation
and deadline expiry end the job as failed. Rows committed before the job
ended stay committed.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from typing import BinaryIO

from app.config import get_customer_ingestion_settings
from app.domain.customer_upload import (
    OutcomeCounts,
    OutcomeReport,
    RowCandidate,
    RowOutcome,
    RowOutcomeKind,
    RowValidationError,
    UploadJob,
)
from app.domain.errors import JobAbortedError, ReconciliationError, StructuralError
from app.parsers.customer_csv_parser import DEFAULT_DELIMITER, DEFAULT_ENCODING, CustomerCSVParser
from app.repositories.customer_store import CustomerStore
from app.services.customer_reconciler import CustomerReconciler
from app.validators.customer_row_validator import CustomerRowValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestOptions:
    """
    Per-upload options.

    ``deadline`` is an absolute value of the service clock
    (``time.monotonic`` by default).
    """

    encoding: str = DEFAULT_ENCODING
    delimiter: str = DEFAULT_DELIMITER
    deadline: float | None = None
    cancel_event: threading.Event | None = None


class _ReportBuilder:
    """
    Accumulates per-row outcomes; keeps at most ``max_rows`` in detail.
    """

    def __init__(self, max_rows: int) -> None:
        self._max_rows = max(1, max_rows)
        self._counts = {
            RowOutcomeKind.CREATED: 0,
            RowOutcomeKind.UPDATED: 0,
            RowOutcomeKind.SKIPPED: 0,
            RowOutcomeKind.FAILED: 0,
        }
        self._rows: list[RowOutcome] = []
        self._omitted = 0

    def record(self, line_number: int, outcome: str, reason: str | None = None) -> None:
        self._counts[outcome] += 1
        if len(self._rows) < self._max_rows:
            self._rows.append(RowOutcome(line_number=line_number, outcome=outcome, reason=reason))
        else:
            self._omitted += 1

    def build(self, job: UploadJob) -> OutcomeReport:
        return OutcomeReport(
            job_id=job.job_id,
            status=job.status,
            reason=job.reason,
            counts=OutcomeCounts(
                created=self._counts[RowOutcomeKind.CREATED],
                updated=self._counts[RowOutcomeKind.UPDATED],
                skipped=self._counts[RowOutcomeKind.SKIPPED],
                failed=self._counts[RowOutcomeKind.FAILED],
            ),
            rows=tuple(self._rows),
            total_rows=job.total_rows,
            rows_omitted=self._omitted,
        )


class CustomerIngestionService:
    """
    Drives the upload pipeline for one job at a time per call.
    """

    def __init__(
        self,
        *,
        max_report_rows: int,
        log_row_failures: bool,
        reconcile_max_attempts: int = 3,
        validator: CustomerRowValidator | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_report_rows = max(1, max_report_rows)
        self._log_row_failures = log_row_failures
        self._reconcile_max_attempts = max(1, reconcile_max_attempts)
        self._validator = validator or CustomerRowValidator()
        self._clock = clock

    def ingest_upload(
        self,
        stream: BinaryIO,
        *,
        store: CustomerStore,
        options: IngestOptions | None = None,
        job: UploadJob | None = None,
    ) -> OutcomeReport:
        """
        Ingest one CSV upload and return its outcome report.

        Never raises for row-level or structural problems: those end up in
        the report. ``job`` is advanced to a terminal status.
        """

        options = options or IngestOptions()
        job = job or UploadJob()
        builder = _ReportBuilder(self._max_report_rows)
        logger.info(
            "Customer upload started job_id=%s encoding=%s delimiter=%r",
            job.job_id,
            options.encoding,
            options.delimiter,
        )

        try:
            parser = self._build_parser(options)
            reconciler = CustomerReconciler(store, max_attempts=self._reconcile_max_attempts)
            with parser.open(stream) as rows:
                for candidate in rows:
                    self._checkpoint(options)
                    job.total_rows += 1
                    self._process_row(
                        candidate=candidate,
                        store=store,
                        reconciler=reconciler,
                        builder=builder,
                    )
            job.complete()
        except StructuralError as exc:
            job.fail(str(exc))
            logger.warning(
                "Customer upload aborted job_id=%s rows_seen=%s reason=%s",
                job.job_id,
                job.total_rows,
                exc,
            )
        except Exception as exc:  # noqa: BLE001
            try:
                store.rollback()
            except ReconciliationError as rollback_exc:
                logger.warning("Customer upload rollback failed job_id=%s: %s", job.job_id, rollback_exc)
            job.fail(f"Unexpected error: {type(exc).__name__}: {exc}")
            logger.exception("Customer upload crashed job_id=%s", job.job_id)

        report = builder.build(job)
        logger.info(
            "Customer upload finished job_id=%s status=%s total_rows=%s counts=%s",
            job.job_id,
            report.status,
            report.total_rows,
            report.counts.as_dict(),
        )
        return report

    @staticmethod
    def _build_parser(options: IngestOptions) -> CustomerCSVParser:
        try:
            return CustomerCSVParser(encoding=options.encoding, delimiter=options.delimiter)
        except ValueError as exc:
            raise StructuralError(str(exc)) from exc

    def _process_row(
        self,
        *,
        candidate: RowCandidate,
        store: CustomerStore,
        reconciler: CustomerReconciler,
        builder: _ReportBuilder,
    ) -> None:
        result = self._validator.validate(candidate)
        if isinstance(result, RowValidationError):
            self._record_failure(builder, candidate.line_number, result.as_reason())
            return

        try:
            outcome = reconciler.reconcile(result)
            store.commit()
        except ReconciliationError as exc:
            store.rollback()
            self._record_failure(builder, candidate.line_number, str(exc))
            return

        builder.record(candidate.line_number, outcome)

    def _checkpoint(self, options: IngestOptions) -> None:
        if options.cancel_event is not None and options.cancel_event.is_set():
            raise JobAbortedError("Upload job was cancelled.")
        if options.deadline is not None and self._clock() >= options.deadline:
            raise JobAbortedError("Upload job exceeded its deadline.")

    def _record_failure(self, builder: _ReportBuilder, line_number: int, reason: str) -> None:
        if self._log_row_failures:
            logger.warning("Customer upload row failed line=%s reason=%s", line_number, reason)
        builder.record(line_number, RowOutcomeKind.FAILED, reason)


@lru_cache(maxsize=1)
def get_customer_ingestion_service() -> CustomerIngestionService:
    """
    Build and cache the ingestion service with env-driven settings.
    """

    settings = get_customer_ingestion_settings()
    return CustomerIngestionService(
        max_report_rows=settings.max_report_rows,
        log_row_failures=settings.log_row_failures,
        reconcile_max_attempts=settings.reconcile_max_attempts,
    )
