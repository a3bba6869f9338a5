"""
tests/test_customer_ingestion_service.py

Pipeline-level tests for CustomerIngestionService.

All tests run against the in-memory store; each asserts on the returned
OutcomeReport and on what reached the store.
"""

from __future__ import annotations

import threading

import pytest

from app.domain.customer_upload import RowOutcomeKind, UploadJob, UploadJobStatus
from app.domain.errors import TransportError
from app.services.customer_ingestion_service import CustomerIngestionService, IngestOptions
from conftest import InMemoryCustomerStore, csv_upload


@pytest.fixture()
def service() -> CustomerIngestionService:
    return CustomerIngestionService(max_report_rows=1000, log_row_failures=False)


def _outcomes(report) -> list[str]:
    return [row.outcome for row in report.rows]


class TestPartialFailure:
    def test_invalid_row_does_not_block_valid_row(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,not-an-email,,",
                "B2,Bob,bob@example.com,,",
            ),
            store=store,
        )

        assert report.status == UploadJobStatus.COMPLETED
        assert _outcomes(report) == [RowOutcomeKind.FAILED, RowOutcomeKind.CREATED]
        assert report.rows[0].reason == "invalid_format: email: Invalid email address."
        assert set(store.customers) == {"B2"}

    def test_fatal_row_keeps_earlier_commits(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "B2,Bob,bob@example.com,,",
                '"C3"x,Cy,cy@example.com,,',
                "D4,Dee,dee@example.com,,",
            ),
            store=store,
        )

        assert report.status == UploadJobStatus.FAILED
        assert "Invalid CSV format" in report.reason
        assert report.counts.created == 2
        assert set(store.customers) == {"A1", "B2"}

    def test_missing_header_fails_job_without_rows(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload("A1,Ann", header="external_ref,name"),
            store=store,
        )

        assert report.status == UploadJobStatus.FAILED
        assert report.reason == "Missing required columns: email."
        assert report.rows == ()
        assert report.total_rows == 0

    def test_store_failure_is_recorded_per_row(self, service, store) -> None:
        store.fail_writes_for.add("A1")

        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "B2,Bob,bob@example.com,,",
            ),
            store=store,
        )

        assert report.status == UploadJobStatus.COMPLETED
        assert _outcomes(report) == [RowOutcomeKind.FAILED, RowOutcomeKind.CREATED]
        assert report.rows[0].reason == "Customer store is unavailable."
        assert store.rollbacks == 1

    def test_unknown_encoding_fails_the_job(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload("A1,Ann,ann@example.com,,"),
            store=store,
            options=IngestOptions(encoding="no-such-codec"),
        )

        assert report.status == UploadJobStatus.FAILED
        assert "Unknown encoding" in report.reason


class TestIdempotence:
    def test_second_identical_upload_is_all_skipped(self, service, store) -> None:
        rows = (
            "A1,Ann,ann@example.com,,",
            "B2,Bob,bob@example.com,555-0100,Acme",
            "C3,Cy,,,",
        )
        first = service.ingest_upload(csv_upload(*rows), store=store)
        writes_after_first = store.writes

        second = service.ingest_upload(csv_upload(*rows), store=store)

        assert first.counts.as_dict() == {"created": 2, "updated": 0, "skipped": 0, "failed": 1}
        assert second.counts.as_dict() == {"created": 0, "updated": 0, "skipped": 2, "failed": 1}
        assert store.writes == writes_after_first

    def test_natural_key_is_case_insensitive(self, service, store) -> None:
        service.ingest_upload(csv_upload("ab-1,Ann,ann@example.com,,"), store=store)

        report = service.ingest_upload(csv_upload("AB-1,Ann,ANN@example.com,,"), store=store)

        assert _outcomes(report) == [RowOutcomeKind.SKIPPED]


class TestOrderingAndCollisions:
    def test_collision_within_one_file_updates_in_order(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload(
                "A1,X,a@example.com,,",
                "A1,Y,a@example.com,,",
            ),
            store=store,
        )

        assert _outcomes(report) == [RowOutcomeKind.CREATED, RowOutcomeKind.UPDATED]
        assert store.customers["A1"].name == "Y"

    def test_report_lines_strictly_increase(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "",
                'B2,"Bob\nBrown",bob@example.com,,',
                "C3,Cy",
                "D4,Dee,dee@example.com,,",
            ),
            store=store,
        )

        lines = [row.line_number for row in report.rows]
        assert lines == sorted(set(lines))
        assert lines == [2, 4, 6, 7]

    def test_end_to_end_three_rows(self, service, store) -> None:
        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "A1,Ann,ann@example.com,,",
                "B2,,bob@example.com,,",
            ),
            store=store,
        )

        assert report.status == UploadJobStatus.COMPLETED
        assert report.counts.as_dict() == {"created": 1, "updated": 0, "skipped": 1, "failed": 1}
        assert report.total_rows == 3
        assert report.to_dict()["rows"][2] == {
            "line": 4,
            "outcome": "failed",
            "reason": "missing_required: name: Required value is missing.",
        }


class TestReportLimits:
    def test_detail_is_capped_and_overflow_counted(self, store) -> None:
        service = CustomerIngestionService(max_report_rows=2, log_row_failures=False)
        rows = [f"K{i},Name {i},k{i}@example.com,," for i in range(5)]

        report = service.ingest_upload(csv_upload(*rows), store=store)

        assert len(report.rows) == 2
        assert report.rows_omitted == 3
        assert report.counts.created == 5
        assert report.total_rows == 5


class TestCancellationAndDeadline:
    def test_cancel_stops_after_current_row(self, service, store) -> None:
        cancel_event = threading.Event()

        class _CancellingStore(InMemoryCustomerStore):
            def commit(self) -> None:
                super().commit()
                cancel_event.set()

        cancelling_store = _CancellingStore()
        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "B2,Bob,bob@example.com,,",
            ),
            store=cancelling_store,
            options=IngestOptions(cancel_event=cancel_event),
        )

        assert report.status == UploadJobStatus.FAILED
        assert report.reason == "Upload job was cancelled."
        assert set(cancelling_store.customers) == {"A1"}
        assert report.counts.created == 1

    def test_deadline_aborts_job(self, store) -> None:
        ticks = iter([0.0, 5.0, 8.0, 50.0])
        service = CustomerIngestionService(
            max_report_rows=100,
            log_row_failures=False,
            clock=lambda: next(ticks),
        )

        report = service.ingest_upload(
            csv_upload(
                "A1,Ann,ann@example.com,,",
                "B2,Bob,bob@example.com,,",
                "C3,Cy,cy@example.com,,",
                "D4,Dee,dee@example.com,,",
            ),
            store=store,
            options=IngestOptions(deadline=10.0),
        )

        assert report.status == UploadJobStatus.FAILED
        assert report.reason == "Upload job exceeded its deadline."
        assert report.counts.created == 3
        assert "D4" not in store.customers


    def test_cancel_during_last_row_still_completes(self, service) -> None:
        cancel_event = threading.Event()

        class _CancellingStore(InMemoryCustomerStore):
            def commit(self) -> None:
                super().commit()
                cancel_event.set()

        cancelling_store = _CancellingStore()
        report = service.ingest_upload(
            csv_upload("A1,Ann,ann@example.com,,"),
            store=cancelling_store,
            options=IngestOptions(cancel_event=cancel_event),
        )

        assert report.status == UploadJobStatus.COMPLETED
        assert report.reason is None
        assert report.counts.created == 1
        assert report.total_rows == 1

    def test_deadline_passing_during_last_row_still_completes(self, store) -> None:
        ticks = iter([0.0, 50.0])
        service = CustomerIngestionService(
            max_report_rows=100,
            log_row_failures=False,
            clock=lambda: next(ticks),
        )

        report = service.ingest_upload(
            csv_upload("A1,Ann,ann@example.com,,"),
            store=store,
            options=IngestOptions(deadline=10.0),
        )

        assert report.status == UploadJobStatus.COMPLETED
        assert report.counts.created == 1


class TestUnexpectedErrors:
    def test_failed_rollback_after_crash_is_not_raised(self, service) -> None:
        class _CrashingStore(InMemoryCustomerStore):
            def find_by_natural_key(self, natural_key):
                raise RuntimeError("driver bug")

            def rollback(self) -> None:
                super().rollback()
                raise TransportError("Customer store connection was lost.")

        crashing_store = _CrashingStore()
        report = service.ingest_upload(
            csv_upload("A1,Ann,ann@example.com,,"),
            store=crashing_store,
        )

        assert report.status == UploadJobStatus.FAILED
        assert report.reason == "Unexpected error: RuntimeError: driver bug"
        assert crashing_store.rollbacks == 1


class TestJobLifecycle:
    def test_supplied_job_reaches_terminal_status(self, service, store) -> None:
        job = UploadJob()

        report = service.ingest_upload(csv_upload("A1,Ann,ann@example.com,,"), store=store, job=job)

        assert job.status == UploadJobStatus.COMPLETED
        assert job.total_rows == 1
        assert report.job_id == job.job_id
