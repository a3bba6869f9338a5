"""
Shared test fixtures: in-memory stand-ins for the customer store and the
upload job repository. No database, no network.
"""

from __future__ import annotations

import io
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

import pytest

from app.domain.customer_upload import CustomerSnapshot, NormalizedRecord, OutcomeReport, UploadJob
from app.domain.errors import TransportError
from db.models.customer_upload_job import CustomerUploadJob


class InMemoryCustomerStore:
    """
    Dict-backed CustomerStore. Writes apply immediately; ``writes`` counts
    every create/update that reached the store.
    """

    def __init__(self) -> None:
        self.customers: dict[str, CustomerSnapshot] = {}
        self.writes = 0
        self.commits = 0
        self.rollbacks = 0
        self.fail_writes_for: set[str] = set()

    def find_by_natural_key(self, natural_key: str) -> CustomerSnapshot | None:
        return self.customers.get(natural_key)

    def create(self, record: NormalizedRecord) -> CustomerSnapshot | None:
        self._maybe_fail(record.natural_key)
        if record.natural_key in self.customers:
            return None
        snapshot = CustomerSnapshot(
            id=uuid.uuid4(),
            natural_key=record.natural_key,
            version=1,
            **record.profile(),
        )
        self.customers[record.natural_key] = snapshot
        self.writes += 1
        return snapshot

    def update(
        self,
        customer_id: uuid.UUID,
        *,
        expected_version: int,
        record: NormalizedRecord,
    ) -> bool:
        self._maybe_fail(record.natural_key)
        current = self.customers.get(record.natural_key)
        if current is None or current.id != customer_id or current.version != expected_version:
            return False
        self.customers[record.natural_key] = replace(
            current,
            version=current.version + 1,
            **record.profile(),
        )
        self.writes += 1
        return True

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def list_customers(self, *, limit: int = 100, offset: int = 0) -> list[CustomerSnapshot]:
        return list(self.customers.values())[offset : offset + limit]

    def _maybe_fail(self, natural_key: str) -> None:
        if natural_key in self.fail_writes_for:
            raise TransportError("Customer store is unavailable.")


class InMemoryUploadJobRepository:
    def __init__(self) -> None:
        self.jobs: dict[uuid.UUID, CustomerUploadJob] = {}

    def start_job(self, job: UploadJob, *, request_payload: dict[str, Any] | None = None) -> CustomerUploadJob:
        record = CustomerUploadJob(
            id=uuid.UUID(job.job_id),
            status=job.status,
            submitted_at=job.submitted_at,
            total_rows=0,
            request_payload=request_payload,
        )
        self.jobs[record.id] = record
        return record

    def finish_job(self, job: UploadJob, report: OutcomeReport) -> CustomerUploadJob | None:
        record = self.jobs.get(uuid.UUID(job.job_id))
        if record is None:
            return None
        record.status = job.status
        record.total_rows = job.total_rows
        record.error_message = job.reason
        record.report_payload = report.to_dict()
        record.completed_at = datetime.now(timezone.utc)
        return record

    def get_job(self, job_id: uuid.UUID) -> CustomerUploadJob | None:
        return self.jobs.get(job_id)


HEADER = "external_ref,name,email,phone,company"


def csv_upload(*rows: str, header: str = HEADER) -> io.BytesIO:
    """Build a binary CSV stream from a header and data lines."""
    return io.BytesIO(("\n".join((header, *rows)) + "\n").encode("utf-8"))


@pytest.fixture()
def store() -> InMemoryCustomerStore:
    return InMemoryCustomerStore()


@pytest.fixture()
def job_repository() -> InMemoryUploadJobRepository:
    return InMemoryUploadJobRepository()
