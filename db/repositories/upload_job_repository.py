"""
Repository for customer upload job lifecycle persistence and report lookup.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.domain.customer_upload import OutcomeReport, UploadJob, UploadJobStatus
from db.models.customer_upload_job import CustomerUploadJob


class UploadJobRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def start_job(
        self,
        job: UploadJob,
        *,
        request_payload: dict[str, Any] | None = None,
    ) -> CustomerUploadJob:
        record = CustomerUploadJob(
            id=uuid.UUID(job.job_id),
            status=UploadJobStatus.RUNNING,
            submitted_at=job.submitted_at,
            total_rows=0,
            request_payload=request_payload,
        )
        self._session.add(record)
        self._session.commit()
        return record

    def finish_job(self, job: UploadJob, report: OutcomeReport) -> CustomerUploadJob | None:
        record = self.get_job(uuid.UUID(job.job_id))
        if record is None:
            return None
        record.status = job.status
        record.total_rows = job.total_rows
        record.error_message = job.reason
        record.report_payload = report.to_dict()
        record.completed_at = datetime.now(timezone.utc)
        self._session.commit()
        return record

    def get_job(self, job_id: uuid.UUID) -> CustomerUploadJob | None:
        return self._session.get(CustomerUploadJob, job_id)

    def purge_finished_before(self, cutoff: datetime) -> int:
        stmt = delete(CustomerUploadJob).where(
            CustomerUploadJob.status != UploadJobStatus.RUNNING,
            CustomerUploadJob.completed_at < cutoff,
        )
        result = self._session.execute(stmt)
        self._session.commit()
        return result.rowcount or 0
