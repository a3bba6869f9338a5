"""
Upload job bookkeeping around the customer ingestion pipeline.

Each upload gets an UploadJob that is persisted as running, driven through
the pipeline with a deadline and a cancellation flag, and stored with its
final report once it reaches a terminal status.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Callable
from functools import lru_cache
from typing import Any, BinaryIO, Protocol

from app.config import get_customer_ingestion_settings
from app.domain.customer_upload import OutcomeReport, UploadJob
from app.repositories.customer_store import CustomerStore
from app.services.customer_ingestion_service import (
    CustomerIngestionService,
    IngestOptions,
    get_customer_ingestion_service,
)

logger = logging.getLogger(__name__)


class UploadJobTracker(Protocol):
    def start_job(self, job: UploadJob, *, request_payload: dict[str, Any] | None = None) -> Any:
        ...

    def finish_job(self, job: UploadJob, report: OutcomeReport) -> Any:
        ...

    def get_job(self, job_id: uuid.UUID) -> Any:
        ...


class CustomerUploadService:
    """
    Runs uploads synchronously and tracks in-flight jobs for cancellation.
    """

    def __init__(
        self,
        *,
        ingestion_service: CustomerIngestionService | None = None,
        job_timeout_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ingestion_service = ingestion_service or get_customer_ingestion_service()
        self._job_timeout_seconds = job_timeout_seconds
        self._clock = clock
        self._in_flight: dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def upload(
        self,
        stream: BinaryIO,
        *,
        store: CustomerStore,
        jobs: UploadJobTracker,
        encoding: str,
        delimiter: str,
        request_payload: dict[str, Any] | None = None,
    ) -> OutcomeReport:
        job = UploadJob()
        payload = dict(request_payload or {})
        payload.update({"encoding": encoding, "delimiter": delimiter})
        jobs.start_job(job, request_payload=payload)

        cancel_event = threading.Event()
        with self._lock:
            self._in_flight[job.job_id] = cancel_event

        try:
            report = self._ingestion_service.ingest_upload(
                stream,
                store=store,
                job=job,
                options=IngestOptions(
                    encoding=encoding,
                    delimiter=delimiter,
                    deadline=self._clock() + self._job_timeout_seconds,
                    cancel_event=cancel_event,
                ),
            )
        finally:
            with self._lock:
                self._in_flight.pop(job.job_id, None)

        self._persist_report(jobs=jobs, job=job, report=report)
        return report

    def cancel(self, job_id: str) -> bool:
        """
        Signal an in-flight job to stop at its next row checkpoint.

        Returns False when no such job is running in this process.
        """

        with self._lock:
            cancel_event = self._in_flight.get(job_id)
        if cancel_event is None:
            return False
        cancel_event.set()
        logger.info("Customer upload cancellation requested job_id=%s", job_id)
        return True

    def _persist_report(
        self,
        *,
        jobs: UploadJobTracker,
        job: UploadJob,
        report: OutcomeReport,
    ) -> None:
        try:
            if jobs.finish_job(job, report) is None:
                logger.error("Unable to store upload report because the job was not found id=%s", job.job_id)
        except Exception:  # noqa: BLE001
            logger.exception("Failed to persist upload report job_id=%s", job.job_id)


@lru_cache(maxsize=1)
def get_customer_upload_service() -> CustomerUploadService:
    settings = get_customer_ingestion_settings()
    return CustomerUploadService(job_timeout_seconds=settings.job_timeout_seconds)
