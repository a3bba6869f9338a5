"""
app/api/routers/customers.py

Customer listing and bulk upload HTTP endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.dependencies import (
    UploadPayload,
    get_customer_store,
    get_upload_job_repository,
    get_upload_payload,
)
from app.config import get_customer_ingestion_settings
from app.domain.customer_upload import UploadJobStatus
from app.parsers.customer_csv_parser import validate_dialect
from app.repositories.customer_repository import CustomerRepository
from app.schemas.customer import CustomerListResponse, CustomerResponse
from app.schemas.customer_upload import (
    OutcomeReportResponse,
    UploadCancelResponse,
    UploadJobStatusResponse,
)
from app.services.customer_upload_service import CustomerUploadService, get_customer_upload_service
from db.repositories.upload_job_repository import UploadJobRepository

router = APIRouter(prefix="/customers", tags=["customers"])


@router.get("", response_model=CustomerListResponse)
def list_customers(
    limit: int = Query(default=100, ge=1, le=500, description="Max customers returned"),
    offset: int = Query(default=0, ge=0, description="Number of customers to skip"),
    store: CustomerRepository = Depends(get_customer_store),
) -> CustomerListResponse:
    customers = store.list_customers(limit=limit, offset=offset)
    return CustomerListResponse(
        customers=[CustomerResponse.model_validate(customer) for customer in customers],
        limit=limit,
        offset=offset,
    )


@router.post(
    "/upload",
    response_model=OutcomeReportResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"description": "Missing or empty payload"},
        422: {
            "model": OutcomeReportResponse,
            "description": "Upload aborted by a structural error, cancellation or timeout",
        },
    },
)
def upload_customers(
    response: Response,
    payload: UploadPayload = Depends(get_upload_payload),
    delimiter: str | None = Query(default=None, description="Single-character field delimiter"),
    encoding: str | None = Query(default=None, description="Text encoding of the upload"),
    store: CustomerRepository = Depends(get_customer_store),
    jobs: UploadJobRepository = Depends(get_upload_job_repository),
    upload_service: CustomerUploadService = Depends(get_customer_upload_service),
) -> OutcomeReportResponse:
    """
    Ingest one customer CSV and return the per-row outcome report.

    Returns 200 when every row was processed (even if some failed) and 422
    when the job was aborted.
    """

    settings = get_customer_ingestion_settings()
    resolved_delimiter = delimiter if delimiter is not None else settings.default_delimiter
    resolved_encoding = (encoding or settings.default_encoding).strip()

    try:
        try:
            validate_dialect(encoding=resolved_encoding, delimiter=resolved_delimiter)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=str(exc),
            ) from exc

        report = upload_service.upload(
            payload.stream,
            store=store,
            jobs=jobs,
            encoding=resolved_encoding,
            delimiter=resolved_delimiter,
            request_payload={
                "file_name": payload.file_name,
                "content_type": payload.content_type,
                "file_size_bytes": payload.size_bytes,
            },
        )
    finally:
        payload.stream.close()

    if report.status == UploadJobStatus.FAILED:
        response.status_code = 422
    return OutcomeReportResponse.from_report(report)


@router.get("/uploads/{job_id}", response_model=UploadJobStatusResponse)
def get_upload_job(
    job_id: UUID,
    jobs: UploadJobRepository = Depends(get_upload_job_repository),
) -> UploadJobStatusResponse:
    job = jobs.get_job(job_id)
    if job is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Upload job not found: {job_id}",
        )
    return UploadJobStatusResponse(
        job_id=job.id,
        status=job.status,
        submitted_at=job.submitted_at,
        completed_at=job.completed_at,
        total_rows=job.total_rows,
        error_message=job.error_message,
        report=(
            OutcomeReportResponse.model_validate(job.report_payload)
            if job.report_payload is not None
            else None
        ),
    )


@router.post(
    "/uploads/{job_id}/cancel",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=UploadCancelResponse,
)
def cancel_upload_job(
    job_id: UUID,
    upload_service: CustomerUploadService = Depends(get_customer_upload_service),
) -> UploadCancelResponse:
    if not upload_service.cancel(str(job_id)):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No running upload job with id {job_id} in this process.",
        )
    return UploadCancelResponse(job_id=str(job_id), cancel_requested=True)
