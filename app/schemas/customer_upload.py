"""
app/schemas/customer_upload.py

Response schemas for customer upload endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.domain.customer_upload import OutcomeReport


class OutcomeCountsResponse(BaseModel):
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)


class RowOutcomeResponse(BaseModel):
    """
    API response model for one row outcome.
    """

    line: int = Field(..., ge=1)
    outcome: Literal["created", "updated", "skipped", "failed"]
    reason: str | None = None


class OutcomeReportResponse(BaseModel):
    """
    API response model for a finished upload job.
    """

    job_id: str
    status: Literal["completed", "failed"]
    reason: str | None = None
    counts: OutcomeCountsResponse
    total_rows: int = Field(..., ge=0)
    rows: list[RowOutcomeResponse] = Field(default_factory=list)
    rows_omitted: int = Field(default=0, ge=0)

    @classmethod
    def from_report(cls, report: OutcomeReport) -> OutcomeReportResponse:
        return cls.model_validate(report.to_dict())


class UploadJobStatusResponse(BaseModel):
    job_id: UUID
    status: str
    submitted_at: datetime
    completed_at: datetime | None = None
    total_rows: int = Field(..., ge=0)
    error_message: str | None = None
    report: OutcomeReportResponse | None = None


class UploadCancelResponse(BaseModel):
    job_id: str
    cancel_requested: bool
