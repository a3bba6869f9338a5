"""
app/schemas package marker.
"""

from app.schemas.customer import CustomerListResponse, CustomerResponse
from app.schemas.customer_upload import (
    OutcomeCountsResponse,
    OutcomeReportResponse,
    RowOutcomeResponse,
    UploadCancelResponse,
    UploadJobStatusResponse,
)

__all__ = [
    "CustomerListResponse",
    "CustomerResponse",
    "OutcomeCountsResponse",
    "OutcomeReportResponse",
    "RowOutcomeResponse",
    "UploadCancelResponse",
    "UploadJobStatusResponse",
]
