"""
app/domain package marker.
"""

from app.domain.customer_upload import (
    CustomerSnapshot,
    NormalizedRecord,
    OutcomeCounts,
    OutcomeReport,
    RowCandidate,
    RowOutcome,
    RowOutcomeKind,
    RowValidationError,
    UploadJob,
    UploadJobStatus,
    ValidationErrorKind,
)
from app.domain.errors import (
    IngestionError,
    JobAbortedError,
    ReconciliationError,
    StructuralError,
    TransportError,
)

__all__ = [
    "CustomerSnapshot",
    "IngestionError",
    "JobAbortedError",
    "NormalizedRecord",
    "OutcomeCounts",
    "OutcomeReport",
    "ReconciliationError",
    "RowCandidate",
    "RowOutcome",
    "RowOutcomeKind",
    "RowValidationError",
    "StructuralError",
    "TransportError",
    "UploadJob",
    "UploadJobStatus",
    "ValidationErrorKind",
]
