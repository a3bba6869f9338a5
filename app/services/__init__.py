"""
app/services package marker.
"""

from app.services.customer_ingestion_service import (
    CustomerIngestionService,
    IngestOptions,
    get_customer_ingestion_service,
)
from app.services.customer_reconciler import CustomerReconciler
from app.services.customer_upload_service import (
    CustomerUploadService,
    UploadJobTracker,
    get_customer_upload_service,
)

__all__ = [
    "CustomerIngestionService",
    "CustomerReconciler",
    "CustomerUploadService",
    "IngestOptions",
    "UploadJobTracker",
    "get_customer_ingestion_service",
    "get_customer_upload_service",
]
