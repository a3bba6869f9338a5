"""
Pipeline exceptions for customer bulk ingestion.
"""

from __future__ import annotations


class IngestionError(Exception):
    """Base exception for customer ingestion failures."""


class StructuralError(IngestionError):
    """Raised when the upload as a whole cannot be processed further."""


class JobAbortedError(StructuralError):
    """Raised when a job is cancelled or exceeds its deadline between rows."""


class ReconciliationError(IngestionError):
    """Raised when one record cannot be written to the customer store."""


class TransportError(ReconciliationError):
    """Raised when the customer store is unreachable for one operation."""
