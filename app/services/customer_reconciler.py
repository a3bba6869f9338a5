"""
app/services/customer_reconciler.py

Decides, per normalized record, whether a customer is created, updated or
left untouched, keyed by the natural key.
"""

from __future__ import annotations

import logging

from app.domain.customer_upload import NormalizedRecord, RowOutcomeKind
from app.domain.errors import ReconciliationError
from app.repositories.customer_store import CustomerStore

logger = logging.getLogger(__name__)


class CustomerReconciler:
    """
    Applies one record to the customer store.

    Creation relies on the store's unique natural-key constraint and updates
    are compare-and-swap on the stored version. A lost race re-reads the
    current row and tries again, up to ``max_attempts`` times.
    """

    def __init__(self, store: CustomerStore, *, max_attempts: int = 3) -> None:
        self._store = store
        self._max_attempts = max(1, max_attempts)

    def reconcile(self, record: NormalizedRecord) -> str:
        """
        Return the RowOutcomeKind for ``record``; no write is issued on skip.

        Raises ReconciliationError (or TransportError) when the write cannot
        be completed.
        """

        for attempt in range(1, self._max_attempts + 1):
            existing = self._store.find_by_natural_key(record.natural_key)

            if existing is None:
                if self._store.create(record) is not None:
                    return RowOutcomeKind.CREATED
                logger.info(
                    "Natural key claimed concurrently key=%s line=%s attempt=%s",
                    record.natural_key,
                    record.line_number,
                    attempt,
                )
                continue

            if existing.profile() == record.profile():
                return RowOutcomeKind.SKIPPED

            if self._store.update(existing.id, expected_version=existing.version, record=record):
                return RowOutcomeKind.UPDATED
            logger.info(
                "Customer version moved during update key=%s line=%s attempt=%s",
                record.natural_key,
                record.line_number,
                attempt,
            )

        raise ReconciliationError(
            f"Customer {record.natural_key} was modified concurrently; "
            f"gave up after {self._max_attempts} attempts."
        )
