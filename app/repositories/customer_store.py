"""
app/repositories/customer_store.py

Storage contract used by the reconciler.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from app.domain.customer_upload import CustomerSnapshot, NormalizedRecord


class CustomerStore(Protocol):
    """
    Natural-key addressed customer storage.

    ``create`` returns None when another writer already holds the natural key.
    ``update`` is a compare-and-swap on ``expected_version`` and returns False
    when the stored version moved on.
    """

    def find_by_natural_key(self, natural_key: str) -> CustomerSnapshot | None:
        ...

    def create(self, record: NormalizedRecord) -> CustomerSnapshot | None:
        ...

    def update(
        self,
        customer_id: uuid.UUID,
        *,
        expected_version: int,
        record: NormalizedRecord,
    ) -> bool:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...
