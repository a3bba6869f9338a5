"""
app/repositories/customer_repository.py

PostgreSQL persistence for customers.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.customer_upload import CustomerSnapshot, NormalizedRecord
from app.domain.errors import ReconciliationError, TransportError
from db.models.customer import Customer


def _to_snapshot(customer: Customer) -> CustomerSnapshot:
    return CustomerSnapshot(
        id=customer.id,
        natural_key=customer.natural_key,
        name=customer.name,
        email=customer.email,
        phone=customer.phone,
        company=customer.company,
        version=customer.version,
    )


class CustomerRepository:
    """
    Customer store backed by a SQLAlchemy session.

    Natural-key uniqueness is enforced by the ``uq_customers_natural_key``
    constraint; updates are compare-and-swap on ``version``.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def find_by_natural_key(self, natural_key: str) -> CustomerSnapshot | None:
        # Updates bypass the identity map, so always refresh from the row.
        stmt = (
            select(Customer)
            .where(Customer.natural_key == natural_key)
            .execution_options(populate_existing=True)
        )
        with self._translate_errors():
            customer = self._session.scalars(stmt).one_or_none()
        if customer is None:
            return None
        return _to_snapshot(customer)

    def create(self, record: NormalizedRecord) -> CustomerSnapshot | None:
        stmt = (
            insert(Customer)
            .values(
                id=uuid.uuid4(),
                natural_key=record.natural_key,
                version=1,
                **record.profile(),
            )
            .on_conflict_do_nothing(index_elements=[Customer.natural_key])
            .returning(Customer)
        )
        with self._translate_errors():
            customer = self._session.scalars(stmt).one_or_none()
        if customer is None:
            return None
        return _to_snapshot(customer)

    def update(
        self,
        customer_id: uuid.UUID,
        *,
        expected_version: int,
        record: NormalizedRecord,
    ) -> bool:
        stmt = (
            update(Customer)
            .where(Customer.id == customer_id, Customer.version == expected_version)
            .values(
                version=Customer.version + 1,
                updated_at=datetime.now(timezone.utc),
                **record.profile(),
            )
            .execution_options(synchronize_session=False)
        )
        with self._translate_errors():
            result = self._session.execute(stmt)
        return result.rowcount == 1

    def commit(self) -> None:
        with self._translate_errors():
            self._session.commit()

    def rollback(self) -> None:
        with self._translate_errors():
            self._session.rollback()

    def list_customers(self, *, limit: int = 100, offset: int = 0) -> list[Customer]:
        stmt = (
            select(Customer)
            .order_by(Customer.created_at, Customer.id)
            .offset(max(0, offset))
            .limit(max(1, limit))
        )
        return list(self._session.scalars(stmt).all())

    @contextmanager
    def _translate_errors(self) -> Iterator[None]:
        try:
            yield
        except (OperationalError, InterfaceError) as exc:
            raise TransportError("Customer store is unavailable.") from exc
        except DBAPIError as exc:
            if exc.connection_invalidated:
                raise TransportError("Customer store connection was lost.") from exc
            raise ReconciliationError(f"Customer store rejected the write: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise ReconciliationError(f"Customer store error: {exc}") from exc
