"""
db/models/customer.py

Customer model: one row per natural key (external reference code).
"""

import uuid

from sqlalchemy import Index, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin

CUSTOMER_NATURAL_KEY_CONSTRAINT = "uq_customers_natural_key"


class Customer(Base, TimestampMixin):
    """
    Persisted customer profile.

    natural_key is unique across all customers; version increments on every
    profile update and backs compare-and-swap writes from concurrent uploads.
    """

    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    natural_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        comment="Upper-cased external reference code",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(254), nullable=False)

    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    company: Mapped[str | None] = mapped_column(String(255), nullable=True)

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Optimistic concurrency counter",
    )

    __table_args__ = (
        UniqueConstraint("natural_key", name=CUSTOMER_NATURAL_KEY_CONSTRAINT),
        Index("ix_customers_email", "email"),
        Index("ix_customers_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} natural_key={self.natural_key!r} version={self.version}>"
