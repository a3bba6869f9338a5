"""
db/base.py

Declarative base and the timestamp mixin shared by customer tables.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for customers and customer upload jobs.
    """


class TimestampMixin:
    """
    created_at is set by the database on INSERT.
    updated_at is refreshed on every ORM UPDATE; bulk UPDATE statements
    must set it explicitly.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=lambda: datetime.now(timezone.utc),
    )
