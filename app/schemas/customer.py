"""
app/schemas/customer.py

Response schemas for customer listing.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CustomerResponse(BaseModel):
    id: uuid.UUID
    natural_key: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class CustomerListResponse(BaseModel):
    customers: list[CustomerResponse] = Field(default_factory=list)
    limit: int
    offset: int
