"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.customer import Customer
from db.models.customer_upload_job import CustomerUploadJob

__all__ = [
    "Customer",
    "CustomerUploadJob",
]
