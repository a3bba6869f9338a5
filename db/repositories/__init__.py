"""
Repository layer exports.
"""

from db.repositories.upload_job_repository import UploadJobRepository

__all__ = [
    "UploadJobRepository",
]
