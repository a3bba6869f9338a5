"""
app/api/dependencies.py

Shared FastAPI dependencies for upload payloads and storage collaborators.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from typing import BinaryIO

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from app.config import get_customer_ingestion_settings
from app.repositories.customer_repository import CustomerRepository
from db.repositories.upload_job_repository import UploadJobRepository
from db.session import get_db

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
    "application/octet-stream",
}


@dataclass
class UploadPayload:
    stream: BinaryIO
    file_name: str | None
    content_type: str | None
    size_bytes: int


def _stream_size(stream: BinaryIO) -> int:
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(0)
    return size


async def get_upload_payload(request: Request) -> UploadPayload:
    """
    Accept a CSV either as a multipart ``file`` field or as the raw body.

    Raw bodies are spooled chunk by chunk so large uploads go to disk.
    Raises HTTP 400 when the payload is missing, empty or not a CSV file.
    """

    content_type = (request.headers.get("content-type") or "").strip().lower()

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("file")
        if not isinstance(upload, UploadFile):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A file field named 'file' is required.",
            )

        filename = (upload.filename or "").strip().lower()
        file_content_type = (upload.content_type or "").strip().lower()
        if not filename.endswith(".csv") and file_content_type not in CSV_CONTENT_TYPES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Only CSV files are allowed.",
            )

        payload = UploadPayload(
            stream=upload.file,
            file_name=upload.filename,
            content_type=upload.content_type,
            size_bytes=_stream_size(upload.file),
        )
    else:
        settings = get_customer_ingestion_settings()
        spool = tempfile.SpooledTemporaryFile(max_size=settings.spool_max_bytes)
        async for chunk in request.stream():
            spool.write(chunk)
        payload = UploadPayload(
            stream=spool,
            file_name=None,
            content_type=content_type or None,
            size_bytes=_stream_size(spool),
        )

    if payload.size_bytes == 0:
        payload.stream.close()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Upload payload is empty.",
        )

    return payload


def get_customer_store(db: Session = Depends(get_db)) -> CustomerRepository:
    return CustomerRepository(db)


def get_upload_job_repository(db: Session = Depends(get_db)) -> UploadJobRepository:
    return UploadJobRepository(db)
