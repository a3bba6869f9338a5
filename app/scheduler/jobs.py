"""
app/scheduler/jobs.py

APScheduler-based housekeeping for customer upload jobs.

Finished upload jobs keep their outcome report so callers can fetch it after
the upload response was delivered. Once a job has been terminal for longer
than ``CUSTOMER_UPLOAD_RETENTION_HOURS`` it is deleted by
``purge_expired_upload_jobs``, which runs every
``CUSTOMER_UPLOAD_PURGE_INTERVAL_MINUTES``.

Call ``build_scheduler()`` once to get a configured ``BackgroundScheduler``.
Start it on app boot; shut it down gracefully on app shutdown.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator

from apscheduler.schedulers.background import BackgroundScheduler
from sqlalchemy.orm import Session

from app.config import get_upload_retention_settings
from db.repositories.upload_job_repository import UploadJobRepository

logger = logging.getLogger(__name__)


@contextmanager
def _session_scope() -> Iterator[Session]:
    """Yield a fresh session and ensure it is closed on exit."""
    from db.session import SessionLocal

    session: Session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def purge_expired_upload_jobs(
    *,
    now: datetime | None = None,
    session_scope: Callable[[], Iterator[Session]] | None = None,
) -> int:
    """
    Delete terminal upload jobs whose retention window has expired.

    Returns the number of deleted jobs; failures are logged, never raised.
    """
    settings = get_upload_retention_settings()
    cutoff = (now or datetime.now(tz=timezone.utc)) - timedelta(hours=settings.retention_hours)
    scope = session_scope or _session_scope

    with scope() as db:
        try:
            purged = UploadJobRepository(db).purge_finished_before(cutoff)
        except Exception as exc:  # noqa: BLE001
            db.rollback()
            logger.warning("Scheduler: upload job purge failed cutoff=%s: %s", cutoff.isoformat(), exc)
            return 0

    logger.info("Scheduler: purged %d upload job(s) finished before %s", purged, cutoff.isoformat())
    return purged


def build_scheduler() -> BackgroundScheduler:
    """
    Build and register the periodic upload-job purge.

    Returns a configured but *not yet started* ``BackgroundScheduler``.
    """
    settings = get_upload_retention_settings()
    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        purge_expired_upload_jobs,
        trigger="interval",
        minutes=settings.purge_interval_minutes,
        id="purge_expired_upload_jobs",
        name="Purge expired customer upload jobs",
        replace_existing=True,
        misfire_grace_time=3600,
        coalesce=True,
    )

    return scheduler
