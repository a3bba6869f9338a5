"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from db.config import load_env_files


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    # Tab is a valid delimiter; strip newlines only.
    stripped = value.strip("\r\n")
    return stripped if stripped else default


@dataclass(frozen=True)
class CustomerIngestionSettings:
    """
    Runtime settings for customer bulk uploads.
    """

    max_report_rows: int = 10000
    job_timeout_seconds: float = 900.0
    log_row_failures: bool = True
    default_encoding: str = "utf-8-sig"
    default_delimiter: str = ","
    reconcile_max_attempts: int = 3
    spool_max_bytes: int = 1024 * 1024


@dataclass(frozen=True)
class UploadRetentionSettings:
    """
    How long finished upload jobs and their reports are kept.
    """

    retention_hours: float = 72.0
    purge_interval_minutes: int = 60


@lru_cache(maxsize=1)
def get_customer_ingestion_settings() -> CustomerIngestionSettings:
    """
    Return cached customer ingestion settings from environment variables.
    """

    return CustomerIngestionSettings(
        max_report_rows=max(1, _get_int_env("CUSTOMER_INGEST_MAX_REPORT_ROWS", 10000)),
        job_timeout_seconds=max(1.0, _get_float_env("CUSTOMER_INGEST_JOB_TIMEOUT_SECONDS", 900.0)),
        log_row_failures=_get_bool_env("CUSTOMER_INGEST_LOG_ROW_FAILURES", True),
        default_encoding=_get_str_env("CUSTOMER_INGEST_DEFAULT_ENCODING", "utf-8-sig").strip(),
        default_delimiter=_get_str_env("CUSTOMER_INGEST_DEFAULT_DELIMITER", ","),
        reconcile_max_attempts=max(1, _get_int_env("CUSTOMER_INGEST_RECONCILE_MAX_ATTEMPTS", 3)),
        spool_max_bytes=max(1024, _get_int_env("CUSTOMER_INGEST_SPOOL_MAX_BYTES", 1024 * 1024)),
    )


@lru_cache(maxsize=1)
def get_upload_retention_settings() -> UploadRetentionSettings:
    """
    Return cached upload retention settings from environment variables.
    """

    return UploadRetentionSettings(
        retention_hours=max(0.1, _get_float_env("CUSTOMER_UPLOAD_RETENTION_HOURS", 72.0)),
        purge_interval_minutes=max(1, _get_int_env("CUSTOMER_UPLOAD_PURGE_INTERVAL_MINUTES", 60)),
    )
