"""
app/validators/customer_row_validator.py

Row-level validation and normalization for customer uploads.

Rules run in a fixed order and the first failure is reported:

    0. structural issue flagged by the parser
    1. required fields present and non-empty (external_ref, name, email)
    2. per-field format and length checks
    3. coercion (trimming, case normalization, whitespace collapsing)
"""

from __future__ import annotations

import re
from typing import Any

from app.domain.customer_upload import (
    REQUIRED_COLUMNS,
    NormalizedRecord,
    RowCandidate,
    RowValidationError,
    ValidationErrorKind,
)

MAX_EXTERNAL_REF_LENGTH = 64
MAX_NAME_LENGTH = 255
MAX_EMAIL_LENGTH = 254
MAX_PHONE_LENGTH = 32
MAX_COMPANY_LENGTH = 255

_EXTERNAL_REF_RE = re.compile(r"^[A-Za-z0-9._-]+$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^\+?[0-9 ().-]+$")
_WHITESPACE_RE = re.compile(r"\s+")


class CustomerRowValidator:
    """
    Validates one row candidate and produces a normalized customer record.

    Stateless: the same candidate always yields the same result.
    """

    def validate(self, candidate: RowCandidate) -> NormalizedRecord | RowValidationError:
        line = candidate.line_number

        if candidate.issue:
            return RowValidationError(
                line_number=line,
                field=None,
                kind=ValidationErrorKind.MALFORMED_ROW,
                message=candidate.issue,
            )

        for column in REQUIRED_COLUMNS:
            if self._is_blank(candidate.get(column)):
                return RowValidationError(
                    line_number=line,
                    field=column,
                    kind=ValidationErrorKind.MISSING_REQUIRED,
                    message="Required value is missing.",
                )

        external_ref = str(candidate.get("external_ref")).strip()
        name = str(candidate.get("name")).strip()
        email = str(candidate.get("email")).strip()
        phone = self._optional(candidate.get("phone"))
        company = self._optional(candidate.get("company"))

        error = (
            self._check_length(line, "external_ref", external_ref, MAX_EXTERNAL_REF_LENGTH)
            or self._check_pattern(
                line,
                "external_ref",
                external_ref,
                _EXTERNAL_REF_RE,
                "Only letters, digits, '.', '_' and '-' are allowed.",
            )
            or self._check_length(line, "name", name, MAX_NAME_LENGTH)
            or self._check_length(line, "email", email, MAX_EMAIL_LENGTH)
            or self._check_pattern(line, "email", email, _EMAIL_RE, "Invalid email address.")
            or self._check_optional(line, "phone", phone, MAX_PHONE_LENGTH, _PHONE_RE, "Invalid phone number.")
            or self._check_optional(line, "company", company, MAX_COMPANY_LENGTH)
        )
        if error is not None:
            return error

        return NormalizedRecord(
            line_number=line,
            external_ref=external_ref.upper(),
            name=_WHITESPACE_RE.sub(" ", name),
            email=email.lower(),
            phone=phone,
            company=company,
        )

    def _check_optional(
        self,
        line: int,
        field: str,
        value: str | None,
        max_length: int,
        pattern: re.Pattern[str] | None = None,
        message: str = "",
    ) -> RowValidationError | None:
        if value is None:
            return None
        error = self._check_length(line, field, value, max_length)
        if error is None and pattern is not None:
            error = self._check_pattern(line, field, value, pattern, message)
        return error

    @staticmethod
    def _check_length(line: int, field: str, value: str, max_length: int) -> RowValidationError | None:
        if len(value) <= max_length:
            return None
        return RowValidationError(
            line_number=line,
            field=field,
            kind=ValidationErrorKind.TOO_LONG,
            message=f"Value exceeds {max_length} characters.",
        )

    @staticmethod
    def _check_pattern(
        line: int,
        field: str,
        value: str,
        pattern: re.Pattern[str],
        message: str,
    ) -> RowValidationError | None:
        if pattern.match(value):
            return None
        return RowValidationError(
            line_number=line,
            field=field,
            kind=ValidationErrorKind.INVALID_FORMAT,
            message=message,
        )

    def _optional(self, value: str | None) -> str | None:
        if self._is_blank(value):
            return None
        return str(value).strip()

    @staticmethod
    def _is_blank(value: Any) -> bool:
        return value is None or str(value).strip() == ""
