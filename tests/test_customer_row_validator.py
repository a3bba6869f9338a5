from __future__ import annotations

import unittest

from app.domain.customer_upload import NormalizedRecord, RowCandidate, RowValidationError, ValidationErrorKind
from app.validators.customer_row_validator import CustomerRowValidator

COLUMNS = ("external_ref", "name", "email", "phone", "company")


def _candidate(*fields: str, issue: str | None = None, line: int = 2) -> RowCandidate:
    return RowCandidate(line_number=line, fields=tuple(fields), columns=COLUMNS, issue=issue)


class TestCustomerRowValidator(unittest.TestCase):
    def setUp(self) -> None:
        self.validator = CustomerRowValidator()

    def test_normalizes_a_valid_row(self) -> None:
        result = self.validator.validate(
            _candidate(" ab-12 ", "  Ann   Lee ", " Ann@Example.COM ", " +1 (555) 010-9999 ", " ")
        )

        self.assertEqual(
            result,
            NormalizedRecord(
                line_number=2,
                external_ref="AB-12",
                name="Ann Lee",
                email="ann@example.com",
                phone="+1 (555) 010-9999",
                company=None,
            ),
        )

    def test_parser_issue_is_reported_before_anything_else(self) -> None:
        result = self.validator.validate(_candidate("", issue="Expected 5 columns, found 1."))

        self.assertIsInstance(result, RowValidationError)
        self.assertEqual(result.kind, ValidationErrorKind.MALFORMED_ROW)
        self.assertIsNone(result.field)

    def test_required_fields_are_checked_in_order(self) -> None:
        result = self.validator.validate(_candidate("", "", "not-an-email", "", ""))

        self.assertEqual(result.kind, ValidationErrorKind.MISSING_REQUIRED)
        self.assertEqual(result.field, "external_ref")

        result = self.validator.validate(_candidate("A1", "Ann", "   ", "", ""))
        self.assertEqual(result.field, "email")

    def test_missing_required_wins_over_format_errors(self) -> None:
        result = self.validator.validate(_candidate("bad ref!", "", "ann@example.com", "", ""))

        self.assertEqual(result.kind, ValidationErrorKind.MISSING_REQUIRED)
        self.assertEqual(result.field, "name")

    def test_format_checks_follow_field_order(self) -> None:
        result = self.validator.validate(_candidate("bad ref!", "Ann", "nope", "abc", ""))

        self.assertEqual(result.kind, ValidationErrorKind.INVALID_FORMAT)
        self.assertEqual(result.field, "external_ref")

        result = self.validator.validate(_candidate("A1", "Ann", "nope", "abc", ""))
        self.assertEqual(result.field, "email")
        self.assertEqual(result.message, "Invalid email address.")

        result = self.validator.validate(_candidate("A1", "Ann", "ann@example.com", "abc", ""))
        self.assertEqual(result.field, "phone")

    def test_length_bounds(self) -> None:
        result = self.validator.validate(_candidate("A" * 65, "Ann", "ann@example.com", "", ""))
        self.assertEqual((result.kind, result.field), (ValidationErrorKind.TOO_LONG, "external_ref"))

        result = self.validator.validate(_candidate("A1", "N" * 256, "ann@example.com", "", ""))
        self.assertEqual((result.kind, result.field), (ValidationErrorKind.TOO_LONG, "name"))

        result = self.validator.validate(_candidate("A1", "Ann", "ann@example.com", "", "C" * 256))
        self.assertEqual((result.kind, result.field), (ValidationErrorKind.TOO_LONG, "company"))

    def test_optional_columns_may_be_absent_from_the_header(self) -> None:
        candidate = RowCandidate(
            line_number=7,
            fields=("a1", "Ann", "ann@example.com"),
            columns=("external_ref", "name", "email"),
        )

        result = self.validator.validate(candidate)

        self.assertIsInstance(result, NormalizedRecord)
        self.assertEqual(result.natural_key, "A1")
        self.assertIsNone(result.phone)
        self.assertEqual(result.line_number, 7)

    def test_validation_is_deterministic(self) -> None:
        rows = [
            _candidate("A1", "Ann", "ann@example.com", "", ""),
            _candidate("A1", "Ann", "broken", "", ""),
            _candidate("", "", "", "", ""),
        ]

        first = [self.validator.validate(row) for row in rows]
        second = [CustomerRowValidator().validate(row) for row in rows]

        self.assertEqual(first, second)

    def test_reason_string_names_kind_and_field(self) -> None:
        result = self.validator.validate(_candidate("A1", "Ann", "", "", ""))

        self.assertEqual(result.as_reason(), "missing_required: email: Required value is missing.")


if __name__ == "__main__":
    unittest.main()
