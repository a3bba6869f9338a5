"""
app/parsers/customer_csv_parser.py

Streaming CSV reader that turns an uploaded byte stream into row candidates.
"""

from __future__ import annotations

import codecs
import csv
import io
from collections.abc import Iterator
from typing import BinaryIO

from app.domain.customer_upload import REQUIRED_COLUMNS, RowCandidate
from app.domain.errors import StructuralError

DEFAULT_ENCODING = "utf-8-sig"
DEFAULT_DELIMITER = ","


def _has_undecodable_bytes(value: str) -> bool:
    # surrogateescape maps each undecodable byte to U+DC80..U+DCFF.
    return any("\udc80" <= char <= "\udcff" for char in value)


def validate_dialect(*, encoding: str, delimiter: str) -> None:
    """
    Raise ValueError when the declared encoding or delimiter is unusable.
    """

    try:
        codecs.lookup(encoding)
    except LookupError as exc:
        raise ValueError(f"Unknown encoding: {encoding!r}.") from exc
    # Bytes-to-bytes codecs (base64, zlib) pass lookup but cannot decode text.
    try:
        io.TextIOWrapper(io.BytesIO(), encoding=encoding).detach()
    except LookupError as exc:
        raise ValueError(f"Not a text encoding: {encoding!r}.") from exc
    if len(delimiter) != 1 or delimiter in {'"', "\r", "\n"}:
        raise ValueError("Delimiter must be a single character other than a quote or newline.")


class CustomerRowStream:
    """
    Lazy, non-restartable sequence of row candidates for one upload.

    The header is read and checked when the stream is opened; data rows are
    read one record at a time as the stream is iterated.
    """

    def __init__(self, raw_stream: BinaryIO, *, encoding: str, delimiter: str) -> None:
        self._encoding = encoding
        self._text_stream: io.TextIOWrapper | None = io.TextIOWrapper(
            raw_stream,
            encoding=encoding,
            errors="surrogateescape",
            newline="",
        )
        self._reader = csv.reader(self._text_stream, delimiter=delimiter, strict=True)
        self._consumed = False
        try:
            self.columns = self._read_header()
        except StructuralError:
            self.close()
            raise

    def __enter__(self) -> CustomerRowStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __iter__(self) -> Iterator[RowCandidate]:
        if self._consumed:
            raise RuntimeError("Row stream has already been consumed.")
        self._consumed = True
        return self._iter_rows()

    def close(self) -> None:
        """
        Release the text wrapper without closing the caller's byte stream.
        """

        if self._text_stream is None:
            return
        try:
            self._text_stream.detach()
        except ValueError:
            pass
        self._text_stream = None

    def _read_header(self) -> tuple[str, ...]:
        try:
            header = self._next_record()
        except StopIteration:
            raise StructuralError("Upload is empty; a header row is required.") from None

        if not header or all(not value.strip() for value in header):
            raise StructuralError("CSV header row is missing.")
        if any(_has_undecodable_bytes(value) for value in header):
            raise StructuralError(f"CSV header row is not valid {self._encoding}.")

        columns = tuple(value.strip().lower() for value in header)
        duplicates = sorted({column for column in columns if column and columns.count(column) > 1})
        if duplicates:
            raise StructuralError(f"Duplicate header columns: {', '.join(duplicates)}.")

        missing = [column for column in REQUIRED_COLUMNS if column not in columns]
        if missing:
            raise StructuralError(f"Missing required columns: {', '.join(missing)}.")

        return columns

    def _iter_rows(self) -> Iterator[RowCandidate]:
        expected = len(self.columns)
        previous_line = self._reader.line_num
        while True:
            try:
                fields = self._next_record()
            except StopIteration:
                return

            start_line = previous_line + 1
            previous_line = self._reader.line_num
            if not fields:
                continue

            issue: str | None = None
            if len(fields) != expected:
                issue = f"Expected {expected} columns, found {len(fields)}."
            elif any(_has_undecodable_bytes(value) for value in fields):
                issue = f"Row contains bytes that are not valid {self._encoding}."

            yield RowCandidate(
                line_number=start_line,
                fields=tuple(fields),
                columns=self.columns,
                issue=issue,
            )

    def _next_record(self) -> list[str]:
        try:
            return next(self._reader)
        except csv.Error as exc:
            raise StructuralError(
                f"Invalid CSV format near line {self._reader.line_num}: {exc}"
            ) from exc
        except UnicodeDecodeError as exc:
            raise StructuralError(f"Upload must be {self._encoding} encoded.") from exc
        except OSError as exc:
            raise StructuralError(f"Upload stream could not be read: {exc}") from exc


class CustomerCSVParser:
    """
    Opens customer CSV uploads with a declared encoding and delimiter.
    """

    def __init__(
        self,
        *,
        encoding: str = DEFAULT_ENCODING,
        delimiter: str = DEFAULT_DELIMITER,
    ) -> None:
        validate_dialect(encoding=encoding, delimiter=delimiter)
        self._encoding = encoding
        self._delimiter = delimiter

    def open(self, raw_stream: BinaryIO) -> CustomerRowStream:
        """
        Read and check the header, returning a lazy stream of data rows.

        Raises StructuralError when the header is missing or incomplete.
        """

        return CustomerRowStream(
            raw_stream,
            encoding=self._encoding,
            delimiter=self._delimiter,
        )
