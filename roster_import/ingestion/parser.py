"""Parse uploaded roster CSV text into validated import candidates."""
from __future__ import annotations

import csv
import io
import logging
import re
from typing import Dict, List, Mapping, Optional, Sequence, Union

from ..models import ImportCandidate, ImportKind

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_RECORDS = 500

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WHITESPACE = re.compile(r"\s+")
_QUOTE_CHARS = "\"'"

# Positional layouts; header names are never checked against these.
COLUMN_LAYOUTS: Mapping[ImportKind, Sequence[str]] = {
    ImportKind.STUDENTS: ("name", "email", "age", "grade", "gender", "address", "phone", "parent_name"),
    ImportKind.TEACHERS: ("name", "email", "subject", "phone", "qualification", "experience"),
}

HEADER_LABELS: Mapping[ImportKind, Sequence[str]] = {
    ImportKind.STUDENTS: ("Name", "Email", "Age", "Grade", "Gender", "Address", "Phone", "Parent Name"),
    ImportKind.TEACHERS: ("Name", "Email", "Subject", "Phone", "Qualification", "Experience"),
}

_SAMPLE_ROWS: Mapping[ImportKind, Sequence[Sequence[str]]] = {
    ImportKind.STUDENTS: (
        ("John Doe", "john@example.com", "12", "6th", "Male", "123 Main St", "+1234567890", "Jane Doe"),
        ("Jane Smith", "jane@example.com", "11", "5th", "Female", "456 Oak Ave, Apt 2", "+1234567891", "John Smith"),
    ),
    ImportKind.TEACHERS: (
        ("Dr. Ahmed Ali", "ahmed@school.edu", "Quran Studies", "+1234567890", "PhD Islamic Studies", "10 years"),
        ("Sister Fatima", "fatima@school.edu", "Tajweed", "+1234567891", "Masters in Tajweed", "5 years"),
    ),
}


class ParseError(ValueError):
    """Raised when an uploaded file cannot be turned into a clean batch."""

    def __init__(self, message: str, *, line_number: Optional[int] = None, value: Optional[str] = None) -> None:
        super().__init__(message)
        self.line_number = line_number
        self.value = value


class InvalidEmailError(ParseError):
    """A row carries an email that fails format validation."""


class MissingFieldError(ParseError):
    """A row is missing a required field."""


class RowShapeError(ParseError):
    """A row's field count does not match the header."""


class TooManyRecordsError(ParseError):
    """The file holds more rows than a single upload accepts."""


class EmptyImportError(ParseError):
    """The file has no header or no data rows."""


def coerce_kind(kind: Union[str, ImportKind]) -> ImportKind:
    try:
        return ImportKind(kind)
    except ValueError as exc:
        choices = ", ".join(item.value for item in ImportKind)
        raise ValueError(f"Unknown import type '{kind}'. Expected one of: {choices}") from exc


def clean_field(value: Optional[str]) -> str:
    """Trim a field and strip any wrapping quote characters."""

    if value is None:
        return ""
    return value.strip().strip(_QUOTE_CHARS).strip()


def normalise_email(value: Optional[str]) -> str:
    """Lowercase an email and drop embedded whitespace and wrapping quotes."""

    text = _WHITESPACE.sub("", value or "")
    return text.strip(_QUOTE_CHARS).lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_PATTERN.match(email))


def parse_candidates(
    text: str,
    kind: Union[str, ImportKind] = ImportKind.STUDENTS,
    *,
    max_records: Optional[int] = DEFAULT_MAX_RECORDS,
) -> List[ImportCandidate]:
    """Parse roster text into candidates, failing on the first bad row.

    The first non-blank row is a header and is skipped without validating its
    column names; its width is the expected width of every data row. Any
    invalid row raises a :class:`ParseError` and no candidates are returned.
    """

    import_kind = coerce_kind(kind)
    layout = COLUMN_LAYOUTS[import_kind]

    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")))
    header: Optional[List[str]] = None
    candidates: List[ImportCandidate] = []

    for row in reader:
        if _row_is_blank(row):
            continue
        line_number = reader.line_num
        if header is None:
            header = row
            continue

        if len(row) != len(header):
            raise RowShapeError(
                f"Line {line_number} has {len(row)} fields but the header has {len(header)}",
                line_number=line_number,
            )
        if max_records is not None and len(candidates) >= max_records:
            raise TooManyRecordsError(
                f"Upload exceeds the limit of {max_records} records per import",
                line_number=line_number,
            )
        candidates.append(_row_to_candidate(row, layout, import_kind, line_number))

    if header is None:
        raise EmptyImportError("The uploaded file is empty")
    if not candidates:
        raise EmptyImportError("No records found below the header row")

    LOGGER.debug("Parsed %s %s from upload", len(candidates), import_kind.value)
    return candidates


def _row_is_blank(row: Sequence[str]) -> bool:
    return all(not clean_field(value) for value in row)


def _row_to_candidate(
    row: Sequence[str],
    layout: Sequence[str],
    kind: ImportKind,
    line_number: int,
) -> ImportCandidate:
    values: Dict[str, str] = {
        field: clean_field(row[index]) if index < len(row) else ""
        for index, field in enumerate(layout)
    }

    raw_email = row[1] if len(row) > 1 else ""
    email = normalise_email(raw_email)
    if not is_valid_email(email):
        raise InvalidEmailError(
            f"Invalid email format on line {line_number}: {raw_email.strip()!r}",
            line_number=line_number,
            value=raw_email.strip(),
        )

    name = values["name"]
    if not name:
        raise MissingFieldError(f"Line {line_number} is missing a name", line_number=line_number)

    if kind is ImportKind.TEACHERS:
        return ImportCandidate(
            name=name,
            email=email,
            kind=kind,
            line_number=line_number,
            subject=values["subject"],
            phone=values["phone"],
            qualification=values["qualification"],
            experience=values["experience"],
        )

    return ImportCandidate(
        name=name,
        email=email,
        kind=kind,
        line_number=line_number,
        age=_parse_age(values["age"], line_number),
        grade=values["grade"] or None,
        gender=values["gender"] or None,
        address=values["address"],
        phone=values["phone"],
        parent_name=values["parent_name"],
    )


def _parse_age(value: str, line_number: int) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        LOGGER.debug("Ignoring non-numeric age %r on line %s", value, line_number)
        return None


def sample_csv(kind: Union[str, ImportKind] = ImportKind.STUDENTS) -> str:
    """Return a small example file in the layout expected for ``kind``."""

    import_kind = coerce_kind(kind)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER_LABELS[import_kind])
    writer.writerows(_SAMPLE_ROWS[import_kind])
    return buffer.getvalue()


__all__ = [
    "COLUMN_LAYOUTS",
    "DEFAULT_MAX_RECORDS",
    "EmptyImportError",
    "HEADER_LABELS",
    "InvalidEmailError",
    "MissingFieldError",
    "ParseError",
    "RowShapeError",
    "TooManyRecordsError",
    "clean_field",
    "coerce_kind",
    "is_valid_email",
    "normalise_email",
    "parse_candidates",
    "sample_csv",
]
