"""Reading, parsing, and exporting roster import files."""
from __future__ import annotations

from .exporters import (
    check_export_path,
    credentials_filename,
    credentials_to_dataframe,
    export_credentials,
    export_outcome_report,
    outcome_to_dataframe,
    resolve_credentials_path,
)
from .loaders import UnreadableFileError, UnsupportedFileTypeError, read_import_text
from .parser import (
    EmptyImportError,
    InvalidEmailError,
    MissingFieldError,
    ParseError,
    RowShapeError,
    TooManyRecordsError,
    is_valid_email,
    normalise_email,
    parse_candidates,
    sample_csv,
)

__all__ = [
    "EmptyImportError",
    "InvalidEmailError",
    "MissingFieldError",
    "ParseError",
    "RowShapeError",
    "TooManyRecordsError",
    "UnreadableFileError",
    "UnsupportedFileTypeError",
    "check_export_path",
    "credentials_filename",
    "credentials_to_dataframe",
    "export_credentials",
    "export_outcome_report",
    "is_valid_email",
    "normalise_email",
    "outcome_to_dataframe",
    "parse_candidates",
    "read_import_text",
    "resolve_credentials_path",
    "sample_csv",
]
