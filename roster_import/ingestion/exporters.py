"""Export generated credentials and import outcome reports."""
from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Iterable, List, MutableMapping, Optional, Sequence, Union

import pandas as pd

from ..models import BatchOutcome, Credential, ImportKind

PathLike = Union[str, Path]

CREDENTIAL_COLUMNS = ["Name", "Email", "Password"]
REPORT_COLUMNS = ["status", "line", "name", "email", "reason"]
EXPORT_SUFFIXES = (".csv", ".tsv", ".xlsx", ".xlsm")


def credentials_filename(kind: Union[str, ImportKind], run_date: Optional[date] = None) -> str:
    """Return the date-stamped filename used for a credentials download."""

    kind_value = kind.value if isinstance(kind, ImportKind) else str(kind)
    stamp = (run_date or date.today()).isoformat()
    return f"{kind_value}_credentials_{stamp}.csv"


def credentials_to_dataframe(credentials: Iterable[Credential]) -> pd.DataFrame:
    """Convert generated credentials into a :class:`pandas.DataFrame`."""

    rows = [[credential.name, credential.email, credential.password] for credential in credentials]
    return pd.DataFrame(rows, columns=CREDENTIAL_COLUMNS)


def check_export_path(path: PathLike, *, allow_directory: bool = False) -> Path:
    """Fail early when ``path`` cannot be written by the exporters.

    With ``allow_directory`` an existing directory, or a path without a suffix
    that does not exist yet, is accepted and later receives a date-stamped file.
    """

    output_path = Path(path)
    if allow_directory and _is_directory_target(output_path):
        return output_path
    if output_path.is_dir():
        raise ValueError(f"{output_path} is a directory; expected a file ending in {', '.join(EXPORT_SUFFIXES)}")
    if output_path.suffix.lower() not in EXPORT_SUFFIXES:
        raise ValueError(
            f"Unsupported export file extension: {output_path.suffix or '(none)'}; "
            f"expected one of {', '.join(EXPORT_SUFFIXES)}"
        )
    return output_path


def resolve_credentials_path(
    path: PathLike,
    kind: Union[str, ImportKind] = ImportKind.STUDENTS,
    run_date: Optional[date] = None,
) -> Path:
    output_path = check_export_path(path, allow_directory=True)
    if _is_directory_target(output_path):
        return output_path / credentials_filename(kind, run_date)
    return output_path


def export_credentials(
    credentials: Sequence[Credential],
    path: PathLike,
    *,
    kind: Union[str, ImportKind] = ImportKind.STUDENTS,
    run_date: Optional[date] = None,
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    """Write one ``Name,Email,Password`` row per newly created account.

    When ``path`` is a directory, or a suffix-less path that will be created as
    one, the file is named with :func:`credentials_filename`.
    """

    output_path = resolve_credentials_path(path, kind, run_date)
    _write_dataframe(credentials_to_dataframe(credentials), output_path, sheet_name="Credentials", exporter_kwargs=exporter_kwargs)
    return output_path


def outcome_to_dataframe(outcome: BatchOutcome) -> pd.DataFrame:
    """List every failed and skipped record of a run, in that order."""

    rows: List[MutableMapping[str, object]] = []
    for failed in outcome.failed_records:
        rows.append(
            {
                "status": "failed",
                "line": failed.candidate.line_number,
                "name": failed.candidate.name,
                "email": failed.candidate.email,
                "reason": failed.error_message,
            }
        )
    for skipped in outcome.skipped_records:
        rows.append(
            {
                "status": "skipped",
                "line": skipped.candidate.line_number,
                "name": skipped.candidate.name,
                "email": skipped.candidate.email,
                "reason": skipped.reason,
            }
        )
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def export_outcome_report(
    outcome: BatchOutcome,
    path: PathLike,
    *,
    exporter_kwargs: Optional[MutableMapping[str, object]] = None,
) -> Path:
    output_path = check_export_path(path)
    _write_dataframe(outcome_to_dataframe(outcome), output_path, sheet_name="Report", exporter_kwargs=exporter_kwargs)
    return output_path


def _write_dataframe(
    dataframe: pd.DataFrame,
    path: Path,
    *,
    sheet_name: str,
    exporter_kwargs: Optional[MutableMapping[str, object]],
) -> None:
    exporter_kwargs = dict(exporter_kwargs or {})
    suffix = path.suffix.lower()
    path.parent.mkdir(parents=True, exist_ok=True)

    if suffix in {".csv", ".tsv"}:
        if suffix == ".tsv":
            exporter_kwargs.setdefault("sep", "\t")
        dataframe.to_csv(path, index=False, **exporter_kwargs)
        return

    if suffix in {".xlsx", ".xlsm"}:
        engine = exporter_kwargs.pop("engine", None) or "openpyxl"
        dataframe.to_excel(path, index=False, sheet_name=sheet_name, engine=engine, **exporter_kwargs)
        return

    raise ValueError(f"Unsupported export file extension: {suffix}")


def _is_directory_target(path: Path) -> bool:
    return path.is_dir() or (not path.exists() and not path.suffix)


__all__ = [
    "CREDENTIAL_COLUMNS",
    "EXPORT_SUFFIXES",
    "check_export_path",
    "credentials_filename",
    "credentials_to_dataframe",
    "export_credentials",
    "export_outcome_report",
    "outcome_to_dataframe",
    "resolve_credentials_path",
]
