"""Utilities for reading uploaded roster files into parser-ready text."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, MutableMapping, Optional, Union

import pandas as pd

LOGGER = logging.getLogger(__name__)

PathLike = Union[str, Path]

_TEXT_SUFFIXES = {".csv", ".txt"}
_EXCEL_SUFFIXES = {".xls", ".xlsx", ".xlsm"}


class UnsupportedFileTypeError(ValueError):
    """Raised when an unsupported file format is passed to the loader."""


class UnreadableFileError(ValueError):
    """Raised when a text upload is not UTF-8 encoded."""


def read_import_text(
    path: PathLike,
    *,
    sheet_name: Union[str, int] = 0,
    loader_kwargs: Optional[MutableMapping[str, Any]] = None,
) -> str:
    """Return the contents of a roster upload as CSV text.

    Parameters
    ----------
    path:
        Path to the CSV or Excel file that was uploaded.
    sheet_name:
        Sheet selector passed to :func:`pandas.read_excel` when loading an Excel
        workbook. Ignored for CSV files.
    loader_kwargs:
        Extra keyword arguments forwarded to :func:`pandas.read_excel`.
    """

    path_obj = Path(path)
    if not path_obj.exists():
        raise FileNotFoundError(path_obj)

    suffix = path_obj.suffix.lower()
    if suffix in _TEXT_SUFFIXES:
        try:
            return path_obj.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnreadableFileError(
                f"{path_obj.name} is not UTF-8 text (byte 0x{exc.object[exc.start]:02x} at offset {exc.start}); "
                "save the roster as 'CSV UTF-8' and upload it again"
            ) from exc

    if suffix in _EXCEL_SUFFIXES:
        return _excel_to_csv_text(path_obj, sheet_name=sheet_name, loader_kwargs=loader_kwargs)

    raise UnsupportedFileTypeError(f"Unsupported file extension: {path_obj.suffix}")


def _excel_to_csv_text(
    path: Path,
    *,
    sheet_name: Union[str, int],
    loader_kwargs: Optional[MutableMapping[str, Any]],
) -> str:
    loader_kwargs = dict(loader_kwargs or {})
    engine = loader_kwargs.pop("engine", None)
    if engine is None and path.suffix.lower() != ".xls":
        engine = "openpyxl"

    # Keep every cell as text so ages and phone numbers are not reformatted.
    dataframe = pd.read_excel(path, sheet_name=sheet_name, dtype=str, engine=engine, **loader_kwargs)
    dataframe = dataframe.fillna("")
    LOGGER.debug("Read %s rows from sheet %r of %s", len(dataframe), sheet_name, path)
    return dataframe.to_csv(index=False)


__all__ = ["read_import_text", "UnreadableFileError", "UnsupportedFileTypeError"]
