"""Configuration helpers for the roster import pipeline."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .accounts.passwords import DEFAULT_PASSWORD_LENGTH
from .ingestion.parser import DEFAULT_MAX_RECORDS

LOGGER = logging.getLogger(__name__)

DEFAULT_DIRECTORY_CLASS = "roster_import.accounts.memory.InMemoryAccountDirectory"
DEFAULT_DELAY_SECONDS = 0.5


class ConfigurationError(RuntimeError):
    """Raised when configuration files are missing or malformed."""


_SUPPORTED_EXTENSIONS = {".json", ".yaml", ".yml"}


def load_configuration(path: str | Path) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""

    file_path = Path(path)
    if not file_path.exists():
        raise ConfigurationError(f"Configuration file '{file_path}' was not found")

    if file_path.suffix.lower() not in _SUPPORTED_EXTENSIONS:
        raise ConfigurationError(
            f"Unsupported configuration format '{file_path.suffix}'. Supported extensions: {sorted(_SUPPORTED_EXTENSIONS)}"
        )

    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text or "{}")
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Could not parse configuration file '{file_path}': {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{file_path}' must contain a mapping at the top level")
    return data


@dataclass(frozen=True)
class ImportSettings:
    """Tunables for a single import run."""

    delay_seconds: float = DEFAULT_DELAY_SECONDS
    rate_limit_per_minute: Optional[float] = None
    max_records: Optional[int] = DEFAULT_MAX_RECORDS
    password_length: int = DEFAULT_PASSWORD_LENGTH

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ImportSettings":
        section = config.get("import") or {}
        if not isinstance(section, dict):
            raise ConfigurationError("The 'import' section must be a mapping")
        try:
            rate = section.get("rate_limit_per_minute")
            max_records = section.get("max_records", DEFAULT_MAX_RECORDS)
            return cls(
                delay_seconds=float(section.get("delay_seconds", DEFAULT_DELAY_SECONDS) or 0),
                rate_limit_per_minute=float(rate) if rate else None,
                max_records=int(max_records) if max_records is not None else None,
                password_length=int(section.get("password_length", DEFAULT_PASSWORD_LENGTH)),
            )
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid value in 'import' section: {exc}") from exc


def directory_config(config: Dict[str, Any]) -> Dict[str, Any]:
    section = config.get("directory") or {}
    if not isinstance(section, dict):
        raise ConfigurationError("The 'directory' section must be a mapping")
    if not section.get("class"):
        LOGGER.debug("No directory class configured; using %s", DEFAULT_DIRECTORY_CLASS)
    return {
        "class": section.get("class") or DEFAULT_DIRECTORY_CLASS,
        "options": dict(section.get("options") or {}),
    }


__all__ = [
    "ConfigurationError",
    "DEFAULT_DIRECTORY_CLASS",
    "ImportSettings",
    "directory_config",
    "load_configuration",
]
