"""Top-level package for the school roster bulk import pipeline."""

from . import models  # noqa: F401
from .duplicates import DuplicateDetector, DuplicateReport
from .ingestion import ParseError, parse_candidates
from .models import (
    BatchOutcome,
    Credential,
    DuplicateDecision,
    FailedRecord,
    ImportCandidate,
    ImportKind,
    ImportProgress,
    ResolutionMode,
    SkippedRecord,
)
from .orchestrator import BatchProcessor, ImportSession, Resolution, run_import

__all__ = [
    "BatchOutcome",
    "BatchProcessor",
    "Credential",
    "DuplicateDecision",
    "DuplicateDetector",
    "DuplicateReport",
    "FailedRecord",
    "ImportCandidate",
    "ImportKind",
    "ImportProgress",
    "ImportSession",
    "ParseError",
    "Resolution",
    "ResolutionMode",
    "SkippedRecord",
    "parse_candidates",
    "run_import",
    "accounts",
    "ingestion",
    "orchestrator",
]
