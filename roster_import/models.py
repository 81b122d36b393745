"""Data models shared by the roster import parser, detector, and batch processor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ImportKind(str, Enum):
    """Account type a roster file describes."""

    STUDENTS = "students"
    TEACHERS = "teachers"

    @property
    def singular(self) -> str:
        return self.value[:-1]


class ResolutionMode(str, Enum):
    """How duplicate-flagged records are handled by the batch processor."""

    SKIP = "skip"
    UPDATE = "update"


class PlannedAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


# --- Parsed input ---

@dataclass(frozen=True, slots=True)
class ImportCandidate:
    """One validated row of an uploaded roster file."""

    name: str
    email: str
    kind: ImportKind = ImportKind.STUDENTS
    line_number: Optional[int] = None
    age: Optional[int] = None
    grade: Optional[str] = None
    gender: Optional[str] = None
    address: str = ""
    phone: str = ""
    parent_name: str = ""
    subject: str = ""
    qualification: str = ""
    experience: str = ""

    def account_fields(self) -> Dict[str, Any]:
        """Return the payload handed to the account collaborators."""

        if self.kind is ImportKind.TEACHERS:
            return {
                "name": self.name,
                "email": self.email,
                "subject": self.subject,
                "phone": self.phone,
                "qualification": self.qualification,
                "experience": self.experience,
            }
        return {
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "grade": self.grade,
            "gender": self.gender,
            "address": self.address,
            "phone": self.phone,
            "parent_name": self.parent_name,
        }

    def display_name(self) -> str:
        return self.name or self.email


@dataclass(frozen=True, slots=True)
class DuplicateDecision:
    """Classification of a candidate against the existing account emails."""

    candidate: ImportCandidate
    is_duplicate: bool


@dataclass(frozen=True, slots=True)
class PlannedRecord:
    """A candidate paired with the action the batch processor will take."""

    candidate: ImportCandidate
    action: PlannedAction
    reason: Optional[str] = None


# --- Batch results ---

@dataclass(frozen=True, slots=True)
class Credential:
    """Login details generated for a newly created account."""

    name: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class FailedRecord:
    candidate: ImportCandidate
    error_message: str


@dataclass(frozen=True, slots=True)
class SkippedRecord:
    candidate: ImportCandidate
    reason: str


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    """Aggregated result of a finished (or cancelled) batch run."""

    success_count: int
    failed_records: Tuple[FailedRecord, ...] = ()
    skipped_records: Tuple[SkippedRecord, ...] = ()
    credentials: Tuple[Credential, ...] = ()
    total: int = 0
    processed: int = 0
    cancelled: bool = False

    @property
    def failed_count(self) -> int:
        return len(self.failed_records)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped_records)

    def summary(self) -> str:
        text = (
            f"{self.success_count} succeeded, {self.failed_count} failed, "
            f"{self.skipped_count} skipped"
        )
        if self.cancelled:
            text += f" (cancelled after {self.processed} of {self.total})"
        return text


@dataclass(frozen=True, slots=True)
class ImportProgress:
    """Immutable snapshot of a batch run, emitted after every state change.

    ``success + failed + skipped == processed`` holds for every snapshot and
    ``is_complete`` is only set once ``processed == total``.
    """

    total: int
    processed: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    current: str = ""
    credentials: Tuple[Credential, ...] = ()
    failed_records: Tuple[FailedRecord, ...] = ()
    skipped_records: Tuple[SkippedRecord, ...] = ()
    is_complete: bool = False
    cancelled: bool = False

    @property
    def is_finished(self) -> bool:
        return self.is_complete or self.cancelled

    @property
    def remaining(self) -> int:
        return self.total - self.processed

    def outcome(self) -> BatchOutcome:
        return BatchOutcome(
            success_count=self.success,
            failed_records=self.failed_records,
            skipped_records=self.skipped_records,
            credentials=self.credentials,
            total=self.total,
            processed=self.processed,
            cancelled=self.cancelled,
        )


__all__ = [
    "BatchOutcome",
    "Credential",
    "DuplicateDecision",
    "FailedRecord",
    "ImportCandidate",
    "ImportKind",
    "ImportProgress",
    "PlannedAction",
    "PlannedRecord",
    "ResolutionMode",
    "SkippedRecord",
]
