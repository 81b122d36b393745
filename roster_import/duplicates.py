"""Partition parsed candidates into new records and pre-existing accounts."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .accounts.base import IdentityLookup
from .models import DuplicateDecision, ImportCandidate

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class InFileDuplicate:
    """A row repeating an email already seen earlier in the same upload."""

    candidate: ImportCandidate
    first_line: Optional[int]


@dataclass(frozen=True, slots=True)
class DuplicateReport:
    """Result of a single duplicate check; every tuple keeps input order."""

    new_records: Tuple[ImportCandidate, ...] = ()
    duplicates: Tuple[ImportCandidate, ...] = ()
    in_file_duplicates: Tuple[InFileDuplicate, ...] = ()
    lookup_failed: bool = False

    @property
    def has_duplicates(self) -> bool:
        return bool(self.duplicates or self.in_file_duplicates)

    @property
    def duplicate_emails(self) -> Set[str]:
        return {candidate.email for candidate in self.duplicates}

    def decisions(self) -> List[DuplicateDecision]:
        existing = self.duplicate_emails
        unique = list(self.new_records) + list(self.duplicates)
        return [DuplicateDecision(candidate=candidate, is_duplicate=candidate.email in existing) for candidate in unique]


class DuplicateDetector:
    """Checks candidates against the identity store with one batched query.

    The check is advisory: if the lookup fails every candidate is treated as
    new and the provisioning service remains the authoritative check.
    """

    def __init__(self, lookup: IdentityLookup) -> None:
        self._lookup = lookup

    def detect(self, candidates: Sequence[ImportCandidate]) -> DuplicateReport:
        unique, in_file = _split_in_file_duplicates(candidates)
        existing, lookup_failed = self._existing_emails(candidate.email for candidate in unique)

        new_records: List[ImportCandidate] = []
        duplicates: List[ImportCandidate] = []
        for candidate in unique:
            if candidate.email.lower() in existing:
                duplicates.append(candidate)
            else:
                new_records.append(candidate)

        LOGGER.info(
            "Duplicate check: %s new, %s existing, %s repeated in file",
            len(new_records),
            len(duplicates),
            len(in_file),
        )
        return DuplicateReport(
            new_records=tuple(new_records),
            duplicates=tuple(duplicates),
            in_file_duplicates=tuple(in_file),
            lookup_failed=lookup_failed,
        )

    def _existing_emails(self, emails: Iterable[str]) -> Tuple[Set[str], bool]:
        email_list = [email.lower() for email in emails]
        if not email_list:
            return set(), False
        try:
            found = self._lookup.find_existing_emails(email_list)
        except Exception:
            LOGGER.exception("Existing account lookup failed; treating all %s records as new", len(email_list))
            return set(), True
        return {str(email).strip().lower() for email in found or ()}, False


def _split_in_file_duplicates(
    candidates: Sequence[ImportCandidate],
) -> Tuple[List[ImportCandidate], List[InFileDuplicate]]:
    first_seen: Dict[str, ImportCandidate] = {}
    unique: List[ImportCandidate] = []
    repeated: List[InFileDuplicate] = []
    for candidate in candidates:
        key = candidate.email.lower()
        if key in first_seen:
            repeated.append(InFileDuplicate(candidate=candidate, first_line=first_seen[key].line_number))
            continue
        first_seen[key] = candidate
        unique.append(candidate)
    return unique, repeated


__all__ = ["DuplicateDetector", "DuplicateReport", "InFileDuplicate"]
