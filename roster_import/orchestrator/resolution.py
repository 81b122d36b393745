"""Turn a duplicate report and an operator decision into a batch plan."""
from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from ..duplicates import DuplicateReport
from ..models import ImportCandidate, PlannedAction, PlannedRecord, ResolutionMode

DUPLICATE_EMAIL_REASON = "Duplicate email"


class Resolution(str, Enum):
    CANCEL = "cancel"
    SKIP = "skip"
    UPDATE = "update"

    @property
    def mode(self) -> ResolutionMode:
        if self is Resolution.UPDATE:
            return ResolutionMode.UPDATE
        return ResolutionMode.SKIP


class ImportCancelled(Exception):
    """Raised when the operator cancels an import before any writes."""


def coerce_resolution(value: Union[str, Resolution]) -> Resolution:
    try:
        return Resolution(value)
    except ValueError as exc:
        choices = ", ".join(item.value for item in Resolution)
        raise ValueError(f"Unknown duplicate resolution '{value}'. Expected one of: {choices}") from exc


def requires_decision(report: DuplicateReport) -> bool:
    return report.has_duplicates


def plan_batch(
    candidates: Sequence[ImportCandidate],
    report: DuplicateReport,
    resolution: Optional[Union[str, Resolution]] = None,
) -> List[PlannedRecord]:
    """Assign an action to every candidate, keeping the order of the file.

    Nothing is written here. Without duplicates the resolution is irrelevant and
    defaults to ``skip``; with duplicates an explicit resolution is required.
    """

    if resolution is None:
        if requires_decision(report):
            raise ValueError("Duplicates were found; a resolution (cancel, skip, update) is required")
        chosen = Resolution.SKIP
    else:
        chosen = coerce_resolution(resolution)

    if chosen is Resolution.CANCEL:
        raise ImportCancelled("Import cancelled before any records were processed")

    # Equal candidates (identical rows without line numbers) queue up in report order.
    actions: Dict[ImportCandidate, List[PlannedRecord]] = {}
    for candidate in report.new_records:
        actions.setdefault(candidate, []).append(PlannedRecord(candidate, PlannedAction.CREATE))
    for candidate in report.duplicates:
        if chosen is Resolution.UPDATE:
            planned = PlannedRecord(candidate, PlannedAction.UPDATE)
        else:
            planned = PlannedRecord(candidate, PlannedAction.SKIP, DUPLICATE_EMAIL_REASON)
        actions.setdefault(candidate, []).append(planned)
    for repeated in report.in_file_duplicates:
        reason = f"{DUPLICATE_EMAIL_REASON} in file (line {repeated.first_line})"
        actions.setdefault(repeated.candidate, []).append(
            PlannedRecord(repeated.candidate, PlannedAction.SKIP, reason)
        )

    plan: List[PlannedRecord] = []
    for candidate in candidates:
        queued = actions.get(candidate)
        if not queued:
            raise ValueError(
                f"Candidate {candidate.email!r} on line {candidate.line_number} is missing from the duplicate report"
            )
        plan.append(queued.pop(0))
    return plan


__all__ = [
    "DUPLICATE_EMAIL_REASON",
    "ImportCancelled",
    "Resolution",
    "coerce_resolution",
    "plan_batch",
    "requires_decision",
]
