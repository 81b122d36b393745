"""Import session coordinating parsing, duplicate checks, and batch processing."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Callable, Iterator, List, Optional, Union

from ..accounts.base import AccountProvisioner, AccountUpdater, IdentityLookup
from ..duplicates import DuplicateDetector, DuplicateReport
from ..ingestion.parser import DEFAULT_MAX_RECORDS, ParseError, coerce_kind, parse_candidates
from ..models import BatchOutcome, ImportCandidate, ImportKind, ImportProgress, PlannedRecord, ResolutionMode
from ..notifications import NotificationSink, safe_notify
from ..rate_limit import RecordThrottle
from .batch import BatchProcessor, ProgressCallback
from .resolution import ImportCancelled, Resolution, coerce_resolution, plan_batch, requires_decision

LOGGER = logging.getLogger(__name__)

Resolver = Callable[[DuplicateReport], Union[str, Resolution]]


class ImportState(str, Enum):
    IDLE = "idle"
    PARSING = "parsing"
    PARSE_ERROR = "parse_error"
    PARSED = "parsed"
    DUPLICATE_CHECK = "duplicate_check"
    READY = "ready"
    AWAITING_DECISION = "awaiting_decision"
    CANCELLED = "cancelled"
    PROCESSING = "processing"
    COMPLETE = "complete"
    INTERRUPTED = "interrupted"


TERMINAL_STATES = frozenset(
    {ImportState.PARSE_ERROR, ImportState.CANCELLED, ImportState.COMPLETE, ImportState.INTERRUPTED}
)


class ImportStateError(RuntimeError):
    """Raised when a session operation is called in the wrong state."""


class ImportSession:
    """Drives one upload through parse, duplicate check, decision, and processing."""

    def __init__(
        self,
        kind: Union[str, ImportKind],
        *,
        lookup: IdentityLookup,
        provisioner: AccountProvisioner,
        updater: Optional[AccountUpdater] = None,
        throttle: Optional[RecordThrottle] = None,
        notifier: Optional[NotificationSink] = None,
        max_records: Optional[int] = DEFAULT_MAX_RECORDS,
    ) -> None:
        self.kind = coerce_kind(kind)
        self.state = ImportState.IDLE
        self.max_records = max_records
        self.candidates: List[ImportCandidate] = []
        self.report: Optional[DuplicateReport] = None
        self.plan: List[PlannedRecord] = []
        self.mode = ResolutionMode.SKIP
        self.outcome: Optional[BatchOutcome] = None
        self._notifier = notifier
        self._detector = DuplicateDetector(lookup)
        self._processor = BatchProcessor(provisioner, updater, throttle=throttle, notifier=notifier)

    # ------------------------------------------------------------------
    # Parse and duplicate check
    # ------------------------------------------------------------------
    def prepare(self, text: str) -> DuplicateReport:
        """Parse the upload and check it for duplicates without writing anything."""

        self._require(ImportState.IDLE)
        self.state = ImportState.PARSING
        try:
            candidates = parse_candidates(text, self.kind, max_records=self.max_records)
        except ParseError as exc:
            self.state = ImportState.PARSE_ERROR
            LOGGER.error("Rejected %s upload: %s", self.kind.value, exc)
            safe_notify(self._notifier, str(exc), "error", 5000)
            raise

        self.candidates = candidates
        self.state = ImportState.PARSED

        self.state = ImportState.DUPLICATE_CHECK
        report = self._detector.detect(candidates)
        self.report = report

        if requires_decision(report):
            self.state = ImportState.AWAITING_DECISION
            safe_notify(
                self._notifier,
                f"Found {len(report.duplicates) + len(report.in_file_duplicates)} duplicate "
                f"{self.kind.value} and {len(report.new_records)} new records",
                "warning",
                5000,
            )
        else:
            self.plan = plan_batch(candidates, report)
            self.state = ImportState.READY
        return report

    @property
    def awaiting_decision(self) -> bool:
        return self.state is ImportState.AWAITING_DECISION

    def resolve(self, resolution: Union[str, Resolution]) -> None:
        """Record the operator's choice for a batch with duplicates."""

        self._require(ImportState.AWAITING_DECISION)
        if self.report is None:
            raise ImportStateError("Import session has no duplicate report to resolve")
        chosen = coerce_resolution(resolution)
        try:
            self.plan = plan_batch(self.candidates, self.report, chosen)
        except ImportCancelled:
            self.state = ImportState.CANCELLED
            LOGGER.info("Import of %s %s cancelled by operator", len(self.candidates), self.kind.value)
            safe_notify(self._notifier, "Import cancelled", "info", 3000)
            raise
        self.mode = chosen.mode
        self.state = ImportState.READY

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------
    def iter_progress(self, *, cancel_event: Optional[threading.Event] = None) -> Iterator[ImportProgress]:
        """Return the progress stream; the session must be ``READY``.

        Closing the stream early ends the import as interrupted with the
        counts seen so far.
        """

        self._require(ImportState.READY)
        return self._progress(cancel_event)

    def run(
        self,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchOutcome:
        for snapshot in self.iter_progress(cancel_event=cancel_event):
            if progress_callback:
                progress_callback(snapshot)
        if self.outcome is None:
            raise ImportStateError("Import run ended without an outcome")
        return self.outcome

    # ------------------------------------------------------------------
    def _progress(self, cancel_event: Optional[threading.Event]) -> Iterator[ImportProgress]:
        self._require(ImportState.READY)
        self.state = ImportState.PROCESSING
        last = ImportProgress(total=len(self.plan))
        try:
            for snapshot in self._processor.iter_progress(self.plan, self.mode, cancel_event=cancel_event):
                last = snapshot
                yield snapshot
        finally:
            if not last.is_finished:
                LOGGER.warning("Progress stream closed after %s of %s records", last.processed, last.total)
                last = replace(last, cancelled=True)
            self._finish(last)

    def _finish(self, final: ImportProgress) -> None:
        self.outcome = final.outcome()
        self.state = ImportState.INTERRUPTED if final.cancelled else ImportState.COMPLETE
        severity = "success" if final.failed == 0 and not final.cancelled else "warning"
        LOGGER.info("Import of %s finished: %s", self.kind.value, self.outcome.summary())
        safe_notify(self._notifier, f"Import finished: {self.outcome.summary()}", severity, 5000)

    def _require(self, *states: ImportState) -> None:
        if self.state not in states:
            expected = ", ".join(state.value for state in states)
            raise ImportStateError(f"Import session is '{self.state.value}', expected '{expected}'")


def run_import(
    text: str,
    kind: Union[str, ImportKind],
    *,
    lookup: IdentityLookup,
    provisioner: AccountProvisioner,
    updater: Optional[AccountUpdater] = None,
    resolver: Optional[Resolver] = None,
    throttle: Optional[RecordThrottle] = None,
    notifier: Optional[NotificationSink] = None,
    max_records: Optional[int] = DEFAULT_MAX_RECORDS,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> Optional[BatchOutcome]:
    """Run a whole import; returns ``None`` when the operator cancels.

    ``resolver`` is only consulted when duplicates were found. Without one, a
    batch with duplicates is cancelled rather than guessed at.
    """

    session = ImportSession(
        kind,
        lookup=lookup,
        provisioner=provisioner,
        updater=updater,
        throttle=throttle,
        notifier=notifier,
        max_records=max_records,
    )
    report = session.prepare(text)
    if session.awaiting_decision:
        decision = resolver(report) if resolver else Resolution.CANCEL
        try:
            session.resolve(decision)
        except ImportCancelled:
            return None
    return session.run(cancel_event=cancel_event, progress_callback=progress_callback)


__all__ = [
    "ImportSession",
    "ImportState",
    "ImportStateError",
    "Resolver",
    "TERMINAL_STATES",
    "run_import",
]
