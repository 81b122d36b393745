"""Sequential batch processor that provisions accounts one record at a time."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Callable, Iterable, Iterator, Optional, Union

from ..accounts.base import (
    AccountCreated,
    AccountOutcome,
    AccountProvisioner,
    AccountUpdated,
    AccountUpdater,
    DuplicateConflict,
    UnknownFailure,
    outcome_message,
)
from ..models import (
    BatchOutcome,
    Credential,
    FailedRecord,
    ImportProgress,
    PlannedAction,
    PlannedRecord,
    ResolutionMode,
    SkippedRecord,
)
from ..notifications import NotificationSink, safe_notify
from ..rate_limit import NO_THROTTLE, RecordThrottle
from .resolution import DUPLICATE_EMAIL_REASON

LOGGER = logging.getLogger(__name__)

ProgressCallback = Callable[[ImportProgress], None]


class BatchProcessor:
    """Applies a batch plan strictly in order, isolating every record's failure.

    Progress is reported as immutable :class:`ImportProgress` snapshots. A
    cancel event is checked before each record; when it is set the run stops
    and the final snapshot is marked ``cancelled`` with partial counts.
    """

    def __init__(
        self,
        provisioner: AccountProvisioner,
        updater: Optional[AccountUpdater] = None,
        *,
        throttle: Optional[RecordThrottle] = None,
        notifier: Optional[NotificationSink] = None,
    ) -> None:
        self._provisioner = provisioner
        self._updater = updater
        self._throttle = throttle or NO_THROTTLE
        self._notifier = notifier

    def iter_progress(
        self,
        plan: Iterable[PlannedRecord],
        mode: Union[str, ResolutionMode] = ResolutionMode.SKIP,
        *,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[ImportProgress]:
        records = list(plan)
        resolution_mode = ResolutionMode(mode)
        total = len(records)
        progress = ImportProgress(total=total, current=f"Starting import of {total} records...")
        yield progress

        attempted = False
        for index, planned in enumerate(records, start=1):
            if cancel_event is not None and cancel_event.is_set():
                LOGGER.warning("Import cancelled after %s of %s records", progress.processed, total)
                yield replace(
                    progress,
                    cancelled=True,
                    current=f"Import cancelled after {progress.processed} of {total} records",
                )
                return

            candidate = planned.candidate
            if planned.action is PlannedAction.SKIP:
                progress = self._record_skip(progress, planned, planned.reason or DUPLICATE_EMAIL_REASON)
                yield progress
                continue

            if attempted:
                self._throttle.between_records()
            progress = replace(progress, current=f"Processing {candidate.display_name()} ({index}/{total})...")
            yield progress

            outcome = self._apply(planned)
            attempted = True
            progress = self._fold(progress, planned, outcome, resolution_mode)
            yield progress

        yield replace(
            progress,
            is_complete=True,
            current=(
                f"Import complete: {progress.success} succeeded, "
                f"{progress.failed} failed, {progress.skipped} skipped"
            ),
        )

    def run(
        self,
        plan: Iterable[PlannedRecord],
        mode: Union[str, ResolutionMode] = ResolutionMode.SKIP,
        *,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchOutcome:
        """Run the plan to completion and return the final outcome."""

        records = list(plan)
        last = ImportProgress(total=len(records))
        for snapshot in self.iter_progress(records, mode, cancel_event=cancel_event):
            last = snapshot
            if progress_callback:
                progress_callback(snapshot)
        return last.outcome()

    # ------------------------------------------------------------------
    def _apply(self, planned: PlannedRecord) -> AccountOutcome:
        candidate = planned.candidate
        fields = candidate.account_fields()
        try:
            self._throttle.before_call()
            if planned.action is PlannedAction.UPDATE:
                if self._updater is None:
                    return UnknownFailure("No account updater is configured")
                LOGGER.debug("Updating existing account %s", candidate.email)
                return self._updater.update_account(candidate.email, fields)
            LOGGER.debug("Creating %s account for %s", candidate.kind.singular, candidate.email)
            return self._provisioner.create_account(candidate.kind, fields)
        except Exception as exc:
            LOGGER.exception("Account call failed for %s", candidate.email)
            return UnknownFailure(str(exc) or exc.__class__.__name__)

    def _fold(
        self,
        progress: ImportProgress,
        planned: PlannedRecord,
        outcome: AccountOutcome,
        mode: ResolutionMode,
    ) -> ImportProgress:
        candidate = planned.candidate
        processed = progress.processed + 1

        if isinstance(outcome, AccountCreated):
            credential = Credential(name=candidate.name, email=outcome.email, password=outcome.password)
            return replace(
                progress,
                processed=processed,
                success=progress.success + 1,
                credentials=progress.credentials + (credential,),
            )

        if isinstance(outcome, AccountUpdated):
            return replace(progress, processed=processed, success=progress.success + 1)

        if isinstance(outcome, DuplicateConflict) and mode is ResolutionMode.SKIP:
            LOGGER.info("Skipping %s: account already exists", candidate.email)
            return self._record_skip(progress, planned, DUPLICATE_EMAIL_REASON)

        if outcome is None or not hasattr(outcome, "message"):
            message = f"Unexpected result from account service: {outcome!r}"
        else:
            message = outcome_message(outcome)
        LOGGER.warning("Failed to import %s (%s): %s", candidate.name, candidate.email, message)
        safe_notify(
            self._notifier,
            f"Failed to import {candidate.name}",
            "error",
            5000,
            detail=f"{candidate.email}: {message}",
        )
        return replace(
            progress,
            processed=processed,
            failed=progress.failed + 1,
            failed_records=progress.failed_records + (FailedRecord(candidate, message),),
        )

    @staticmethod
    def _record_skip(progress: ImportProgress, planned: PlannedRecord, reason: str) -> ImportProgress:
        return replace(
            progress,
            processed=progress.processed + 1,
            skipped=progress.skipped + 1,
            skipped_records=progress.skipped_records + (SkippedRecord(planned.candidate, reason),),
        )


__all__ = ["BatchProcessor", "ProgressCallback"]
