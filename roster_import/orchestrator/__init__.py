"""Workflow orchestration for duplicate resolution and batch provisioning."""

from .batch import BatchProcessor
from .resolution import DUPLICATE_EMAIL_REASON, ImportCancelled, Resolution, plan_batch, requires_decision
from .service import ImportSession, ImportState, ImportStateError, run_import

__all__ = [
    "BatchProcessor",
    "DUPLICATE_EMAIL_REASON",
    "ImportCancelled",
    "ImportSession",
    "ImportState",
    "ImportStateError",
    "Resolution",
    "plan_batch",
    "requires_decision",
    "run_import",
]
