"""Contracts for the account services the import pipeline talks to.

Collaborators report per-record failures as result values rather than
exceptions, so the batch processor classifies them by type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Set, Union

from ..models import ImportKind


@dataclass(frozen=True, slots=True)
class AccountCreated:
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class AccountUpdated:
    email: str


@dataclass(frozen=True, slots=True)
class DuplicateConflict:
    """The identity store already holds an account with this email."""

    email: str
    message: str = "Duplicate email"


@dataclass(frozen=True, slots=True)
class ValidationFailure:
    message: str


@dataclass(frozen=True, slots=True)
class NotFound:
    message: str


@dataclass(frozen=True, slots=True)
class UnknownFailure:
    message: str


CreateOutcome = Union[AccountCreated, DuplicateConflict, ValidationFailure, UnknownFailure]
UpdateOutcome = Union[AccountUpdated, NotFound, UnknownFailure]
AccountOutcome = Union[CreateOutcome, UpdateOutcome]


class AccountProvisioner(Protocol):
    """Creates accounts and returns the generated login password."""

    def create_account(self, kind: ImportKind, fields: Mapping[str, Any]) -> CreateOutcome:  # pragma: no cover - protocol
        ...


class AccountUpdater(Protocol):
    """Applies field updates to an account located by email."""

    def update_account(self, existing_email: str, fields: Mapping[str, Any]) -> UpdateOutcome:  # pragma: no cover - protocol
        ...


class IdentityLookup(Protocol):
    """Batched existence check against the identity store."""

    def find_existing_emails(self, emails: Iterable[str]) -> Set[str]:  # pragma: no cover - protocol
        ...


def outcome_message(outcome: AccountOutcome) -> str:
    return getattr(outcome, "message", "") or outcome.__class__.__name__


__all__ = [
    "AccountCreated",
    "AccountOutcome",
    "AccountProvisioner",
    "AccountUpdated",
    "AccountUpdater",
    "CreateOutcome",
    "DuplicateConflict",
    "IdentityLookup",
    "NotFound",
    "UnknownFailure",
    "UpdateOutcome",
    "ValidationFailure",
    "outcome_message",
]
