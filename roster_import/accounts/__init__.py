"""Account service contracts and local implementations."""

from .base import (  # noqa: F401
    AccountCreated,
    AccountProvisioner,
    AccountUpdated,
    AccountUpdater,
    DuplicateConflict,
    IdentityLookup,
    NotFound,
    UnknownFailure,
    ValidationFailure,
)
from .memory import AccountStoreError, InMemoryAccountDirectory, JsonAccountDirectory  # noqa: F401
from .passwords import generate_password  # noqa: F401

__all__ = [
    "AccountCreated",
    "AccountProvisioner",
    "AccountStoreError",
    "AccountUpdated",
    "AccountUpdater",
    "DuplicateConflict",
    "IdentityLookup",
    "InMemoryAccountDirectory",
    "JsonAccountDirectory",
    "NotFound",
    "UnknownFailure",
    "ValidationFailure",
    "generate_password",
]
