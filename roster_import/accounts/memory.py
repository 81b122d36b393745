"""Account directories that keep provisioned accounts locally."""
from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Set, Union

from ..ingestion.parser import coerce_kind, is_valid_email, normalise_email
from ..models import ImportKind
from .base import (
    AccountCreated,
    AccountUpdated,
    CreateOutcome,
    DuplicateConflict,
    NotFound,
    UpdateOutcome,
    ValidationFailure,
)
from .passwords import DEFAULT_PASSWORD_LENGTH, generate_password

LOGGER = logging.getLogger(__name__)


class AccountStoreError(RuntimeError):
    """Raised when a persisted account store cannot be read."""


class InMemoryAccountDirectory:
    """Identity store implementing lookup, provisioning, and update in memory."""

    name = "memory"

    def __init__(
        self,
        existing_emails: Iterable[str] = (),
        *,
        password_length: int = DEFAULT_PASSWORD_LENGTH,
    ) -> None:
        self.password_length = password_length
        self.accounts: Dict[str, Dict[str, Any]] = {}
        for email in existing_emails:
            key = normalise_email(email)
            self.accounts[key] = {"email": key}

    # ------------------------------------------------------------------
    def find_existing_emails(self, emails: Iterable[str]) -> Set[str]:
        wanted = {normalise_email(email) for email in emails}
        return {email for email in wanted if email in self.accounts}

    # ------------------------------------------------------------------
    def create_account(self, kind: Union[str, ImportKind], fields: Mapping[str, Any]) -> CreateOutcome:
        email = normalise_email(fields.get("email"))
        if not is_valid_email(email):
            return ValidationFailure(f"Invalid email address: {fields.get('email')!r}")
        if not str(fields.get("name") or "").strip():
            return ValidationFailure("Name is required")
        if email in self.accounts:
            return DuplicateConflict(email=email)

        password = generate_password(self.password_length)
        self.accounts[email] = {**fields, "email": email, "kind": coerce_kind(kind).value}
        self._after_write()
        LOGGER.debug("Created %s account for %s", coerce_kind(kind).value, email)
        return AccountCreated(email=email, password=password)

    # ------------------------------------------------------------------
    def update_account(self, existing_email: str, fields: Mapping[str, Any]) -> UpdateOutcome:
        email = normalise_email(existing_email)
        account = self.accounts.get(email)
        if account is None:
            return NotFound(f"No account found for {email}")

        # Blank cells in the upload never clear stored values.
        account.update({key: value for key, value in fields.items() if value not in (None, "")})
        account["email"] = email
        self._after_write()
        LOGGER.debug("Updated account for %s", email)
        return AccountUpdated(email=email)

    # ------------------------------------------------------------------
    def _after_write(self) -> None:
        """Hook for subclasses that persist the directory."""


class JsonAccountDirectory(InMemoryAccountDirectory):
    """Account directory persisted to a JSON file after every write."""

    name = "json"

    def __init__(
        self,
        path: Union[str, Path],
        existing_emails: Iterable[str] = (),
        *,
        password_length: int = DEFAULT_PASSWORD_LENGTH,
    ) -> None:
        super().__init__(existing_emails, password_length=password_length)
        self.path = Path(path)
        stored = self._load()
        if stored:
            self.accounts.update(stored)

    def _load(self) -> Optional[Dict[str, Dict[str, Any]]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as exc:
            raise AccountStoreError(f"Account store {self.path} is not valid JSON: {exc}") from exc
        accounts = data.get("accounts", {}) if isinstance(data, dict) else None
        if not isinstance(accounts, dict):
            raise AccountStoreError(f"Account store {self.path} must map 'accounts' to an object")
        return {normalise_email(email): dict(record) for email, record in accounts.items()}

    def _after_write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps({"accounts": self.accounts}, indent=2, sort_keys=True)
        # The store is replaced atomically.
        handle, temp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(payload)
            os.replace(temp_name, self.path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise


__all__ = ["AccountStoreError", "InMemoryAccountDirectory", "JsonAccountDirectory"]
