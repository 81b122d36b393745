"""Temporary password generation for newly provisioned accounts."""
from __future__ import annotations

import secrets
import string

DEFAULT_PASSWORD_LENGTH = 12
PASSWORD_ALPHABET = string.ascii_letters + string.digits + "!@#$%^&*"


def generate_password(length: int = DEFAULT_PASSWORD_LENGTH, alphabet: str = PASSWORD_ALPHABET) -> str:
    if length < 1:
        raise ValueError("Password length must be positive")
    return "".join(secrets.choice(alphabet) for _ in range(length))


__all__ = ["DEFAULT_PASSWORD_LENGTH", "PASSWORD_ALPHABET", "generate_password"]
