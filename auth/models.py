"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and routes do
the work; these only own the shape.

Layer rule: no imports from api/ or blog/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered account.

    email is unique across all users; the store enforces it with a probe
    before insert plus a UNIQUE constraint. password_hash is always a bcrypt
    hash produced by PasswordHasher -- the plaintext is never stored.
    """

    email: str
    password_hash: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Identity and timing payload carried inside a signed session token."""

    subject_email: str
    issued_at: datetime
    expires_at: datetime
