"""
auth/passwords.py -- Credential hashing and password sign-in verification.

Passwords: bcrypt used directly (no passlib wrapper). bcrypt's adaptive cost
factor makes brute force expensive; the cost is configurable through
Settings.bcrypt_rounds so tests can run at the minimum of 4.

  Mismatch is a normal negative result (verify() returns False). Only a
  corrupt stored hash or a failure inside the primitive raises HashingFailure.

  bcrypt only reads the first MAX_PASSWORD_BYTES bytes of its input. hash()
  refuses longer passwords with HashingFailure instead of truncating them, and
  verify() treats them as a mismatch since no stored hash can belong to one.
  The API layer rejects them at registration with a 422.

Timing equalization: authenticate_user() always runs one bcrypt check, even
for an unknown email, so response time does not reveal whether an account
exists.

Layer rule: no imports from api/ or blog/ (BlogStore is a type-only import).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

from core.errors import HashingFailure, NotFound

if TYPE_CHECKING:
    from auth.models import User
    from blog.store import BlogStore

logger = logging.getLogger("postgate.auth")

_DUMMY_PASSWORD = "postgate_timing_dummy"

MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """One-way password transform with a configurable bcrypt work factor."""

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Return a salted bcrypt hash of the given plaintext password."""
        encoded = password.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise HashingFailure(f"Password exceeds {MAX_PASSWORD_BYTES} bytes.")
        try:
            hashed = bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=self.rounds))
        except ValueError as exc:
            raise HashingFailure(f"Password hashing failed: {exc}") from exc
        return hashed.decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Return True if the plaintext matches the stored hash.

        Raises HashingFailure when `hashed` is not a usable bcrypt hash.
        An over-long password still pays for one bcrypt check, on its first
        MAX_PASSWORD_BYTES bytes, and then counts as a mismatch.
        """
        encoded = password.encode("utf-8")
        too_long = len(encoded) > MAX_PASSWORD_BYTES
        try:
            matched = bcrypt.checkpw(encoded[:MAX_PASSWORD_BYTES], hashed.encode("utf-8"))
        except ValueError as exc:
            raise HashingFailure("Stored password hash is malformed.") from exc
        return matched and not too_long

    @property
    def dummy_hash(self) -> str:
        # Computed on first use, at the same cost as real hashes.
        if self._dummy_hash is None:
            self._dummy_hash = self.hash(_DUMMY_PASSWORD)
        return self._dummy_hash


def authenticate_user(store: BlogStore, hasher: PasswordHasher, email: str, password: str) -> User | None:
    """Verify an email/password pair. Returns the User on success, None otherwise.

    Always runs bcrypt whether or not the user exists:
    - Unknown email: bcrypt runs against the dummy hash (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash

    HashingFailure propagates; the route turns it into a 500.
    """
    try:
        user = store.get_user_by_email(email)
    except NotFound:
        hasher.verify(password, hasher.dummy_hash)
        logger.info("Sign-in rejected: unknown email")
        return None
    if not hasher.verify(password, user.password_hash):
        logger.info("Sign-in rejected: bad password for user_id=%s", user.id)
        return None
    return user
