"""
API request and response models for Postgate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
blog/models.py, which own the internal domain representation. Route handlers
map between the two. Password hashes never appear in any response model.

Passwords are passed through byte-for-byte. Only emails are normalised
(surrounding whitespace stripped), and the same rule applies on sign-up,
account edits and sign-in so a stored email is always the one looked up.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator

from auth.models import User
from auth.passwords import MAX_PASSWORD_BYTES
from blog.models import Post

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+$"

PASSWORD_MIN_LENGTH = 8

Email = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=255, pattern=EMAIL_PATTERN),
]


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class SignInRequest(BaseModel):
    """Request body for POST /signin.

    An over-long password is not a validation error here; it simply never
    matches, so the caller gets the usual 401.
    """

    email: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    password: str = Field(min_length=1, max_length=255)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserCreate(BaseModel):
    """Request body for POST /users/new and PATCH /users/{id} (full replace)."""

    email: Email
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return value


class UserResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    created_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, email=user.email, created_at=user.created_at or "")


# ---------------------------------------------------------------------------
# Posts
# ---------------------------------------------------------------------------


class PostCreate(BaseModel):
    """Request body for POST /posts/new and PATCH /posts/{id}.

    PATCH replaces the whole record, so both fields are required there too.
    poster_id is never taken from the body; it is the authenticated user.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1)


class PostResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    poster_id: int
    title: str
    body: str
    created_at: str

    @classmethod
    def from_post(cls, post: Post) -> "PostResponse":
        return cls(
            id=post.id,
            poster_id=post.poster_id,
            title=post.title,
            body=post.body,
            created_at=post.created_at or "",
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    existing is only set on 409 responses and holds the record that already
    occupies the unique title or email.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    existing: Optional[dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/healthcheck."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
