"""
core/errors.py -- Error taxonomy shared by every Postgate layer.

Each error carries a machine-readable code and the HTTP status class the API
layer should answer with. Stores, the token service and the authorization gate
raise these; api/main.py owns the single handler that renders them, so no
lower layer ever builds an HTTP response.

Layer rule: core/ is the kernel. No imports from api/, auth/, or blog/.
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Any


class PostgateError(Exception):
    """Base class for all expected failures."""

    code: str = "error"
    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class HashingFailure(PostgateError):
    """The bcrypt primitive failed or a stored hash is corrupt. Never retried."""

    code = "hashing_failure"
    status = HTTPStatus.INTERNAL_SERVER_ERROR


class InvalidToken(PostgateError):
    """Bad signature, malformed structure, or expired token.

    Expiry and tampering deliberately share one error so callers cannot tell
    them apart.
    """

    code = "invalid_token"
    status = HTTPStatus.UNAUTHORIZED


class ConfigurationError(PostgateError):
    """Required process-wide configuration is missing. Fatal at startup."""

    code = "configuration_error"
    status = HTTPStatus.INTERNAL_SERVER_ERROR


class NotFound(PostgateError):
    code = "not_found"
    status = HTTPStatus.NOT_FOUND


class Conflict(PostgateError):
    """A uniqueness precondition failed.

    `existing` is the record already stored. It is None only when that record
    was deleted between the failed write and the read-back.
    """

    code = "conflict"
    status = HTTPStatus.CONFLICT

    def __init__(self, message: str, existing: Any = None) -> None:
        super().__init__(message)
        self.existing = existing


class Forbidden(PostgateError):
    """The caller is authenticated but may not act on this resource."""

    code = "forbidden"
    status = HTTPStatus.FORBIDDEN


class StoreUnavailable(PostgateError):
    """The database could not be reached or the driver failed mid-operation."""

    code = "store_unavailable"
    status = HTTPStatus.SERVICE_UNAVAILABLE


class AuthorizationRejected(PostgateError):
    """Terminal rejection from the authorization gate.

    status_hint is FORBIDDEN when no usable token was presented and
    UNAUTHORIZED when a token was presented but could not be honoured.
    """

    def __init__(self, message: str, status_hint: HTTPStatus) -> None:
        super().__init__(message)
        self.status_hint = status_hint
        self.status = status_hint
        self.code = "forbidden" if status_hint == HTTPStatus.FORBIDDEN else "unauthorized"
