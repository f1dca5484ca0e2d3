"""
auth/gate.py -- The authorization gate as a pure, per-request state machine.

evaluate() takes the raw Authorization header value plus two capabilities
(a TokenService and a user resolver) and returns either Authorized(user) or
Rejected(status, reason). It keeps no state between calls and knows nothing
about routing; auth/dependencies.py wires it into FastAPI.

Transitions:
  Start           header absent                      -> Rejected(403, "missing token")
                  header bytes are not visible ASCII -> Rejected(403, "malformed header")
  HeaderParsed    fewer than two whitespace parts    -> Rejected(403, "missing token")
  TokenExtracted  TokenService.validate fails        -> Rejected(401, "unable to decode token")
  ClaimsResolved  user lookup fails                  -> Rejected(401, "not an authorized user")
  Authorized      -> forward with the resolved user

The scheme word is not required to be "Bearer"; any other scheme is only
logged at debug level.

Layer rule: no imports from api/ or blog/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus
from typing import Union

from auth.models import User
from auth.tokens import TokenService
from core.errors import AuthorizationRejected, InvalidToken, NotFound, StoreUnavailable

logger = logging.getLogger("postgate.auth.gate")

MISSING_TOKEN = "missing token"
MALFORMED_HEADER = "malformed header"
UNDECODABLE_TOKEN = "unable to decode token"
UNKNOWN_USER = "not an authorized user"


@dataclass(frozen=True)
class Authorized:
    user: User


@dataclass(frozen=True)
class Rejected:
    status: HTTPStatus
    reason: str

    def to_error(self) -> AuthorizationRejected:
        return AuthorizationRejected(self.reason, self.status)


GateResult = Union[Authorized, Rejected]


def _header_text(raw: bytes | str) -> str | None:
    """Decode a header value; None if it contains anything but visible ASCII, space or tab."""
    if isinstance(raw, str):
        try:
            raw = raw.encode("latin-1")
        except UnicodeEncodeError:
            return None
    if any(not (0x20 <= b < 0x7F or b == 0x09) for b in raw):
        return None
    return raw.decode("ascii")


def evaluate(
    raw_header: bytes | str | None,
    tokens: TokenService,
    resolve_user: Callable[[str], User],
) -> GateResult:
    """Run one request's Authorization header through the gate."""
    if raw_header is None:
        return Rejected(HTTPStatus.FORBIDDEN, MISSING_TOKEN)

    header = _header_text(raw_header)
    if header is None:
        return Rejected(HTTPStatus.FORBIDDEN, MALFORMED_HEADER)

    parts = header.split()
    if len(parts) < 2:
        return Rejected(HTTPStatus.FORBIDDEN, MISSING_TOKEN)
    scheme, token = parts[0], parts[1]
    if scheme != "Bearer":
        logger.debug("Authorization scheme %r accepted without check", scheme)

    try:
        claims = tokens.validate(token)
    except InvalidToken:
        return Rejected(HTTPStatus.UNAUTHORIZED, UNDECODABLE_TOKEN)

    try:
        user = resolve_user(claims.subject_email)
    except (NotFound, StoreUnavailable) as exc:
        logger.info("Token subject could not be resolved: %s", exc.code)
        return Rejected(HTTPStatus.UNAUTHORIZED, UNKNOWN_USER)

    return Authorized(user)
