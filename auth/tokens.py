"""
auth/tokens.py -- Session token issuance and validation.

Security design decisions:
  JWT: python-jose with HS256 (shared-secret HMAC). Tokens carry the subject
       email plus iat/exp as integer epoch seconds; exp is always iat + TTL
       (24h by default). There is no server-side session table -- validity is
       decided by signature and expiry alone.

  Expiry: checked here against the injected clock rather than by jose, so the
       rule is exactly "now >= exp means invalid" and tests can move time.

  Failures: every validation failure raises the same InvalidToken. Callers
       cannot distinguish an expired token from a tampered one.

  Secret: passed into the constructor from Settings, never read from the
       environment here. An absent or short secret raises ConfigurationError;
       the lifespan builds the TokenService at startup so this is fatal there.

Layer rule: no imports from api/ or blog/.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Claims
from core.errors import ConfigurationError, InvalidToken

logger = logging.getLogger("postgate.auth")

_ALGORITHM = "HS256"
_DEFAULT_TTL_SECONDS = 24 * 60 * 60


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and validates signed, time-bounded session tokens.

    Usage:
        tokens = TokenService(settings.jwt_secret)
        token = tokens.issue("a@example.com")
        claims = tokens.validate(token)
    """

    def __init__(
        self,
        secret: str,
        ttl_seconds: int = _DEFAULT_TTL_SECONDS,
        min_secret_length: int = 32,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not secret:
            raise ConfigurationError(
                "JWT_SECRET is required. Set it in your environment or .env file, "
                "or set DEBUG=true to run with a generated secret."
            )
        if len(secret) < min_secret_length:
            raise ConfigurationError(f"JWT_SECRET must be at least {min_secret_length} characters.")
        if ttl_seconds <= 0:
            raise ConfigurationError("Token TTL must be positive.")
        self._secret = secret
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def issue(self, subject_email: str) -> str:
        """Sign a token for the given email, valid from now for the TTL."""
        now = self._clock()
        payload = {
            "email": subject_email,
            "iat": int(now.timestamp()),
            "exp": int((now + self._ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def validate(self, token: str) -> Claims:
        """Verify signature, structure and expiry; return the embedded Claims.

        Raises InvalidToken on any failure.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False, "verify_iat": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise InvalidToken("Unable to decode token.") from exc

        email = payload.get("email")
        iat = payload.get("iat")
        exp = payload.get("exp")
        if not isinstance(email, str) or not isinstance(iat, int) or not isinstance(exp, int):
            raise InvalidToken("Unable to decode token.")
        if exp <= iat:
            raise InvalidToken("Unable to decode token.")

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        if self._clock() >= expires_at:
            logger.debug("Token rejected: expired at %s", expires_at.isoformat())
            raise InvalidToken("Unable to decode token.")

        return Claims(
            subject_email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc),
            expires_at=expires_at,
        )
