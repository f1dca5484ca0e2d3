"""
auth/dependencies.py -- FastAPI Depends() helper for authentication.

get_current_user() reads the raw Authorization header, runs it through the
gate in auth/gate.py, and either returns the resolved User (also stored on
request.state.current_user for downstream code) or raises
AuthorizationRejected. api/main.py renders that as a 403/401 error envelope
carrying the gate's reason string.

The dependency is a plain `def`, so FastAPI runs it in the worker threadpool:
the token check and the user lookup never block the event loop.

Layer rule: no imports from blog/ (the store is reached through app.state).
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.gate import Authorized, evaluate
from auth.models import User


def _raw_authorization(request: Request) -> bytes | None:
    # Raw bytes, so the gate can tell an undecodable header from a missing one.
    for name, value in request.headers.raw:
        if name.lower() == b"authorization":
            return value
    return None


def get_current_user(request: Request) -> User:
    """Require authentication.

    Use as a FastAPI dependency:
        @router.post("/posts/new")
        def route(user: User = Depends(get_current_user)): ...
    """
    state = request.app.state
    result = evaluate(_raw_authorization(request), state.tokens, state.store.get_user_by_email)
    if not isinstance(result, Authorized):
        raise result.to_error()
    request.state.current_user = result.user
    return result.user
