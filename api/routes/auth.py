"""
api/routes/auth.py -- Password sign-in.

Routes:
  POST /signin  -- {email, password} -> bare JSON string holding the session token

Security:
  authenticate_user() provides timing equalization -- use it, never inline
  get_user_by_email() + verify().
  Unknown email and wrong password produce the same 401 so responses do not
  reveal which accounts exist.
  HashingFailure propagates to the PostgateError handler and becomes a 500.
  Cache-Control: no-store on every sign-in response.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, SignInRequest
from auth.passwords import PasswordHasher, authenticate_user
from auth.tokens import TokenService
from blog.store import BlogStore

logger = logging.getLogger("postgate.api.auth")

router = APIRouter()


@router.post("/signin", response_model=str)
def sign_in(request: Request, body: SignInRequest) -> JSONResponse:
    """Verify credentials and return a freshly issued token."""
    store: BlogStore = request.app.state.store
    hasher: PasswordHasher = request.app.state.hasher
    tokens: TokenService = request.app.state.tokens

    user = authenticate_user(store, hasher, body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content=ErrorResponse(
                error=ErrorDetail(code="bad_credentials", message="Invalid email or password.")
            ).model_dump(),
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    token = tokens.issue(user.email)
    logger.info("Token issued for user_id=%s", user.id)
    resp = JSONResponse(status_code=200, content=token)
    resp.headers["Cache-Control"] = "no-store"
    return resp
