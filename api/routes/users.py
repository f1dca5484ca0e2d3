"""
api/routes/users.py -- Account registration and management.

Routes:
  POST   /users/new   -- public sign-up (201; 409 if the email is taken)
  GET    /users/me    -- identity attached by the authorization gate
  GET    /users/all   -- list accounts (requires auth)
  GET    /users/{id}  -- one account (requires auth)
  PATCH  /users/{id}  -- replace email and password of your own account
  DELETE /users/{id}  -- delete your own account (204)

There are no roles: any authenticated user may read accounts, and an account
may only be changed or deleted by its owner. Hashing happens inside BlogStore.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import UserCreate, UserResponse
from auth.dependencies import get_current_user
from auth.models import User
from blog.store import BlogStore
from core.errors import Forbidden

router = APIRouter()


def _require_owner(current_user: User, user_id: int) -> None:
    if current_user.id != user_id:
        raise Forbidden("You can only modify your own account.")


@router.post("/users/new", response_model=UserResponse, status_code=201)
def register(request: Request, body: UserCreate) -> UserResponse:
    store: BlogStore = request.app.state.store
    return UserResponse.from_user(store.create_user(body.email, body.password))


@router.get("/users/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_user(current_user)


@router.get("/users/all", response_model=list[UserResponse])
def list_users(
    request: Request,
    current_user: User = Depends(get_current_user),
) -> list[UserResponse]:
    store: BlogStore = request.app.state.store
    return [UserResponse.from_user(u) for u in store.list_users()]


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    store: BlogStore = request.app.state.store
    return UserResponse.from_user(store.get_user_by_id(user_id))


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    request: Request,
    user_id: int,
    body: UserCreate,
    current_user: User = Depends(get_current_user),
) -> UserResponse:
    """Replace email and password. Tokens already issued for the old email stop resolving."""
    _require_owner(current_user, user_id)
    store: BlogStore = request.app.state.store
    return UserResponse.from_user(store.update_user_password(user_id, body.email, body.password))


@router.delete("/users/{user_id}", status_code=204)
def delete_user(
    request: Request,
    user_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    _require_owner(current_user, user_id)
    store: BlogStore = request.app.state.store
    store.delete_user(user_id)
    return Response(status_code=204)
