"""
api/routes/posts.py -- Post CRUD routes.

Routes (in registration order to avoid FastAPI path capture conflicts):
  GET    /posts/all   -- list every post (public)
  POST   /posts/new   -- create a post as the authenticated user (201)
  GET    /posts/{id}  -- one post (public)
  PATCH  /posts/{id}  -- full-record replace of title and body
  DELETE /posts/{id}  -- delete (204)

Uniqueness and existence are enforced by BlogStore (check-then-act). Its
NotFound and Conflict errors reach the PostgateError handler in api/main.py,
which renders 404 and 409 (with the original post attached) respectively.

Handlers are plain `def` so FastAPI runs them in the threadpool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import PostCreate, PostResponse
from auth.dependencies import get_current_user
from auth.models import User
from blog.models import Post
from blog.store import BlogStore

router = APIRouter()


@router.get("/posts/all", response_model=list[PostResponse])
def list_posts(request: Request) -> list[PostResponse]:
    store: BlogStore = request.app.state.store
    return [PostResponse.from_post(p) for p in store.list_posts()]


@router.post("/posts/new", response_model=PostResponse, status_code=201)
def create_post(
    request: Request,
    body: PostCreate,
    current_user: User = Depends(get_current_user),
) -> PostResponse:
    """Create a post. 409 with the existing post if the title is taken."""
    store: BlogStore = request.app.state.store
    created = store.create_post(Post(poster_id=current_user.id, title=body.title, body=body.body))
    return PostResponse.from_post(created)


@router.get("/posts/{post_id}", response_model=PostResponse)
def get_post(request: Request, post_id: int) -> PostResponse:
    store: BlogStore = request.app.state.store
    return PostResponse.from_post(store.get_post_by_id(post_id))


@router.patch("/posts/{post_id}", response_model=PostResponse)
def amend_post(
    request: Request,
    post_id: int,
    body: PostCreate,
    current_user: User = Depends(get_current_user),
) -> PostResponse:
    """Replace a post's content. The editor becomes the recorded poster."""
    store: BlogStore = request.app.state.store
    updated = store.update_post(post_id, Post(poster_id=current_user.id, title=body.title, body=body.body))
    return PostResponse.from_post(updated)


@router.delete("/posts/{post_id}", status_code=204)
def delete_post(
    request: Request,
    post_id: int,
    current_user: User = Depends(get_current_user),
) -> Response:
    store: BlogStore = request.app.state.store
    store.delete_post(post_id)
    return Response(status_code=204)
