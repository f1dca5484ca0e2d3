"""
blog/models.py -- Domain dataclasses for blog content.

These are pure data containers with zero logic. Title uniqueness, identity
assignment and timestamps all live in blog/store.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Post:
    """A published post.

    title is unique across all posts. id and created_at are assigned by the
    store on insert and never change afterwards; both are None before then.
    """

    poster_id: int
    title: str
    body: str
    id: Optional[int] = None
    created_at: Optional[str] = None  # ISO 8601, set by store on insert
