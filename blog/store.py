"""
blog/store.py -- SQLAlchemy Core persistence layer for posts and users.

Pattern: Repository + Data Mapper. BlogStore is the repository; the _row_to_*
functions are the mappers. Route and dependency code never touches SQL
directly, and nothing else talks to the database.

Consistency discipline -- check-then-act:
  Every mutation first reads to verify its precondition (no post with this
  title, no user with this email, the target id exists) and only then writes.
  A failed probe raises Conflict (carrying the record already stored) or
  NotFound (carrying the id in its message).

  The probe and the write are separate statements with no transaction around
  them, so two concurrent creates can both pass the probe. posts.title and
  users.email therefore also carry UNIQUE constraints: the write that loses
  the race gets an IntegrityError, which is turned into the same Conflict the
  probe would have raised. The winning record is read back for that Conflict;
  if it was deleted again before the read, `existing` is None.

Connection handling:
  One Engine per store, shared by every request worker thread. The pool hands
  each operation its own connection. Driver and connection failures are
  wrapped as StoreUnavailable; IntegrityError is left to the callers that
  translate it.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = BlogStore("sqlite:///postgate.db", PasswordHasher())
    user = store.create_user("a@example.com", "secret")
    post = store.create_post(Post(poster_id=user.id, title="Hello", body="..."))
    store.close()
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from auth.passwords import PasswordHasher
from blog.models import Post
from core.errors import Conflict, NotFound, StoreUnavailable

logger = logging.getLogger("postgate.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_posts = Table(
    "posts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("poster_id", Integer, nullable=False),
    Column("title", String(255), nullable=False, unique=True),
    Column("body", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block behind a writer.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _lost_race(message: str, winner: Optional[Post | User]) -> Conflict:
    """Conflict for a write rejected by a UNIQUE constraint after its uniqueness check passed."""
    if winner is None:
        logger.warning("Unique constraint hit but the conflicting record is already gone")
    else:
        logger.warning("Unique constraint caught a write that passed the uniqueness check")
    return Conflict(message, existing=winner)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BlogStore:
    """Repository for Post and User entities."""

    def __init__(self, db_url: str, hasher: PasswordHasher) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        self.hasher = hasher
        with self._connect() as conn:
            metadata.create_all(conn)
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        try:
            with self.engine.connect() as conn:
                yield conn
        except IntegrityError:
            raise
        except SQLAlchemyError as exc:
            logger.error("Database operation failed: %s", exc.__class__.__name__)
            raise StoreUnavailable("The data store is unavailable.") from exc

    # ------------------------------------------------------------------
    # Post queries
    # ------------------------------------------------------------------

    def list_posts(self) -> list[Post]:
        """Return every post. No pagination."""
        with self._connect() as conn:
            rows = conn.execute(_posts.select().order_by(_posts.c.id)).fetchall()
        return [_row_to_post(r) for r in rows]

    def get_post_by_id(self, post_id: int) -> Post:
        """Raises NotFound if no post has this id."""
        with self._connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.id == post_id)).fetchone()
        if row is None:
            raise NotFound(f"Post with id {post_id} not found.")
        return _row_to_post(row)

    def get_post_by_title(self, title: str) -> Post:
        """Exact, case-sensitive title match. Raises NotFound if absent."""
        post = self._find_post_by_title(title)
        if post is None:
            raise NotFound(f"Post titled {title!r} not found.")
        return post

    def _find_post_by_title(self, title: str) -> Optional[Post]:
        with self._connect() as conn:
            row = conn.execute(_posts.select().where(_posts.c.title == title)).fetchone()
        return _row_to_post(row) if row is not None else None

    def create_post(self, post: Post) -> Post:
        """Insert a new post and return the stored record with id and created_at.

        Raises Conflict carrying the original post if the title is taken.
        """
        existing = self._find_post_by_title(post.title)
        if existing is not None:
            raise Conflict(f"A post titled {post.title!r} already exists.", existing=existing)

        created_at = _now_iso()
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _posts.insert().values(
                        poster_id=post.poster_id,
                        title=post.title,
                        body=post.body,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise _lost_race(
                f"A post titled {post.title!r} already exists.",
                self._find_post_by_title(post.title),
            ) from exc

        post_id = result.inserted_primary_key[0]
        logger.info("Post %s created by user_id=%s", post_id, post.poster_id)
        return Post(
            id=post_id,
            poster_id=post.poster_id,
            title=post.title,
            body=post.body,
            created_at=created_at,
        )

    def update_post(self, post_id: int, post: Post) -> Post:
        """Replace poster_id, title and body of an existing post.

        id and created_at are kept from the stored record. Raises NotFound
        with the id in its message, or Conflict if the new title belongs to
        another post.
        """
        current = self.get_post_by_id(post_id)
        clash = self._find_post_by_title(post.title)
        if clash is not None and clash.id != post_id:
            raise Conflict(f"A post titled {post.title!r} already exists.", existing=clash)

        try:
            with self._connect() as conn:
                result = conn.execute(
                    _posts.update()
                    .where(_posts.c.id == post_id)
                    .values(poster_id=post.poster_id, title=post.title, body=post.body)
                )
                conn.commit()
        except IntegrityError as exc:
            raise _lost_race(
                f"A post titled {post.title!r} already exists.",
                self._find_post_by_title(post.title),
            ) from exc
        if result.rowcount == 0:
            # Deleted between the existence check and the write.
            raise NotFound(f"Post with id {post_id} not found.")

        return Post(
            id=post_id,
            poster_id=post.poster_id,
            title=post.title,
            body=post.body,
            created_at=current.created_at,
        )

    def delete_post(self, post_id: int) -> None:
        """Permanently delete a post. Raises NotFound if the id does not exist."""
        self.get_post_by_id(post_id)
        with self._connect() as conn:
            result = conn.execute(_posts.delete().where(_posts.c.id == post_id))
            conn.commit()
        if result.rowcount == 0:
            raise NotFound(f"Post with id {post_id} not found.")
        logger.info("Post %s deleted", post_id)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def list_users(self) -> list[User]:
        with self._connect() as conn:
            rows = conn.execute(_users.select().order_by(_users.c.id)).fetchall()
        return [_row_to_user(r) for r in rows]

    def get_user_by_id(self, user_id: int) -> User:
        """Raises NotFound if no user has this id."""
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        if row is None:
            raise NotFound(f"User with id {user_id} not found.")
        return _row_to_user(row)

    def get_user_by_email(self, email: str) -> User:
        """Look up a user by exact email. Used by sign-in and the authorization gate."""
        user = self._find_user_by_email(email)
        if user is None:
            raise NotFound(f"User with email {email!r} not found.")
        return user

    def _find_user_by_email(self, email: str) -> Optional[User]:
        with self._connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def create_user(self, email: str, password: str) -> User:
        """Hash the plaintext password and insert a new user.

        Raises Conflict carrying the existing user if the email is taken, or
        HashingFailure if bcrypt fails.
        """
        existing = self._find_user_by_email(email)
        if existing is not None:
            raise Conflict("A user with that email already exists.", existing=existing)

        password_hash = self.hasher.hash(password)
        created_at = _now_iso()
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _users.insert().values(email=email, password_hash=password_hash, created_at=created_at)
                )
                conn.commit()
        except IntegrityError as exc:
            raise _lost_race(
                "A user with that email already exists.",
                self._find_user_by_email(email),
            ) from exc

        user_id = result.inserted_primary_key[0]
        logger.info("User %s created", user_id)
        return User(id=user_id, email=email, password_hash=password_hash, created_at=created_at)

    def update_user_password(self, user_id: int, email: str, password: str) -> User:
        """Replace a user's email and password, re-hashing the new password.

        Raises NotFound if the id does not exist, Conflict if the email is
        held by a different user.
        """
        current = self.get_user_by_id(user_id)
        if email != current.email:
            clash = self._find_user_by_email(email)
            if clash is not None:
                raise Conflict("A user with that email already exists.", existing=clash)

        password_hash = self.hasher.hash(password)
        try:
            with self._connect() as conn:
                result = conn.execute(
                    _users.update().where(_users.c.id == user_id).values(email=email, password_hash=password_hash)
                )
                conn.commit()
        except IntegrityError as exc:
            raise _lost_race(
                "A user with that email already exists.",
                self._find_user_by_email(email),
            ) from exc
        if result.rowcount == 0:
            raise NotFound(f"User with id {user_id} not found.")

        logger.info("User %s credentials replaced", user_id)
        return User(id=user_id, email=email, password_hash=password_hash, created_at=current.created_at)

    def delete_user(self, user_id: int) -> None:
        """Permanently delete a user. Posts by the user are left in place."""
        self.get_user_by_id(user_id)
        with self._connect() as conn:
            result = conn.execute(_users.delete().where(_users.c.id == user_id))
            conn.commit()
        if result.rowcount == 0:
            raise NotFound(f"User with id {user_id} not found.")
        logger.info("User %s deleted", user_id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_post(row) -> Post:
    return Post(
        id=row.id,
        poster_id=row.poster_id,
        title=row.title,
        body=row.body,
        created_at=row.created_at,
    )


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
