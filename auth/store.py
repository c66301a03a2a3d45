"""
auth/store.py -- SQLAlchemy Core persistence layer for user records.

Pattern: Repository + Data Mapper (same as projects/store.py).
UserStore is the repository; _row_to_user is the mapper. Route and service
code never touches SQL directly.

Uniqueness:
  username and email carry UNIQUE constraints. The Authenticator checks both
  before inserting for a friendly error, but two concurrent signups can both
  pass that check. The constraint is the backstop: the losing insert raises
  DuplicateKey (translated from IntegrityError in core.db.connect).

  Both columns are stored lower-cased. Callers pass raw input; the store
  normalizes on write and on lookup so "Foo@Bar.com" and "foo@bar.com" are
  the same key.

Security:
  All queries use bound parameters. No f-strings in SQL.
  password_hash leaves this module only inside a User, and only the
  Authenticator reads it.

Layer rule: no imports from api/ or projects/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine

from auth.models import Role, User
from core.config import get_settings
from core.db import connect, make_engine, now_iso

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("role", String(20), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
)


def normalize(value: str) -> str:
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///./ubiquitous.db")
        user_id = store.insert(User(username="alice", email="alice@ex.com",
                                    password_hash=hash_password("Passw0rd!"), role=Role.client))
        user = store.find_by_username("Alice")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def has_users(self) -> bool:
        with connect(self.engine) as conn:
            count = conn.execute(select(func.count()).select_from(_users)).scalar()
        return (count or 0) > 0

    def find_by_username(self, username: str) -> User | None:
        """Exact match on the normalized username. Returns None if not found."""
        with connect(self.engine) as conn:
            row = conn.execute(_users.select().where(_users.c.username == normalize(username))).fetchone()
        return _row_to_user(row) if row is not None else None

    def find_by_email(self, email: str) -> User | None:
        """Exact match on the normalized email. Returns None if not found."""
        with connect(self.engine) as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: int) -> User | None:
        with connect(self.engine) as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def list_users(self) -> list[User]:
        """Return all users ordered by username. Admin-only operation."""
        with connect(self.engine) as conn:
            rows = conn.execute(_users.select().order_by(_users.c.username)).fetchall()
        return [_row_to_user(r) for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, user: User) -> int:
        """Insert a new user and return its assigned ID.

        Raises DuplicateKey if the username or email is already taken,
        including when a concurrent insert won the race.
        """
        now = now_iso()
        with connect(self.engine) as conn:
            result = conn.execute(
                _users.insert().values(
                    username=normalize(user.username),
                    email=normalize(user.email),
                    password_hash=user.password_hash,
                    role=user.role.value,
                    created_at=now,
                    updated_at=now,
                    is_active=1 if user.is_active else 0,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def set_active(self, user_id: int, is_active: bool) -> bool:
        """Activate or deactivate a user. Returns False if user_id was not found.

        Users are never deleted; deactivation is the only way to lock one out.
        """
        with connect(self.engine) as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(is_active=1 if is_active else 0, updated_at=now_iso())
            )
            conn.commit()
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        role=Role(row.role),
        created_at=row.created_at,
        updated_at=row.updated_at,
        is_active=bool(row.is_active),
    )
