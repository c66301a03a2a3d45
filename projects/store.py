"""
projects/store.py -- SQLAlchemy-backed persistence for projects and access requests.

Uses SQLAlchemy Core (not ORM) so the dataclasses in projects/models.py stay
the authoritative domain representation. Swapping SQLite for PostgreSQL is a
connection string change.

Pattern: Repository + Data Mapper. ProjectStore is the repository; the
_row_to_* functions are the mappers. Services never touch SQL directly.

Invariants held by the schema rather than by application checks:
  project_access(project_id, user_id) is the primary key, so a user appears
      in a project's access list at most once. Grants are inserted with
      INSERT ... SELECT ... WHERE NOT EXISTS, making a repeated grant a no-op.
  uq_pending_request is a partial unique index on (user_id, project_id)
      WHERE status = 'pending'. A second pending request for the same pair
      fails with DuplicateKey even if two requests race past the engine's
      pre-check. Resolved requests fall out of the index, so a new request
      is allowed after a denial.
  resolve_request() updates WHERE status IN ('pending', <target>), so a
      request can be re-resolved the same way but never flipped from
      approved to denied or back.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ProjectStore("sqlite:///./ubiquitous.db")
    project_id = store.create_project(Project(name="Apollo", description="...", created_by=1))
    request_id = store.create_request(AccessRequest(...))
    store.resolve_request(request_id, RequestStatus.approved, resolved_by=1)
    store.close()
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    literal,
    select,
    text,
)
from sqlalchemy.engine import Connection, Engine

from core.config import get_settings
from core.db import connect, make_engine, now_iso
from core.errors import RequestAlreadyResolved
from projects.models import AccessRequest, Project, RequestStatus

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_projects = Table(
    "projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("description", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("created_by", Integer, nullable=False),
)

_access = Table(
    "project_access",
    metadata,
    Column("project_id", Integer, nullable=False),
    Column("user_id", Integer, nullable=False),
    Column("granted_at", String(32), nullable=False),
    PrimaryKeyConstraint("project_id", "user_id", name="pk_project_access"),
)

_requests = Table(
    "access_requests",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("user_name", String(255), nullable=False),
    Column("user_email", String(255), nullable=False),
    Column("project_id", Integer, nullable=False),
    Column("project_name", String(255), nullable=False),
    Column("status", String(20), nullable=False, server_default="pending"),
    Column("requested_at", String(32), nullable=False),
    Column("resolved_at", String(32)),
    Column("resolved_by", Integer),
    Index(
        "uq_pending_request",
        "user_id",
        "project_id",
        unique=True,
        sqlite_where=text("status = 'pending'"),
        postgresql_where=text("status = 'pending'"),
    ),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ProjectStore:
    def __init__(self, db_url: Optional[str] = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def create_project(self, project: Project) -> int:
        """Insert a new project with an empty access list and return its ID."""
        with connect(self.engine) as conn:
            result = conn.execute(
                _projects.insert().values(
                    name=project.name,
                    description=project.description,
                    created_at=now_iso(),
                    created_by=project.created_by,
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_project(self, project_id: int) -> Optional[Project]:
        """Fetch a single project with its access list. Returns None if not found."""
        with connect(self.engine) as conn:
            row = conn.execute(_projects.select().where(_projects.c.id == project_id)).fetchone()
            if row is None:
                return None
            access = _load_access(conn, [project_id])
        return _row_to_project(row, access.get(project_id, set()))

    def list_projects(self) -> list[Project]:
        """Return every project, oldest first."""
        with connect(self.engine) as conn:
            rows = conn.execute(_projects.select().order_by(_projects.c.id)).fetchall()
            access = _load_access(conn, [r.id for r in rows])
        return [_row_to_project(r, access.get(r.id, set())) for r in rows]

    def list_projects_for_user(self, user_id: int) -> list[Project]:
        """Return the projects whose access list contains user_id."""
        granted = select(_access.c.project_id).where(_access.c.user_id == user_id)
        with connect(self.engine) as conn:
            rows = conn.execute(
                _projects.select().where(_projects.c.id.in_(granted)).order_by(_projects.c.id)
            ).fetchall()
            access = _load_access(conn, [r.id for r in rows])
        return [_row_to_project(r, access.get(r.id, set())) for r in rows]

    # ------------------------------------------------------------------
    # Access requests
    # ------------------------------------------------------------------

    def create_request(self, request: AccessRequest) -> int:
        """Insert a pending access request and return its ID.

        Raises DuplicateKey if the pair already has a pending request.
        """
        with connect(self.engine) as conn:
            result = conn.execute(
                _requests.insert().values(
                    user_id=request.user_id,
                    user_name=request.user_name,
                    user_email=request.user_email,
                    project_id=request.project_id,
                    project_name=request.project_name,
                    status=RequestStatus.pending.value,
                    requested_at=request.requested_at or now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_request(self, request_id: int) -> Optional[AccessRequest]:
        with connect(self.engine) as conn:
            row = conn.execute(_requests.select().where(_requests.c.id == request_id)).fetchone()
        return _row_to_request(row) if row is not None else None

    def has_pending_request(self, user_id: int, project_id: int) -> bool:
        with connect(self.engine) as conn:
            row = conn.execute(
                select(_requests.c.id).where(
                    (_requests.c.user_id == user_id)
                    & (_requests.c.project_id == project_id)
                    & (_requests.c.status == RequestStatus.pending.value)
                )
            ).first()
        return row is not None

    def pending_project_ids(self, user_id: int) -> set[int]:
        """Return ids of projects the user has a pending request for."""
        with connect(self.engine) as conn:
            rows = conn.execute(
                select(_requests.c.project_id).where(
                    (_requests.c.user_id == user_id) & (_requests.c.status == RequestStatus.pending.value)
                )
            ).fetchall()
        return {r.project_id for r in rows}

    def list_requests(self) -> list[AccessRequest]:
        """Return every access request, newest first."""
        with connect(self.engine) as conn:
            rows = conn.execute(
                _requests.select().order_by(_requests.c.requested_at.desc(), _requests.c.id.desc())
            ).fetchall()
        return [_row_to_request(r) for r in rows]

    def resolve_request(
        self,
        request_id: int,
        status: RequestStatus,
        resolved_by: int,
    ) -> Optional[AccessRequest]:
        """Mark a request approved or denied, granting access on approval.

        Status write and grant happen in one transaction. Re-resolving a
        request the same way rewrites resolved_at/resolved_by; the grant is
        a set-add, so the access list never gains a duplicate.

        Returns the updated request, or None if request_id does not exist.
        Raises RequestAlreadyResolved if the request was resolved the other way.
        """
        if status is RequestStatus.pending:
            raise ValueError("resolve_request needs a terminal status")
        now = now_iso()
        with connect(self.engine) as conn:
            result = conn.execute(
                _requests.update()
                .where(
                    (_requests.c.id == request_id)
                    & (_requests.c.status.in_([RequestStatus.pending.value, status.value]))
                )
                .values(status=status.value, resolved_at=now, resolved_by=resolved_by)
            )
            row = conn.execute(_requests.select().where(_requests.c.id == request_id)).fetchone()
            if row is None:
                conn.rollback()
                return None
            if result.rowcount == 0:
                conn.rollback()
                raise RequestAlreadyResolved(f"Access request has already been {row.status}.")
            if status is RequestStatus.approved:
                _grant(conn, row.project_id, row.user_id, now)
            conn.commit()
        return _row_to_request(row)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _grant(conn: Connection, project_id: int, user_id: int, granted_at: str) -> None:
    """Add user_id to the project's access list unless already present."""
    already = (
        select(_access.c.user_id)
        .where((_access.c.project_id == project_id) & (_access.c.user_id == user_id))
        .correlate(None)
        .exists()
    )
    conn.execute(
        _access.insert().from_select(
            ["project_id", "user_id", "granted_at"],
            select(
                literal(project_id, Integer),
                literal(user_id, Integer),
                literal(granted_at, String),
            ).where(~already),
        )
    )


def _load_access(conn: Connection, project_ids: list[int]) -> dict[int, set[int]]:
    """Return {project_id: {user_id, ...}} for the given projects in one query."""
    if not project_ids:
        return {}
    rows = conn.execute(
        select(_access.c.project_id, _access.c.user_id).where(_access.c.project_id.in_(project_ids))
    ).fetchall()
    access: dict[int, set[int]] = {}
    for r in rows:
        access.setdefault(r.project_id, set()).add(r.user_id)
    return access


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_project(row, accessible_by: set[int]) -> Project:
    return Project(
        id=row.id,
        name=row.name,
        description=row.description,
        created_at=row.created_at,
        created_by=row.created_by,
        accessible_by=set(accessible_by),
    )


def _row_to_request(row) -> AccessRequest:
    return AccessRequest(
        id=row.id,
        user_id=row.user_id,
        user_name=row.user_name,
        user_email=row.user_email,
        project_id=row.project_id,
        project_name=row.project_name,
        status=RequestStatus(row.status),
        requested_at=row.requested_at,
        resolved_at=row.resolved_at,
        resolved_by=row.resolved_by,
    )
