"""
auth/store.py -- SQLAlchemy Core persistence layer for admin credentials.

Pattern: Repository + Data Mapper (same as content/store.py).
AdminStore is the repository; _row_to_admin is the mapper.
Route and dependency code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.
  Emails are normalized (strip + lowercase) on both write and lookup, so the
  UNIQUE index on email is effectively case-insensitive.

Layer rule: no imports from api/, web/, or content/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine

from auth.models import Admin

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).parent / 'intelligencer_auth.db'}"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_admins = Table(
    "admins",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("name", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("last_login", String(32)),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def normalize_email(email: str) -> str:
    return email.strip().lower()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AdminStore:
    """Repository for Admin records.

    Usage:
        store = AdminStore()
        store.create_admin(Admin(email="ed@example.com", name="Ed", hashed_password=hash_password("secret")))
        admin = store.get_by_email("ed@example.com")
        store.close()
    """

    def __init__(self, db_url: str = _DEFAULT_DB_URL) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def has_admins(self) -> bool:
        """Return True if at least one admin record exists."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_admins)).scalar()
        return (result or 0) > 0

    def create_admin(self, admin: Admin) -> int:
        """Insert a new admin and return its assigned database ID.

        Raises sqlalchemy.exc.IntegrityError if the email is already registered.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _admins.insert().values(
                    email=normalize_email(admin.email),
                    password_hash=admin.hashed_password,
                    name=admin.name,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_by_email(self, email: str) -> Admin | None:
        """Look up an admin by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.email == normalize_email(email))).fetchone()
        return _row_to_admin(row) if row is not None else None

    def get_by_id(self, admin_id: int) -> Admin | None:
        """Look up an admin by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_admins.select().where(_admins.c.id == admin_id)).fetchone()
        return _row_to_admin(row) if row is not None else None

    def list_admins(self) -> list[Admin]:
        """Return all admins ordered by email."""
        with self.engine.connect() as conn:
            rows = conn.execute(_admins.select().order_by(_admins.c.email)).fetchall()
        return [_row_to_admin(r) for r in rows]

    def update_last_login(self, admin_id: int) -> None:
        """Stamp the current UTC timestamp as last_login after a successful sign-in."""
        with self.engine.connect() as conn:
            conn.execute(_admins.update().where(_admins.c.id == admin_id).values(last_login=_now_iso()))
            conn.commit()

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_admin(row) -> Admin:
    return Admin(
        id=row.id,
        email=row.email,
        name=row.name,
        hashed_password=row.password_hash,
        created_at=row.created_at,
        last_login=row.last_login,
    )
