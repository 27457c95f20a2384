"""
auth/store.py -- Storage adapter interface and the relational implementation.

Pattern: Repository + Data Mapper. UserStore is the interface the service
depends on; SQLUserStore implements it with SQLAlchemy Core and _row_to_user
is the mapper. The document-store implementation lives in auth/mongo_store.py.

The constructor never connects. ensure_schema() creates the table at startup
and is retried by every query until it succeeds, so an unreachable database
fails requests rather than startup.

Email uniqueness is a UNIQUE column, not a pre-insert SELECT. Two concurrent
signups for the same address cannot both succeed: the loser's INSERT raises
IntegrityError, surfaced as EmailExistsError.

Driver exceptions never escape this module. IntegrityError on the email
column becomes EmailExistsError; every other SQLAlchemyError becomes
StoreError.

Security: all queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, create_engine, event, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import EmailExistsError, StoreError
from auth.models import User

logger = logging.getLogger("credsvc.store")

# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class UserStore(Protocol):
    """What CredentialService needs from persistence.

    Implementations raise EmailExistsError on a duplicate email and
    StoreError on any other backend failure.
    """

    def ensure_schema(self) -> None: ...

    def create_user(self, user: User) -> str: ...

    def get_by_email(self, email: str) -> User | None: ...

    def get_by_id(self, user_id: str) -> User | None: ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(320), nullable=False, unique=True),
    Column("password_hash", Text, nullable=False),
    Column("name", String(255), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
)


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so readers do not block on writes (SQLite only)."""
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SQLUserStore:
    """Relational UserStore backed by SQLAlchemy Core.

    Works against PostgreSQL in production and SQLite locally and in tests.

    Usage:
        store = SQLUserStore("postgresql+psycopg://user:pw@host/db")
        uid = store.create_user(User(email="a@x.com", password_hash=hash_password("p1")))
        user = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str, timeout_ms: int = 10000) -> None:
        timeout_s = max(1, timeout_ms // 1000)
        connect_args: dict = {}
        engine_kwargs: dict = {"pool_pre_ping": True}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout_s
        else:
            # Bound both pool checkout and the initial TCP connect so an
            # unreachable database fails the request instead of hanging it.
            engine_kwargs["pool_timeout"] = timeout_s
            if db_url.startswith("postgresql"):
                connect_args["connect_timeout"] = timeout_s
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        self._schema_ready = False

    def ensure_schema(self) -> None:
        """Create the users table if it does not exist yet.

        The constructor never touches the database. The lifespan calls this
        once at startup; every query calls it again until it has succeeded,
        so a database that comes up after the service is picked up on first use.
        """
        if self._schema_ready:
            return
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"could not initialise users table: {exc}") from exc
        self._schema_ready = True

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user and return its assigned ID as a string.

        Raises EmailExistsError if the email is already registered.
        """
        self.ensure_schema()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _users.insert().values(
                        email=user.email,
                        password_hash=user.password_hash,
                        name=user.name or "",
                        created_at=_now_iso(),
                    )
                )
                conn.commit()
                return str(result.inserted_primary_key[0])
        except IntegrityError as exc:
            raise EmailExistsError(user.email) from exc
        except SQLAlchemyError as exc:
            raise StoreError(f"insert failed: {exc}") from exc

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        return self._fetch_one(select(_users).where(_users.c.email == email))

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Non-numeric IDs never match."""
        try:
            pk = int(user_id)
        except (TypeError, ValueError):
            return None
        return self._fetch_one(select(_users).where(_users.c.id == pk))

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except SQLAlchemyError:
            logger.warning("Database ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()

    def _fetch_one(self, query) -> User | None:
        self.ensure_schema()
        try:
            with self.engine.connect() as conn:
                row = conn.execute(query).fetchone()
        except SQLAlchemyError as exc:
            raise StoreError(f"query failed: {exc}") from exc
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=str(row.id),
        email=row.email,
        password_hash=row.password_hash,
        name=row.name or "",
        created_at=row.created_at,
    )
