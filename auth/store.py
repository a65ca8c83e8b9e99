"""
auth/store.py -- SQLAlchemy Core persistence layer for users.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user is the mapper.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  UNIQUE(email) is enforced by the database, not by a check-then-insert in
  code. Concurrent registrations racing on the same address resolve inside
  the INSERT: exactly one succeeds, the rest get IntegrityError, which
  create() turns into DuplicateEmailError.

Storage format:
  id is the canonical uuid4 string. created_at / updated_at are RFC 3339
  text in UTC (datetime.isoformat() of an aware UTC datetime). Rows that do
  not parse back into a UUID or an offset-carrying timestamp raise
  StorageError -- corrupt data is never coerced.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import DuplicateEmailError, StorageError
from auth.models import User

logger = logging.getLogger("loginapp.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("avatar", Text),
    Column("created_at", String(40), nullable=False),
    Column("updated_at", String(40), nullable=False),
    Column("is_active", Integer, nullable=False, server_default="1"),
    UniqueConstraint("email", name="uq_users_email"),
)

# Fields update() accepts. id, email and created_at are immutable.
_MUTABLE_FIELDS = {"name", "avatar", "password_hash", "is_active"}


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


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _parse_timestamp(raw: str, column: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(raw)
    except (TypeError, ValueError) as exc:
        raise StorageError(f"invalid {column} value {raw!r}") from exc
    if parsed.tzinfo is None:
        raise StorageError(f"{column} value {raw!r} has no UTC offset")
    return parsed.astimezone(timezone.utc)


def _parse_id(raw: str) -> uuid.UUID:
    try:
        return uuid.UUID(raw)
    except (TypeError, ValueError, AttributeError) as exc:
        raise StorageError(f"invalid user id {raw!r}") from exc


def _is_email_conflict(exc: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: users.email"
    # PostgreSQL: 'duplicate key value violates unique constraint "uq_users_email"'
    message = str(exc.orig).lower()
    return "unique" in message and "email" in message


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///loginapp.db")
        user = store.create(User(name="Ann", email="a@x.com", password_hash=hasher.hash("pw123456")))
        same = store.find_by_email("a@x.com")
        store.close()

    Every method checks out its own connection from the engine's pool, so one
    store instance is safe to share across request threads.
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        self.ensure_schema()

    def ensure_schema(self) -> None:
        """Create the users table and its unique email constraint if absent.

        create_all() skips tables that already exist, so this is safe to call
        on every startup.
        """
        try:
            _metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"schema setup failed: {exc}") from exc
        logger.info("User schema ready")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        return self._fetch_one(_users.c.email == email)

    def find_by_id(self, user_id: uuid.UUID) -> User | None:
        """Look up a user by id. Returns None if not found."""
        return self._fetch_one(_users.c.id == str(user_id))

    def _fetch_one(self, condition) -> User | None:
        try:
            with self.engine.connect() as conn:
                row = conn.execute(_users.select().where(condition)).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"user lookup failed: {exc}") from exc
        return _row_to_user(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Database ping failed")
            return False
        return True

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, draft: User) -> User:
        """Insert draft as a new user and return the persisted record.

        Assigns a fresh uuid4 id and stamps created_at = updated_at = now (UTC).
        Any id or timestamps already set on the draft are ignored.

        Raises DuplicateEmailError if the email is taken, StorageError on any
        other database failure.
        """
        now = _now()
        user = replace(draft, id=uuid.uuid4(), created_at=now, updated_at=now)
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=str(user.id),
                        name=user.name,
                        email=user.email,
                        password_hash=user.password_hash,
                        avatar=user.avatar,
                        created_at=_to_iso(now),
                        updated_at=_to_iso(now),
                        is_active=1 if user.is_active else 0,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if _is_email_conflict(exc):
                raise DuplicateEmailError() from exc
            raise StorageError(f"user insert failed: {exc}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"user insert failed: {exc}") from exc
        return user

    def update(self, user_id: uuid.UUID, **fields) -> User | None:
        """Update mutable fields on an existing user and stamp updated_at.

        Accepted fields: name, avatar, password_hash, is_active.
        Returns the updated record, or None if user_id was not found.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown or immutable user fields: {sorted(unknown)!r}")
        if "is_active" in fields:
            fields["is_active"] = 1 if fields["is_active"] else 0
        fields["updated_at"] = _to_iso(_now())
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.update().where(_users.c.id == str(user_id)).values(**fields))
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"user update failed: {exc}") from exc
        if result.rowcount == 0:
            return None
        return self.find_by_id(user_id)

    def delete(self, user_id: uuid.UUID) -> bool:
        """Permanently delete a user. Returns True if deleted, False if not found.

        Tokens already issued to the user stay cryptographically valid until
        they expire; AuthService.current_user() reports UserNotFoundError for
        them.
        """
        try:
            with self.engine.connect() as conn:
                result = conn.execute(_users.delete().where(_users.c.id == str(user_id)))
                conn.commit()
        except SQLAlchemyError as exc:
            raise StorageError(f"user delete failed: {exc}") from exc
        return result.rowcount > 0

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=_parse_id(row.id),
        name=row.name,
        email=row.email,
        password_hash=row.password_hash,
        avatar=row.avatar,
        created_at=_parse_timestamp(row.created_at, "created_at"),
        updated_at=_parse_timestamp(row.updated_at, "updated_at"),
        is_active=bool(row.is_active),
    )
