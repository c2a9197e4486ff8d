"""
Storage collaborator.

The application only ever talks to the managed database through row-level
CRUD calls (insert / select with equality filters / update) and a small auth
surface (sign up, sign in, get user, sign out). ``Store`` captures exactly that
surface; ``SupabaseStore`` forwards it to a Supabase project and ``SQLStore``
provides the same tables on top of SQLAlchemy for local runs and tests.

Rows cross this boundary as plain dicts, the way the Supabase client returns
them (``response.data``).
"""
import secrets
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import check_password_hash, generate_password_hash

from presence.errors import (
    InvalidCredentialsError,
    StoreError,
    UserAlreadyExistsError,
)
from presence.models import TABLES, AuthSession, Base, User
from presence.utils.logger import logger

log = logger.getChild("database")

Row = Dict[str, Any]


@dataclass
class AuthSessionInfo:
    access_token: str
    user_id: str
    email: str


# -----------------------------
# INTERFACE
# -----------------------------
class AuthGateway:
    def sign_up(self, email: str, password: str, metadata: Optional[dict] = None) -> str:
        raise NotImplementedError

    def sign_in(self, email: str, password: str) -> AuthSessionInfo:
        raise NotImplementedError

    def get_user(self, token: str) -> Optional[str]:
        raise NotImplementedError

    def sign_out(self, token: str) -> None:
        raise NotImplementedError


class Store:
    """Row-level CRUD against the managed tables."""

    auth: AuthGateway

    def insert(self, table: str, row: Row) -> Row:
        raise NotImplementedError

    def select(self, table: str, order_by: Optional[str] = None, desc: bool = False,
               limit: Optional[int] = None, **filters) -> List[Row]:
        raise NotImplementedError

    def update(self, table: str, values: Row, **filters) -> List[Row]:
        raise NotImplementedError

    def select_one(self, table: str, **filters) -> Optional[Row]:
        rows = self.select(table, limit=1, **filters)
        return rows[0] if rows else None


# -----------------------------
# SQLALCHEMY BACKEND
# -----------------------------
def _parse_timestamp(value: str) -> datetime:
    # fromisoformat() does not accept the trailing "Z" JavaScript clients send
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _to_dict(obj) -> Row:
    row = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.name)
        if isinstance(value, datetime):
            value = value.isoformat()
        row[column.name] = value
    return row


class SQLStore(Store):
    """The managed tables on any SQLAlchemy database URL."""

    def __init__(self, database_url: str = "sqlite://"):
        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection so every session sees the same in-memory database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(database_url, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        Base.metadata.create_all(self.engine)
        self.auth = SQLAuth(self)
        log.info(f"SQL store ready ({self.engine.url.get_backend_name()})")

    @contextmanager
    def session(self):
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"Database error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _model(self, table: str):
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}") from None

    def _coerce(self, model, values: Row) -> Row:
        columns = model.__table__.columns
        coerced = {}
        for key, value in values.items():
            if key not in columns:
                raise StoreError(f"Unknown column '{key}' for table {model.__tablename__}")
            if isinstance(value, str) and isinstance(columns[key].type, DateTime):
                try:
                    value = _parse_timestamp(value)
                except ValueError:
                    raise StoreError(f"Invalid timestamp for '{key}': {value}") from None
            coerced[key] = value
        return coerced

    def insert(self, table: str, row: Row) -> Row:
        model = self._model(table)
        with self.session() as session:
            obj = model(**self._coerce(model, row))
            session.add(obj)
            session.flush()
            return _to_dict(obj)

    def select(self, table: str, order_by: Optional[str] = None, desc: bool = False,
               limit: Optional[int] = None, **filters) -> List[Row]:
        model = self._model(table)
        with self.session() as session:
            query = session.query(model).filter_by(**self._coerce(model, filters))
            if order_by:
                column = getattr(model, order_by)
                query = query.order_by(column.desc() if desc else column.asc())
            if limit is not None:
                query = query.limit(limit)
            return [_to_dict(obj) for obj in query.all()]

    def update(self, table: str, values: Row, **filters) -> List[Row]:
        if not filters:
            raise StoreError("update() requires at least one filter")
        model = self._model(table)
        values = self._coerce(model, values)
        with self.session() as session:
            rows = session.query(model).filter_by(**self._coerce(model, filters)).all()
            for obj in rows:
                for key, value in values.items():
                    setattr(obj, key, value)
            session.flush()
            return [_to_dict(obj) for obj in rows]


class SQLAuth(AuthGateway):
    """Email/password accounts stored next to the profile tables."""

    def __init__(self, store: SQLStore):
        self.store = store

    def sign_up(self, email, password, metadata=None):
        try:
            with self.store.session() as session:
                user = User(
                    email=email.strip().lower(),
                    password_hash=generate_password_hash(password),
                    user_metadata=metadata or {},
                )
                session.add(user)
                session.flush()
                return user.id
        except StoreError as e:
            if isinstance(e.__cause__, IntegrityError):
                raise UserAlreadyExistsError() from e
            raise

    def sign_in(self, email, password):
        with self.store.session() as session:
            user = session.query(User).filter_by(email=email.strip().lower()).first()
            if user is None or not check_password_hash(user.password_hash, password):
                raise InvalidCredentialsError()
            token = secrets.token_urlsafe(32)
            session.add(AuthSession(token=token, user_id=user.id))
            return AuthSessionInfo(access_token=token, user_id=user.id, email=user.email)

    def get_user(self, token):
        if not token:
            return None
        with self.store.session() as session:
            auth_session = session.get(AuthSession, token)
            return auth_session.user_id if auth_session else None

    def sign_out(self, token):
        if not token:
            return
        with self.store.session() as session:
            session.query(AuthSession).filter_by(token=token).delete()


# -----------------------------
# SUPABASE BACKEND
# -----------------------------
class SupabaseStore(Store):
    """The same calls forwarded to a Supabase project."""

    def __init__(self, supabase_url: str = "", supabase_key: str = "", client=None):
        if client is None:
            from supabase import create_client
            client = create_client(supabase_url, supabase_key)
        self.client = client
        self.auth = SupabaseAuth(client)

    def _execute(self, query, action: str, table: str) -> List[Row]:
        try:
            response = query.execute()
        except Exception as e:
            raise StoreError(f"{action} on {table} failed: {e}") from e
        return response.data or []

    def insert(self, table, row):
        rows = self._execute(self.client.table(table).insert(row), "insert", table)
        if not rows:
            raise StoreError(f"insert on {table} returned no row")
        return rows[0]

    def select(self, table, order_by=None, desc=False, limit=None, **filters):
        query = self.client.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        if order_by:
            query = query.order(order_by, desc=desc)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(query, "select", table)

    def update(self, table, values, **filters):
        if not filters:
            raise StoreError("update() requires at least one filter")
        query = self.client.table(table).update(values)
        for column, value in filters.items():
            query = query.eq(column, value)
        return self._execute(query, "update", table)


class SupabaseAuth(AuthGateway):
    def __init__(self, client):
        self.client = client

    def sign_up(self, email, password, metadata=None):
        try:
            response = self.client.auth.sign_up({
                "email": email,
                "password": password,
                "options": {"data": metadata or {}},
            })
        except Exception as e:
            if "already registered" in str(e):
                raise UserAlreadyExistsError() from e
            raise StoreError(f"Sign up failed: {e}") from e
        if not response.user:
            raise StoreError("Failed to create user account.")
        return response.user.id

    def sign_in(self, email, password):
        try:
            response = self.client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            raise InvalidCredentialsError() from e
        if not response.session or not response.user:
            raise InvalidCredentialsError()
        return AuthSessionInfo(
            access_token=response.session.access_token,
            user_id=response.user.id,
            email=response.user.email,
        )

    def get_user(self, token):
        if not token:
            return None
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            log.warning(f"Token lookup failed: {e}")
            return None
        return response.user.id if response and response.user else None

    def sign_out(self, token):
        try:
            if token:
                # Revoke the caller's JWT, not whatever session the shared client holds
                self.client.auth.admin.sign_out(token)
            else:
                self.client.auth.sign_out()
        except Exception as e:
            raise StoreError(f"Sign out failed: {e}") from e


def create_store(settings) -> Store:
    """Pick the backend from configuration."""
    if settings.use_supabase:
        if not settings.supabase_url or not settings.supabase_key:
            raise RuntimeError("Supabase credentials not found in environment variables.")
        log.info("Using Supabase store")
        return SupabaseStore(settings.supabase_url, settings.supabase_key)
    return SQLStore(settings.database_url)
