from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sqlalchemy import delete as sql_delete
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.auth import AuthUser, Role
from app.config import settings
from app.db import SessionLocal
from app.models import TABLES, AuthIdentity, Base
from app.security.passwords import hash_password, is_password_long_enough, verify_password
from app.services.backend_client import AuthStateEmitter
from app.services.errors import BackendError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def init_local_schema(session_factory: sessionmaker = SessionLocal) -> None:
    Base.metadata.create_all(bind=session_factory.kw['bind'])


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def _to_user(identity: AuthIdentity) -> AuthUser:
    return AuthUser(id=identity.id, email=identity.email, user_metadata=dict(identity.user_metadata or {}))


def _serialize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class LocalBackendClient(AuthStateEmitter):
    """Backend client over the local SQLAlchemy database, mirroring the hosted service's behavior."""

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        *,
        require_email_confirmation: bool | None = None,
    ) -> None:
        super().__init__()
        self._session_factory = session_factory
        if require_email_confirmation is None:
            require_email_confirmation = settings.local_require_email_confirmation
        self.require_email_confirmation = require_email_confirmation

    def _find_identity(self, db: Session, email: str) -> AuthIdentity | None:
        return db.execute(
            select(AuthIdentity).where(func.lower(AuthIdentity.email) == email.strip().lower())
        ).scalar_one_or_none()

    def sign_up(self, email: str, password: str, user_metadata: dict[str, Any]) -> AuthUser:
        email = email.strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise BackendError('Invalid email address: invalid format', code='email_address_invalid', status=400)
        if not is_password_long_enough(password):
            raise BackendError('Password should be at least 6 characters.', code='weak_password', status=422)

        with self._session_factory() as db:
            if self._find_identity(db, email):
                raise BackendError('User already registered', code='user_already_exists', status=422)
            identity = AuthIdentity(
                email=email,
                password_hash=hash_password(password),
                user_metadata=dict(user_metadata),
                email_confirmed_at=None if self.require_email_confirmation else _now(),
            )
            db.add(identity)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise BackendError('User already registered', code='user_already_exists', status=422) from exc
            user = _to_user(identity)

        logger.info('Created auth identity %s', user.id)
        if not self.require_email_confirmation:
            self._set_session(user)
        return user

    def sign_in_with_password(self, email: str, password: str) -> AuthUser:
        with self._session_factory() as db:
            identity = self._find_identity(db, email)
            if not identity or not verify_password(password, identity.password_hash):
                raise BackendError('Invalid login credentials', code='invalid_credentials', status=400)
            if identity.email_confirmed_at is None:
                raise BackendError('Email not confirmed', code='email_not_confirmed', status=400)
            user = _to_user(identity)

        self._set_session(user)
        return user

    def sign_out(self) -> None:
        self._set_session(None)

    def confirm_email(self, email: str) -> None:
        with self._session_factory() as db:
            identity = self._find_identity(db, email)
            if not identity:
                raise BackendError('User not found', code='user_not_found', status=404)
            if identity.email_confirmed_at is None:
                identity.email_confirmed_at = _now()
                db.commit()

    def _model(self, table: str):
        model = TABLES.get(table)
        if model is None:
            raise BackendError(f'relation "public.{table}" does not exist', code='42P01', status=404)
        return model

    def _column(self, model, table: str, name: str):
        if name not in model.__table__.columns:
            raise BackendError(f"Could not find the '{name}' column of '{table}'", code='PGRST204', status=400)
        return getattr(model, name)

    def _coerce(self, name: str, value: Any) -> Any:
        if name == 'role' and value is not None:
            try:
                return Role(value)
            except ValueError as exc:
                raise BackendError(f'invalid input value for enum user_role: "{value}"', code='22P02', status=400) from exc
        return value

    def _row(self, obj, columns: list[str] | None = None) -> dict[str, Any]:
        names = columns or [column.key for column in obj.__table__.columns]
        return {name: _serialize(getattr(obj, name)) for name in names}

    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]:
        model = self._model(table)
        values = {}
        for name, value in record.items():
            self._column(model, table, name)
            values[name] = self._coerce(name, value)

        with self._session_factory() as db:
            obj = model(**values)
            db.add(obj)
            try:
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise BackendError(f'Insert into {table} failed: {exc.__class__.__name__}', code='23000', status=409) from exc
            db.refresh(obj)
            return self._row(obj)

    def query(
        self,
        table: str,
        filters: dict[str, Any],
        *,
        columns: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        model = self._model(table)
        for name in columns or []:
            self._column(model, table, name)
        stmt = select(model).where(
            *[self._column(model, table, name) == self._coerce(name, value) for name, value in filters.items()]
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._session_factory() as db:
            return [self._row(obj, columns) for obj in db.execute(stmt).scalars().all()]

    def delete(self, table: str, filters: dict[str, Any]) -> int:
        model = self._model(table)
        if not filters:
            raise BackendError('DELETE requires a WHERE clause', code='21000', status=400)
        stmt = sql_delete(model).where(
            *[self._column(model, table, name) == self._coerce(name, value) for name, value in filters.items()]
        )
        with self._session_factory() as db:
            try:
                result = db.execute(stmt)
                db.commit()
            except SQLAlchemyError as exc:
                db.rollback()
                raise BackendError(f'Delete from {table} failed: {exc.__class__.__name__}', code='23000', status=409) from exc
            return result.rowcount or 0
