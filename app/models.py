from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.auth import Role


def _new_id() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class AuthIdentity(Base):
    """Sign-in identity held by the local backend; the hosted service owns its own."""

    __tablename__ = 'auth_identities'
    __table_args__ = (
        UniqueConstraint('email', name='auth_identities_email_key'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    user_metadata: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    email_confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Organization(Base):
    __tablename__ = 'organizations'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(36), ForeignKey('auth_identities.id'), nullable=False)
    org_code: Mapped[str] = mapped_column(String(64), nullable=False)
    passkey: Mapped[str] = mapped_column(String(64), nullable=False)
    number_of_shops: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class UserProfile(Base):
    __tablename__ = 'users'

    id: Mapped[str] = mapped_column(String(36), ForeignKey('auth_identities.id'), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False, default='')
    role: Mapped[Role] = mapped_column(
        SQLEnum(Role, name='user_role', values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
    )
    org_id: Mapped[str] = mapped_column(String(36), ForeignKey('organizations.id'), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Shop(Base):
    __tablename__ = 'shops'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    org_id: Mapped[str] = mapped_column(String(36), ForeignKey('organizations.id'), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


TABLES: dict[str, type[Base]] = {
    'organizations': Organization,
    'users': UserProfile,
    'shops': Shop,
}
