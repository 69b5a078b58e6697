from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings


def build_engine(url: str) -> Engine:
    if url.startswith('sqlite'):
        kwargs: dict = {'connect_args': {'check_same_thread': False}}
        if url in {'sqlite://', 'sqlite:///:memory:'}:
            kwargs['poolclass'] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = build_engine(settings.database_url_normalized)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
