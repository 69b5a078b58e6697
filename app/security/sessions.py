from __future__ import annotations

import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import FastAPI, Request

from app.config import settings
from app.services.backend_client import BackendClient
from app.services.provider_factory import create_backend_client
from app.services.view_router import ViewRouter

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


@dataclass
class ViewSession:
    token: str
    router: ViewRouter
    expires_at: datetime


class ViewSessionRegistry:
    """Process-local view sessions keyed by cookie token; each owns a client handle and a router."""

    def __init__(
        self,
        client_factory: Callable[[], BackendClient] = create_backend_client,
        *,
        ttl_minutes: int | None = None,
    ) -> None:
        self.client_factory = client_factory
        self.ttl = timedelta(minutes=settings.session_ttl_minutes if ttl_minutes is None else ttl_minutes)
        self._sessions: dict[str, ViewSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def _expire(self, now: datetime) -> list[ViewSession]:
        expired = [session for session in self._sessions.values() if session.expires_at <= now]
        for session in expired:
            del self._sessions[session.token]
        return expired

    def get_or_create(self, token: str | None) -> ViewSession:
        now = _now()
        with self._lock:
            expired = self._expire(now)
            session = self._sessions.get(token) if token else None
            if session is None:
                router = ViewRouter(self.client_factory())
                session = ViewSession(token=secrets.token_urlsafe(32), router=router, expires_at=now + self.ttl)
                self._sessions[session.token] = session
                created = True
            else:
                session.expires_at = now + self.ttl
                created = False

        for stale in expired:
            stale.router.unmount()
        if created:
            session.router.mount()
            logger.debug('Opened view session, %d active', len(self._sessions))
        return session

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.router.unmount()


class ViewSessionHandle:
    """Resolves the request's view session the first time a route asks for it."""

    def __init__(self, registry: ViewSessionRegistry, token: str | None) -> None:
        self.registry = registry
        self.token = token
        self.session: ViewSession | None = None

    @property
    def router(self) -> ViewRouter:
        if self.session is None:
            self.session = self.registry.get_or_create(self.token)
        return self.session.router


def install_view_session_middleware(app: FastAPI, registry: ViewSessionRegistry) -> None:
    app.state.view_sessions = registry

    @app.middleware('http')
    async def view_session_middleware(request: Request, call_next):
        token = request.cookies.get(settings.session_cookie_name)
        handle = ViewSessionHandle(registry, token)
        request.state.view_session = handle

        response = await call_next(request)
        view_session = handle.session
        if view_session is not None and token != view_session.token:
            response.set_cookie(
                key=settings.session_cookie_name,
                value=view_session.token,
                httponly=True,
                secure=settings.session_cookie_secure,
                samesite=settings.session_cookie_samesite,
                max_age=settings.session_ttl_minutes * 60,
            )
        return response
