from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol

from app.auth import AuthUser

logger = logging.getLogger(__name__)


class AuthChangeEvent(str, Enum):
    SIGNED_IN = 'SIGNED_IN'
    SIGNED_OUT = 'SIGNED_OUT'


AuthStateHandler = Callable[[AuthChangeEvent, 'AuthUser | None'], None]


class AuthSubscription:
    def __init__(self, emitter: AuthStateEmitter, handler: AuthStateHandler) -> None:
        self._emitter = emitter
        self.handler = handler
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._emitter._remove(self)


class BackendClient(Protocol):
    def sign_up(self, email: str, password: str, user_metadata: dict[str, Any]) -> AuthUser: ...

    def sign_in_with_password(self, email: str, password: str) -> AuthUser: ...

    def sign_out(self) -> None: ...

    def get_session(self) -> AuthUser | None: ...

    def on_auth_state_change(self, handler: AuthStateHandler) -> AuthSubscription: ...

    def insert(self, table: str, record: dict[str, Any]) -> dict[str, Any]: ...

    def query(
        self,
        table: str,
        filters: dict[str, Any],
        *,
        columns: list[str] | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]: ...

    def delete(self, table: str, filters: dict[str, Any]) -> int: ...


class AuthStateEmitter:
    """Holds the signed-in user of one client handle and notifies subscribers of changes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: list[AuthSubscription] = []
        self._current_user: AuthUser | None = None

    def on_auth_state_change(self, handler: AuthStateHandler) -> AuthSubscription:
        subscription = AuthSubscription(self, handler)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def get_session(self) -> AuthUser | None:
        return self._current_user

    def _remove(self, subscription: AuthSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _set_session(self, user: AuthUser | None) -> None:
        self._current_user = user
        event = AuthChangeEvent.SIGNED_IN if user is not None else AuthChangeEvent.SIGNED_OUT
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            try:
                subscription.handler(event, user)
            except Exception:
                logger.exception('Auth state handler failed for %s', event.value)
