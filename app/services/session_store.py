from __future__ import annotations

from app.auth import AuthUser
from app.services.backend_client import AuthChangeEvent, AuthStateHandler, AuthSubscription, BackendClient


class SessionStore:
    """Observable register of the signed-in user for one client handle.

    The backend client is the only writer; the listener passed to ``start`` is
    the only reader. ``stop`` releases the auth subscription.
    """

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.user: AuthUser | None = None
        self._subscription: AuthSubscription | None = None
        self._listener: AuthStateHandler | None = None

    @property
    def started(self) -> bool:
        return self._subscription is not None

    def start(self, listener: AuthStateHandler) -> AuthUser | None:
        if self.started:
            raise RuntimeError('Session store already started')
        self._listener = listener
        self._subscription = self.client.on_auth_state_change(self._handle_change)
        self.user = self.client.get_session()
        return self.user

    def stop(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None
        self._listener = None

    def _handle_change(self, event: AuthChangeEvent, user: AuthUser | None) -> None:
        self.user = user
        if self._listener is not None:
            self._listener(event, user)
