from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from app.auth import AuthUser, Role, is_owner_role, is_team_role
from app.services.backend_client import BackendClient
from app.services.error_messages import (
    INVALID_TEAM_ROLE,
    OWNER_ACCESS_DENIED,
    OWNER_USE_OWNER_LOGIN,
    PROFILE_NOT_FOUND,
    login_error_message,
)
from app.services.errors import AccessDeniedError, BackendError, PortalError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: AuthUser
    role: str


def fetch_profile(client: BackendClient, user_id: str) -> dict | None:
    rows = client.query('users', {'id': user_id}, columns=['role', 'org_id'], limit=1)
    return rows[0] if rows else None


def _require_owner(role: str) -> None:
    if not is_owner_role(role):
        raise AccessDeniedError(OWNER_ACCESS_DENIED)


def _require_team_member(role: str) -> None:
    if role == Role.OWNER.value:
        raise AccessDeniedError(OWNER_USE_OWNER_LOGIN)
    if not is_team_role(role):
        raise AccessDeniedError(INVALID_TEAM_ROLE)


def sign_in_with_role(
    client: BackendClient,
    *,
    email: str,
    password: str,
    role_check: Callable[[str], None],
) -> LoginResult:
    """Authenticate, read the caller's profile role and apply ``role_check``.

    A rejected role signs the caller out before the error propagates, so no
    half-authorized session is left behind. The check runs only in this
    process; the backend's own policies still have to restrict data access.
    """
    user = client.sign_in_with_password(email, password)
    profile = fetch_profile(client, user.id)
    if profile is None:
        raise PortalError(PROFILE_NOT_FOUND)

    role = profile.get('role') or ''
    try:
        role_check(role)
    except AccessDeniedError:
        client.sign_out()
        raise
    return LoginResult(user=user, role=role)


class LoginForm:
    flow = 'owner-login'
    role_check = staticmethod(_require_owner)

    def __init__(self) -> None:
        self.email = ''
        self.password = ''
        self.error = ''

    def update(self, values: Mapping[str, object]) -> None:
        self.email = str(values.get('email', self.email)).strip()
        self.password = str(values.get('password', ''))

    def submit(self, client: BackendClient) -> LoginResult:
        self.error = ''
        try:
            return sign_in_with_role(client, email=self.email, password=self.password, role_check=self.role_check)
        except (BackendError, PortalError) as exc:
            logger.warning('%s failed for %s: %s', self.flow, self.email, exc)
            self.error = login_error_message(exc)
            error_cls = AccessDeniedError if isinstance(exc, AccessDeniedError) else PortalError
            raise error_cls(self.error) from exc
        finally:
            self.password = ''


class TeamLoginForm(LoginForm):
    flow = 'team-login'
    role_check = staticmethod(_require_team_member)
