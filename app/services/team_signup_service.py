from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields

from app.auth import AuthUser, Role, is_team_role
from app.security.passwords import is_password_long_enough
from app.services.backend_client import BackendClient
from app.services.error_messages import (
    INVALID_ORG_CREDENTIALS,
    PASSWORD_TOO_SHORT,
    TEAM_SIGNUP_FALLBACK,
    signup_error_message,
)
from app.services.errors import BackendError, FormValidationError, PortalError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('name', 'email', 'password', 'role', 'organization_code', 'passkey')


@dataclass
class TeamSignUpData:
    name: str = ''
    email: str = ''
    password: str = ''
    role: str = Role.EMPLOYEE.value
    organization_code: str = ''
    passkey: str = ''


def find_organization(client: BackendClient, *, org_code: str, passkey: str) -> dict | None:
    # Plain equality on both shared strings is the only membership gate.
    rows = client.query(
        'organizations',
        {'org_code': org_code, 'passkey': passkey},
        columns=['id', 'name'],
    )
    return rows[0] if rows else None


def join_organization(client: BackendClient, data: TeamSignUpData) -> AuthUser:
    organization = find_organization(client, org_code=data.organization_code, passkey=data.passkey)
    if organization is None:
        raise PortalError(INVALID_ORG_CREDENTIALS)

    user = client.sign_up(data.email, data.password, {'full_name': data.name, 'role': data.role})
    client.insert(
        'users',
        {
            'id': user.id,
            'name': data.name,
            'email': data.email,
            'phone': '',
            'role': data.role,
            'org_id': organization['id'],
        },
    )
    logger.info('User %s joined organization %s as %s', user.id, organization['id'], data.role)
    return user


class TeamSignUpForm:
    def __init__(self) -> None:
        self.data = TeamSignUpData()
        self.error = ''

    def update(self, values: Mapping[str, object]) -> None:
        for field in fields(self.data):
            if field.name in values:
                setattr(self.data, field.name, str(values[field.name]))

    def _validate(self) -> None:
        if not all(getattr(self.data, name).strip() for name in REQUIRED_FIELDS):
            raise FormValidationError('Please fill in all required fields.')
        if not is_password_long_enough(self.data.password):
            raise FormValidationError(PASSWORD_TOO_SHORT)
        if not is_team_role(self.data.role):
            raise FormValidationError('Role must be Manager or Employee')

    def submit(self, client: BackendClient) -> AuthUser:
        self.error = ''
        try:
            self._validate()
        except FormValidationError as exc:
            self.error = str(exc)
            raise

        try:
            return join_organization(client, self.data)
        except (BackendError, PortalError) as exc:
            logger.error('Team sign-up failed for %s: %s', self.data.email, exc)
            self.error = signup_error_message(exc, TEAM_SIGNUP_FALLBACK)
            raise PortalError(self.error) from exc
