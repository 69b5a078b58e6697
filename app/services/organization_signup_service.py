from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields

from app.auth import Role
from app.config import settings
from app.security.passwords import is_password_long_enough
from app.services.backend_client import BackendClient
from app.services.credentials import generate_secure_code
from app.services.error_messages import ORGANIZATION_SIGNUP_FALLBACK, PASSWORD_TOO_SHORT, signup_error_message
from app.services.errors import BackendError, FormValidationError, PortalError

logger = logging.getLogger(__name__)

FIRST_STEP = 1
LAST_STEP = 3

STEP_TITLES = {
    1: 'Personal Info',
    2: 'Organization',
    3: 'First Shop',
}

STEP_FIELDS = {
    1: ('full_name', 'email', 'phone', 'password', 'confirm_password'),
    2: ('organization_name', 'number_of_shops'),
    3: ('first_shop_name', 'first_shop_location', 'first_shop_category'),
}

PASSWORD_FIELDS = ('password', 'confirm_password')

MISSING_FIELDS = 'Please fill in all required fields.'


@dataclass
class OrganizationSignUpData:
    full_name: str = ''
    email: str = ''
    phone: str = ''
    password: str = ''
    confirm_password: str = ''
    organization_name: str = ''
    number_of_shops: str = '1'
    first_shop_name: str = ''
    first_shop_location: str = ''
    first_shop_category: str = ''


@dataclass(frozen=True)
class OrgCredentials:
    org_code: str
    passkey: str
    org_name: str


def _parse_number_of_shops(raw: str) -> int:
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise FormValidationError('Number of shops must be a whole number') from exc
    if value < 1:
        raise FormValidationError('Number of shops must be at least 1')
    return value


def _compensate(client: BackendClient, created: list[tuple[str, dict]]) -> None:
    for table, filters in reversed(created):
        try:
            client.delete(table, filters)
        except BackendError:
            logger.exception('Could not remove %s row %s after failed organization sign-up', table, filters)


def register_organization(
    client: BackendClient,
    data: OrganizationSignUpData,
    *,
    number_of_shops: int,
    code_generator: Callable[[int], str] = generate_secure_code,
) -> OrgCredentials:
    """Create the owner identity, then the organization, owner profile and first shop.

    The three inserts are not a transaction. When one of them fails the rows
    already written by this call are deleted again in reverse order and the
    new owner is signed out. The auth identity itself stays behind, so a retry
    with the same email is rejected as already registered.
    """
    org_code = code_generator(settings.credential_length)
    passkey = code_generator(settings.credential_length)

    user = client.sign_up(
        data.email,
        data.password,
        {'full_name': data.full_name, 'phone': data.phone, 'role': Role.OWNER.value},
    )

    created: list[tuple[str, dict]] = []
    try:
        organization = client.insert(
            'organizations',
            {
                'name': data.organization_name,
                'owner_id': user.id,
                'org_code': org_code,
                'passkey': passkey,
                'number_of_shops': number_of_shops,
            },
        )
        created.append(('organizations', {'id': organization['id']}))

        client.insert(
            'users',
            {
                'id': user.id,
                'name': data.full_name,
                'email': data.email,
                'phone': data.phone,
                'role': Role.OWNER.value,
                'org_id': organization['id'],
            },
        )
        created.append(('users', {'id': user.id}))

        client.insert(
            'shops',
            {
                'name': data.first_shop_name,
                'location': data.first_shop_location,
                'category': data.first_shop_category,
                'org_id': organization['id'],
            },
        )
    except BackendError:
        logger.warning('Organization sign-up for %s failed after identity %s was created', data.email, user.id)
        _compensate(client, created)
        client.sign_out()
        raise

    logger.info('Organization %s created by %s', organization['id'], user.id)
    return OrgCredentials(org_code=org_code, passkey=passkey, org_name=data.organization_name)


class OrganizationSignUpForm:
    """Three-step owner sign-up: personal info, organization, first shop."""

    def __init__(self) -> None:
        self.step = FIRST_STEP
        self.data = OrganizationSignUpData()
        self.error = ''

    def update(self, values: Mapping[str, object]) -> None:
        for field in fields(self.data):
            if field.name not in values:
                continue
            value = str(values[field.name])
            # Password inputs render empty; a blank post keeps what was entered before.
            if field.name in PASSWORD_FIELDS and not value and getattr(self.data, field.name):
                continue
            setattr(self.data, field.name, value)

    def is_step_valid(self, step: int | None = None) -> bool:
        step = self.step if step is None else step
        names = STEP_FIELDS.get(step)
        if not names:
            return False
        return all(getattr(self.data, name).strip() for name in names)

    def next_step(self) -> None:
        if not self.is_step_valid():
            self.error = MISSING_FIELDS
            raise FormValidationError(MISSING_FIELDS)
        self.error = ''
        if self.step < LAST_STEP:
            self.step += 1

    def previous_step(self) -> None:
        self.error = ''
        if self.step > FIRST_STEP:
            self.step -= 1

    def _validate_submission(self) -> int:
        if self.step != LAST_STEP or not self.is_step_valid(LAST_STEP):
            raise FormValidationError(MISSING_FIELDS)
        if self.data.password != self.data.confirm_password:
            raise FormValidationError('Passwords do not match')
        if not is_password_long_enough(self.data.password):
            raise FormValidationError(PASSWORD_TOO_SHORT)
        return _parse_number_of_shops(self.data.number_of_shops)

    def submit(
        self,
        client: BackendClient,
        *,
        code_generator: Callable[[int], str] = generate_secure_code,
    ) -> OrgCredentials:
        self.error = ''
        try:
            number_of_shops = self._validate_submission()
        except FormValidationError as exc:
            self.error = str(exc)
            raise

        try:
            return register_organization(
                client,
                self.data,
                number_of_shops=number_of_shops,
                code_generator=code_generator,
            )
        except (BackendError, PortalError) as exc:
            logger.error('Organization sign-up failed for %s: %s', self.data.email, exc)
            self.error = signup_error_message(exc, ORGANIZATION_SIGNUP_FALLBACK)
            raise PortalError(self.error) from exc
