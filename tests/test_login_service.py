from __future__ import annotations

import unittest

from app.services.error_messages import (
    INVALID_LOGIN,
    INVALID_TEAM_ROLE,
    OWNER_ACCESS_DENIED,
    OWNER_USE_OWNER_LOGIN,
    PROFILE_NOT_FOUND,
)
from app.services.errors import AccessDeniedError, PortalError
from app.services.login_service import LoginForm, TeamLoginForm
from tests.support import make_client, make_session_factory, register_member, register_owner


def _login(form_cls, client, email: str, password: str):
    form = form_cls()
    form.update({'email': email, 'password': password})
    return form, form.submit(client)


class OwnerLoginTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client(make_session_factory())
        self.credentials = register_owner(self.client)
        register_member(self.client, self.credentials, email='mia@x.com', role='Manager')

    def test_owner_signs_in(self) -> None:
        form, result = _login(LoginForm, self.client, 'ada@x.com', 'secret1')
        self.assertEqual(result.role, 'Owner')
        self.assertEqual(self.client.get_session(), result.user)
        self.assertEqual(form.password, '')

    def test_manager_is_denied_and_signed_out(self) -> None:
        form = LoginForm()
        form.update({'email': 'mia@x.com', 'password': 'memberpass'})
        with self.assertRaises(AccessDeniedError) as ctx:
            form.submit(self.client)
        self.assertEqual(str(ctx.exception), OWNER_ACCESS_DENIED)
        self.assertEqual(form.error, OWNER_ACCESS_DENIED)
        self.assertIsNone(self.client.get_session())

    def test_wrong_password(self) -> None:
        form = LoginForm()
        form.update({'email': 'ada@x.com', 'password': 'nope-nope'})
        with self.assertRaises(PortalError):
            form.submit(self.client)
        self.assertEqual(form.error, INVALID_LOGIN)

    def test_missing_profile(self) -> None:
        self.client.sign_up('ghost@x.com', 'ghostly', {})
        self.client.sign_out()
        form = LoginForm()
        form.update({'email': 'ghost@x.com', 'password': 'ghostly'})
        with self.assertRaises(PortalError):
            form.submit(self.client)
        self.assertEqual(form.error, PROFILE_NOT_FOUND)


class TeamLoginTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client(make_session_factory())
        self.credentials = register_owner(self.client)
        register_member(self.client, self.credentials, email='eve@x.com', role='Employee')

    def test_employee_signs_in(self) -> None:
        _, result = _login(TeamLoginForm, self.client, 'eve@x.com', 'memberpass')
        self.assertEqual(result.role, 'Employee')
        self.assertIsNotNone(self.client.get_session())

    def test_owner_gets_redirect_hint_and_is_signed_out(self) -> None:
        form = TeamLoginForm()
        form.update({'email': 'ada@x.com', 'password': 'secret1'})
        with self.assertRaises(AccessDeniedError):
            form.submit(self.client)
        self.assertEqual(form.error, OWNER_USE_OWNER_LOGIN)
        self.assertIsNone(self.client.get_session())

    def test_reserved_role_is_rejected(self) -> None:
        user = self.client.sign_up('cash@x.com', 'cashier1', {})
        organization = self.client.query('organizations', {'org_code': self.credentials.org_code})[0]
        self.client.insert(
            'users',
            {'id': user.id, 'name': 'Cash', 'email': 'cash@x.com', 'role': 'Cashier', 'org_id': organization['id']},
        )
        self.client.sign_out()

        form = TeamLoginForm()
        form.update({'email': 'cash@x.com', 'password': 'cashier1'})
        with self.assertRaises(AccessDeniedError):
            form.submit(self.client)
        self.assertEqual(form.error, INVALID_TEAM_ROLE)
        self.assertIsNone(self.client.get_session())


if __name__ == '__main__':
    unittest.main()
