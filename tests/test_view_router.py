from __future__ import annotations

import unittest

from app.services.errors import AccessDeniedError, PortalError
from app.services.view_router import View, ViewRouter
from tests.support import OWNER_SIGNUP, make_client, make_session_factory, register_member, register_owner


class RecordingViewRouter(ViewRouter):
    """Keeps every view the router passes through."""

    def __setattr__(self, name, value):
        if name == 'current_view':
            self.__dict__.setdefault('history', []).append(value)
        super().__setattr__(name, value)


class ViewRouterMountTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()

    def test_starts_loading_and_resolves_to_landing(self) -> None:
        router = ViewRouter(make_client(self.session_factory))
        self.assertEqual(router.current_view, View.LOADING)
        router.mount()
        self.assertEqual(router.current_view, View.LANDING)
        self.assertIsNone(router.user)
        router.unmount()

    def test_existing_session_resolves_role_and_opens_dashboard(self) -> None:
        client = make_client(self.session_factory)
        register_owner(client)
        client.sign_in_with_password('ada@x.com', 'secret1')

        router = ViewRouter(client)
        router.mount()
        self.assertEqual(router.current_view, View.DASHBOARD)
        self.assertEqual(router.role, 'Owner')
        self.assertTrue(router.is_owner)

    def test_auth_notifications_drive_views(self) -> None:
        client = make_client(self.session_factory)
        register_owner(client)
        router = ViewRouter(client)
        router.mount()

        client.sign_in_with_password('ada@x.com', 'secret1')
        self.assertEqual(router.current_view, View.DASHBOARD)
        self.assertEqual(router.role, 'Owner')

        client.sign_out()
        self.assertEqual(router.current_view, View.LANDING)
        self.assertIsNone(router.user)
        self.assertEqual(router.role, '')

    def test_unmount_releases_subscription(self) -> None:
        client = make_client(self.session_factory)
        register_owner(client)
        router = ViewRouter(client)
        router.mount()
        router.unmount()
        self.assertFalse(router.session_store.started)

        client.sign_in_with_password('ada@x.com', 'secret1')
        self.assertEqual(router.current_view, View.LANDING)

    def test_double_start_is_rejected(self) -> None:
        router = ViewRouter(make_client(self.session_factory))
        router.mount()
        with self.assertRaises(RuntimeError):
            router.session_store.start(lambda event, user: None)


class ViewRouterFlowTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session_factory = make_session_factory()
        self.client = make_client(self.session_factory)
        self.router = RecordingViewRouter(self.client)
        self.router.mount()

    def test_signup_goes_to_confirmation_then_owner_dashboard(self) -> None:
        self.router.show_signup()
        form = self.router.signup_form
        form.update(OWNER_SIGNUP)
        form.next_step()
        form.next_step()

        credentials = self.router.submit_signup()

        self.assertEqual(self.router.current_view, View.CONFIRMATION)
        self.assertEqual(self.router.org_data, credentials)
        self.assertEqual(self.router.org_data.org_name, 'Acme')
        self.assertEqual(len(self.router.org_data.org_code), 25)
        self.assertNotIn(View.DASHBOARD, self.router.history)

        self.router.continue_to_dashboard()
        self.assertEqual(self.router.screen, View.DASHBOARD)
        self.assertEqual(self.router.role, 'Owner')

    def test_failed_signup_stays_on_form(self) -> None:
        self.router.show_signup()
        with self.assertRaises(PortalError):
            self.router.submit_signup()
        self.assertEqual(self.router.current_view, View.SIGNUP)
        self.assertTrue(self.router.signup_form.error)

    def test_team_signup_then_login(self) -> None:
        credentials = register_owner(self.client)
        self.router.show_employee_signup()
        self.router.employee_signup_form.update(
            {
                'name': 'Eve',
                'email': 'eve@x.com',
                'password': 'memberpass',
                'role': 'Employee',
                'organization_code': credentials.org_code,
                'passkey': credentials.passkey,
            }
        )
        self.router.submit_employee_signup()
        self.assertEqual(self.router.current_view, View.SUCCESS)

        self.router.continue_to_login()
        self.assertEqual(self.router.current_view, View.TEAM_LOGIN)

        self.router.team_login_form.update({'email': 'eve@x.com', 'password': 'memberpass'})
        result = self.router.submit_team_login()
        self.assertEqual(result.role, 'Employee')
        self.assertEqual(self.router.screen, View.DASHBOARD)
        self.assertFalse(self.router.is_owner)

    def test_invalid_team_credentials_keep_employee_signup_screen(self) -> None:
        register_owner(self.client)
        self.router.show_employee_signup()
        self.router.employee_signup_form.update(
            {
                'name': 'Eve',
                'email': 'eve@x.com',
                'password': 'memberpass',
                'role': 'Employee',
                'organization_code': 'WRONG',
                'passkey': 'WRONG',
            }
        )
        with self.assertRaises(PortalError):
            self.router.submit_employee_signup()
        self.assertEqual(self.router.current_view, View.EMPLOYEE_SIGNUP)
        self.assertIn('Invalid Organization Code or Passkey.', self.router.employee_signup_form.error)

    def test_manager_on_owner_login_never_reaches_dashboard(self) -> None:
        credentials = register_owner(self.client)
        register_member(self.client, credentials, email='mia@x.com', role='Manager')
        self.router.history.clear()

        self.router.show_login()
        self.router.login_form.update({'email': 'mia@x.com', 'password': 'memberpass'})
        with self.assertRaises(AccessDeniedError):
            self.router.submit_login()

        self.assertNotIn(View.DASHBOARD, self.router.history)
        self.assertEqual(self.router.current_view, View.LOGIN)
        self.assertIsNone(self.router.user)
        self.assertIsNone(self.client.get_session())

    def test_owner_on_team_login_gets_hint(self) -> None:
        register_owner(self.client)
        self.router.history.clear()

        self.router.show_team_login()
        self.router.team_login_form.update({'email': 'ada@x.com', 'password': 'secret1'})
        with self.assertRaises(AccessDeniedError):
            self.router.submit_team_login()

        self.assertNotIn(View.DASHBOARD, self.router.history)
        self.assertIn('Owners should use the Owner Login', self.router.team_login_form.error)
        self.assertIsNone(self.client.get_session())

    def test_logout_returns_to_landing(self) -> None:
        register_owner(self.client)
        self.router.show_login()
        self.router.login_form.update({'email': 'ada@x.com', 'password': 'secret1'})
        self.router.submit_login()
        self.assertEqual(self.router.current_view, View.DASHBOARD)

        self.router.logout()
        self.assertEqual(self.router.current_view, View.LANDING)
        self.assertIsNone(self.client.get_session())

    def test_dashboard_without_user_renders_landing(self) -> None:
        self.router.current_view = View.DASHBOARD
        self.assertEqual(self.router.screen, View.LANDING)
        self.router.continue_to_dashboard()
        self.assertEqual(self.router.current_view, View.LANDING)

    def test_navigation_opens_fresh_forms(self) -> None:
        self.router.show_signup()
        self.router.signup_form.update({'full_name': 'Ada'})
        self.router.back_to_landing()
        self.assertEqual(self.router.current_view, View.LANDING)
        self.router.show_signup()
        self.assertEqual(self.router.signup_form.data.full_name, '')


if __name__ == '__main__':
    unittest.main()
