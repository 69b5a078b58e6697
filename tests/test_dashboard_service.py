from __future__ import annotations

import unittest
from unittest.mock import patch

from app.auth import AuthUser
from app.services.dashboard_service import load_organization_dashboard
from app.services.errors import BackendError
from tests.support import make_client, make_session_factory, register_member, register_owner


class OrganizationDashboardTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = make_client(make_session_factory())
        self.credentials = register_owner(self.client)
        self.owner = self.client.sign_in_with_password('ada@x.com', 'secret1')

    def test_fresh_organization(self) -> None:
        dashboard = load_organization_dashboard(self.client, self.owner)

        self.assertEqual(dashboard.user_name, 'Ada')
        self.assertEqual(dashboard.organization['name'], 'Acme')
        self.assertEqual(dashboard.organization['org_code'], self.credentials.org_code)
        self.assertEqual(dashboard.organization['passkey'], self.credentials.passkey)
        self.assertEqual(dashboard.stats.total_shops, 1)
        self.assertEqual(dashboard.stats.total_employees, 0)
        self.assertEqual(dashboard.stats.total_managers, 0)

    def test_counts_team_members(self) -> None:
        register_member(self.client, self.credentials, email='mia@x.com', role='Manager')
        register_member(self.client, self.credentials, email='eve@x.com', role='Employee')
        register_member(self.client, self.credentials, email='tom@x.com', role='Employee')

        dashboard = load_organization_dashboard(self.client, self.owner)
        self.assertEqual(dashboard.stats.total_employees, 3)
        self.assertEqual(dashboard.stats.total_managers, 1)

    def test_other_organizations_are_not_counted(self) -> None:
        register_owner(self.client, email='bob@x.com', organization_name='Other', first_shop_name='Other Shop')
        dashboard = load_organization_dashboard(self.client, self.owner)
        self.assertEqual(dashboard.stats.total_shops, 1)
        self.assertEqual(dashboard.stats.total_employees, 0)

    def test_user_without_profile_gets_empty_dashboard(self) -> None:
        dashboard = load_organization_dashboard(self.client, AuthUser(id='missing', email='x@y.com'))
        self.assertIsNone(dashboard.organization)
        self.assertEqual(dashboard.user_name, 'x')

    def test_backend_failure_is_logged_not_raised(self) -> None:
        with patch.object(self.client, 'query', side_effect=BackendError('boom')):
            with self.assertLogs('app.services.dashboard_service', level='ERROR'):
                dashboard = load_organization_dashboard(self.client, self.owner)
        self.assertIsNone(dashboard.organization)


if __name__ == '__main__':
    unittest.main()
