from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.auth import AuthUser, Role, display_name
from app.services.backend_client import BackendClient
from app.services.errors import BackendError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardStats:
    total_shops: int = 0
    total_employees: int = 0
    total_managers: int = 0


@dataclass(frozen=True)
class OrganizationDashboard:
    user_name: str
    organization: dict | None = None
    stats: DashboardStats = field(default_factory=DashboardStats)


def load_organization_dashboard(client: BackendClient, user: AuthUser) -> OrganizationDashboard:
    user_name = display_name(user)
    try:
        profiles = client.query('users', {'id': user.id}, columns=['org_id'], limit=1)
        if not profiles or not profiles[0].get('org_id'):
            return OrganizationDashboard(user_name=user_name)

        org_id = profiles[0]['org_id']
        organizations = client.query(
            'organizations',
            {'id': org_id},
            columns=['id', 'name', 'org_code', 'passkey', 'number_of_shops', 'created_at'],
            limit=1,
        )
        if not organizations:
            return OrganizationDashboard(user_name=user_name)

        shops = client.query('shops', {'org_id': org_id}, columns=['id'])
        members = client.query('users', {'org_id': org_id}, columns=['id'])
        managers = client.query('users', {'org_id': org_id, 'role': Role.MANAGER.value}, columns=['id'])
    except BackendError as exc:
        logger.error('Error fetching organization data for %s: %s', user.id, exc)
        return OrganizationDashboard(user_name=user_name)

    return OrganizationDashboard(
        user_name=user_name,
        organization=organizations[0],
        stats=DashboardStats(
            total_shops=len(shops),
            # The owner's own profile is not counted as an employee.
            total_employees=max(len(members) - 1, 0),
            total_managers=len(managers),
        ),
    )
