import argparse

from app.config import settings
from app.logging_config import configure_logging
from app.services.local_backend import LocalBackendClient, init_local_schema
from app.services.organization_signup_service import OrganizationSignUpForm, OrgCredentials
from app.services.team_signup_service import TeamSignUpForm


def seed(*, owner_email: str, password: str, with_team: bool = True) -> OrgCredentials:
    init_local_schema()
    client = LocalBackendClient(require_email_confirmation=False)

    signup = OrganizationSignUpForm()
    signup.update(
        {
            'full_name': 'Demo Owner',
            'email': owner_email,
            'phone': '555-0100',
            'password': password,
            'confirm_password': password,
            'organization_name': 'Demo Organization',
            'number_of_shops': '2',
            'first_shop_name': 'Downtown',
            'first_shop_location': 'Main Street',
            'first_shop_category': 'Retail',
        }
    )
    signup.next_step()
    signup.next_step()
    credentials = signup.submit(client)
    client.sign_out()

    if with_team:
        for name, role in (('Demo Manager', 'Manager'), ('Demo Employee', 'Employee')):
            member = TeamSignUpForm()
            member.update(
                {
                    'name': name,
                    'email': f"{role.lower()}+{owner_email}",
                    'password': password,
                    'role': role,
                    'organization_code': credentials.org_code,
                    'passkey': credentials.passkey,
                }
            )
            member.submit(client)
            client.sign_out()

    return credentials


def main() -> None:
    parser = argparse.ArgumentParser(description='Create a demo organization in the local backend.')
    parser.add_argument('--owner-email', default='owner@example.com')
    parser.add_argument('--password', default='ownerpass')
    parser.add_argument('--no-team', action='store_true', help='Skip the demo manager and employee accounts.')
    args = parser.parse_args()

    configure_logging(settings.log_level)
    credentials = seed(owner_email=args.owner_email, password=args.password, with_team=not args.no_team)
    print(f'Seeded {credentials.org_name}: org_code={credentials.org_code} passkey={credentials.passkey}')


if __name__ == '__main__':
    main()
