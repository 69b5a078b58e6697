from __future__ import annotations

from sqlalchemy.orm import sessionmaker

from app.db import build_engine
from app.models import Base
from app.services.local_backend import LocalBackendClient
from app.services.organization_signup_service import OrganizationSignUpForm, OrgCredentials
from app.services.team_signup_service import TeamSignUpForm

OWNER_SIGNUP = {
    'full_name': 'Ada',
    'email': 'ada@x.com',
    'phone': '555',
    'password': 'secret1',
    'confirm_password': 'secret1',
    'organization_name': 'Acme',
    'number_of_shops': '1',
    'first_shop_name': 'Acme Central',
    'first_shop_location': 'Metropolis',
    'first_shop_category': 'Retail',
}


def make_session_factory() -> sessionmaker:
    engine = build_engine('sqlite://')
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def make_client(session_factory: sessionmaker, **kwargs) -> LocalBackendClient:
    kwargs.setdefault('require_email_confirmation', False)
    return LocalBackendClient(session_factory, **kwargs)


def filled_signup_form(**overrides) -> OrganizationSignUpForm:
    form = OrganizationSignUpForm()
    form.update({**OWNER_SIGNUP, **overrides})
    form.next_step()
    form.next_step()
    return form


def register_owner(client: LocalBackendClient, **overrides) -> OrgCredentials:
    credentials = filled_signup_form(**overrides).submit(client)
    client.sign_out()
    return credentials


def register_member(
    client: LocalBackendClient,
    credentials: OrgCredentials,
    *,
    email: str,
    role: str = 'Employee',
    password: str = 'memberpass',
) -> None:
    form = TeamSignUpForm()
    form.update(
        {
            'name': email.split('@')[0],
            'email': email,
            'password': password,
            'role': role,
            'organization_code': credentials.org_code,
            'passkey': credentials.passkey,
        }
    )
    form.submit(client)
    client.sign_out()
