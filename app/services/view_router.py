from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum

from app.auth import AuthUser, is_owner_role
from app.services.backend_client import AuthChangeEvent, BackendClient
from app.services.errors import BackendError
from app.services.login_service import LoginForm, LoginResult, TeamLoginForm, fetch_profile
from app.services.organization_signup_service import OrganizationSignUpForm, OrgCredentials
from app.services.session_store import SessionStore
from app.services.team_signup_service import TeamSignUpForm

logger = logging.getLogger(__name__)


class View(str, Enum):
    LOADING = 'loading'
    LANDING = 'landing'
    SIGNUP = 'signup'
    CONFIRMATION = 'confirmation'
    LOGIN = 'login'
    EMPLOYEE_SIGNUP = 'employee-signup'
    SUCCESS = 'success'
    TEAM_LOGIN = 'team-login'
    DASHBOARD = 'dashboard'


class ViewRouter:
    """Screen state of one browser: current view, signed-in user and role, open forms.

    Auth notifications move the router to the dashboard (signed in) or the
    landing page (signed out). While a form submission runs they only update
    the user and role; the submission's outcome picks the next view, so a
    login rejected for its role never lands on the dashboard.
    """

    def __init__(self, client: BackendClient) -> None:
        self.client = client
        self.session_store = SessionStore(client)
        self.current_view = View.LOADING
        self.user: AuthUser | None = None
        self.role = ''
        self.org_data: OrgCredentials | None = None
        self.signup_form: OrganizationSignUpForm | None = None
        self.employee_signup_form: TeamSignUpForm | None = None
        self.login_form: LoginForm | None = None
        self.team_login_form: TeamLoginForm | None = None
        self.lock = threading.RLock()
        self._submitting = False

    def mount(self) -> None:
        user = self.session_store.start(self._on_auth_state_change)
        if user is not None:
            self.user = user
            self.role = self.resolve_role(user.id)
            self.current_view = View.DASHBOARD
        else:
            self.current_view = View.LANDING

    def unmount(self) -> None:
        self.session_store.stop()

    def resolve_role(self, user_id: str) -> str:
        try:
            profile = fetch_profile(self.client, user_id)
        except BackendError as exc:
            logger.error('Error fetching user role for %s: %s', user_id, exc)
            return ''
        return (profile or {}).get('role') or ''

    def _on_auth_state_change(self, event: AuthChangeEvent, user: AuthUser | None) -> None:
        if user is not None:
            self.user = user
            self.role = self.resolve_role(user.id)
            if not self._submitting:
                self.current_view = View.DASHBOARD
            return
        self.user = None
        self.role = ''
        if not self._submitting:
            self.current_view = View.LANDING

    @contextmanager
    def submitting(self) -> Iterator[None]:
        previous = self._submitting
        self._submitting = True
        try:
            yield
        finally:
            self._submitting = previous

    @property
    def screen(self) -> View:
        if self.current_view == View.DASHBOARD and self.user is None:
            return View.LANDING
        if self.current_view == View.CONFIRMATION and self.org_data is None:
            return View.LANDING
        return self.current_view

    @property
    def is_owner(self) -> bool:
        return is_owner_role(self.role)

    def show_signup(self) -> None:
        self.signup_form = OrganizationSignUpForm()
        self.current_view = View.SIGNUP

    def show_login(self) -> None:
        self.login_form = LoginForm()
        self.current_view = View.LOGIN

    def show_employee_signup(self) -> None:
        self.employee_signup_form = TeamSignUpForm()
        self.current_view = View.EMPLOYEE_SIGNUP

    def show_team_login(self) -> None:
        self.team_login_form = TeamLoginForm()
        self.current_view = View.TEAM_LOGIN

    def back_to_landing(self) -> None:
        self.current_view = View.LANDING

    def on_signup_success(self, credentials: OrgCredentials) -> None:
        self.org_data = credentials
        self.signup_form = None
        self.current_view = View.CONFIRMATION

    def on_employee_signup_success(self) -> None:
        self.employee_signup_form = None
        self.current_view = View.SUCCESS

    def on_login_success(self, result: LoginResult) -> None:
        self.user = result.user
        if result.role:
            self.role = result.role
        self.login_form = None
        self.team_login_form = None
        self.current_view = View.DASHBOARD

    def continue_to_dashboard(self) -> None:
        # The sign-in notification fired before the owner profile existed, so look the role up again.
        if self.user is None:
            self.current_view = View.LANDING
            return
        self.role = self.resolve_role(self.user.id)
        self.current_view = View.DASHBOARD

    def continue_to_login(self) -> None:
        self.show_team_login()

    def logout(self) -> None:
        self.client.sign_out()
        self.user = None
        self.role = ''
        self.current_view = View.LANDING

    def _form(self, attr: str, factory):
        form = getattr(self, attr)
        if form is None:
            form = factory()
            setattr(self, attr, form)
        return form

    def ensure_signup_form(self) -> OrganizationSignUpForm:
        return self._form('signup_form', OrganizationSignUpForm)

    def ensure_employee_signup_form(self) -> TeamSignUpForm:
        return self._form('employee_signup_form', TeamSignUpForm)

    def ensure_login_form(self) -> LoginForm:
        return self._form('login_form', LoginForm)

    def ensure_team_login_form(self) -> TeamLoginForm:
        return self._form('team_login_form', TeamLoginForm)

    def submit_signup(self) -> OrgCredentials:
        form = self.ensure_signup_form()
        with self.submitting():
            credentials = form.submit(self.client)
        self.on_signup_success(credentials)
        return credentials

    def submit_employee_signup(self) -> AuthUser:
        form = self.ensure_employee_signup_form()
        with self.submitting():
            user = form.submit(self.client)
        self.on_employee_signup_success()
        return user

    def submit_login(self) -> LoginResult:
        form = self.ensure_login_form()
        with self.submitting():
            result = form.submit(self.client)
        self.on_login_success(result)
        return result

    def submit_team_login(self) -> LoginResult:
        form = self.ensure_team_login_form()
        with self.submitting():
            result = form.submit(self.client)
        self.on_login_success(result)
        return result
