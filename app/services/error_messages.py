from __future__ import annotations

from app.services.errors import PortalError, error_text

ALREADY_REGISTERED = 'This email is already registered. Please log in or use a different email address.'
INVALID_EMAIL = 'Please enter a valid email address.'
PASSWORD_TOO_SHORT = 'Password must be at least 6 characters long.'
INVALID_ORG_CREDENTIALS = (
    'Invalid Organization Code or Passkey. Please verify these exact credentials with your organization owner. '
    'If you are an organization owner, check your Organization Dashboard for the correct codes.'
)
INVALID_LOGIN = 'Invalid email or password. Please check your credentials and try again.'
EMAIL_NOT_CONFIRMED = 'Please confirm your email address before logging in.'
OWNER_ACCESS_DENIED = 'Access denied. Only Organization Owners can log in here.'
OWNER_USE_OWNER_LOGIN = 'Owners should use the Owner Login. Please use the correct login page.'
INVALID_TEAM_ROLE = 'Invalid user role. Please contact your organization administrator.'
PROFILE_NOT_FOUND = 'User profile not found'

ORGANIZATION_SIGNUP_FALLBACK = 'An error occurred during organization creation. Please try again.'
TEAM_SIGNUP_FALLBACK = 'An error occurred during sign up. Please try again.'
LOGIN_FALLBACK = 'Login failed. Please try again.'


def signup_error_message(exc: BaseException, fallback: str) -> str:
    if isinstance(exc, PortalError):
        return str(exc)
    text = error_text(exc)
    if 'User already registered' in text or 'user_already_exists' in text:
        return ALREADY_REGISTERED
    if 'Invalid email' in text:
        return INVALID_EMAIL
    if 'Password' in text:
        return PASSWORD_TOO_SHORT
    return str(exc) or fallback


def login_error_message(exc: BaseException) -> str:
    if isinstance(exc, PortalError):
        return str(exc)
    text = error_text(exc)
    if 'Invalid login credentials' in text:
        return INVALID_LOGIN
    if 'Email not confirmed' in text:
        return EMAIL_NOT_CONFIRMED
    return str(exc) or LOGIN_FALLBACK
