from __future__ import annotations


class BackendError(Exception):
    """Failure reported by the backend service (auth or data)."""

    def __init__(self, message: str, *, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    def __str__(self) -> str:
        return self.message


class PortalError(ValueError):
    """Failure of a form operation, carrying the text shown to the user."""


class FormValidationError(PortalError):
    pass


class AccessDeniedError(PortalError):
    pass


def error_text(exc: BaseException) -> str:
    if isinstance(exc, BackendError):
        return ' '.join(part for part in (exc.message, exc.code or '') if part)
    return str(exc)
