"""
auth/errors.py -- Error taxonomy for the credential service.

Two families:

  CredentialError and subclasses are raised by auth/service.py and carry the
  HTTP status and machine-readable code the API layer renders. The message is
  always safe to show a client.

  StoreError and EmailExistsError are raised by the stores. They wrap driver
  exceptions (SQLAlchemy, PyMongo) so the service never imports a driver.
  The service converts them: EmailExistsError -> ConflictError, anything else
  -> InternalError.

Layer rule: no imports from api/, core/, or any third-party library.
"""

from __future__ import annotations


class CredentialError(Exception):
    """Base class for errors returned to API callers."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CredentialError):
    """Caller input is malformed or incomplete."""

    status_code = 400
    code = "validation_error"


class ConflictError(CredentialError):
    """The resource already exists (duplicate email on signup)."""

    status_code = 400
    code = "conflict"


class AuthError(CredentialError):
    """Bad credentials, or a missing, invalid or expired token.

    reason is for server-side logs only. Login failures for an unknown email
    and a wrong password share one client message but keep distinct reasons
    ("unknown_email", "wrong_password").
    """

    status_code = 401
    code = "auth_error"

    def __init__(self, message: str, status_code: int | None = None, reason: str = "") -> None:
        super().__init__(message, status_code)
        self.reason = reason


class InternalError(CredentialError):
    """Storage or hashing failure. Detail is logged, never returned."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str = "Internal server error") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Store errors
# ---------------------------------------------------------------------------


class StoreError(Exception):
    """The storage backend failed (unreachable, timed out, rejected a query)."""


class EmailExistsError(StoreError):
    """An insert violated the unique constraint on email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"email already registered: {email!r}")
        self.email = email
