"""
auth/dependencies.py -- FastAPI Depends() helpers for the credential routes.

The CredentialService is built once in the lifespan and parked on app.state.
Routes receive it through get_credential_service() instead of importing a
module-level instance, so tests can swap in a service wired to a test store.

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Header/Request) because
  this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from auth.service import CredentialService


def get_credential_service(request: Request) -> CredentialService:
    """Return the CredentialService created at startup."""
    return request.app.state.credential_service


def get_authorization(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Return the raw Authorization header, or None if the request has none.

    Parsing the Bearer scheme is left to CredentialService.verify() so the
    missing-header and malformed-header cases report different messages.
    """
    return authorization
