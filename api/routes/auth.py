"""
api/routes/auth.py -- Credential REST endpoints.

Routes:
  POST /api/auth/signup   -- create account; returns {token}
  POST /api/auth/login    -- email + password; returns {token}
  GET  /api/auth/verify   -- Bearer token; returns {ok, decoded}
  GET  /api/profile       -- Bearer token; returns {user} re-read from the store

Status codes follow the service's error taxonomy: login failures are 400,
token failures are 401. CredentialError is rendered by the exception handler
in api/main.py; routes never build error responses themselves.

Token responses carry Cache-Control: no-store so proxies never keep them.

Handlers are plain `def` because bcrypt is CPU-bound; FastAPI runs them in
its thread pool instead of blocking the event loop.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.models import LoginRequest, ProfileResponse, SignupRequest, TokenResponse, UserPublic, VerifyResponse
from auth.dependencies import get_authorization, get_credential_service
from auth.service import CredentialService

# Auth policy:
# - POST /api/auth/signup:  public
# - POST /api/auth/login:   public
# - GET  /api/auth/verify:  Bearer token checked by CredentialService.verify()
# - GET  /api/profile:      Bearer token checked by CredentialService.profile()
router = APIRouter()


def _token_response(token: str) -> JSONResponse:
    resp = JSONResponse(status_code=200, content=TokenResponse(token=token).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/signup", response_model=TokenResponse)
def signup(
    body: SignupRequest,
    service: CredentialService = Depends(get_credential_service),
) -> JSONResponse:
    """Register a new account and return a signed token."""
    token = service.signup(body.email, body.password, body.name)
    return _token_response(token)


@router.post("/auth/login", response_model=TokenResponse)
def login(
    body: LoginRequest,
    service: CredentialService = Depends(get_credential_service),
) -> JSONResponse:
    """Authenticate with email and password; return a signed token.

    Unknown email and wrong password return the same 400 body.
    """
    token = service.login(body.email, body.password)
    return _token_response(token)


@router.get("/auth/verify", response_model=VerifyResponse)
def verify(
    authorization: Optional[str] = Depends(get_authorization),
    service: CredentialService = Depends(get_credential_service),
) -> VerifyResponse:
    """Validate the bearer token and echo its claims."""
    return VerifyResponse(ok=True, decoded=service.verify(authorization))


@router.get("/profile", response_model=ProfileResponse)
def profile(
    authorization: Optional[str] = Depends(get_authorization),
    service: CredentialService = Depends(get_credential_service),
) -> ProfileResponse:
    """Return the current public fields of the token's user."""
    user = service.profile(authorization)
    return ProfileResponse(user=UserPublic(id=user.id, email=user.email, name=user.name))
