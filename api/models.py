"""
API request and response models for the credential service.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the User dataclass in auth/models.py, which owns
the internal representation (including password_hash, which no response
model has a field for). Route handlers map between the two.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request body for POST /api/auth/signup.

    email and password are Optional at this layer so an incomplete body
    reaches the service and gets the 400 "Missing fields" response rather
    than a 422 from Pydantic. Values are not stripped or case-folded.
    password has no length cap: bcrypt only reads the first 72 bytes.
    """

    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: Optional[str] = Field(default=None, max_length=320)
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenResponse(BaseModel):
    """Response for signup and login."""

    model_config = ConfigDict(frozen=True)

    token: str


class VerifyResponse(BaseModel):
    """Response for GET /api/auth/verify -- the decoded token claims."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True
    decoded: dict[str, Any]


class UserPublic(BaseModel):
    """Client-visible user fields."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str = ""


class ProfileResponse(BaseModel):
    """Response for GET /api/profile."""

    model_config = ConfigDict(frozen=True)

    user: UserPublic


class HelloResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
