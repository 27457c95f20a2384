"""
auth/service.py -- CredentialService: signup, login, verify, profile.

The service owns the credential lifecycle and nothing else. It is constructed
once at startup with an explicit store and Settings, then shared by every
request (see api/main.py lifespan). It holds no per-request state.

Error contract (see auth/errors.py):
  signup   ValidationError 400 | ConflictError 400 | InternalError 500
  login    AuthError 400       | InternalError 500
  verify   AuthError 401
  profile  AuthError 401       | InternalError 500

Strings holding a lone surrogate (legal as a JSON escape, not encodable as
UTF-8) are rejected up front: 400 "Invalid fields" on signup and
"Invalid credentials" on login.

Login returns one message for an unknown email and a wrong password. The two
cases keep distinct AuthError.reason values, which are logged but never sent.

Layer rule: no imports from api/ and no driver imports. Stores translate
driver exceptions into StoreError before they reach this module.
"""

from __future__ import annotations

import logging

from auth.errors import AuthError, ConflictError, EmailExistsError, InternalError, StoreError, ValidationError
from auth.models import User
from auth.store import UserStore
from auth.tokens import (
    bearer_token,
    burn_password_check,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from core.config import Settings

logger = logging.getLogger("credsvc.auth")

_INVALID_LOGIN = "Invalid credentials"
_INVALID_TOKEN = "Invalid token"


def _utf8_encodable(*values: str | None) -> bool:
    """Return False if any value holds a lone surrogate, which bcrypt and the
    stores cannot encode. JSON allows such escapes in strings."""
    try:
        for value in values:
            if value:
                value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class CredentialService:
    def __init__(self, store: UserStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    # ------------------------------------------------------------------
    # Signup
    # ------------------------------------------------------------------

    def signup(self, email: str | None, password: str | None, name: str | None = None) -> str:
        """Register a new account and return a freshly issued token.

        No existence check runs before the insert; the store's unique
        constraint on email decides duplicates.
        """
        if not email or not password:
            raise ValidationError("Missing fields")
        if not _utf8_encodable(email, password, name):
            raise ValidationError("Invalid fields")

        try:
            password_hash = hash_password(password, rounds=self.settings.bcrypt_rounds)
        except ValueError as exc:
            logger.exception("Signup error: password hashing failed")
            raise InternalError() from exc

        user = User(email=email, password_hash=password_hash, name=name or "")
        try:
            user.id = self.store.create_user(user)
        except EmailExistsError as exc:
            raise ConflictError("Email exists") from exc
        except StoreError as exc:
            logger.exception("Signup error")
            raise InternalError() from exc

        logger.info("User registered (uid=%s)", user.id)
        return self.issue_token(user)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, email: str | None, password: str | None) -> str:
        """Check email + password and return a freshly issued token.

        bcrypt runs exactly once on every path, against a dummy hash when
        the email is unknown, so timing does not reveal which emails exist.
        """
        if not email or not password:
            raise AuthError(_INVALID_LOGIN, status_code=400, reason="missing_fields")
        if not _utf8_encodable(email, password):
            raise AuthError(_INVALID_LOGIN, status_code=400, reason="invalid_encoding")

        try:
            user = self.store.get_by_email(email)
        except StoreError as exc:
            logger.exception("Login error")
            raise InternalError() from exc

        if user is None:
            burn_password_check(password)
            logger.info("Login failed: unknown email")
            raise AuthError(_INVALID_LOGIN, status_code=400, reason="unknown_email")
        if not verify_password(password, user.password_hash):
            logger.info("Login failed: wrong password (uid=%s)", user.id)
            raise AuthError(_INVALID_LOGIN, status_code=400, reason="wrong_password")

        return self.issue_token(user)

    # ------------------------------------------------------------------
    # Verify / profile
    # ------------------------------------------------------------------

    def verify(self, authorization: str | None) -> dict:
        """Return the decoded claims of the bearer token in an Authorization header."""
        if not authorization:
            raise AuthError("No token", reason="missing_header")
        token = bearer_token(authorization)
        if token is None:
            raise AuthError(_INVALID_TOKEN, reason="malformed_header")
        claims = decode_access_token(token, secret=self.settings.jwt_secret)
        if claims is None:
            raise AuthError(_INVALID_TOKEN, reason="bad_token")
        return claims

    def profile(self, authorization: str | None) -> User:
        """Verify the bearer token, then load the current record for its uid."""
        claims = self.verify(authorization)
        try:
            user = self.store.get_by_id(str(claims["uid"]))
        except StoreError as exc:
            logger.exception("Profile error")
            raise InternalError() from exc
        if user is None:
            raise AuthError(_INVALID_TOKEN, reason="unknown_subject")
        return user

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user: User) -> str:
        return create_access_token(
            user_id=user.id,
            email=user.email,
            name=user.name,
            secret=self.settings.jwt_secret,
            expire_seconds=self.settings.token_expire_seconds,
        )
