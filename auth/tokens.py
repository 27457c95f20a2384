"""
auth/tokens.py -- JWT and password hashing utilities.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_SECRET and carry
       uid, email, optional name, iat and exp. Lifetime defaults to 7 days.
       Verification returns None on any failure -- the service turns that
       into an AuthError (401). There is no revocation list: a token stays
       valid for its full lifetime.

  Passwords: bcrypt, work factor from Settings.bcrypt_rounds (default 10).
       The _DUMMY_HASH constant lets the service run a full bcrypt comparison
       for unknown emails so response time does not reveal whether an account
       exists.

  JWT_SECRET: sourced from core.config.get_settings(), which refuses to start
       without one outside DEBUG mode. Callers holding their own Settings
       (CredentialService) pass secret= explicitly.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("credsvc.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

_BEARER_PREFIX = "Bearer "

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 0) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes of its input. Longer passwords
    are truncated before hashing so bcrypt 4.x does not reject them.
    """
    cost = rounds if rounds > 0 else _settings.bcrypt_rounds
    secret = plain.encode("utf-8")[:72]
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A stored value that is not a bcrypt hash never matches.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8")[:72], hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is not a valid bcrypt hash")
        return False


# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("credsvc_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against a throwaway hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(
    user_id: str,
    email: str,
    name: str = "",
    secret: str = "",
    expire_seconds: int = 0,
    issued_at: datetime | None = None,
) -> str:
    """Encode a signed JWT for a user.

    Args:
        user_id:        Store-assigned user ID, emitted as the uid claim.
        email:          Email address, emitted verbatim.
        name:           Display name. Omitted from the token when empty.
        secret:         Signing key. Defaults to Settings.jwt_secret.
        expire_seconds: Token lifetime. If 0 (default), uses
                        Settings.token_expire_seconds (7 days).
        issued_at:      Issue time. Defaults to now (UTC).
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    iat = issued_at or datetime.now(timezone.utc)
    payload: dict = {"uid": user_id, "email": email}
    if name:
        payload["name"] = name
    payload["iat"] = iat
    payload["exp"] = iat + timedelta(seconds=duration)
    return jwt.encode(payload, secret or _settings.jwt_secret, algorithm=_ALGORITHM)


def decode_access_token(token: str, secret: str = "") -> dict | None:
    """Decode and verify a JWT. Returns the claims dict or None on any failure.

    Fails on a bad signature, a malformed token, an expired exp claim, or a
    payload missing uid or email.
    """
    try:
        payload = jwt.decode(token, secret or _settings.jwt_secret, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    if "uid" not in payload or "email" not in payload:
        return None
    return payload


def bearer_token(authorization: str) -> str | None:
    """Extract <token> from an "Authorization: Bearer <token>" header value.

    Returns None when the scheme is not Bearer or the token part is empty.
    """
    if not authorization.startswith(_BEARER_PREFIX):
        return None
    token = authorization[len(_BEARER_PREFIX) :].strip()
    return token or None
