"""
auth/models.py -- Domain dataclass for the credential service.

Pattern: Data class (pure data container, zero logic). Stores map rows and
documents into User; the service and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    id is opaque to callers: the SQL store hands out stringified integer
    primary keys, the Mongo store stringified ObjectIds. Both are assigned by
    the store at insertion, so a User built for create_user() has id=None.

    email is matched exactly -- no case folding or trimming anywhere.

    password_hash never leaves the service layer.
    """

    email: str
    password_hash: str
    name: str = ""
    id: str | None = None
    created_at: str | None = None  # ISO 8601 UTC, set once by the store
