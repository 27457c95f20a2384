"""
auth/mongo_store.py -- Document-store UserStore backed by PyMongo.

One collection, "users", with documents shaped as:

    {_id: ObjectId, email: str, password: <bcrypt hash>, name: str, createdAt: datetime}

The field names match the documents written by the earlier Node service, so
an existing collection can be served without migration.

Email uniqueness is a unique index, created by ensure_schema() at startup or
on the first insert if the server was unreachable then. A duplicate insert
raises DuplicateKeyError, surfaced as EmailExistsError. Every other
PyMongoError becomes StoreError.

Connection attempts are bounded by serverSelectionTimeoutMS and
connectTimeoutMS so an unreachable cluster fails requests instead of
blocking them.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from bson import ObjectId
from pymongo import ASCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from auth.errors import EmailExistsError, StoreError
from auth.models import User

logger = logging.getLogger("credsvc.store")


class MongoUserStore:
    """UserStore over a MongoDB collection.

    Usage:
        store = MongoUserStore("mongodb+srv://user:pw@cluster/", db_name="vixelry_db")
        uid = store.create_user(User(email="a@x.com", password_hash=hash_password("p1")))
        store.close()

    Tests pass client= (e.g. mongomock.MongoClient()) instead of a URI.
    """

    def __init__(
        self,
        uri: str = "",
        db_name: str = "vixelry_db",
        timeout_ms: int = 10000,
        tls: bool = False,
        tls_allow_invalid_certificates: bool = False,
        client: MongoClient | None = None,
    ) -> None:
        if client is None:
            options: dict = {
                "serverSelectionTimeoutMS": timeout_ms,
                "connectTimeoutMS": timeout_ms,
            }
            if tls:
                options["tls"] = True
                if tls_allow_invalid_certificates:
                    logger.warning("MongoDB TLS certificate validation is DISABLED")
                    options["tlsAllowInvalidCertificates"] = True
            client = MongoClient(uri, **options)
        self._client = client
        self._users = client[db_name]["users"]
        self._schema_ready = False

    def ensure_schema(self) -> None:
        """Create the unique email index if it does not exist yet.

        MongoClient connects lazily, so the constructor never blocks on the
        network. Inserts call this until it has succeeded once; reads do not
        need the index.
        """
        if self._schema_ready:
            return
        try:
            self._users.create_index([("email", ASCENDING)], unique=True, name="email_unique")
        except PyMongoError as exc:
            raise StoreError(f"could not initialise users collection: {exc}") from exc
        self._schema_ready = True

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> str:
        """Insert a new user document and return its ObjectId as a string.

        Raises EmailExistsError if the email is already registered.
        """
        doc = {
            "email": user.email,
            "password": user.password_hash,
            "name": user.name or "",
            "createdAt": datetime.now(timezone.utc),
        }
        self.ensure_schema()
        try:
            result = self._users.insert_one(doc)
        except DuplicateKeyError as exc:
            raise EmailExistsError(user.email) from exc
        except PyMongoError as exc:
            raise StoreError(f"insert failed: {exc}") from exc
        return str(result.inserted_id)

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        return self._find_one({"email": email})

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by ObjectId string. Malformed IDs never match."""
        if not ObjectId.is_valid(user_id):
            return None
        return self._find_one({"_id": ObjectId(user_id)})

    def ping(self) -> bool:
        """Return True if the server answers the ping command."""
        try:
            self._client.admin.command("ping")
        except PyMongoError:
            logger.warning("MongoDB ping failed", exc_info=True)
            return False
        return True

    def close(self) -> None:
        self._client.close()

    def _find_one(self, query: dict) -> User | None:
        try:
            doc = self._users.find_one(query)
        except PyMongoError as exc:
            raise StoreError(f"query failed: {exc}") from exc
        return _doc_to_user(doc) if doc is not None else None


# ---------------------------------------------------------------------------
# Document mapper
# ---------------------------------------------------------------------------


def _doc_to_user(doc: dict) -> User:
    created = doc.get("createdAt")
    if isinstance(created, datetime):
        # PyMongo hands back naive datetimes that are already UTC.
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        created_at = created.isoformat()
    else:
        created_at = None
    return User(
        id=str(doc["_id"]),
        email=doc["email"],
        password_hash=doc.get("password", ""),
        name=doc.get("name") or "",
        created_at=created_at,
    )
