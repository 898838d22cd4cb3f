"""MongoDB database operations for users and their tasks."""

import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from .models import User, normalize_email

logger = logging.getLogger(__name__)


class UserExistsError(Exception):
    """Raised when inserting a user whose email is already registered."""


class UserDatabase:
    """Async MongoDB operations for user documents.

    Each user is one document holding the password hash and the full task
    list. Updates replace the whole document with no version check, so
    concurrent writers to the same user race and the last write wins.
    """

    def __init__(self, mongodb_uri: str, database_name: str = "tasker"):
        """Initialize database connection."""
        self._client: Optional[AsyncIOMotorClient] = None
        self._db: Optional[AsyncIOMotorDatabase] = None
        self._mongodb_uri = mongodb_uri
        self._database_name = database_name

    async def connect(self) -> None:
        """Connect to MongoDB."""
        self._client = AsyncIOMotorClient(self._mongodb_uri, tz_aware=True)
        self._db = self._client[self._database_name]
        # Create index on email for fast lookups
        await self._db.users.create_index("email", unique=True)

    async def close(self) -> None:
        """Close MongoDB connection."""
        if self._client:
            self._client.close()
            self._client = None
            self._db = None

    @property
    def users(self):
        """Get users collection."""
        if self._db is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._db.users

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        doc = await self.users.find_one({"email": normalize_email(email)})
        if doc:
            doc.pop("_id", None)
            return User(**doc)
        return None

    async def list_users(self) -> list[User]:
        """Get every user with their full task list.

        Documents that fail validation are logged and skipped.
        """
        cursor = self.users.find({})
        users = []
        async for doc in cursor:
            doc.pop("_id", None)
            try:
                users.append(User(**doc))
            except ValidationError as e:
                logger.warning(f"Skipping invalid user document {doc.get('email')!r}: {e}")
        return users

    async def insert_user(self, user: User) -> None:
        """Insert a new user. Raises UserExistsError on a duplicate email."""
        doc = user.model_dump()
        doc["email"] = normalize_email(doc["email"])
        try:
            await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            raise UserExistsError(doc["email"]) from e

    async def replace_user(self, user: User) -> bool:
        """Replace the whole user document. Returns True if user existed."""
        doc = user.model_dump()
        doc["email"] = normalize_email(doc["email"])
        result = await self.users.replace_one({"email": doc["email"]}, doc)
        return result.matched_count > 0

    async def update_password(self, email: str, password_hash: str) -> bool:
        """Replace the stored password hash. Returns True if user existed."""
        email = normalize_email(email)
        result = await self.users.update_one(
            {"email": email},
            {"$set": {"password": password_hash}},
        )
        return result.matched_count > 0

    async def delete_user(self, email: str) -> bool:
        """Delete a user. Returns True if deleted."""
        email = normalize_email(email)
        result = await self.users.delete_one({"email": email})
        return result.deleted_count > 0
