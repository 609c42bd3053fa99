"""MongoDB-backed user directory."""

import logging
from datetime import datetime
from typing import Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.errors import DuplicateKeyError

from models.user import AuthProvider, UserInDB

logger = logging.getLogger(__name__)


class UserDirectoryError(Exception):
    """Base exception for user directory errors."""
    pass


class EmailAlreadyRegisteredError(UserDirectoryError):
    """Raised when creating a user whose email already exists."""
    pass


class MongoUserDirectory:
    """User records stored in a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def create_indexes(self) -> None:
        """Create the unique email index and the reset token lookup index."""
        await self.collection.create_index("email", unique=True)
        await self.collection.create_index("reset_password_token", sparse=True)

    async def find_by_email(self, email: str) -> Optional[UserInDB]:
        doc = await self.collection.find_one({"email": email})
        return UserInDB.from_document(doc) if doc else None

    async def find_by_id(self, user_id: str) -> Optional[UserInDB]:
        try:
            object_id = ObjectId(user_id)
        except (InvalidId, TypeError):
            return None
        doc = await self.collection.find_one({"_id": object_id})
        return UserInDB.from_document(doc) if doc else None

    async def find_by_reset_token(self, token: str) -> Optional[UserInDB]:
        """Find the user currently holding a reset token, expired or not."""
        if not token:
            return None
        doc = await self.collection.find_one({"reset_password_token": token})
        return UserInDB.from_document(doc) if doc else None

    async def create(
        self,
        name: Optional[str],
        email: str,
        password: Optional[str] = None,
        auth_provider: AuthProvider = AuthProvider.LOCAL
    ) -> UserInDB:
        user_doc = {
            "name": name,
            "email": email,
            "password": password,
            "auth_provider": auth_provider.value,
            "reset_password_token": None,
            "reset_password_token_expired": None,
            "created_at": datetime.utcnow()
        }
        try:
            result = await self.collection.insert_one(user_doc)
        except DuplicateKeyError as e:
            raise EmailAlreadyRegisteredError("Email already registered") from e

        user_doc["_id"] = result.inserted_id
        logger.info(f"Created {auth_provider.value} user {result.inserted_id}")
        return UserInDB.from_document(user_doc)

    async def update_password(self, user_id: str, hashed_password: str) -> None:
        await self.collection.update_one(
            {"_id": ObjectId(user_id)},
            {"$set": {"password": hashed_password}}
        )

    async def update_reset_token(
        self,
        user_id: str,
        token: Optional[str],
        expires_at: Optional[datetime]
    ) -> None:
        """Set or clear the reset token; a new token overwrites any previous one."""
        await self.collection.update_one(
            {"_id": ObjectId(user_id)},
            {"$set": {
                "reset_password_token": token,
                "reset_password_token_expired": expires_at
            }}
        )
