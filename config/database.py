"""Database configuration for async MongoDB connection using Motor."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from typing import Optional

from config.settings import settings


USERS_COLLECTION = "users"


class Database:
    """MongoDB database connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self, url: Optional[str] = None, name: Optional[str] = None) -> None:
        """Establish connection to MongoDB, defaulting to the configured server."""
        self.client = AsyncIOMotorClient(
            url or settings.MONGODB_URL,
            maxPoolSize=10,
            minPoolSize=1
        )
        self.db = self.client[name or settings.DATABASE_NAME]

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            self.db = None

    async def health_check(self) -> bool:
        """Check if database connection is healthy."""
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except Exception:
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """Get a specific collection from the database."""
        if self.db is None:
            raise RuntimeError("Database is not connected")
        return self.db[collection_name]

    def get_users_collection(self) -> AsyncIOMotorCollection:
        """Get the users collection."""
        return self.get_collection(USERS_COLLECTION)


database = Database()
