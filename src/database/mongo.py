from motor.motor_asyncio import AsyncIOMotorClient
from motor.motor_asyncio import AsyncIOMotorDatabase
from motor.motor_asyncio import AsyncIOMotorCollection
from typing import Optional
import logging

from src.config import MONGO_DATABASE, get_mongodb_uri

logger = logging.getLogger(__name__)


class AsyncMongoDBManager:
    """Owns one MongoDB client; the application lifespan connects and closes it."""

    def __init__(self, connection_string: Optional[str] = None):
        self.connection_string = connection_string or get_mongodb_uri()
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> AsyncIOMotorDatabase:
        """Connect to MongoDB and return the database instance."""
        try:
            self.client = AsyncIOMotorClient(self.connection_string)
            # Test the connection
            await self.client.admin.command("ping")

            self.database = self.client.get_default_database(MONGO_DATABASE)
            return self.database

        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """Get a collection from the database."""
        if self.database is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.database[collection_name]

    async def close(self):
        """Close the MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            self.database = None
            logger.info("MongoDB connection closed")
