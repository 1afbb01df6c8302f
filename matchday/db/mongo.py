import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from matchday.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""

    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]

    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def close_mongo_connection():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    # Pending charges per player, oldest first
    await mongodb.db["charges"].create_index(
        [("player_id", 1), ("status", 1), ("occurred_at", 1), ("_id", 1)]
    )
    await mongodb.db["charges"].create_index([("player_id", 1), ("scope", 1), ("status", 1)])
    await mongodb.db["charges"].create_index("match_id")

    await mongodb.db["matches"].create_index([("scope", 1), ("date", -1)])

def get_db() -> AsyncIOMotorDatabase:
    """Get database instance."""
    return mongodb.db
