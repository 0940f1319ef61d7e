import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from khata.core.config import settings

logger = logging.getLogger(__name__)


class MongoDatabase:
    """MongoDB connection manager."""
    
    client: AsyncIOMotorClient = None
    db: AsyncIOMotorDatabase = None

mongodb = MongoDatabase()

async def connect_to_mongo():
    """Connect to MongoDB."""
    mongodb.client = AsyncIOMotorClient(settings.MONGODB_URL, tz_aware=True)
    mongodb.db = mongodb.client[settings.DATABASE_NAME]
    
    await create_indexes()
    logger.info("Connected to MongoDB: %s", settings.DATABASE_NAME)

async def disconnect_from_mongo():
    """Disconnect from MongoDB."""
    if mongodb.client is not None:
        mongodb.client.close()
    logger.info("Disconnected from MongoDB")

async def create_indexes():
    """Create database indexes."""
    debts = mongodb.db[settings.DEBTS_COLLECTION]

    # Allocation walks an owner's debts oldest first
    await debts.create_index([("owner_id", 1), ("date", 1), ("created_at", 1)])

    # Dashboard rollups
    await debts.create_index([("owner_type", 1), ("payment_status", 1)])
