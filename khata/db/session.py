from khata.core.config import settings
from khata.db.mongo import mongodb
from khata.repositories.debt_repo import MongoDebtStore


async def get_database():
    """Return the active database connection."""
    return mongodb.db


async def get_store() -> MongoDebtStore:
    """Return a debt store bound to the active database."""
    db = await get_database()
    return MongoDebtStore(db[settings.DEBTS_COLLECTION])
