"""
Debt stores - persistence for debts and their embedded payments.

Every call returns a StoreResult instead of raising, so the services decide
how a failure surfaces:
- code "not_found": the debt id does not exist
- code "conflict": the debt's version moved since it was read
- no code: any other store failure
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from khata.models.debt import Debt, OwnerType

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"
CONFLICT = "conflict"


class StoreResult(BaseModel):
    success: bool
    data: Any = None
    error: Optional[str] = None
    code: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "StoreResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, code: Optional[str] = None) -> "StoreResult":
        return cls(success=False, error=error, code=code)


class DebtStore(ABC):
    """CRUD over debts. Payments live inside their debt document."""

    @abstractmethod
    async def insert_debt(self, debt: Debt) -> StoreResult:
        ...

    @abstractmethod
    async def get_debt(self, debt_id: str) -> StoreResult:
        ...

    @abstractmethod
    async def list_debts(
        self,
        owner_id: Optional[str] = None,
        owner_type: Optional[OwnerType] = None
    ) -> StoreResult:
        """Debts oldest first (date, created_at, id)."""
        ...

    @abstractmethod
    async def replace_debt(self, debt: Debt, expected_version: int) -> StoreResult:
        """Write debt only if the stored version still equals expected_version."""
        ...

    @abstractmethod
    async def delete_debt(self, debt_id: str) -> StoreResult:
        ...

    @abstractmethod
    async def delete_debts_for_owner(self, owner_id: str) -> StoreResult:
        ...


def next_revision(debt: Debt, expected_version: int) -> Debt:
    return debt.model_copy(update={
        "version": expected_version + 1,
        "updated_at": datetime.now(timezone.utc)
    })


def _owner_query(owner_id: Optional[str], owner_type: Optional[OwnerType]) -> dict:
    query = {}
    if owner_id is not None:
        query["owner_id"] = owner_id
    if owner_type is not None:
        query["owner_type"] = OwnerType(owner_type).value
    return query


class MongoDebtStore(DebtStore):
    """Debt store backed by a MongoDB collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def insert_debt(self, debt: Debt) -> StoreResult:
        try:
            await self.collection.insert_one(debt.to_document())
        except PyMongoError as exc:
            logger.error("insert_debt failed for %s: %s", debt.id, exc)
            return StoreResult.fail(str(exc))
        return StoreResult.ok(debt)

    async def get_debt(self, debt_id: str) -> StoreResult:
        if not ObjectId.is_valid(str(debt_id)):
            return StoreResult.fail("Debt not found", NOT_FOUND)
        try:
            doc = await self.collection.find_one({"_id": ObjectId(str(debt_id))})
        except PyMongoError as exc:
            logger.error("get_debt failed for %s: %s", debt_id, exc)
            return StoreResult.fail(str(exc))
        if not doc:
            return StoreResult.fail("Debt not found", NOT_FOUND)
        return StoreResult.ok(Debt(**doc))

    async def list_debts(
        self,
        owner_id: Optional[str] = None,
        owner_type: Optional[OwnerType] = None
    ) -> StoreResult:
        try:
            cursor = self.collection.find(_owner_query(owner_id, owner_type)).sort(
                [("date", 1), ("created_at", 1), ("_id", 1)]
            )
            docs = await cursor.to_list(None)
        except PyMongoError as exc:
            logger.error("list_debts failed for owner %s: %s", owner_id, exc)
            return StoreResult.fail(str(exc))
        return StoreResult.ok([Debt(**doc) for doc in docs])

    async def replace_debt(self, debt: Debt, expected_version: int) -> StoreResult:
        updated = next_revision(debt, expected_version)
        try:
            # Optimistic lock: only replace the version we read
            result = await self.collection.find_one_and_replace(
                {"_id": debt.id, "version": expected_version},
                updated.to_document(),
                return_document=ReturnDocument.AFTER
            )
            if result:
                return StoreResult.ok(Debt(**result))

            exists = await self.collection.count_documents({"_id": debt.id}, limit=1)
        except PyMongoError as exc:
            logger.error("replace_debt failed for %s: %s", debt.id, exc)
            return StoreResult.fail(str(exc))

        if exists:
            return StoreResult.fail(
                f"Version conflict: expected {expected_version}", CONFLICT
            )
        return StoreResult.fail("Debt not found", NOT_FOUND)

    async def delete_debt(self, debt_id: str) -> StoreResult:
        if not ObjectId.is_valid(str(debt_id)):
            return StoreResult.fail("Debt not found", NOT_FOUND)
        try:
            result = await self.collection.delete_one({"_id": ObjectId(str(debt_id))})
        except PyMongoError as exc:
            logger.error("delete_debt failed for %s: %s", debt_id, exc)
            return StoreResult.fail(str(exc))
        if result.deleted_count == 0:
            return StoreResult.fail("Debt not found", NOT_FOUND)
        return StoreResult.ok()

    async def delete_debts_for_owner(self, owner_id: str) -> StoreResult:
        try:
            result = await self.collection.delete_many({"owner_id": owner_id})
        except PyMongoError as exc:
            logger.error("delete_debts_for_owner failed for %s: %s", owner_id, exc)
            return StoreResult.fail(str(exc))
        return StoreResult.ok(result.deleted_count)
