import copy
from typing import Dict, Optional

from khata.models.debt import Debt, OwnerType
from khata.repositories.debt_repo import (
    CONFLICT,
    NOT_FOUND,
    DebtStore,
    StoreResult,
    next_revision,
)


class InMemoryDebtStore(DebtStore):
    """
    Debt store keeping documents in a dict.

    Documents are copied in and out, so callers never share state with the
    store, the same as a round trip through MongoDB.
    """

    def __init__(self):
        self.documents: Dict[str, dict] = {}

    def _load(self, doc: dict) -> Debt:
        return Debt(**copy.deepcopy(doc))

    async def insert_debt(self, debt: Debt) -> StoreResult:
        key = str(debt.id)
        if key in self.documents:
            return StoreResult.fail(f"Duplicate debt id {key}")
        self.documents[key] = copy.deepcopy(debt.to_document())
        return StoreResult.ok(self._load(self.documents[key]))

    async def get_debt(self, debt_id: str) -> StoreResult:
        doc = self.documents.get(str(debt_id))
        if doc is None:
            return StoreResult.fail("Debt not found", NOT_FOUND)
        return StoreResult.ok(self._load(doc))

    async def list_debts(
        self,
        owner_id: Optional[str] = None,
        owner_type: Optional[OwnerType] = None
    ) -> StoreResult:
        debts = [self._load(doc) for doc in self.documents.values()]
        if owner_id is not None:
            debts = [d for d in debts if d.owner_id == owner_id]
        if owner_type is not None:
            debts = [d for d in debts if d.owner_type == OwnerType(owner_type)]
        return StoreResult.ok(sorted(debts, key=Debt.sort_key))

    async def replace_debt(self, debt: Debt, expected_version: int) -> StoreResult:
        key = str(debt.id)
        current = self.documents.get(key)
        if current is None:
            return StoreResult.fail("Debt not found", NOT_FOUND)
        if current.get("version", 1) != expected_version:
            return StoreResult.fail(f"Version conflict: expected {expected_version}", CONFLICT)

        self.documents[key] = copy.deepcopy(next_revision(debt, expected_version).to_document())
        return StoreResult.ok(self._load(self.documents[key]))

    async def delete_debt(self, debt_id: str) -> StoreResult:
        if self.documents.pop(str(debt_id), None) is None:
            return StoreResult.fail("Debt not found", NOT_FOUND)
        return StoreResult.ok()

    async def delete_debts_for_owner(self, owner_id: str) -> StoreResult:
        keys = [key for key, doc in self.documents.items() if doc.get("owner_id") == owner_id]
        for key in keys:
            del self.documents[key]
        return StoreResult.ok(len(keys))
