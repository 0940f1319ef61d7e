import logging
from datetime import datetime
from typing import Iterable, List, Optional

from khata.core.errors import ConflictError, NotFoundError, StoreError, ValidationError
from khata.models.base import as_utc
from khata.models.debt import Debt, OwnerType
from khata.models.payment import PaymentStatus
from khata.repositories.debt_repo import CONFLICT, NOT_FOUND, DebtStore, StoreResult
from khata.schemas.debt import DebtUpdate
from khata.utils.amounts import derive_status, flag_final_payment, migrate_legacy, sum_payments
from khata.utils.ledger_validation import (
    validate_amount,
    validate_attachment_refs,
    validate_total_covers_paid,
)

logger = logging.getLogger(__name__)


def unwrap(result: StoreResult):
    """Turn a failed StoreResult into the matching ledger error."""
    if result.success:
        return result.data
    if result.code == NOT_FOUND:
        raise NotFoundError(result.error or "Not found")
    if result.code == CONFLICT:
        raise ConflictError(result.error or "Debt was changed by another request")
    raise StoreError(result.error or "Store request failed")


class DebtService:
    """Create, edit and delete debts. Payments go through PaymentService."""

    derive = staticmethod(derive_status)

    def __init__(self, store: DebtStore):
        self.store = store

    async def create_debt(
        self,
        owner_id: str,
        total_amount: int,
        date: Optional[datetime] = None,
        owner_type: OwnerType = OwnerType.CUSTOMER,
        notes: Optional[str] = None,
        attachments: Iterable[str] = (),
        item_name: Optional[str] = None
    ) -> Debt:
        if not owner_id:
            raise ValidationError("Debt must belong to an owner")
        validate_amount(total_amount, "Total amount")
        attachments = validate_attachment_refs(attachments)

        fields = {
            "owner_id": owner_id,
            "owner_type": owner_type,
            "total_amount": total_amount,
            "notes": notes,
            "attachments": attachments,
            "item_name": item_name
        }
        if date is not None:
            fields["date"] = date

        debt = unwrap(await self.store.insert_debt(Debt(**fields)))
        logger.info("Created debt %s for %s %s: %s", debt.id, debt.owner_type, owner_id, total_amount)
        return debt

    async def get_debt(self, debt_id: str) -> Debt:
        return unwrap(await self.store.get_debt(debt_id))

    async def list_debts(
        self,
        owner_id: Optional[str] = None,
        owner_type: Optional[OwnerType] = None,
        status: Optional[PaymentStatus] = None
    ) -> List[Debt]:
        debts = unwrap(await self.store.list_debts(owner_id=owner_id, owner_type=owner_type))
        if status is not None:
            debts = [debt for debt in debts if debt.payment_status == status]
        return debts

    async def update_debt(self, debt_id: str, update: DebtUpdate) -> Debt:
        """
        Edit total, date or metadata.

        A total below what has already been paid is rejected, not clamped.
        """
        existing = await self.get_debt(debt_id)
        debt = migrate_legacy(existing)
        changes = update.model_dump(exclude_unset=True)

        total = debt.total_amount
        if "total_amount" in changes and changes["total_amount"] is not None:
            total = changes["total_amount"]
            validate_amount(total, "Total amount")
            validate_total_covers_paid(total, sum_payments(debt.payments))
        if changes.get("attachments") is not None:
            changes["attachments"] = validate_attachment_refs(changes["attachments"])

        # None means "leave alone" for everything except notes/item_name
        changes = {
            key: value for key, value in changes.items()
            if value is not None or key in ("notes", "item_name")
        }
        if "date" in changes:
            changes["date"] = as_utc(changes["date"])
        changes["total_amount"] = total
        changes["payments"] = flag_final_payment(debt.payments, total)

        updated = unwrap(await self.store.replace_debt(
            debt.model_copy(update=changes), existing.version
        ))
        logger.info("Updated debt %s: %s", debt_id, sorted(changes))
        return updated

    async def delete_debt(self, debt_id: str) -> None:
        """Delete a debt and every payment recorded against it."""
        unwrap(await self.store.delete_debt(debt_id))
        logger.info("Deleted debt %s", debt_id)

    async def delete_debts_for_owner(self, owner_id: str) -> int:
        """Cascade for a deleted customer or supplier."""
        count = unwrap(await self.store.delete_debts_for_owner(owner_id))
        logger.info("Deleted %d debts for owner %s", count, owner_id)
        return count
