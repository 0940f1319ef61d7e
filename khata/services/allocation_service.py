"""
AllocationService - quick collect of one lump sum across an owner's debts.

Algorithm:
1. Fetch the owner's debts that still have something open
2. Order oldest first (date, then created_at, then id)
3. Give each debt min(amount left, its open amount) until the sum runs out
4. Record the payments one at a time, each awaited before the next

Receipts and notes go on the first payment of the batch only.

There is no cross-debt rollback: if a payment fails partway, earlier
payments stand and PartialAllocationError reports what was applied.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from khata.core.errors import LedgerError, NoPendingDebtError, PartialAllocationError
from khata.models.debt import Debt
from khata.models.payment import PaymentMode, PaymentStatus
from khata.repositories.debt_repo import DebtStore
from khata.schemas.allocation import (
    AllocationPlan,
    AllocationResult,
    AppliedAllocation,
    PlannedAllocation,
)
from khata.services.debt_service import unwrap
from khata.services.payment_service import PaymentService
from khata.utils.ledger_validation import validate_amount, validate_attachment_refs

logger = logging.getLogger(__name__)


def plan_allocation(owner_id: str, debts: List[Debt], amount: int) -> AllocationPlan:
    """Split amount across debts in the order given. Pure; writes nothing."""
    left = amount
    allocations = []
    untouched = []

    for debt in debts:
        open_amount = debt.open_amount()
        if open_amount <= 0:
            continue
        if left <= 0:
            untouched.append(str(debt.id))
            continue

        allocate = min(left, open_amount)
        allocations.append(PlannedAllocation(
            debt_id=str(debt.id),
            date=debt.date,
            open_amount=open_amount,
            amount=allocate,
            settles_debt=allocate == open_amount
        ))
        left -= allocate

    return AllocationPlan(
        owner_id=owner_id,
        amount_requested=amount,
        amount_to_apply=amount - left,
        amount_unapplied=left,
        allocations=allocations,
        untouched_debt_ids=untouched
    )


class AllocationService:
    """Distribute a collected amount oldest debt first."""

    def __init__(self, store: DebtStore, payments: Optional[PaymentService] = None):
        self.store = store
        self.payments = payments or PaymentService(store)

    async def open_debts(self, owner_id: str) -> List[Debt]:
        debts = unwrap(await self.store.list_debts(owner_id=owner_id))
        eligible = [debt for debt in debts if not debt.is_fully_paid() and debt.open_amount() > 0]
        return sorted(eligible, key=Debt.sort_key)

    async def preview(self, owner_id: str, amount: int) -> AllocationPlan:
        """What collect() would do for this amount, without writing."""
        validate_amount(amount, "Collected amount")
        debts = await self.open_debts(owner_id)
        if not debts:
            raise NoPendingDebtError(f"No pending debts for owner {owner_id}")
        return plan_allocation(owner_id, debts, amount)

    async def collect(
        self,
        owner_id: str,
        collected_amount: int,
        receipts: Iterable[str] = (),
        notes: Optional[str] = None,
        date: Optional[datetime] = None,
        mode: PaymentMode = PaymentMode.UPI
    ) -> AllocationResult:
        validate_amount(collected_amount, "Collected amount")
        receipts = validate_attachment_refs(receipts)

        debts = await self.open_debts(owner_id)
        if not debts:
            logger.warning("Collect of %s for %s rejected: no pending debts", collected_amount, owner_id)
            raise NoPendingDebtError(f"No pending debts for owner {owner_id}")

        plan = plan_allocation(owner_id, debts, collected_amount)
        date = date or datetime.now(timezone.utc)
        applied: List[AppliedAllocation] = []
        amount_applied = 0

        for line in plan.allocations:
            first = not applied
            try:
                payment = await self.payments.record_payment(
                    line.debt_id,
                    line.amount,
                    date=date,
                    receipts=receipts if first else (),
                    notes=notes if first else None,
                    mode=mode
                )
            except LedgerError as exc:
                logger.warning(
                    "Collect for %s stopped at debt %s after applying %s of %s: %s",
                    owner_id, line.debt_id, amount_applied, collected_amount, exc
                )
                raise PartialAllocationError(
                    f"Collected {amount_applied} of {collected_amount} before debt {line.debt_id} failed: {exc}",
                    amount_applied=amount_applied,
                    amount_remaining=collected_amount - amount_applied,
                    allocations=applied,
                    cause=exc
                ) from exc

            amount_applied += line.amount
            applied.append(AppliedAllocation(
                debt_id=line.debt_id,
                amount=line.amount,
                payment=payment,
                payment_status=(
                    PaymentStatus.PAID if payment.is_final_payment else PaymentStatus.PARTIAL
                )
            ))

        logger.info(
            "Collected %s for %s across %d debts (%s unapplied)",
            amount_applied, owner_id, len(applied), collected_amount - amount_applied
        )
        return AllocationResult(
            owner_id=owner_id,
            amount_requested=collected_amount,
            amount_applied=amount_applied,
            amount_unapplied=collected_amount - amount_applied,
            allocations=applied
        )
