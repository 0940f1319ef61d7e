"""
ReportService - read-only rollups over debts.

Every amount goes through the normalizer, so legacy split records and
unified records add up the same way. Nothing here writes.
"""

from datetime import datetime
from typing import List, Optional

from khata.models.base import as_utc
from khata.models.debt import Debt, OwnerType
from khata.repositories.debt_repo import DebtStore
from khata.schemas.report import ActivityEntry, DebtAmounts, PersonTotals, Totals
from khata.services.debt_service import unwrap
from khata.utils.amounts import normalize_paid, normalize_total


def debt_amounts(debt: Debt) -> DebtAmounts:
    total = normalize_total(debt)
    paid = normalize_paid(debt)
    return DebtAmounts(total=total, paid=paid, pending=max(0, total - paid))


def _sum_amounts(debts: List[Debt]) -> Totals:
    totals = Totals()
    for debt in debts:
        amounts = debt_amounts(debt)
        totals.total += amounts.total
        totals.paid += amounts.paid
        totals.pending += amounts.pending
    return totals


class ReportService:
    def __init__(self, store: DebtStore):
        self.store = store

    debt_amounts = staticmethod(debt_amounts)

    async def person_totals(self, owner_id: str) -> PersonTotals:
        debts = unwrap(await self.store.list_debts(owner_id=owner_id))
        totals = _sum_amounts(debts)
        return PersonTotals(
            owner_id=owner_id,
            total=totals.total,
            paid=totals.paid,
            pending=totals.pending,
            transaction_count=len(debts)
        )

    async def global_totals(
        self,
        owner_type: Optional[OwnerType] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> Totals:
        """
        Totals over all debts, for the dashboard and reports.

        owner_type splits "owed to you" (customer) from "you owe" (supplier);
        start/end filter on the debt date, both inclusive.
        """
        debts = unwrap(await self.store.list_debts(owner_type=owner_type))
        start, end = as_utc(start), as_utc(end)
        if start is not None:
            debts = [debt for debt in debts if debt.date >= start]
        if end is not None:
            debts = [debt for debt in debts if debt.date <= end]
        return _sum_amounts(debts)

    async def owner_activity(self, owner_id: str) -> List[ActivityEntry]:
        """Debts and payments for one owner, interleaved oldest first."""
        debts = unwrap(await self.store.list_debts(owner_id=owner_id))
        entries = []
        for debt in debts:
            entries.append(ActivityEntry(
                kind="debt",
                debt_id=str(debt.id),
                owner_type=debt.owner_type,
                amount=normalize_total(debt),
                date=debt.date,
                notes=debt.notes
            ))
            for payment in debt.payments:
                entries.append(ActivityEntry(
                    kind="payment",
                    debt_id=str(debt.id),
                    payment_id=str(payment.payment_id),
                    owner_type=debt.owner_type,
                    amount=payment.amount,
                    date=payment.date,
                    notes=payment.notes,
                    is_final_payment=payment.is_final_payment
                ))
        # Stable: a debt stays ahead of payments made on the same instant
        entries.sort(key=lambda entry: entry.date)
        return entries
