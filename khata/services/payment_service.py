"""
PaymentService - payments recorded against a single debt.

Every mutation follows the same steps:
1. Read the debt (migrating legacy amounts into the unified shape)
2. Validate against the freshly read payments list
3. Recompute final-payment flags from the whole list
4. Replace the debt only if its version is still the one read

Paid sum and status are always derived from the payments list, never
adjusted incrementally.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from khata.core.errors import NotFoundError, ValidationError
from khata.models.base import as_utc
from khata.models.debt import Debt
from khata.models.payment import Payment, PaymentMode
from khata.repositories.debt_repo import DebtStore
from khata.schemas.debt import PaymentUpdate
from khata.services.debt_service import unwrap
from khata.utils.amounts import flag_final_payment, migrate_legacy, sum_payments
from khata.utils.ledger_validation import (
    validate_amount,
    validate_attachment_refs,
    validate_fits_remaining,
)

logger = logging.getLogger(__name__)


class PaymentService:
    """Record, edit and delete payments on one debt."""

    def __init__(self, store: DebtStore):
        self.store = store

    async def _load(self, debt_id: str) -> Tuple[Debt, int]:
        """Return the debt in unified shape plus the version it was read at."""
        debt = unwrap(await self.store.get_debt(debt_id))
        return migrate_legacy(debt), debt.version

    async def _save(self, debt: Debt, payments: List[Payment], version: int) -> Debt:
        flagged = flag_final_payment(payments, debt.total_amount)
        return unwrap(await self.store.replace_debt(
            debt.model_copy(update={"payments": flagged}), version
        ))

    @staticmethod
    def _find(debt: Debt, payment_id) -> Payment:
        payment = debt.find_payment(payment_id)
        if payment is None:
            raise NotFoundError(f"Payment {payment_id} not found on debt {debt.id}")
        return payment

    async def record_payment(
        self,
        debt_id: str,
        amount: int,
        date: Optional[datetime] = None,
        receipts: Iterable[str] = (),
        notes: Optional[str] = None,
        mode: PaymentMode = PaymentMode.UPI
    ) -> Payment:
        """
        Append a payment of 0 < amount <= remaining.

        Raises ValidationError (nothing written) when the amount does not fit.
        """
        debt, version = await self._load(debt_id)
        remaining = debt.total_amount - sum_payments(debt.payments)
        try:
            validate_fits_remaining(amount, remaining)
        except ValidationError:
            logger.warning("Rejected payment of %s on debt %s (remaining %s)", amount, debt_id, remaining)
            raise
        receipts = validate_attachment_refs(receipts)

        payment = Payment(
            amount=amount,
            date=date or datetime.now(timezone.utc),
            receipts=receipts,
            notes=notes,
            mode=mode
        )
        saved = await self._save(debt, debt.payments + [payment], version)
        logger.info(
            "Recorded payment %s of %s on debt %s (%s)",
            payment.payment_id, amount, debt_id, saved.payment_status.value
        )
        return self._find(saved, payment.payment_id)

    async def mark_fully_paid(
        self,
        debt_id: str,
        receipts: Iterable[str] = (),
        date: Optional[datetime] = None,
        mode: PaymentMode = PaymentMode.UPI
    ) -> Payment:
        """Record whatever remains as the final payment."""
        debt, _ = await self._load(debt_id)
        remaining = debt.total_amount - sum_payments(debt.payments)
        if remaining <= 0:
            raise ValidationError(f"Nothing left to pay on debt {debt_id}")

        return await self.record_payment(debt_id, remaining, date=date, receipts=receipts, mode=mode)

    async def edit_payment(self, debt_id: str, payment_id: str, update: PaymentUpdate) -> Payment:
        """Edit one payment; final flags are recomputed for the whole list."""
        debt, version = await self._load(debt_id)
        current = self._find(debt, payment_id)
        changes = update.model_dump(exclude_unset=True)

        if changes.get("amount") is not None:
            new_amount = changes["amount"]
            validate_amount(new_amount, "Payment amount")
            others = sum(p.amount for p in debt.payments if p.payment_id != current.payment_id)
            if others + new_amount > debt.total_amount:
                logger.warning("Rejected edit of payment %s on debt %s to %s", payment_id, debt_id, new_amount)
                raise ValidationError(
                    f"Payment amount {new_amount} exceeds remaining balance {debt.total_amount - others}"
                )
        if changes.get("receipts") is not None:
            changes["receipts"] = validate_attachment_refs(changes["receipts"])
        if changes.get("date") is not None:
            changes["date"] = as_utc(changes["date"])

        changes = {key: value for key, value in changes.items() if value is not None or key == "notes"}
        edited = current.model_copy(update=changes)
        payments = [edited if p.payment_id == current.payment_id else p for p in debt.payments]

        saved = await self._save(debt, payments, version)
        logger.info("Edited payment %s on debt %s: %s", payment_id, debt_id, sorted(changes))
        return self._find(saved, current.payment_id)

    async def delete_payment(self, debt_id: str, payment_id: str) -> Debt:
        """Remove a payment; status is re-derived from the remaining payments only."""
        debt, version = await self._load(debt_id)
        current = self._find(debt, payment_id)
        remaining_payments = [p for p in debt.payments if p.payment_id != current.payment_id]

        saved = await self._save(debt, remaining_payments, version)
        logger.info(
            "Deleted payment %s from debt %s (%s)",
            payment_id, debt_id, saved.payment_status.value
        )
        return saved
