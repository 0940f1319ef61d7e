"""Amount normalization for debts.

The only place that reads the legacy split fields (cash/online amounts and
paid aggregates). Everything else asks for a normalized total or paid sum.
"""
from typing import TYPE_CHECKING, List

from khata.models.payment import Payment, PaymentStatus

if TYPE_CHECKING:
    from khata.models.debt import Debt


LEGACY_OPENING_NOTE = "Opening balance carried over from legacy record"


def _split_sum(first, second):
    """Sum a legacy split pair, or None when neither half is recorded."""
    if first is None and second is None:
        return None
    return (first or 0) + (second or 0)


def sum_payments(payments: List[Payment]) -> int:
    return sum(payment.amount for payment in payments)


def normalize_total(debt: "Debt") -> int:
    if debt.total_amount is not None:
        return debt.total_amount
    split = _split_sum(debt.cash_amount, debt.online_amount)
    return split if split is not None else 0


def normalize_paid(debt: "Debt") -> int:
    """Legacy paid aggregates win over the payments list when present."""
    if debt.paid_amount is not None:
        return debt.paid_amount
    split = _split_sum(debt.paid_cash, debt.paid_online)
    if split is not None:
        return split
    return sum_payments(debt.payments)


def derive_status(total: int, paid: int) -> PaymentStatus:
    if paid <= 0:
        return PaymentStatus.PENDING
    if paid >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def flag_final_payment(payments: List[Payment], total: int) -> List[Payment]:
    """
    Recompute is_final_payment for the whole list.

    The flag goes to the payment at which the running sum first reaches
    the total; every other payment is cleared.
    """
    flagged = []
    running = 0
    final_seen = False
    for payment in payments:
        running += payment.amount
        is_final = not final_seen and total > 0 and running == total
        final_seen = final_seen or is_final
        flagged.append(payment.model_copy(update={"is_final_payment": is_final}))
    return flagged


def _fit_payments(payments: List[Payment], target: int) -> List[Payment]:
    """Keep payments oldest first until they sum to target; trim the rest."""
    kept = []
    running = 0
    for payment in payments:
        if running >= target:
            break
        amount = min(payment.amount, target - running)
        if amount != payment.amount:
            payment = payment.model_copy(update={"amount": amount})
        kept.append(payment)
        running += amount
    return kept


def migrate_legacy(debt: "Debt") -> "Debt":
    """
    Return a copy of a legacy debt in the unified shape.

    total_amount is fixed from the normalized total, and the payments are
    made to sum to the normalized paid amount (capped at the total), so a
    debt reads the same before and after its first write:
    - a legacy paid aggregate above the recorded payments adds an opening
      payment dated at the debt date
    - recorded payments above the aggregate are trimmed from the newest end
    Legacy fields are cleared and never written back.
    """
    if not debt.is_legacy() and debt.total_amount is not None:
        return debt

    total = normalize_total(debt)
    paid = min(normalize_paid(debt), total)
    payments = list(debt.payments)
    recorded = sum_payments(payments)
    if recorded < paid:
        payments.insert(0, Payment(amount=paid - recorded, date=debt.date, notes=LEGACY_OPENING_NOTE))
    elif recorded > paid:
        payments = _fit_payments(payments, paid)

    return debt.model_copy(update={
        "total_amount": total,
        "payments": flag_final_payment(payments, total),
        "cash_amount": None,
        "online_amount": None,
        "paid_amount": None,
        "paid_cash": None,
        "paid_online": None,
    })
