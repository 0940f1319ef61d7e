"""
Debt model - one customer credit ("udhar") or supplier purchase.

Design principles:
- Payments are embedded; a debt and its payments are read and written together
- payment_status is derived from the payments on every read; the stored copy
  is only a query cache and is ignored on load
- Legacy split amounts (cash/online) are read only through khata.utils.amounts
- All amounts in integer paise
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, computed_field, field_validator

from khata.models.base import MongoModel, _utcnow, as_utc
from khata.models.payment import Payment, PaymentStatus
from khata.utils.amounts import derive_status, normalize_paid, normalize_total


class OwnerType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


LEGACY_FIELDS = ("cash_amount", "online_amount", "paid_amount", "paid_cash", "paid_online")


class Debt(MongoModel):
    """
    Money owed between the shop and one owner (customer or supplier).

    Invariants:
    - 0 <= sum(payments.amount) <= total_amount
    - payment_status == derive_status(total, paid)
    - at most one payment has is_final_payment set
    """
    owner_id: str
    owner_type: OwnerType = OwnerType.CUSTOMER

    total_amount: Optional[int] = None  # None only on legacy documents
    date: datetime = Field(default_factory=_utcnow)
    payments: List[Payment] = []

    notes: Optional[str] = None
    attachments: List[str] = []
    item_name: Optional[str] = None

    version: int = 1

    # Legacy split amounts
    cash_amount: Optional[int] = None
    online_amount: Optional[int] = None
    paid_amount: Optional[int] = None
    paid_cash: Optional[int] = None
    paid_online: Optional[int] = None

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def _dates_are_aware(cls, value: datetime) -> datetime:
        return as_utc(value)

    @computed_field
    @property
    def payment_status(self) -> PaymentStatus:
        return derive_status(normalize_total(self), normalize_paid(self))

    def open_amount(self) -> int:
        """How much remains unpaid."""
        return max(0, normalize_total(self) - normalize_paid(self))

    def is_fully_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def is_legacy(self) -> bool:
        return any(getattr(self, name) is not None for name in LEGACY_FIELDS)

    def find_payment(self, payment_id: str) -> Optional[Payment]:
        for payment in self.payments:
            if str(payment.payment_id) == str(payment_id):
                return payment
        return None

    def sort_key(self) -> tuple:
        """Oldest first; created_at then id break ties on the same date."""
        return (self.date, self.created_at, str(self.id))

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
