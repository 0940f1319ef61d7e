from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from khata.models.debt import OwnerType


class DebtAmounts(BaseModel):
    total: int
    paid: int
    pending: int


class Totals(BaseModel):
    total: int = 0
    paid: int = 0
    pending: int = 0


class PersonTotals(Totals):
    owner_id: str
    transaction_count: int = 0


class ActivityEntry(BaseModel):
    """One row of an owner's timeline: a debt or a payment against it."""
    kind: str  # "debt" | "payment"
    debt_id: str
    payment_id: Optional[str] = None
    owner_type: OwnerType
    amount: int
    date: datetime
    notes: Optional[str] = None
    is_final_payment: bool = False
