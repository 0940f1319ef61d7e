from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from khata.models.base import PyObjectId, _utcnow, as_utc


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMode(str, Enum):
    CASH = "cash"
    UPI = "upi"
    BANK = "bank"
    CHEQUE = "cheque"
    OTHER = "other"


# Embedded in Debt.payments, addressed only by payment_id within its debt
class Payment(BaseModel):
    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    payment_id: PyObjectId = Field(default_factory=PyObjectId)
    amount: int  # paise, > 0
    date: datetime = Field(default_factory=_utcnow)
    receipts: List[str] = []  # opaque attachment references
    notes: Optional[str] = None
    mode: PaymentMode = PaymentMode.UPI
    is_final_payment: bool = False

    @field_validator("date")
    @classmethod
    def _date_is_aware(cls, value: datetime) -> datetime:
        return as_utc(value)
