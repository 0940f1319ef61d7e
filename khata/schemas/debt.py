from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from khata.models.debt import Debt, OwnerType
from khata.models.payment import Payment, PaymentMode, PaymentStatus
from khata.utils.amounts import normalize_paid, normalize_total


class DebtCreate(BaseModel):
    """Request body to add a credit or purchase."""
    owner_id: str
    owner_type: OwnerType = OwnerType.CUSTOMER
    total_amount: int
    date: Optional[datetime] = None
    notes: Optional[str] = None
    attachments: List[str] = []
    item_name: Optional[str] = None


class DebtUpdate(BaseModel):
    """Editable debt fields; unset fields are left alone."""
    total_amount: Optional[int] = None
    date: Optional[datetime] = None
    notes: Optional[str] = None
    attachments: Optional[List[str]] = None
    item_name: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: int
    date: Optional[datetime] = None
    receipts: List[str] = []
    notes: Optional[str] = None
    mode: PaymentMode = PaymentMode.UPI


class PaymentUpdate(BaseModel):
    amount: Optional[int] = None
    date: Optional[datetime] = None
    receipts: Optional[List[str]] = None
    notes: Optional[str] = None
    mode: Optional[PaymentMode] = None


class MarkPaidRequest(BaseModel):
    date: Optional[datetime] = None
    receipts: List[str] = []
    mode: PaymentMode = PaymentMode.UPI


class PaymentResponse(BaseModel):
    payment_id: str
    amount: int
    date: datetime
    receipts: List[str]
    notes: Optional[str] = None
    mode: PaymentMode
    is_final_payment: bool

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        return cls.model_validate(payment.model_dump(mode="json"))


class DebtResponse(BaseModel):
    """Debt with normalized amounts; legacy fields never leave the service."""
    id: str
    owner_id: str
    owner_type: OwnerType
    total_amount: int
    paid_amount: int
    pending_amount: int
    payment_status: PaymentStatus
    date: datetime
    payments: List[PaymentResponse]
    notes: Optional[str] = None
    attachments: List[str]
    item_name: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def from_debt(cls, debt: Debt) -> "DebtResponse":
        total = normalize_total(debt)
        paid = normalize_paid(debt)
        return cls(
            id=str(debt.id),
            owner_id=debt.owner_id,
            owner_type=debt.owner_type,
            total_amount=total,
            paid_amount=paid,
            pending_amount=max(0, total - paid),
            payment_status=debt.payment_status,
            date=debt.date,
            payments=[PaymentResponse.from_payment(p) for p in debt.payments],
            notes=debt.notes,
            attachments=debt.attachments,
            item_name=debt.item_name,
            version=debt.version,
            created_at=debt.created_at,
            updated_at=debt.updated_at
        )
