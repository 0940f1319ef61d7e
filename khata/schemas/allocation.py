from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from khata.models.payment import Payment, PaymentMode, PaymentStatus
from khata.schemas.debt import PaymentResponse


class CollectRequest(BaseModel):
    """Request body for a quick collect (lump sum) from one owner."""
    amount: int
    date: Optional[datetime] = None
    receipts: List[str] = []
    notes: Optional[str] = None
    mode: PaymentMode = PaymentMode.UPI


class PreviewRequest(BaseModel):
    amount: int


class PlannedAllocation(BaseModel):
    debt_id: str
    date: datetime
    open_amount: int
    amount: int
    settles_debt: bool


class AllocationPlan(BaseModel):
    owner_id: str
    amount_requested: int
    amount_to_apply: int
    amount_unapplied: int
    allocations: List[PlannedAllocation] = []
    untouched_debt_ids: List[str] = []


class AppliedAllocation(BaseModel):
    debt_id: str
    amount: int
    payment: Payment
    payment_status: PaymentStatus


class AllocationResult(BaseModel):
    owner_id: str
    amount_requested: int
    amount_applied: int
    amount_unapplied: int
    allocations: List[AppliedAllocation] = []


class AppliedAllocationResponse(BaseModel):
    debt_id: str
    amount: int
    payment: PaymentResponse
    payment_status: PaymentStatus


class AllocationResponse(BaseModel):
    owner_id: str
    amount_requested: int
    amount_applied: int
    amount_unapplied: int
    allocations: List[AppliedAllocationResponse]

    @classmethod
    def from_result(cls, result: AllocationResult) -> "AllocationResponse":
        return cls(
            owner_id=result.owner_id,
            amount_requested=result.amount_requested,
            amount_applied=result.amount_applied,
            amount_unapplied=result.amount_unapplied,
            allocations=[
                AppliedAllocationResponse(
                    debt_id=item.debt_id,
                    amount=item.amount,
                    payment=PaymentResponse.from_payment(item.payment),
                    payment_status=item.payment_status
                )
                for item in result.allocations
            ]
        )
