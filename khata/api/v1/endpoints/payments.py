from fastapi import APIRouter, Depends, status

from khata.api.v1.errors import to_http_error
from khata.core.errors import LedgerError
from khata.db.session import get_store
from khata.schemas.debt import (
    DebtResponse,
    MarkPaidRequest,
    PaymentCreate,
    PaymentResponse,
    PaymentUpdate,
)
from khata.services.payment_service import PaymentService

router = APIRouter()


@router.post("/{debt_id}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(debt_id: str, payment_in: PaymentCreate, store=Depends(get_store)):
    """Record a deposit against one debt."""
    try:
        payment = await PaymentService(store).record_payment(
            debt_id,
            payment_in.amount,
            date=payment_in.date,
            receipts=payment_in.receipts,
            notes=payment_in.notes,
            mode=payment_in.mode
        )
    except LedgerError as exc:
        raise to_http_error(exc)
    return PaymentResponse.from_payment(payment)


@router.post("/{debt_id}/pay-full", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def mark_fully_paid(debt_id: str, request: MarkPaidRequest, store=Depends(get_store)):
    """Settle whatever remains on the debt."""
    try:
        payment = await PaymentService(store).mark_fully_paid(
            debt_id,
            receipts=request.receipts,
            date=request.date,
            mode=request.mode
        )
    except LedgerError as exc:
        raise to_http_error(exc)
    return PaymentResponse.from_payment(payment)


@router.patch("/{debt_id}/payments/{payment_id}", response_model=PaymentResponse)
async def edit_payment(
    debt_id: str,
    payment_id: str,
    payment_in: PaymentUpdate,
    store=Depends(get_store)
):
    try:
        payment = await PaymentService(store).edit_payment(debt_id, payment_id, payment_in)
    except LedgerError as exc:
        raise to_http_error(exc)
    return PaymentResponse.from_payment(payment)


@router.delete("/{debt_id}/payments/{payment_id}", response_model=DebtResponse)
async def delete_payment(debt_id: str, payment_id: str, store=Depends(get_store)):
    """Remove a payment; returns the debt with its status re-derived."""
    try:
        debt = await PaymentService(store).delete_payment(debt_id, payment_id)
    except LedgerError as exc:
        raise to_http_error(exc)
    return DebtResponse.from_debt(debt)
