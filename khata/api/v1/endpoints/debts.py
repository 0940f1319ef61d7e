from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from khata.api.v1.errors import to_http_error
from khata.core.errors import LedgerError
from khata.db.session import get_store
from khata.models.debt import OwnerType
from khata.models.payment import PaymentStatus
from khata.schemas.debt import DebtCreate, DebtResponse, DebtUpdate
from khata.services.debt_service import DebtService

router = APIRouter()


@router.post("/", response_model=DebtResponse, status_code=status.HTTP_201_CREATED)
async def create_debt(debt_in: DebtCreate, store=Depends(get_store)):
    """Add a credit (customer) or purchase (supplier)."""
    try:
        debt = await DebtService(store).create_debt(
            owner_id=debt_in.owner_id,
            total_amount=debt_in.total_amount,
            date=debt_in.date,
            owner_type=debt_in.owner_type,
            notes=debt_in.notes,
            attachments=debt_in.attachments,
            item_name=debt_in.item_name
        )
    except LedgerError as exc:
        raise to_http_error(exc)
    return DebtResponse.from_debt(debt)


@router.get("/", response_model=List[DebtResponse])
async def list_debts(
    owner_id: Optional[str] = None,
    owner_type: Optional[OwnerType] = None,
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    store=Depends(get_store)
):
    """List debts oldest first, optionally for one owner or status."""
    try:
        debts = await DebtService(store).list_debts(owner_id, owner_type, payment_status)
    except LedgerError as exc:
        raise to_http_error(exc)
    return [DebtResponse.from_debt(debt) for debt in debts]


@router.get("/{debt_id}", response_model=DebtResponse)
async def get_debt(debt_id: str, store=Depends(get_store)):
    try:
        debt = await DebtService(store).get_debt(debt_id)
    except LedgerError as exc:
        raise to_http_error(exc)
    return DebtResponse.from_debt(debt)


@router.patch("/{debt_id}", response_model=DebtResponse)
async def update_debt(debt_id: str, debt_in: DebtUpdate, store=Depends(get_store)):
    """Edit amount, date or notes. The total cannot go below what is paid."""
    try:
        debt = await DebtService(store).update_debt(debt_id, debt_in)
    except LedgerError as exc:
        raise to_http_error(exc)
    return DebtResponse.from_debt(debt)


@router.delete("/{debt_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_debt(debt_id: str, store=Depends(get_store)):
    """Delete a debt and all its payments."""
    try:
        await DebtService(store).delete_debt(debt_id)
    except LedgerError as exc:
        raise to_http_error(exc)
