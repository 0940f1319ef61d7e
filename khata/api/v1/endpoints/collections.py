from fastapi import APIRouter, Depends

from khata.api.v1.errors import to_http_error
from khata.core.errors import LedgerError
from khata.db.session import get_store
from khata.schemas.allocation import (
    AllocationPlan,
    AllocationResponse,
    CollectRequest,
    PreviewRequest,
)
from khata.services.allocation_service import AllocationService
from khata.services.debt_service import DebtService

router = APIRouter()


@router.post("/{owner_id}/collect", response_model=AllocationResponse)
async def collect(owner_id: str, request: CollectRequest, store=Depends(get_store)):
    """Apply a lump sum to the owner's open debts, oldest first."""
    try:
        result = await AllocationService(store).collect(
            owner_id,
            request.amount,
            receipts=request.receipts,
            notes=request.notes,
            date=request.date,
            mode=request.mode
        )
    except LedgerError as exc:
        raise to_http_error(exc)
    return AllocationResponse.from_result(result)


@router.post("/{owner_id}/collect/preview", response_model=AllocationPlan)
async def preview_collect(owner_id: str, request: PreviewRequest, store=Depends(get_store)):
    """Show which debts a lump sum would settle, without recording anything."""
    try:
        return await AllocationService(store).preview(owner_id, request.amount)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.delete("/{owner_id}/debts")
async def delete_owner_debts(owner_id: str, store=Depends(get_store)):
    """Cascade for a removed customer or supplier."""
    try:
        deleted = await DebtService(store).delete_debts_for_owner(owner_id)
    except LedgerError as exc:
        raise to_http_error(exc)
    return {"deleted": deleted}
