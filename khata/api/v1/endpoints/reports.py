from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends

from khata.api.v1.errors import to_http_error
from khata.core.errors import LedgerError
from khata.db.session import get_store
from khata.models.debt import OwnerType
from khata.schemas.report import ActivityEntry, PersonTotals, Totals
from khata.services.report_service import ReportService

router = APIRouter()


@router.get("/owners/{owner_id}", response_model=PersonTotals)
async def person_totals(owner_id: str, store=Depends(get_store)):
    try:
        return await ReportService(store).person_totals(owner_id)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.get("/owners/{owner_id}/activity", response_model=List[ActivityEntry])
async def owner_activity(owner_id: str, store=Depends(get_store)):
    """Debts and payments for one owner, oldest first."""
    try:
        return await ReportService(store).owner_activity(owner_id)
    except LedgerError as exc:
        raise to_http_error(exc)


@router.get("/totals", response_model=Totals)
async def global_totals(
    owner_type: Optional[OwnerType] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    store=Depends(get_store)
):
    try:
        return await ReportService(store).global_totals(owner_type, start, end)
    except LedgerError as exc:
        raise to_http_error(exc)
