from fastapi import HTTPException, status

from khata.core.errors import (
    ConflictError,
    LedgerError,
    NoPendingDebtError,
    NotFoundError,
    PartialAllocationError,
    ValidationError,
)


def to_http_error(exc: LedgerError) -> HTTPException:
    """Map a ledger error onto the HTTP status the UI expects."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (ValidationError, NoPendingDebtError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, PartialAllocationError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": str(exc),
                "amount_applied": exc.amount_applied,
                "amount_remaining": exc.amount_remaining,
                "debt_ids": [item.debt_id for item in exc.allocations]
            }
        )
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
