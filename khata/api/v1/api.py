from fastapi import APIRouter
from khata.api.v1.endpoints import debts, payments, collections, reports

api_router = APIRouter()

api_router.include_router(debts.router, prefix="/debts", tags=["debts"])
api_router.include_router(payments.router, prefix="/debts", tags=["payments"])
api_router.include_router(collections.router, prefix="/owners", tags=["collections"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
