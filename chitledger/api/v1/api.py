from fastapi import APIRouter
from chitledger.api.v1.endpoints import (
    auth, users, funds, payments, groups, accounts, reports, transactions, notifications,
)

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(funds.router, prefix="/funds", tags=["funds"])
api_router.include_router(payments.router, prefix="/payments", tags=["payments"])
api_router.include_router(groups.router, prefix="/groups", tags=["groups"])
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(transactions.router, prefix="/transactions", tags=["transactions"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
