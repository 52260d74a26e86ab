from typing import Annotated
import uuid
from fastapi import APIRouter, Query

from chitledger.api.deps import AdminUser, StaffUser, SessionDep
from chitledger.schemas.report import (
    Gstr1Report, Gstr2bReport, Gstr3bReport, FinancialSummary, OverdueReport, CollectionStats, RevenueReport,
)
from chitledger.schemas.response import APIResponse
from chitledger.services import reports

router = APIRouter()

Year = Annotated[int, Query(ge=2000, le=2100)]
Month = Annotated[int, Query(ge=1, le=12)]

@router.get("/gst/gstr1", response_model=APIResponse[Gstr1Report])
async def get_gstr1(year: Year, month: Month, session: SessionDep, current_user: AdminUser):
    """
    GSTR-1: GST on commission from payouts made in the month.
    """
    data = await reports.gstr1(session, year, month)
    return APIResponse(message="GSTR-1 generated", data=data)

@router.get("/gst/gstr2b", response_model=APIResponse[Gstr2bReport])
async def get_gstr2b(year: Year, month: Month, session: SessionDep, current_user: AdminUser):
    """
    GSTR-2B: input tax credit from GST-eligible expenses in the month.
    """
    data = await reports.gstr2b(session, year, month)
    return APIResponse(message="GSTR-2B generated", data=data)

@router.get("/gst/gstr3b", response_model=APIResponse[Gstr3bReport])
async def get_gstr3b(year: Year, month: Month, session: SessionDep, current_user: AdminUser):
    data = await reports.gstr3b(session, year, month)
    return APIResponse(message="GSTR-3B generated", data=data)

@router.get("/summary", response_model=APIResponse[FinancialSummary])
async def get_financial_summary(session: SessionDep, current_user: AdminUser):
    data = await reports.financial_summary(session)
    return APIResponse(message="Financial summary retrieved", data=data)

@router.get("/overdue/{fund_id}", response_model=APIResponse[OverdueReport])
async def get_overdue_members(fund_id: uuid.UUID, session: SessionDep, current_user: StaffUser):
    """
    Members of a fund who have missed the current or the previous month.
    """
    data = await reports.payment_status(session, fund_id)
    return APIResponse(message="Payment status retrieved", data=data)

@router.get("/stats", response_model=APIResponse[CollectionStats])
async def get_collection_stats(session: SessionDep, current_user: StaffUser):
    data = await reports.collection_stats(session)
    return APIResponse(message="Collection stats retrieved", data=data)

@router.get("/revenue", response_model=APIResponse[RevenueReport])
async def get_monthly_revenue(
    year: Year,
    session: SessionDep,
    current_user: AdminUser,
    fund_id: uuid.UUID | None = None,
):
    """
    Instalments collected and payout commission for each month of a year.
    """
    data = await reports.monthly_revenue(session, year, fund_id)
    return APIResponse(message="Revenue retrieved", data=data)
