from typing import Annotated, List
import uuid
from fastapi import APIRouter, Depends
from sqlmodel import select

from chitledger.api import deps
from chitledger.api.deps import CurrentUser, StaffUser, SessionDep, ensure_self_or_staff
from chitledger.models.enums import PaymentType
from chitledger.models.payment import Payment
from chitledger.schemas.payment import PaymentCreate, PaymentRead, MemberPaymentHistory
from chitledger.schemas.response import APIResponse
from chitledger.services.ledger import get_fund_member, get_member_payments, record_payment
from chitledger.utils.financials import paid_total, unique_paid_months

router = APIRouter()

@router.post("/", response_model=APIResponse[PaymentRead], status_code=201)
async def create_payment(payment_in: PaymentCreate, session: SessionDep, current_user: StaffUser):
    """
    Record a monthly contribution.

    The member's receivable for the month is updated in the same
    transaction and the member is notified.
    """
    payment = await record_payment(session, payment_in, current_user)
    return APIResponse(message="Payment recorded successfully", data=payment)

@router.get("/user/{user_id}", response_model=APIResponse[List[PaymentRead]])
async def get_user_payments(
    user_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    pagination: Annotated[deps.PageParams, Depends()],
):
    """
    All payments of a user across funds, newest first.
    """
    ensure_self_or_staff(current_user, user_id)
    query = (
        select(Payment)
        .where(Payment.user_id == user_id)
        .order_by(Payment.payment_date.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    result = await session.execute(query)
    return APIResponse(message="Payments retrieved", data=result.scalars().all())

@router.get("/user/{user_id}/fund/{fund_id}", response_model=APIResponse[MemberPaymentHistory])
async def get_user_fund_payments(user_id: uuid.UUID, fund_id: uuid.UUID, session: SessionDep, current_user: CurrentUser):
    """
    A member's payments in one fund with the distinct months paid.

    Several payments for the same month count as one paid month.
    """
    ensure_self_or_staff(current_user, user_id)
    await get_fund_member(session, fund_id, user_id)
    payments = await get_member_payments(session, fund_id, user_id)
    monthly = [p for p in payments if p.payment_type == PaymentType.MONTHLY]
    months = sorted(unique_paid_months(monthly))

    history = MemberPaymentHistory(
        payments=payments,
        paid_months=months,
        months_paid=len(months),
        paid_amount=paid_total(monthly),
    )
    return APIResponse(message="Payments retrieved", data=history)
