from typing import Annotated, Any, List
import uuid
import logging
from collections import defaultdict
from fastapi import APIRouter, HTTPException, Query
from sqlmodel import select

from chitledger.api.deps import CurrentUser, AdminUser, StaffUser, SessionDep, ensure_self_or_staff
from chitledger.core.config import settings
from chitledger.models.enums import FundStatus, PaymentType, UserRole
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.payment import Payment
from chitledger.models.user import User
from chitledger.schemas.fund import (
    FundCreate, FundRead, FundUpdate, FundMemberRead, FundMemberDetails,
    ContributionOverride, ContributionOverrideRead, WithdrawalStatusUpdate,
    PayoutRequest, PayoutQuoteRead, PayoutRead,
    FundPaymentSheet, SheetMember, SheetPayment,
)
from chitledger.schemas.response import APIResponse
from chitledger.services.ledger import get_fund, get_fund_member, get_member_payments, has_withdrawal_payable
from chitledger.services.payouts import check_withdrawal_month, get_payout_quote, process_payout
from chitledger.utils.financials import (
    add_months, contribution_bonus, default_commission, effective_fund_amount, effective_monthly_contribution,
    expected_bonus, monthly_payment, paid_total, unique_paid_months,
)

router = APIRouter()
logger = logging.getLogger(__name__)

def _ensure_active(fund: ChitFund) -> None:
    if fund.status != FundStatus.ACTIVE:
        raise HTTPException(status_code=409, detail="Fund is closed")

async def _member_read(session: SessionDep, member: FundMember) -> FundMemberRead:
    user = await session.get(User, member.user_id)
    return FundMemberRead(**member.model_dump(), full_name=user.full_name, username=user.username)

async def _has_payments(session: SessionDep, fund_id: uuid.UUID, user_id: uuid.UUID | None = None) -> bool:
    query = select(Payment.id).where(Payment.fund_id == fund_id)
    if user_id:
        query = query.where(Payment.user_id == user_id)
    result = await session.execute(query.limit(1))
    return result.first() is not None

@router.post("/", response_model=APIResponse[FundRead], status_code=201)
async def create_fund(*, session: SessionDep, fund_in: FundCreate, current_user: AdminUser) -> Any:
    """
    Create a new chit fund.

    Duration, end date, commission, monthly contribution and monthly bonus
    are derived from the amount when not given.
    """
    duration = fund_in.duration or settings.FUND_DURATION_MONTHS
    contribution = fund_in.monthly_contribution or monthly_payment(fund_in.amount)

    fund = ChitFund.model_validate(
        fund_in,
        update={
            "duration": duration,
            "end_date": fund_in.end_date or add_months(fund_in.start_date, duration - 1),
            "base_commission": fund_in.base_commission if fund_in.base_commission is not None else default_commission(fund_in.amount),
            "monthly_contribution": contribution,
            "monthly_bonus": fund_in.monthly_bonus if fund_in.monthly_bonus is not None else contribution_bonus(contribution),
        }
    )
    session.add(fund)
    await session.commit()
    await session.refresh(fund)
    logger.info(f"Created fund {fund.id} '{fund.name}' of {fund.amount} over {fund.duration} months")
    return APIResponse(message="Fund created successfully", data=fund)

@router.get("/", response_model=APIResponse[List[FundRead]])
async def list_funds(
    session: SessionDep,
    current_user: CurrentUser,
    status: FundStatus | None = None,
) -> Any:
    """
    List funds. Members only see the funds they belong to.
    """
    query = select(ChitFund)
    if current_user.role == UserRole.MEMBER:
        query = query.join(FundMember, FundMember.fund_id == ChitFund.id).where(FundMember.user_id == current_user.id)
    if status:
        query = query.where(ChitFund.status == status)
    result = await session.execute(query.order_by(ChitFund.start_date.desc()))
    return APIResponse(message="Funds retrieved", data=result.scalars().all())

@router.get("/{fund_id}", response_model=APIResponse[FundRead])
async def get_fund_by_id(session: SessionDep, fund_id: uuid.UUID, current_user: CurrentUser) -> Any:
    fund = await get_fund(session, fund_id)
    if current_user.role == UserRole.MEMBER and not await session.get(FundMember, (fund_id, current_user.id)):
        raise HTTPException(status_code=403, detail="Not a member of this fund")
    return APIResponse(message="Fund details retrieved", data=fund)

@router.patch("/{fund_id}", response_model=APIResponse[FundRead])
async def update_fund(*, session: SessionDep, fund_id: uuid.UUID, fund_in: FundUpdate, current_user: AdminUser) -> Any:
    """
    Update fund details. The amount is fixed at creation and closed funds
    cannot be changed.
    """
    fund = await get_fund(session, fund_id)
    _ensure_active(fund)

    for field, value in fund_in.model_dump(exclude_unset=True).items():
        setattr(fund, field, value)

    session.add(fund)
    await session.commit()
    await session.refresh(fund)
    return APIResponse(message="Fund updated", data=fund)

@router.post("/{fund_id}/close", response_model=APIResponse[FundRead])
async def close_fund(session: SessionDep, fund_id: uuid.UUID, current_user: AdminUser) -> Any:
    fund = await get_fund(session, fund_id)
    _ensure_active(fund)

    fund.status = FundStatus.CLOSED
    session.add(fund)
    await session.commit()
    await session.refresh(fund)
    logger.info(f"Fund {fund.id} closed by {current_user.username}")
    return APIResponse(message="Fund closed", data=fund)

@router.delete("/{fund_id}", response_model=APIResponse[dict])
async def delete_fund(session: SessionDep, fund_id: uuid.UUID, current_user: AdminUser) -> Any:
    """
    Delete a fund that has no recorded payments.
    """
    fund = await get_fund(session, fund_id)
    if await _has_payments(session, fund_id):
        raise HTTPException(status_code=409, detail="Fund has recorded payments and cannot be deleted")

    members = await session.execute(select(FundMember).where(FundMember.fund_id == fund_id))
    for member in members.scalars().all():
        await session.delete(member)
    await session.delete(fund)
    await session.commit()
    logger.info(f"Fund {fund_id} deleted by {current_user.username}")
    return APIResponse(message="Fund deleted", data={"fund_id": fund_id})

# Membership

@router.post("/{fund_id}/members/{user_id}", response_model=APIResponse[FundMemberRead], status_code=201)
async def add_fund_member(session: SessionDep, fund_id: uuid.UUID, user_id: uuid.UUID, current_user: AdminUser) -> Any:
    fund = await get_fund(session, fund_id)
    _ensure_active(fund)

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if await session.get(FundMember, (fund_id, user_id)):
        raise HTTPException(status_code=400, detail="User is already a member of this fund")

    member = FundMember(fund_id=fund_id, user_id=user_id)
    session.add(member)
    await session.commit()
    await session.refresh(member)
    return APIResponse(message="Member added to fund", data=await _member_read(session, member))

@router.delete("/{fund_id}/members/{user_id}", response_model=APIResponse[dict])
async def remove_fund_member(session: SessionDep, fund_id: uuid.UUID, user_id: uuid.UUID, current_user: AdminUser) -> Any:
    """
    Remove a member. Members with recorded payments stay on the fund.
    """
    member = await get_fund_member(session, fund_id, user_id)
    if await _has_payments(session, fund_id, user_id):
        raise HTTPException(status_code=409, detail="Member has recorded payments and cannot be removed")

    await session.delete(member)
    await session.commit()
    return APIResponse(message="Member removed from fund", data={"fund_id": fund_id, "user_id": user_id})

@router.get("/{fund_id}/members", response_model=APIResponse[List[FundMemberRead]])
async def list_fund_members(session: SessionDep, fund_id: uuid.UUID, current_user: StaffUser) -> Any:
    await get_fund(session, fund_id)
    query = (
        select(FundMember, User)
        .join(User, User.id == FundMember.user_id)
        .where(FundMember.fund_id == fund_id)
        .order_by(User.full_name)
    )
    result = await session.execute(query)
    members = [
        FundMemberRead(**member.model_dump(), full_name=user.full_name, username=user.username)
        for member, user in result.all()
    ]
    return APIResponse(message="Fund members retrieved", data=members)

@router.get("/{fund_id}/members/{user_id}/details", response_model=APIResponse[FundMemberDetails])
async def get_fund_member_details(session: SessionDep, fund_id: uuid.UUID, user_id: uuid.UUID, current_user: CurrentUser) -> Any:
    """
    Membership with payment progress and whether a payout has been recorded.
    """
    ensure_self_or_staff(current_user, user_id)
    fund = await get_fund(session, fund_id)
    member = await get_fund_member(session, fund_id, user_id)
    payments = await get_member_payments(session, fund_id, user_id, PaymentType.MONTHLY)

    member_read = await _member_read(session, member)
    details = FundMemberDetails(
        **member_read.model_dump(),
        has_payable=await has_withdrawal_payable(session, fund_id, user_id),
        months_paid=len(unique_paid_months(payments)),
        paid_amount=paid_total(payments),
        effective_fund_amount=effective_fund_amount(fund.amount, member.custom_fund_amount),
        monthly_contribution=effective_monthly_contribution(
            fund.amount, member.custom_fund_amount, member.increased_monthly_amount
        ),
    )
    return APIResponse(message="Member details retrieved", data=details)

@router.patch("/{fund_id}/members/{user_id}/contribution", response_model=APIResponse[ContributionOverrideRead])
async def update_contribution(
    *,
    session: SessionDep,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    override_in: ContributionOverride,
    current_user: StaffUser,
) -> Any:
    """
    Set a member's own fund amount or own monthly amount.

    Only one of the two can be set; setting one clears the other, and
    sending neither restores the fund's standard contribution.
    """
    if override_in.custom_fund_amount and override_in.increased_monthly_amount:
        raise HTTPException(
            status_code=400,
            detail="Set either a custom fund amount or an increased monthly amount, not both",
        )

    fund = await get_fund(session, fund_id)
    _ensure_active(fund)
    member = await get_fund_member(session, fund_id, user_id)

    member.custom_fund_amount = override_in.custom_fund_amount
    member.increased_monthly_amount = override_in.increased_monthly_amount
    if "share_identifier" in override_in.model_fields_set:
        member.share_identifier = override_in.share_identifier

    session.add(member)
    await session.commit()
    await session.refresh(member)

    contribution = effective_monthly_contribution(fund.amount, member.custom_fund_amount, member.increased_monthly_amount)
    data = ContributionOverrideRead(
        member=await _member_read(session, member),
        monthly_contribution=contribution,
        expected_bonus=expected_bonus(contribution),
    )
    return APIResponse(message="Contribution updated", data=data)

@router.patch("/{fund_id}/members/{user_id}/withdrawal", response_model=APIResponse[FundMemberRead])
async def update_withdrawal_status(
    *,
    session: SessionDep,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    status_in: WithdrawalStatusUpdate,
    current_user: AdminUser,
) -> Any:
    """
    Set the withdrawal flag directly, without recording a payout. Once a
    payout is recorded the flag and month are fixed.
    """
    fund = await get_fund(session, fund_id)
    member = await get_fund_member(session, fund_id, user_id)
    if await has_withdrawal_payable(session, fund_id, user_id):
        raise HTTPException(status_code=409, detail="Member has already been paid out; withdrawal status cannot be changed")
    if status_in.is_withdrawn and status_in.withdrawal_month is not None:
        check_withdrawal_month(fund, status_in.withdrawal_month)

    member.is_withdrawn = status_in.is_withdrawn
    member.withdrawal_month = status_in.withdrawal_month if status_in.is_withdrawn else None
    session.add(member)
    await session.commit()
    await session.refresh(member)
    logger.info(f"Withdrawal status of user {user_id} in fund {fund_id} set to {member.is_withdrawn} by {current_user.username}")
    return APIResponse(message="Withdrawal status updated", data=await _member_read(session, member))

@router.get("/{fund_id}/members/{user_id}/payout-quote", response_model=APIResponse[PayoutQuoteRead])
async def payout_quote(
    session: SessionDep,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    current_user: CurrentUser,
    withdrawal_month: Annotated[int, Query(ge=1)],
    commission: Annotated[int | None, Query(ge=0)] = None,
) -> Any:
    """
    Preview a member's payout for a given withdrawal month.
    """
    ensure_self_or_staff(current_user, user_id)
    data = await get_payout_quote(session, fund_id, user_id, withdrawal_month, commission)
    return APIResponse(message="Payout calculated", data=data)

@router.post("/{fund_id}/members/{user_id}/payout", response_model=APIResponse[PayoutRead], status_code=201)
async def payout_member(
    *,
    session: SessionDep,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    payout_in: PayoutRequest,
    current_user: AdminUser,
) -> Any:
    """
    Pay a member out of the fund.

    The amount is recalculated from the recorded payments; the request only
    picks the withdrawal month, commission and payment details.
    """
    payable, payment, quote = await process_payout(session, fund_id, user_id, payout_in, current_user)
    data = PayoutRead(payable_id=payable.id, payment_id=payment.id, quote=quote)
    return APIResponse(message="Payout processed successfully", data=data)

# Groups

@router.post("/{fund_id}/groups/{group_id}", response_model=APIResponse[List[FundMemberRead]], status_code=201)
async def attach_group(session: SessionDep, fund_id: uuid.UUID, group_id: uuid.UUID, current_user: AdminUser) -> Any:
    """
    Add every member of a group to the fund in one go.

    Shares must add up to exactly 100% and none of the group's members may
    already be in the fund.
    """
    fund = await get_fund(session, fund_id)
    _ensure_active(fund)
    group = await session.get(MemberGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")

    result = await session.execute(select(GroupMember).where(GroupMember.group_id == group_id))
    group_members = result.scalars().all()
    if not group_members:
        raise HTTPException(status_code=400, detail="Group has no members")

    total = sum(gm.share_percentage for gm in group_members)
    if total != 100:
        raise HTTPException(status_code=400, detail=f"Group shares must total 100%, currently {total}%")

    existing = await session.execute(
        select(FundMember.user_id).where(
            FundMember.fund_id == fund_id,
            FundMember.user_id.in_([gm.user_id for gm in group_members]),
        )
    )
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="A member of this group is already in the fund")

    members = []
    for gm in group_members:
        member = FundMember(fund_id=fund_id, user_id=gm.user_id, group_id=group_id, share_identifier=group.name)
        session.add(member)
        members.append(member)
    await session.commit()

    logger.info(f"Group {group_id} attached to fund {fund_id} with {len(members)} members")
    return APIResponse(message="Group added to fund", data=[await _member_read(session, m) for m in members])

# Tracking sheet

@router.get("/{fund_id}/payments", response_model=APIResponse[FundPaymentSheet])
async def get_fund_payment_sheet(session: SessionDep, fund_id: uuid.UUID, current_user: StaffUser) -> Any:
    """
    Every fund member with their monthly payments, for the tracking sheet.
    """
    await get_fund(session, fund_id)
    rows = (await session.execute(
        select(FundMember, User)
        .join(User, User.id == FundMember.user_id)
        .where(FundMember.fund_id == fund_id)
        .order_by(User.full_name)
    )).all()
    payments = (await session.execute(
        select(Payment)
        .where(Payment.fund_id == fund_id, Payment.payment_type == PaymentType.MONTHLY)
        .order_by(Payment.month_number, Payment.payment_date)
    )).scalars().all()

    by_user = defaultdict(list)
    for payment in payments:
        by_user[payment.user_id].append(
            SheetPayment(month=payment.month_number, amount=payment.amount, payment_date=payment.payment_date)
        )

    sheet = FundPaymentSheet(members=[
        SheetMember(id=user.id, full_name=user.full_name, payments=by_user[user.id])
        for _, user in rows
    ])
    return APIResponse(message="Payment sheet retrieved", data=sheet)
