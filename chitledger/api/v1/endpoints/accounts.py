from typing import Annotated, Any, List
import uuid
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import select

from chitledger.api import deps
from chitledger.api.deps import CurrentUser, AdminUser, StaffUser, SessionDep
from chitledger.models.accounts import AccountsReceivable, AccountsPayable
from chitledger.models.enums import PayableType, ReceivableStatus, UserRole
from chitledger.models.user import User
from chitledger.schemas.accounts import ReceivableCreate, ReceivableRead, PayableCreate, PayableRead, SyncResult
from chitledger.schemas.response import APIResponse
from chitledger.services.ledger import get_fund, sync_payments_to_accounts

router = APIRouter()
logger = logging.getLogger(__name__)

def _scope_to_member(current_user: User, user_id: uuid.UUID | None) -> uuid.UUID | None:
    """Members only ever see their own rows, whatever filter they pass."""
    if current_user.role != UserRole.MEMBER:
        return user_id
    if user_id and user_id != current_user.id:
        raise HTTPException(status_code=403, detail="You can only view your own records")
    return current_user.id

@router.post("/receivables", response_model=APIResponse[ReceivableRead], status_code=201)
async def create_receivable(receivable_in: ReceivableCreate, session: SessionDep, current_user: StaffUser) -> Any:
    """
    Record a receivable by hand, e.g. for a month that has not been paid yet.
    """
    await get_fund(session, receivable_in.fund_id)
    existing = await session.execute(
        select(AccountsReceivable.id).where(
            AccountsReceivable.user_id == receivable_in.user_id,
            AccountsReceivable.fund_id == receivable_in.fund_id,
            AccountsReceivable.month_number == receivable_in.month_number,
        )
    )
    if existing.first() is not None:
        raise HTTPException(status_code=400, detail="A receivable for this member and month already exists")

    status = ReceivableStatus.PAID if receivable_in.paid_amount >= receivable_in.expected_amount else ReceivableStatus.PARTIAL
    receivable = AccountsReceivable.model_validate(
        receivable_in,
        update={"status": status, "recorded_by": current_user.id}
    )
    session.add(receivable)
    await session.commit()
    await session.refresh(receivable)
    return APIResponse(message="Receivable recorded", data=receivable)

@router.get("/receivables", response_model=APIResponse[List[ReceivableRead]])
async def list_receivables(
    session: SessionDep,
    current_user: CurrentUser,
    pagination: Annotated[deps.PageParams, Depends()],
    user_id: uuid.UUID | None = None,
    fund_id: uuid.UUID | None = None,
    month_number: int | None = None,
) -> Any:
    """
    Receivables, optionally filtered by member, fund and month.
    """
    user_id = _scope_to_member(current_user, user_id)
    query = select(AccountsReceivable)
    if user_id:
        query = query.where(AccountsReceivable.user_id == user_id)
    if fund_id:
        query = query.where(AccountsReceivable.fund_id == fund_id)
    if month_number:
        query = query.where(AccountsReceivable.month_number == month_number)

    query = query.order_by(AccountsReceivable.month_number, AccountsReceivable.due_date).offset(pagination.offset).limit(pagination.limit)
    result = await session.execute(query)
    return APIResponse(message="Receivables retrieved", data=result.scalars().all())

@router.post("/payables", response_model=APIResponse[PayableRead], status_code=201)
async def create_payable(payable_in: PayableCreate, session: SessionDep, current_user: AdminUser) -> Any:
    await get_fund(session, payable_in.fund_id)
    if payable_in.payment_type == PayableType.WITHDRAWAL:
        raise HTTPException(status_code=400, detail="Withdrawals are recorded through the fund payout endpoint")

    payable = AccountsPayable.model_validate(payable_in, update={"recorded_by": current_user.id})
    session.add(payable)
    await session.commit()
    await session.refresh(payable)
    logger.info(f"Manual {payable.payment_type} payable {payable.id} of {payable.amount} recorded by {current_user.username}")
    return APIResponse(message="Payable recorded", data=payable)

@router.get("/payables", response_model=APIResponse[List[PayableRead]])
async def list_payables(
    session: SessionDep,
    current_user: CurrentUser,
    pagination: Annotated[deps.PageParams, Depends()],
    user_id: uuid.UUID | None = None,
    fund_id: uuid.UUID | None = None,
    payment_type: PayableType | None = None,
) -> Any:
    """
    Payables, optionally filtered by member, fund and type.
    """
    user_id = _scope_to_member(current_user, user_id)
    query = select(AccountsPayable)
    if user_id:
        query = query.where(AccountsPayable.user_id == user_id)
    if fund_id:
        query = query.where(AccountsPayable.fund_id == fund_id)
    if payment_type:
        query = query.where(AccountsPayable.payment_type == payment_type)

    query = query.order_by(AccountsPayable.paid_date.desc()).offset(pagination.offset).limit(pagination.limit)
    result = await session.execute(query)
    return APIResponse(message="Payables retrieved", data=result.scalars().all())

@router.post("/sync", response_model=APIResponse[SyncResult])
async def sync_accounts(session: SessionDep, current_user: AdminUser) -> Any:
    """
    Rebuild receivables and missing payables from the payment ledger.
    """
    result = await sync_payments_to_accounts(session)
    return APIResponse(message="Accounts synced", data=result)
