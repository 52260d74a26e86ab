from typing import Annotated
from datetime import datetime
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import select

from chitledger.api import deps
from chitledger.api.deps import AdminUser, SessionDep
from chitledger.models.enums import FinancialTransactionType, UserRole
from chitledger.models.transaction import FinancialTransaction
from chitledger.models.user import User
from chitledger.schemas.response import APIResponse
from chitledger.schemas.transaction import FinancialTransactionCreate, FinancialTransactionRead

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/", response_model=APIResponse[FinancialTransactionRead], status_code=201)
async def create_transaction(transaction_in: FinancialTransactionCreate, session: SessionDep, current_user: AdminUser):
    """
    Record a cash-book entry (borrowing, loans, salaries, expenses, other income).

    Agent salary entries must name the agent being paid.
    """
    if transaction_in.transaction_type == FinancialTransactionType.AGENT_SALARY:
        if not transaction_in.agent_id:
            raise HTTPException(status_code=400, detail="agent_id is required for agent salary entries")
        agent = await session.get(User, transaction_in.agent_id)
        if not agent or agent.role != UserRole.AGENT:
            raise HTTPException(status_code=400, detail="agent_id must refer to an agent")

    trx = FinancialTransaction.model_validate(transaction_in, update={"recorded_by": current_user.id})
    session.add(trx)
    await session.commit()
    await session.refresh(trx)
    logger.info(f"Recorded {trx.transaction_type} of {trx.amount} by {current_user.username}")
    return APIResponse(message="Transaction recorded", data=trx)

@router.get("/", response_model=APIResponse[list[FinancialTransactionRead]])
async def get_transactions(
    session: SessionDep,
    current_user: AdminUser,
    pagination: Annotated[deps.PageParams, Depends()],
    transaction_type: FinancialTransactionType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """
    Cash-book entries, newest first.
    """
    query = select(FinancialTransaction)
    if transaction_type:
        query = query.where(FinancialTransaction.transaction_type == transaction_type)
    if start_date:
        query = query.where(FinancialTransaction.transaction_date >= start_date)
    if end_date:
        query = query.where(FinancialTransaction.transaction_date < end_date)

    query = query.order_by(FinancialTransaction.transaction_date.desc()).offset(pagination.offset).limit(pagination.limit)
    result = await session.execute(query)
    return APIResponse(message="Transactions retrieved", data=result.scalars().all())
