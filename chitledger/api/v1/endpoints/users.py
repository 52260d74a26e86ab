from typing import Any, List
import uuid
import logging
from fastapi import APIRouter, HTTPException
from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from chitledger.api.deps import CurrentUser, AdminUser, StaffUser, SessionDep, ensure_self_or_staff
from chitledger.core.security import get_password_hash
from chitledger.models.enums import UserRole
from chitledger.models.accounts import AccountsReceivable, AccountsPayable
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.notification import Notification
from chitledger.models.payment import Payment
from chitledger.models.transaction import FinancialTransaction
from chitledger.models.user import User
from chitledger.schemas.fund import FundRead
from chitledger.schemas.response import APIResponse
from chitledger.schemas.user import UserCreate, UserRead, UserUpdate, UserSelfUpdate

router = APIRouter()
logger = logging.getLogger(__name__)

async def _has_references(session: SessionDep, user_id: uuid.UUID) -> bool:
    """
    Whether any ledger row, membership, group or assigned member points at the user.
    """
    checks = [
        select(FundMember.fund_id).where(FundMember.user_id == user_id),
        select(GroupMember.group_id).where(GroupMember.user_id == user_id),
        select(MemberGroup.id).where(MemberGroup.created_by == user_id),
        select(Payment.id).where(or_(Payment.user_id == user_id, Payment.recorded_by == user_id)),
        select(AccountsReceivable.id).where(
            or_(AccountsReceivable.user_id == user_id, AccountsReceivable.recorded_by == user_id)
        ),
        select(AccountsPayable.id).where(
            or_(AccountsPayable.user_id == user_id, AccountsPayable.recorded_by == user_id)
        ),
        select(FinancialTransaction.id).where(
            or_(FinancialTransaction.agent_id == user_id, FinancialTransaction.recorded_by == user_id)
        ),
        select(User.id).where(User.agent_id == user_id),
    ]
    for query in checks:
        if (await session.execute(query.limit(1))).first() is not None:
            return True
    return False

def _apply_password(user_data: dict) -> dict:
    if user_data.get("password"):
        user_data["hashed_password"] = get_password_hash(user_data["password"])
    user_data.pop("password", None)
    return user_data

@router.get("/me", response_model=APIResponse[UserRead])
async def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user details.
    """
    return APIResponse(message="User details retrieved", data=current_user)

@router.put("/me", response_model=APIResponse[UserRead])
async def update_user_me(*, session: SessionDep, user_in: UserSelfUpdate, current_user: CurrentUser) -> Any:
    """
    Update own profile.
    """
    user_data = _apply_password(user_in.model_dump(exclude_unset=True))
    for field, value in user_data.items():
        setattr(current_user, field, value)

    session.add(current_user)
    await session.commit()
    await session.refresh(current_user)
    return APIResponse(message="User profile updated", data=current_user)

@router.get("/", response_model=APIResponse[List[UserRead]])
async def list_users(session: SessionDep, current_user: StaffUser) -> Any:
    result = await session.execute(select(User).order_by(User.full_name))
    return APIResponse(message="Users retrieved", data=result.scalars().all())

@router.get("/members", response_model=APIResponse[List[UserRead]])
async def list_members(session: SessionDep, current_user: StaffUser) -> Any:
    query = select(User).where(User.role == UserRole.MEMBER)
    if current_user.role == UserRole.AGENT:
        query = query.where(User.agent_id == current_user.id)
    result = await session.execute(query.order_by(User.full_name))
    return APIResponse(message="Members retrieved", data=result.scalars().all())

@router.get("/agents", response_model=APIResponse[List[UserRead]])
async def list_agents(session: SessionDep, current_user: AdminUser) -> Any:
    result = await session.execute(select(User).where(User.role == UserRole.AGENT).order_by(User.full_name))
    return APIResponse(message="Agents retrieved", data=result.scalars().all())

@router.post("/", response_model=APIResponse[UserRead], status_code=201)
async def create_user(*, session: SessionDep, user_in: UserCreate, current_user: StaffUser) -> Any:
    """
    Create a user. Agents can only create members, who are assigned to them.
    """
    if current_user.role == UserRole.AGENT and user_in.role != UserRole.MEMBER:
        raise HTTPException(status_code=403, detail="Only admins can create agent accounts")

    result = await session.execute(select(User).where(User.username == user_in.username))
    if result.scalars().first():
        raise HTTPException(status_code=400, detail="Username already exists")

    user_data = user_in.model_dump(exclude={"password"})
    if current_user.role == UserRole.AGENT:
        user_data["agent_id"] = current_user.id
    user = User(**user_data, hashed_password=get_password_hash(user_in.password))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"{current_user.username} created {user.role} account {user.username}")
    return APIResponse(message="User created successfully", data=user)

@router.patch("/{user_id}", response_model=APIResponse[UserRead])
async def update_user(*, session: SessionDep, user_id: uuid.UUID, user_in: UserUpdate, current_user: StaffUser) -> Any:
    """
    Update a user. Role and status changes are reserved to admins; agents
    may only edit members.
    """
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    user_data = user_in.model_dump(exclude_unset=True)
    if current_user.role == UserRole.AGENT:
        if user.role != UserRole.MEMBER:
            raise HTTPException(status_code=403, detail="Agents can only edit members")
        if "role" in user_data or "status" in user_data:
            raise HTTPException(status_code=403, detail="Only admins can change roles or status")

    for field, value in _apply_password(user_data).items():
        setattr(user, field, value)

    session.add(user)
    await session.commit()
    await session.refresh(user)
    return APIResponse(message="User updated", data=user)

@router.delete("/{user_id}", response_model=APIResponse[dict])
async def delete_user(session: SessionDep, user_id: uuid.UUID, current_user: AdminUser) -> Any:
    """
    Delete a user nothing else refers to: no memberships, groups, ledger
    entries they own or recorded, or assigned members. Their notifications go
    with them. Anyone else should be made inactive instead.
    """
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == current_user.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    if await _has_references(session, user_id):
        raise HTTPException(status_code=409, detail="User has fund history; set status to inactive instead")

    await session.execute(delete(Notification).where(Notification.user_id == user_id))
    await session.delete(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning(f"Delete of user {user_id} blocked by a reference")
        raise HTTPException(status_code=409, detail="User has fund history; set status to inactive instead")
    logger.info(f"User {user_id} deleted by {current_user.username}")
    return APIResponse(message="User deleted", data={"user_id": user_id})

@router.get("/{user_id}/funds", response_model=APIResponse[List[FundRead]])
async def get_user_funds(session: SessionDep, user_id: uuid.UUID, current_user: CurrentUser) -> Any:
    """
    Funds a user belongs to.
    """
    ensure_self_or_staff(current_user, user_id)
    query = select(ChitFund).join(FundMember, FundMember.fund_id == ChitFund.id).where(FundMember.user_id == user_id)
    result = await session.execute(query)
    return APIResponse(message="Funds retrieved", data=result.scalars().all())
