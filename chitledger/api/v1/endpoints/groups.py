from typing import Any, List
import uuid
from decimal import Decimal
from fastapi import APIRouter, HTTPException
from sqlmodel import select

from chitledger.api.deps import StaffUser, SessionDep
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.user import User
from chitledger.schemas.group import (
    GroupCreate, GroupRead, GroupWithMembers, GroupMemberCreate, GroupMemberRead,
    GroupPaymentCreate, GroupPaymentShare,
)
from chitledger.schemas.response import APIResponse
from chitledger.services.ledger import record_group_payment

router = APIRouter()

async def _get_group(session: SessionDep, group_id: uuid.UUID) -> MemberGroup:
    group = await session.get(MemberGroup, group_id)
    if not group:
        raise HTTPException(status_code=404, detail="Group not found")
    return group

async def _group_members(session: SessionDep, group_id: uuid.UUID) -> list[GroupMemberRead]:
    query = (
        select(GroupMember, User)
        .join(User, User.id == GroupMember.user_id)
        .where(GroupMember.group_id == group_id)
        .order_by(GroupMember.added_at)
    )
    result = await session.execute(query)
    return [
        GroupMemberRead(
            group_id=gm.group_id,
            user_id=gm.user_id,
            share_percentage=gm.share_percentage,
            full_name=user.full_name,
        )
        for gm, user in result.all()
    ]

@router.post("/", response_model=APIResponse[GroupRead], status_code=201)
async def create_group(group_in: GroupCreate, session: SessionDep, current_user: StaffUser) -> Any:
    """
    Create a group of members who will share a single fund ticket.
    """
    group = MemberGroup.model_validate(group_in, update={"created_by": current_user.id})
    session.add(group)
    await session.commit()
    await session.refresh(group)
    return APIResponse(message="Group created successfully", data=group)

@router.get("/", response_model=APIResponse[List[GroupRead]])
async def list_groups(session: SessionDep, current_user: StaffUser) -> Any:
    result = await session.execute(select(MemberGroup).order_by(MemberGroup.created_at.desc()))
    return APIResponse(message="Groups retrieved", data=result.scalars().all())

@router.get("/{group_id}", response_model=APIResponse[GroupWithMembers])
async def get_group(group_id: uuid.UUID, session: SessionDep, current_user: StaffUser) -> Any:
    group = await _get_group(session, group_id)
    members = await _group_members(session, group_id)
    data = GroupWithMembers(
        **group.model_dump(),
        members=members,
        total_percentage=sum((m.share_percentage for m in members), Decimal("0")),
    )
    return APIResponse(message="Group details retrieved", data=data)

@router.post("/{group_id}/members", response_model=APIResponse[GroupMemberRead], status_code=201)
async def add_group_member(group_id: uuid.UUID, member_in: GroupMemberCreate, session: SessionDep, current_user: StaffUser) -> Any:
    """
    Add a member with a percentage share. The group's shares can never
    total more than 100%.
    """
    await _get_group(session, group_id)
    user = await session.get(User, member_in.user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if await session.get(GroupMember, (group_id, member_in.user_id)):
        raise HTTPException(status_code=400, detail="User is already in this group")

    result = await session.execute(select(GroupMember.share_percentage).where(GroupMember.group_id == group_id))
    current_total = sum(result.scalars().all(), Decimal("0"))
    if current_total + member_in.share_percentage > 100:
        raise HTTPException(
            status_code=400,
            detail=f"Total share would be {current_total + member_in.share_percentage}%, which exceeds 100%",
        )

    member = GroupMember(group_id=group_id, user_id=member_in.user_id, share_percentage=member_in.share_percentage)
    session.add(member)
    await session.commit()
    await session.refresh(member)

    data = GroupMemberRead(
        group_id=member.group_id,
        user_id=member.user_id,
        share_percentage=member.share_percentage,
        full_name=user.full_name,
    )
    return APIResponse(message="Member added to group", data=data)

@router.delete("/{group_id}/members/{user_id}", response_model=APIResponse[dict])
async def remove_group_member(group_id: uuid.UUID, user_id: uuid.UUID, session: SessionDep, current_user: StaffUser) -> Any:
    member = await session.get(GroupMember, (group_id, user_id))
    if not member:
        raise HTTPException(status_code=404, detail="Member not found in group")

    await session.delete(member)
    await session.commit()
    return APIResponse(message="Member removed from group", data={"group_id": group_id, "user_id": user_id})

@router.post("/{group_id}/payments", response_model=APIResponse[List[GroupPaymentShare]], status_code=201)
async def create_group_payment(group_id: uuid.UUID, payment_in: GroupPaymentCreate, session: SessionDep, current_user: StaffUser) -> Any:
    """
    Record one monthly payment for the whole group, split between its
    members by share percentage.
    """
    group = await _get_group(session, group_id)
    recorded = await record_group_payment(session, group, payment_in, current_user)
    shares = [
        GroupPaymentShare(
            user_id=gm.user_id,
            share_percentage=gm.share_percentage,
            amount=payment.amount,
            payment_id=payment.id,
        )
        for gm, payment in recorded
    ]
    return APIResponse(message="Group payment recorded", data=shares)
