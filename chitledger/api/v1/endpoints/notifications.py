from typing import Annotated, List
import uuid
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import select

from chitledger.api import deps
from chitledger.api.deps import CurrentUser, SessionDep
from chitledger.core.rate_limit import limiter
from chitledger.models.notification import Notification
from chitledger.schemas.notification import NotificationRead
from chitledger.schemas.response import APIResponse

router = APIRouter()

@router.get("/", response_model=APIResponse[List[NotificationRead]])
@limiter.limit("20/minute")
async def get_notifications(
    request: Request,
    current_user: CurrentUser,
    session: SessionDep,
    pagination: Annotated[deps.PageParams, Depends()],
    unread_only: bool = False,
):
    """
    Retrieve the current user's notifications, newest first.
    """
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712
    query = query.order_by(Notification.created_at.desc()).offset(pagination.offset).limit(pagination.limit)
    result = await session.execute(query)
    return APIResponse(message="Notifications retrieved", data=result.scalars().all())

@router.post("/{notification_id}/read", response_model=APIResponse[dict])
@limiter.limit("50/minute")
async def mark_as_read(
    request: Request,
    notification_id: uuid.UUID,
    current_user: CurrentUser,
    session: SessionDep,
):
    """
    Mark a specific notification as read.
    """
    notification = await session.get(Notification, notification_id)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    if notification.user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not your notification")

    notification.is_read = True
    session.add(notification)
    await session.commit()

    return APIResponse(message="Marked as read", data={})
