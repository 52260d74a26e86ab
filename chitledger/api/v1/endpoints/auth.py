from typing import Annotated, Any
import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from chitledger.api import deps
from chitledger.core import security
from chitledger.core.rate_limit import limiter
from chitledger.models.enums import UserRole
from chitledger.models.user import User
from chitledger.schemas.response import APIResponse
from chitledger.schemas.token import Token
from chitledger.schemas.user import UserCreate, UserRead, LoginRequest

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/register", response_model=APIResponse[UserRead], status_code=201)
async def register(*, session: Annotated[AsyncSession, Depends(deps.get_db)], user_in: UserCreate) -> Any:
    """
    Self-registration.

    The very first account becomes the admin. Everyone else registers as a
    member; agent and admin accounts are created by an admin.
    """
    user_count = (await session.execute(select(func.count()).select_from(User))).scalar_one()
    role = UserRole.ADMIN if user_count == 0 else user_in.role
    if user_count > 0 and role != UserRole.MEMBER:
        raise HTTPException(status_code=403, detail="Only admins can create agent accounts")

    result = await session.execute(select(User).where(User.username == user_in.username))
    if result.scalars().first():
        raise HTTPException(status_code=400, detail="Username already exists")

    user_data = user_in.model_dump(exclude={"password", "role"})
    user = User(**user_data, role=role, hashed_password=security.get_password_hash(user_in.password))
    session.add(user)
    await session.commit()
    await session.refresh(user)
    logger.info(f"Registered {user.role} account {user.username}")
    return APIResponse(message="User created successfully", data=user)

@router.post("/login", response_model=APIResponse[Token])
@limiter.limit("10/minute")
async def login_access_token(request: Request, session: Annotated[AsyncSession, Depends(deps.get_db)], form_data: LoginRequest) -> Any:
    result = await session.execute(select(User).where(User.username == form_data.username))
    user = result.scalars().first()
    if not user or not security.verify_password(form_data.password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Incorrect username or password")
    elif not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    token = Token(access_token=security.create_access_token(user.id), token_type="bearer")
    return APIResponse(message="Login successful", data=token)
