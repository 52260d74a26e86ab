from typing import Annotated
import uuid
from fastapi import Depends, HTTPException, status, Query
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from chitledger.core.config import settings
from chitledger.db.session import get_db
from chitledger.models.enums import UserRole
from chitledger.models.user import User
from chitledger.schemas.token import TokenPayload

class PageParams:
    def __init__(
        self,
        page: Annotated[int, Query(ge=1, description="Page number")] = 1,
        limit: Annotated[int, Query(ge=1, le=100, description="Items per page")] = 50,
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

reuseable_oauth2 = HTTPBearer(auto_error=True)

async def get_current_user(session: Annotated[AsyncSession, Depends(get_db)], token: Annotated[HTTPAuthorizationCredentials, Depends(reuseable_oauth2)]) -> User:
    try:
        payload = jwt.decode(token.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenPayload(**payload)
        user_id = uuid.UUID(token_data.sub)
    except (JWTError, ValidationError, TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Could not validate credentials")

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return user

def require_roles(*roles: UserRole):
    """
    Dependency factory restricting an endpoint to the given roles.
    """
    async def checker(current_user: Annotated[User, Depends(get_current_user)]) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=403, detail="Not permitted for your role")
        return current_user
    return checker

CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
StaffUser = Annotated[User, Depends(require_roles(UserRole.ADMIN, UserRole.AGENT))]
SessionDep = Annotated[AsyncSession, Depends(get_db)]

def ensure_self_or_staff(current_user: User, user_id: uuid.UUID) -> None:
    """Members may only read their own records."""
    if current_user.role == UserRole.MEMBER and current_user.id != user_id:
        raise HTTPException(status_code=403, detail="You can only view your own records")
