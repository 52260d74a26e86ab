import uuid
from datetime import datetime
from pydantic import EmailStr
from sqlmodel import SQLModel, Field
from chitledger.models.enums import UserRole, UserStatus
from chitledger.models.user import UserBase

class LoginRequest(SQLModel):
    """
    Schema for user login request.
    """
    username: str
    password: str

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "ravi.kumar",
                "password": "securepassword123"
            }
        }
    }

class UserCreate(SQLModel):
    username: str = Field(min_length=3)
    password: str = Field(min_length=6)
    email: EmailStr
    full_name: str
    phone: str
    role: UserRole = UserRole.MEMBER
    agent_id: uuid.UUID | None = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "ravi.kumar",
                "password": "securepassword123",
                "email": "ravi@example.com",
                "full_name": "Ravi Kumar",
                "phone": "+919876543210",
                "role": "member"
            }
        }
    }

class UserRead(UserBase):
    id: uuid.UUID
    created_at: datetime

class UserUpdate(SQLModel):
    """
    Fields staff may change on a user. Role and status changes are admin only.
    """
    full_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    password: str | None = Field(default=None, min_length=6)
    role: UserRole | None = None
    status: UserStatus | None = None
    agent_id: uuid.UUID | None = None

class UserSelfUpdate(SQLModel):
    full_name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    password: str | None = Field(default=None, min_length=6)
