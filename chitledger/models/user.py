import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from pydantic import EmailStr
from chitledger.models.enums import UserRole, UserStatus

class UserBase(SQLModel):
    """
    Base User model containing shared attributes.
    """
    username: str = Field(unique=True, index=True, description="Login name")
    email: EmailStr = Field(index=True, description="User's email address")
    full_name: str = Field(description="User's full name")
    phone: str = Field(description="User's phone number")
    role: UserRole = Field(default=UserRole.MEMBER, description="Role: admin, agent or member")
    status: UserStatus = Field(default=UserStatus.ACTIVE, description="Whether the account may log in")
    agent_id: uuid.UUID | None = Field(default=None, foreign_key="user.id", description="Agent responsible for this member")

class User(UserBase, table=True):
    """
    User database model.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the user")
    hashed_password: str = Field(description="Hashed version of the user's password")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None), description="Timestamp when the user was created")

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE
