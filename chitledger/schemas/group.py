from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import SQLModel, Field
from chitledger.models.enums import PaymentMethod

class GroupCreate(SQLModel):
    name: str
    notes: str | None = None

class GroupMemberCreate(SQLModel):
    user_id: uuid.UUID
    share_percentage: Decimal = Field(gt=0, le=100, max_digits=5, decimal_places=2)

class GroupMemberRead(SQLModel):
    group_id: uuid.UUID
    user_id: uuid.UUID
    share_percentage: Decimal
    full_name: str | None = None

class GroupRead(SQLModel):
    id: uuid.UUID
    name: str
    notes: str | None
    created_by: uuid.UUID
    created_at: datetime

class GroupWithMembers(GroupRead):
    members: list[GroupMemberRead]
    total_percentage: Decimal

class GroupPaymentCreate(SQLModel):
    fund_id: uuid.UUID
    amount: int = Field(gt=0, description="Total paid by the group, in paise")
    month_number: int = Field(ge=1)
    payment_date: datetime
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str | None = None

class GroupPaymentShare(SQLModel):
    user_id: uuid.UUID
    share_percentage: Decimal
    amount: int
    payment_id: uuid.UUID
