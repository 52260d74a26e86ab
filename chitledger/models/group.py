import uuid
from datetime import datetime, timezone
from decimal import Decimal
from sqlmodel import SQLModel, Field

class MemberGroup(SQLModel, table=True):
    """
    Members sharing one ticket in a fund, each holding a percentage share.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    notes: str | None = None
    created_by: uuid.UUID = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

class GroupMember(SQLModel, table=True):
    group_id: uuid.UUID = Field(foreign_key="membergroup.id", primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", primary_key=True)
    share_percentage: Decimal = Field(max_digits=5, decimal_places=2, description="Share of the ticket, 0 < p <= 100")
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
