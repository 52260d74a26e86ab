import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from sqlalchemy import BigInteger
from chitledger.models.enums import FundStatus

class ChitFund(SQLModel, table=True):
    """
    A chit fund: a fixed principal collected in monthly instalments over its duration.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the fund")
    name: str = Field(description="Name of the fund")
    amount: int = Field(sa_type=BigInteger, description="Fund principal in paise; fixed once created")
    duration: int = Field(description="Duration in months")
    member_count: int = Field(description="Number of member slots")
    start_date: datetime = Field(description="Date of the first instalment")
    end_date: datetime = Field(description="Date of the last instalment")
    status: FundStatus = Field(default=FundStatus.ACTIVE, description="Current status of the fund")
    base_commission: int = Field(sa_type=BigInteger, description="Default commission deducted on payout, in paise")
    monthly_contribution: int = Field(sa_type=BigInteger, description="Standard monthly instalment in paise")
    monthly_bonus: int = Field(sa_type=BigInteger, description="Standard bonus per paid month in paise")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

class FundMember(SQLModel, table=True):
    """
    Association model between User and ChitFund with per-member overrides and withdrawal state.
    """
    fund_id: uuid.UUID = Field(foreign_key="chitfund.id", primary_key=True, description="ID of the fund")
    user_id: uuid.UUID = Field(foreign_key="user.id", primary_key=True, description="ID of the member")
    custom_fund_amount: int | None = Field(default=None, sa_type=BigInteger, description="Member's own fund amount in paise")
    increased_monthly_amount: int | None = Field(default=None, sa_type=BigInteger, description="Member's own monthly instalment in paise")
    share_identifier: str | None = Field(default=None, description="Label for a shared or split ticket")
    group_id: uuid.UUID | None = Field(default=None, foreign_key="membergroup.id", description="Group the member was added through")
    is_withdrawn: bool = Field(default=False, description="Whether the member has taken the fund")
    withdrawal_month: int | None = Field(default=None, description="Fund month in which the member withdrew")
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None), description="Timestamp when the member joined the fund")
