import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from sqlalchemy import BigInteger
from chitledger.models.enums import PaymentType, PaymentMethod

class Payment(SQLModel, table=True):
    """
    Ledger entry for money moving between a member and a fund. Never updated once written.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the payment")
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True, description="Member the payment belongs to")
    fund_id: uuid.UUID = Field(foreign_key="chitfund.id", index=True, description="Fund the payment belongs to")
    amount: int = Field(sa_type=BigInteger, description="Amount in paise")
    payment_date: datetime = Field(description="Date the money changed hands")
    payment_type: PaymentType = Field(description="monthly contribution or withdrawal payout")
    month_number: int = Field(description="Fund month this payment is for (1-based)")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    recorded_by: uuid.UUID = Field(foreign_key="user.id", description="Staff user who recorded the payment")
    notes: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
