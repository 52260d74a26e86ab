import uuid
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field
from sqlalchemy import BigInteger, UniqueConstraint
from chitledger.models.enums import ReceivableStatus, PayableType

class AccountsReceivable(SQLModel, table=True):
    """
    What a member owes a fund for one month, projected from monthly payments.
    """
    __table_args__ = (UniqueConstraint("user_id", "fund_id", "month_number"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    fund_id: uuid.UUID = Field(foreign_key="chitfund.id", index=True)
    month_number: int
    expected_amount: int = Field(sa_type=BigInteger, description="Instalment due for the month in paise")
    paid_amount: int = Field(default=0, sa_type=BigInteger, description="Amount received so far in paise")
    status: ReceivableStatus = Field(default=ReceivableStatus.PARTIAL)
    due_date: datetime
    recorded_by: uuid.UUID | None = Field(default=None, foreign_key="user.id")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))

class AccountsPayable(SQLModel, table=True):
    """
    Money the fund pays out to a member (payouts) or records as paid (commission, other).
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="user.id", index=True)
    fund_id: uuid.UUID = Field(foreign_key="chitfund.id", index=True)
    payment_type: PayableType
    amount: int = Field(sa_type=BigInteger, description="Amount paid out in paise")
    commission: int | None = Field(default=None, sa_type=BigInteger, description="Commission retained in paise")
    paid_date: datetime
    recorded_by: uuid.UUID = Field(foreign_key="user.id")
    notes: str | None = None
    payment_id: uuid.UUID | None = Field(default=None, foreign_key="payment.id", unique=True, description="Withdrawal payment this payable materialises")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
