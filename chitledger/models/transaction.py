import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import BigInteger
from .enums import FinancialTransactionType, PaymentMethod

class FinancialTransaction(SQLModel, table=True):
    """
    Operator cash-book entry: borrowing, loans, salaries, expenses and other income.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, description="Unique identifier for the transaction")
    transaction_date: datetime = Field(description="Date of the transaction")
    amount: int = Field(sa_type=BigInteger, description="Amount in paise")
    transaction_type: FinancialTransactionType = Field(description="Kind of cash-book entry")
    payment_method: PaymentMethod = Field(default=PaymentMethod.CASH)
    description: Optional[str] = None
    interest_rate: Optional[float] = Field(default=None, description="Annual interest rate for loans, in percent")
    lender_name: Optional[str] = None
    agent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id", description="Agent paid, for agent_salary entries")
    recorded_by: uuid.UUID = Field(foreign_key="user.id")
    gst_eligible: bool = Field(default=False, description="Whether GST paid on this entry is claimable as input tax credit")
    hsn: Optional[str] = Field(default=None, description="HSN/SAC code")
    gst_rate: Optional[float] = Field(default=None, description="GST rate in percent")
    gst_amount: Optional[int] = Field(default=None, sa_type=BigInteger, description="GST paid in paise")
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))
