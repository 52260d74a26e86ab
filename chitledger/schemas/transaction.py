from datetime import datetime
import uuid
from sqlmodel import SQLModel, Field
from chitledger.models.enums import FinancialTransactionType, PaymentMethod

class FinancialTransactionCreate(SQLModel):
    transaction_date: datetime
    amount: int = Field(gt=0, description="Amount in paise")
    transaction_type: FinancialTransactionType
    payment_method: PaymentMethod = PaymentMethod.CASH
    description: str | None = None
    interest_rate: float | None = Field(default=None, ge=0)
    lender_name: str | None = None
    agent_id: uuid.UUID | None = None
    gst_eligible: bool = False
    hsn: str | None = None
    gst_rate: float | None = Field(default=None, ge=0, le=100)
    gst_amount: int | None = Field(default=None, ge=0)
    notes: str | None = None

class FinancialTransactionRead(FinancialTransactionCreate):
    id: uuid.UUID
    recorded_by: uuid.UUID
    created_at: datetime
