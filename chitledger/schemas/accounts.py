from datetime import datetime
import uuid
from sqlmodel import SQLModel, Field
from chitledger.models.enums import ReceivableStatus, PayableType

class ReceivableCreate(SQLModel):
    user_id: uuid.UUID
    fund_id: uuid.UUID
    month_number: int = Field(ge=1)
    expected_amount: int = Field(gt=0)
    paid_amount: int = Field(default=0, ge=0)
    due_date: datetime

class ReceivableRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    fund_id: uuid.UUID
    month_number: int
    expected_amount: int
    paid_amount: int
    status: ReceivableStatus
    due_date: datetime
    updated_at: datetime

class PayableCreate(SQLModel):
    """
    Manual payable entry. Payouts go through the fund payout endpoint instead.
    """
    user_id: uuid.UUID
    fund_id: uuid.UUID
    payment_type: PayableType = PayableType.OTHER
    amount: int = Field(gt=0)
    commission: int | None = Field(default=None, ge=0)
    paid_date: datetime
    notes: str | None = None

class PayableRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    fund_id: uuid.UUID
    payment_type: PayableType
    amount: int
    commission: int | None
    paid_date: datetime
    recorded_by: uuid.UUID
    notes: str | None
    payment_id: uuid.UUID | None

class SyncResult(SQLModel):
    synced_receivables: int
    synced_payables: int
    error_count: int
