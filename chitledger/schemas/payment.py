from datetime import datetime
import uuid
from sqlmodel import SQLModel, Field
from chitledger.models.enums import PaymentType, PaymentMethod

class PaymentCreate(SQLModel):
    """
    Schema for recording a contribution.
    """
    user_id: uuid.UUID
    fund_id: uuid.UUID
    amount: int = Field(gt=0, description="Amount in paise")
    payment_date: datetime
    month_number: int = Field(ge=1)
    payment_method: PaymentMethod = PaymentMethod.CASH
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "example": {
                "user_id": "6f1c2f0e-8f0e-4b8e-9d7c-2a3b4c5d6e7f",
                "fund_id": "0d9e8f7a-6b5c-4d3e-2f1a-0b9c8d7e6f5a",
                "amount": 500000,
                "payment_date": "2025-02-05T10:00:00",
                "month_number": 2,
                "payment_method": "google_pay"
            }
        }
    }

class PaymentRead(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    fund_id: uuid.UUID
    amount: int
    payment_date: datetime
    payment_type: PaymentType
    month_number: int
    payment_method: PaymentMethod
    recorded_by: uuid.UUID
    notes: str | None
    created_at: datetime

class MemberPaymentHistory(SQLModel):
    payments: list[PaymentRead]
    paid_months: list[int]
    months_paid: int
    paid_amount: int
