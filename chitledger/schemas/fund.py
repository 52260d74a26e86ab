from datetime import datetime
import uuid
from sqlmodel import SQLModel, Field
from chitledger.models.enums import FundStatus, PaymentMethod

# Fund Schemas
class FundBase(SQLModel):
    """
    Base fund schema with shared properties.
    """
    name: str
    duration: int | None = Field(default=None, ge=1, le=120, description="Months; defaults to the standard fund duration")
    member_count: int = Field(ge=1)
    start_date: datetime
    end_date: datetime | None = None
    base_commission: int | None = Field(default=None, ge=0)
    monthly_contribution: int | None = Field(default=None, gt=0)
    monthly_bonus: int | None = Field(default=None, ge=0)

class FundCreate(FundBase):
    """
    Schema for creating a new fund. Missing figures are derived from the amount.
    """
    amount: int = Field(gt=0, description="Fund principal in paise")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Lakshmi 1 Lakh",
                "amount": 10000000,
                "member_count": 20,
                "start_date": "2025-01-05T00:00:00"
            }
        }
    }

class FundRead(SQLModel):
    """
    Schema for reading fund details.
    """
    id: uuid.UUID
    name: str
    amount: int
    duration: int
    member_count: int
    start_date: datetime
    end_date: datetime
    status: FundStatus
    base_commission: int
    monthly_contribution: int
    monthly_bonus: int

class FundUpdate(SQLModel):
    """
    Schema for updating fund details. The amount cannot be changed.
    """
    name: str | None = None
    member_count: int | None = Field(default=None, ge=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
    base_commission: int | None = Field(default=None, ge=0)
    monthly_contribution: int | None = Field(default=None, gt=0)
    monthly_bonus: int | None = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}

# Fund Member Schemas
class FundMemberRead(SQLModel):
    fund_id: uuid.UUID
    user_id: uuid.UUID
    full_name: str | None = None
    username: str | None = None
    custom_fund_amount: int | None
    increased_monthly_amount: int | None
    share_identifier: str | None
    group_id: uuid.UUID | None
    is_withdrawn: bool
    withdrawal_month: int | None
    joined_at: datetime

class FundMemberDetails(FundMemberRead):
    has_payable: bool
    months_paid: int
    paid_amount: int
    effective_fund_amount: int
    monthly_contribution: int

class ContributionOverride(SQLModel):
    """
    Either a custom fund amount or a custom monthly amount, never both.
    """
    custom_fund_amount: int | None = Field(default=None, gt=0)
    increased_monthly_amount: int | None = Field(default=None, gt=0)
    share_identifier: str | None = None

class ContributionOverrideRead(SQLModel):
    member: FundMemberRead
    monthly_contribution: int
    expected_bonus: int

class WithdrawalStatusUpdate(SQLModel):
    is_withdrawn: bool
    withdrawal_month: int | None = Field(default=None, ge=1)

# Payout Schemas
class PayoutRequest(SQLModel):
    withdrawal_month: int = Field(ge=1)
    commission: int | None = Field(default=None, ge=0, description="Defaults to 5% of the member's fund amount")
    payment_method: PaymentMethod = PaymentMethod.CASH
    paid_date: datetime | None = None
    notes: str | None = None

class PayoutQuoteRead(SQLModel):
    fund_amount: int
    months_paid: int
    paid_amount: int
    monthly_payment: int
    monthly_bonus: int
    bonus_amount: int
    remaining_amount: int
    commission: int
    withdrawal_month: int
    penalty: int
    payout_amount: int
    is_payable: bool
    is_withdrawn: bool
    has_payable: bool

class PayoutRead(SQLModel):
    payable_id: uuid.UUID
    payment_id: uuid.UUID
    quote: PayoutQuoteRead

# Tracking sheet
class SheetPayment(SQLModel):
    month: int
    amount: int
    payment_date: datetime

class SheetMember(SQLModel):
    id: uuid.UUID
    full_name: str
    payments: list[SheetPayment]

class FundPaymentSheet(SQLModel):
    members: list[SheetMember]
