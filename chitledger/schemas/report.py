from datetime import datetime
import uuid
from sqlmodel import SQLModel

class Gstr1Entry(SQLModel):
    invoice_no: str
    date: datetime
    fund_id: uuid.UUID
    fund_name: str
    user_id: uuid.UUID
    customer_name: str
    commission: int
    gst_rate: float
    gst_amount: int
    total: int

class Gstr1Report(SQLModel):
    year: int
    month: int
    entries: list[Gstr1Entry]
    total_commission: int
    total_gst: int
    total: int

class Gstr2bEntry(SQLModel):
    transaction_id: uuid.UUID
    date: datetime
    description: str | None
    hsn: str | None
    amount: int
    gst_rate: float
    gst_amount: int

class Gstr2bReport(SQLModel):
    year: int
    month: int
    entries: list[Gstr2bEntry]
    total_amount: int
    total_gst: int

class Gstr3bReport(SQLModel):
    year: int
    month: int
    gst_on_commission: int
    input_tax_credit: int
    net_gst_payable: int

class FinancialSummary(SQLModel):
    admin_borrow_total: int
    admin_repay_total: int
    admin_net_debt: int
    external_loan_total: int
    loan_repayment_total: int
    external_net_debt: int
    agent_salary_total: int
    expense_total: int
    other_income_total: int
    gst_total: int

class MemberPaymentStatus(SQLModel):
    user_id: uuid.UUID
    full_name: str
    current_month: int
    current_month_paid: bool
    previous_month_paid: bool
    months_paid: int

class OverdueReport(SQLModel):
    fund_id: uuid.UUID
    current_month: int
    started: bool
    members: list[MemberPaymentStatus]
    overdue: list[MemberPaymentStatus]

class CollectionStats(SQLModel):
    total_funds: int
    active_funds: int
    total_members: int
    total_collected: int
    cash_collected: int
    digital_collected: int
    total_paid_out: int

class RevenueMonth(SQLModel):
    month: int
    label: str
    revenue: int
    commission: int

class RevenueReport(SQLModel):
    year: int
    fund_id: uuid.UUID | None
    months: list[RevenueMonth]
    total_revenue: int
    total_commission: int
