from enum import StrEnum

class UserRole(StrEnum):
    ADMIN = "admin"
    AGENT = "agent"
    MEMBER = "member"

class UserStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"

class FundStatus(StrEnum):
    ACTIVE = "active"
    CLOSED = "closed"

class PaymentType(StrEnum):
    MONTHLY = "monthly"
    WITHDRAWAL = "withdrawal"

class PaymentMethod(StrEnum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    GOOGLE_PAY = "google_pay"
    PHONE_PAY = "phone_pay"
    ONLINE_PORTAL = "online_portal"

class ReceivableStatus(StrEnum):
    PARTIAL = "partial"
    PAID = "paid"

class PayableType(StrEnum):
    WITHDRAWAL = "withdrawal"
    COMMISSION = "commission"
    OTHER = "other"

class FinancialTransactionType(StrEnum):
    ADMIN_BORROW = "admin_borrow"
    ADMIN_REPAY = "admin_repay"
    EXTERNAL_LOAN = "external_loan"
    LOAN_REPAYMENT = "loan_repayment"
    AGENT_SALARY = "agent_salary"
    EXPENSE = "expense"
    OTHER_INCOME = "other_income"

class NotificationType(StrEnum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    PAYMENT = "payment"
