from chitledger.models.user import User
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.payment import Payment
from chitledger.models.accounts import AccountsReceivable, AccountsPayable
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.transaction import FinancialTransaction
from chitledger.models.notification import Notification
from chitledger.models.admin_log import AdminLog

__all__ = [
    "User",
    "ChitFund",
    "FundMember",
    "Payment",
    "AccountsReceivable",
    "AccountsPayable",
    "MemberGroup",
    "GroupMember",
    "FinancialTransaction",
    "Notification",
    "AdminLog",
]
