import uuid
import logging
from sqladmin import Admin, ModelView
from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request
from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select

from chitledger.models import (
    User, ChitFund, FundMember, Payment, AccountsReceivable, AccountsPayable,
    MemberGroup, FinancialTransaction, AdminLog,
)
from chitledger.models.enums import UserRole
from chitledger.core import security
from chitledger.core.config import settings
from chitledger.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)

class AdminAuth(AuthenticationBackend):
    """
    Authentication backend for the back office. Only active admins may log in.
    """
    async def login(self, request: Request) -> bool:
        form = await request.form()
        username, password = form["username"], form["password"]

        async with AsyncSessionLocal() as session:
            result = await session.execute(select(User).where(User.username == username))
            user = result.scalars().first()

        if not user or not security.verify_password(password, user.hashed_password):
            return False

        if user.role != UserRole.ADMIN or not user.is_active:
            return False

        request.session.update({"token": security.create_access_token(user.id)})
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        token = request.session.get("token")
        return bool(token and security.verify_token(token))

class BaseAdminView(ModelView):
    """
    Base view writing every create, update and delete to the admin log.
    """
    async def after_model_change(self, data: dict, model: object, is_created: bool, request: Request):
        action = "create" if is_created else "update"
        await self._log_action(request, action, model)

    async def after_model_delete(self, model: object, request: Request):
        await self._log_action(request, "delete", model)

    async def _log_action(self, request: Request, action: str, model: object):
        subject = security.verify_token(request.session.get("token", ""))
        if not subject:
            logger.warning(f"Back office {action} on {model.__class__.__name__} without a valid session token")
            return

        async with AsyncSessionLocal() as session:
            log = AdminLog(
                admin_id=uuid.UUID(subject),
                action=action,
                target_id=str(getattr(model, "id", "N/A")),
                target_model=model.__class__.__name__,
                ip_address=request.client.host if request.client else None,
                details=f"Back office {action} on {model.__class__.__name__}"
            )
            session.add(log)
            await session.commit()

class UserAdmin(BaseAdminView, model=User):
    column_list = [User.id, User.username, User.full_name, User.role, User.status]
    column_searchable_list = [User.username, User.full_name, User.email]
    column_exclude_list = [User.hashed_password]
    form_excluded_columns = [User.hashed_password]

class ChitFundAdmin(BaseAdminView, model=ChitFund):
    column_list = [ChitFund.id, ChitFund.name, ChitFund.amount, ChitFund.status, ChitFund.start_date]
    column_searchable_list = [ChitFund.name]
    form_excluded_columns = [ChitFund.amount]

class FundMemberAdmin(BaseAdminView, model=FundMember):
    column_list = [FundMember.fund_id, FundMember.user_id, FundMember.is_withdrawn, FundMember.withdrawal_month]

class PaymentAdmin(ModelView, model=Payment):
    """
    Payments are an append-only ledger; the back office only reads them.
    """
    column_list = [Payment.id, Payment.user_id, Payment.fund_id, Payment.amount, Payment.payment_type, Payment.month_number, Payment.payment_date]
    column_sortable_list = [Payment.payment_date]
    column_default_sort = ("payment_date", True)
    can_create = False
    can_edit = False
    can_delete = False

class ReceivableAdmin(BaseAdminView, model=AccountsReceivable):
    column_list = [AccountsReceivable.user_id, AccountsReceivable.fund_id, AccountsReceivable.month_number, AccountsReceivable.expected_amount, AccountsReceivable.paid_amount, AccountsReceivable.status]

class PayableAdmin(BaseAdminView, model=AccountsPayable):
    column_list = [AccountsPayable.user_id, AccountsPayable.fund_id, AccountsPayable.payment_type, AccountsPayable.amount, AccountsPayable.commission, AccountsPayable.paid_date]

class MemberGroupAdmin(BaseAdminView, model=MemberGroup):
    column_list = [MemberGroup.id, MemberGroup.name, MemberGroup.created_at]

class FinancialTransactionAdmin(BaseAdminView, model=FinancialTransaction):
    column_list = [FinancialTransaction.transaction_date, FinancialTransaction.transaction_type, FinancialTransaction.amount, FinancialTransaction.gst_eligible]
    column_default_sort = ("transaction_date", True)

class AdminLogAdmin(ModelView, model=AdminLog):
    """
    Admin view for AdminLog model (Read-only).
    """
    column_list = [AdminLog.admin_id, AdminLog.action, AdminLog.target_model, AdminLog.timestamp]
    can_create = False
    can_edit = False
    can_delete = False

def setup_admin(app: FastAPI, engine: AsyncEngine) -> Admin:
    """
    Mount the back office at /admin.
    """
    authentication_backend = AdminAuth(secret_key=settings.SECRET_KEY)
    admin = Admin(app, engine, authentication_backend=authentication_backend)

    admin.add_view(UserAdmin)
    admin.add_view(ChitFundAdmin)
    admin.add_view(FundMemberAdmin)
    admin.add_view(PaymentAdmin)
    admin.add_view(ReceivableAdmin)
    admin.add_view(PayableAdmin)
    admin.add_view(MemberGroupAdmin)
    admin.add_view(FinancialTransactionAdmin)
    admin.add_view(AdminLogAdmin)
    return admin
