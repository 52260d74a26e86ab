"""
Member withdrawals: quoting and paying out a member's share of a fund.

A payout marks the member withdrawn, writes the withdrawal payment and the
payable in one transaction, with the member row locked while the previous
withdrawal state is checked.
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from chitledger.core.exceptions import NotFoundError, ConflictError, BusinessRuleError
from chitledger.models.accounts import AccountsPayable
from chitledger.models.enums import FundStatus, PaymentType, PayableType, NotificationType
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.payment import Payment
from chitledger.models.user import User
from chitledger.schemas.fund import PayoutRequest
from chitledger.services.email import email_service, format_amount
from chitledger.services.ledger import get_fund, get_fund_member, get_member_payments, has_withdrawal_payable
from chitledger.services.notifications import add_notification, queue_email
from chitledger.utils.financials import (
    PayoutQuote, calculate_payout, default_commission, effective_fund_amount, paid_total, unique_paid_months,
)

logger = logging.getLogger(__name__)


def check_withdrawal_month(fund: ChitFund, withdrawal_month: int) -> None:
    if withdrawal_month < 1 or withdrawal_month > fund.duration:
        raise BusinessRuleError(f"Withdrawal month must be between 1 and {fund.duration}")


async def build_quote(
    session: AsyncSession,
    fund: ChitFund,
    member: FundMember,
    withdrawal_month: int,
    commission: int | None = None,
) -> PayoutQuote:
    """
    Without an explicit commission, a member on the standard ticket pays the
    fund's base commission and a member with a custom fund amount pays the
    default rate on that amount.
    """
    if commission is None:
        if member.custom_fund_amount:
            commission = default_commission(member.custom_fund_amount)
        else:
            commission = fund.base_commission
    payments = await get_member_payments(session, fund.id, member.user_id, PaymentType.MONTHLY)
    return calculate_payout(
        fund_amount=effective_fund_amount(fund.amount, member.custom_fund_amount),
        months_paid=len(unique_paid_months(payments)),
        paid_amount=paid_total(payments),
        withdrawal_month=withdrawal_month,
        commission=commission,
    )


async def get_payout_quote(
    session: AsyncSession,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    withdrawal_month: int,
    commission: int | None = None,
) -> dict:
    """
    Payout figures for a member withdrawing in `withdrawal_month`, with the
    member's live withdrawal state.
    """
    fund = await get_fund(session, fund_id)
    check_withdrawal_month(fund, withdrawal_month)
    member = await get_fund_member(session, fund_id, user_id)

    quote = await build_quote(session, fund, member, withdrawal_month, commission)
    data = quote.as_dict()
    data["is_withdrawn"] = member.is_withdrawn
    data["has_payable"] = await has_withdrawal_payable(session, fund_id, user_id)
    return data


async def process_payout(
    session: AsyncSession,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    payout_in: PayoutRequest,
    recorded_by: User,
) -> tuple[AccountsPayable, Payment, dict]:
    """
    Pay a member out of a fund.

    Rejects a member who has already been paid out, and any payout that
    would be zero or negative. A member marked withdrawn without a payable
    (an interrupted payout) is paid normally.
    """
    fund = await get_fund(session, fund_id)
    if fund.status != FundStatus.ACTIVE:
        raise ConflictError("Cannot pay out from a closed fund")
    check_withdrawal_month(fund, payout_in.withdrawal_month)

    query = (
        select(FundMember)
        .where(FundMember.fund_id == fund_id, FundMember.user_id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    member = (await session.execute(query)).scalar_one_or_none()
    if not member:
        raise NotFoundError("Member not found in fund")

    has_payable = await has_withdrawal_payable(session, fund_id, user_id)
    if member.is_withdrawn and has_payable:
        raise ConflictError("This member has already withdrawn and received payout from this fund")

    quote = await build_quote(session, fund, member, payout_in.withdrawal_month, payout_in.commission)
    if not quote.is_payable:
        raise BusinessRuleError(
            f"Payout amount must be greater than zero (calculated {format_amount(quote.payout_amount)})"
        )

    retry = member.is_withdrawn
    paid_date = payout_in.paid_date or datetime.now(timezone.utc).replace(tzinfo=None)

    member.is_withdrawn = True
    member.withdrawal_month = payout_in.withdrawal_month
    session.add(member)

    payment = Payment(
        user_id=user_id,
        fund_id=fund_id,
        amount=quote.payout_amount,
        payment_date=paid_date,
        payment_type=PaymentType.WITHDRAWAL,
        month_number=payout_in.withdrawal_month,
        payment_method=payout_in.payment_method,
        recorded_by=recorded_by.id,
        notes=payout_in.notes,
    )
    session.add(payment)

    payable = AccountsPayable(
        user_id=user_id,
        fund_id=fund_id,
        payment_type=PayableType.WITHDRAWAL,
        amount=quote.payout_amount,
        commission=quote.commission,
        paid_date=paid_date,
        recorded_by=recorded_by.id,
        notes=payout_in.notes,
        payment_id=payment.id,
    )
    session.add(payable)

    user = await session.get(User, user_id)
    add_notification(
        session,
        user,
        title="Chit Fund Withdrawal",
        body=f"You have withdrawn {format_amount(quote.payout_amount)} from {fund.name}",
        type=NotificationType.PAYMENT,
        action_url=f"/funds/{fund.id}/members/{user_id}/details",
    )

    try:
        await session.commit()
    except Exception:
        await session.rollback()
        logger.error(f"Payout for user {user_id} in fund {fund_id} failed, nothing was recorded")
        raise

    logger.info(
        f"{'Completed interrupted payout' if retry else 'Paid out'} {quote.payout_amount} to user {user_id} "
        f"from fund {fund_id} (month {payout_in.withdrawal_month}, commission {quote.commission}, penalty {quote.penalty})"
    )

    queue_email(
        user,
        subject=f"Withdrawal processed - {fund.name}",
        template="payout_processed.html",
        context=email_service.payout_context(
            user.full_name, quote.payout_amount, quote.commission, fund.name, payout_in.withdrawal_month
        ),
    )

    data = quote.as_dict()
    data["is_withdrawn"] = True
    data["has_payable"] = True
    return payable, payment, data
