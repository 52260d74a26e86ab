"""
Contribution ledger and the receivable/payable projections built from it.
"""
import logging
import uuid
from collections import defaultdict

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from chitledger.core.exceptions import NotFoundError, ConflictError, BusinessRuleError
from chitledger.models.accounts import AccountsReceivable, AccountsPayable
from chitledger.models.enums import (
    FundStatus, PaymentType, PayableType, ReceivableStatus, NotificationType,
)
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.payment import Payment
from chitledger.models.user import User
from chitledger.schemas.group import GroupPaymentCreate
from chitledger.schemas.payment import PaymentCreate
from chitledger.services.email import email_service, format_amount
from chitledger.services.notifications import add_notification, queue_email
from chitledger.utils.financials import distribute_by_share, effective_fund_amount, expected_receivable_amount

logger = logging.getLogger(__name__)


async def get_fund(session: AsyncSession, fund_id: uuid.UUID) -> ChitFund:
    fund = await session.get(ChitFund, fund_id)
    if not fund:
        raise NotFoundError("Chit fund not found")
    return fund


async def get_fund_member(session: AsyncSession, fund_id: uuid.UUID, user_id: uuid.UUID) -> FundMember:
    member = await session.get(FundMember, (fund_id, user_id))
    if not member:
        raise NotFoundError("Member not found in fund")
    return member


async def get_member_payments(
    session: AsyncSession,
    fund_id: uuid.UUID,
    user_id: uuid.UUID,
    payment_type: PaymentType | None = None,
) -> list[Payment]:
    query = select(Payment).where(Payment.fund_id == fund_id, Payment.user_id == user_id)
    if payment_type:
        query = query.where(Payment.payment_type == payment_type)
    result = await session.execute(query.order_by(Payment.month_number, Payment.payment_date))
    return list(result.scalars().all())


async def has_withdrawal_payable(session: AsyncSession, fund_id: uuid.UUID, user_id: uuid.UUID) -> bool:
    query = select(AccountsPayable.id).where(
        AccountsPayable.fund_id == fund_id,
        AccountsPayable.user_id == user_id,
        AccountsPayable.payment_type == PayableType.WITHDRAWAL,
    ).limit(1)
    result = await session.execute(query)
    return result.first() is not None


def expected_monthly_amount(fund: ChitFund, member: FundMember | None) -> int:
    """
    Instalment a member owes for one month: their own monthly amount if set,
    otherwise the contribution rate applied to their fund amount.
    """
    if member is None:
        return expected_receivable_amount(fund.amount, False)
    if member.increased_monthly_amount and not member.is_withdrawn:
        return member.increased_monthly_amount
    fund_amount = effective_fund_amount(fund.amount, member.custom_fund_amount)
    return expected_receivable_amount(fund_amount, member.is_withdrawn)


def _receivable_status(paid_amount: int, expected_amount: int) -> ReceivableStatus:
    return ReceivableStatus.PAID if paid_amount >= expected_amount else ReceivableStatus.PARTIAL


async def apply_payment_to_receivable(
    session: AsyncSession,
    fund: ChitFund,
    member: FundMember | None,
    payment: Payment,
) -> AccountsReceivable:
    """
    Add a monthly payment to the member's receivable for that month,
    creating the receivable on the first payment.
    """
    query = select(AccountsReceivable).where(
        AccountsReceivable.fund_id == payment.fund_id,
        AccountsReceivable.user_id == payment.user_id,
        AccountsReceivable.month_number == payment.month_number,
    )
    result = await session.execute(query)
    receivable = result.scalar_one_or_none()

    if receivable:
        receivable.paid_amount += payment.amount
        receivable.status = _receivable_status(receivable.paid_amount, receivable.expected_amount)
        receivable.updated_at = payment.created_at
        logger.info(f"Updated receivable {receivable.id} paid amount to {receivable.paid_amount}")
    else:
        expected = expected_monthly_amount(fund, member)
        receivable = AccountsReceivable(
            user_id=payment.user_id,
            fund_id=payment.fund_id,
            month_number=payment.month_number,
            expected_amount=expected,
            paid_amount=payment.amount,
            status=_receivable_status(payment.amount, expected),
            due_date=payment.payment_date,
            recorded_by=payment.recorded_by,
        )
    session.add(receivable)
    return receivable


async def record_payment(session: AsyncSession, payment_in: PaymentCreate, recorded_by: User) -> Payment:
    """
    Record a monthly contribution and update the member's receivable in the
    same transaction.
    """
    fund = await get_fund(session, payment_in.fund_id)
    if fund.status != FundStatus.ACTIVE:
        raise ConflictError("Cannot record payments on a closed fund")

    member = await get_fund_member(session, payment_in.fund_id, payment_in.user_id)
    if payment_in.month_number > fund.duration:
        raise BusinessRuleError(f"Month number cannot exceed the fund duration of {fund.duration} months")

    user = await session.get(User, payment_in.user_id)

    payment = Payment.model_validate(
        payment_in,
        update={
            "payment_type": PaymentType.MONTHLY,
            "recorded_by": recorded_by.id,
        }
    )
    session.add(payment)
    await apply_payment_to_receivable(session, fund, member, payment)

    add_notification(
        session,
        user,
        title="Payment Received",
        body=f"Payment of {format_amount(payment.amount)} for month {payment.month_number} of {fund.name} has been recorded",
        type=NotificationType.PAYMENT,
        action_url=f"/funds/{fund.id}/members/{user.id}/details",
    )

    await session.commit()
    await session.refresh(payment)
    logger.info(f"Recorded payment {payment.id} of {payment.amount} for user {payment.user_id} in fund {fund.id} month {payment.month_number}")

    queue_email(
        user,
        subject=f"Payment received - {fund.name}",
        template="payment_received.html",
        context=email_service.payment_received_context(user.full_name, payment.amount, fund.name, payment.month_number),
    )
    return payment


async def sync_payments_to_accounts(session: AsyncSession) -> dict:
    """
    Rebuild receivables from every monthly payment and create payables for
    withdrawal payments that do not have one yet. Safe to run repeatedly.
    """
    result = await session.execute(select(Payment).order_by(Payment.payment_date))
    payments = result.scalars().all()
    logger.info(f"Found {len(payments)} payments to sync")

    funds = {f.id: f for f in (await session.execute(select(ChitFund))).scalars().all()}
    members = {
        (m.fund_id, m.user_id): m
        for m in (await session.execute(select(FundMember))).scalars().all()
    }
    receivables = {
        (r.fund_id, r.user_id, r.month_number): r
        for r in (await session.execute(select(AccountsReceivable))).scalars().all()
    }
    linked_payment_ids = set(
        (await session.execute(
            select(AccountsPayable.payment_id).where(AccountsPayable.payment_id.is_not(None))
        )).scalars().all()
    )

    monthly = defaultdict(list)
    synced_payables = 0
    error_count = 0

    for payment in payments:
        fund = funds.get(payment.fund_id)
        if fund is None:
            logger.warning(f"Payment {payment.id} references missing fund {payment.fund_id}")
            error_count += 1
            continue

        if payment.payment_type == PaymentType.MONTHLY:
            monthly[(payment.fund_id, payment.user_id, payment.month_number)].append(payment)
        elif payment.payment_type == PaymentType.WITHDRAWAL and payment.id not in linked_payment_ids:
            session.add(AccountsPayable(
                user_id=payment.user_id,
                fund_id=payment.fund_id,
                payment_type=PayableType.WITHDRAWAL,
                amount=payment.amount,
                paid_date=payment.payment_date,
                recorded_by=payment.recorded_by,
                notes=payment.notes,
                payment_id=payment.id,
            ))
            synced_payables += 1

    for key, month_payments in monthly.items():
        fund_id, user_id, month_number = key
        paid = sum(p.amount for p in month_payments)
        receivable = receivables.get(key)
        if receivable is None:
            expected = expected_monthly_amount(funds[fund_id], members.get((fund_id, user_id)))
            receivable = AccountsReceivable(
                user_id=user_id,
                fund_id=fund_id,
                month_number=month_number,
                expected_amount=expected,
                paid_amount=paid,
                due_date=month_payments[0].payment_date,
                recorded_by=month_payments[0].recorded_by,
            )
        receivable.paid_amount = paid
        receivable.status = _receivable_status(paid, receivable.expected_amount)
        session.add(receivable)

    await session.commit()
    logger.info(f"Synced {len(monthly)} receivables and {synced_payables} payables with {error_count} errors")
    return {
        "synced_receivables": len(monthly),
        "synced_payables": synced_payables,
        "error_count": error_count,
    }


async def record_group_payment(
    session: AsyncSession,
    group: MemberGroup,
    payment_in: GroupPaymentCreate,
    recorded_by: User,
) -> list[tuple[GroupMember, Payment]]:
    """
    Split one group payment across the group's members by share percentage
    and record a monthly payment for each, all in one transaction.
    """
    fund = await get_fund(session, payment_in.fund_id)
    if fund.status != FundStatus.ACTIVE:
        raise ConflictError("Cannot record payments on a closed fund")
    if payment_in.month_number > fund.duration:
        raise BusinessRuleError(f"Month number cannot exceed the fund duration of {fund.duration} months")

    result = await session.execute(
        select(GroupMember).where(GroupMember.group_id == group.id).order_by(GroupMember.added_at)
    )
    group_members = list(result.scalars().all())
    if not group_members:
        raise BusinessRuleError("Group has no members")
    total_share = sum(gm.share_percentage for gm in group_members)
    if total_share != 100:
        raise BusinessRuleError(f"Group shares must total 100%, currently {total_share}%")

    members = [await get_fund_member(session, fund.id, gm.user_id) for gm in group_members]
    amounts = distribute_by_share(payment_in.amount, [gm.share_percentage for gm in group_members])
    recorded = []
    for gm, member, amount in zip(group_members, members, amounts):
        payment = Payment(
            user_id=gm.user_id,
            fund_id=fund.id,
            amount=amount,
            payment_date=payment_in.payment_date,
            payment_type=PaymentType.MONTHLY,
            month_number=payment_in.month_number,
            payment_method=payment_in.payment_method,
            recorded_by=recorded_by.id,
            notes=payment_in.notes or f"Group payment: {group.name}",
        )
        session.add(payment)
        await apply_payment_to_receivable(session, fund, member, payment)

        user = await session.get(User, gm.user_id)
        add_notification(
            session,
            user,
            title="Payment Received",
            body=f"Your {gm.share_percentage}% share ({format_amount(amount)}) of the {group.name} payment for month {payment.month_number} of {fund.name} has been recorded",
            type=NotificationType.PAYMENT,
            action_url=f"/funds/{fund.id}/members/{user.id}/details",
        )
        recorded.append((gm, payment, user))

    await session.commit()
    logger.info(f"Recorded group payment of {payment_in.amount} for group {group.id} across {len(recorded)} members in fund {fund.id}")

    for gm, payment, user in recorded:
        queue_email(
            user,
            subject=f"Payment received - {fund.name}",
            template="payment_received.html",
            context=email_service.payment_received_context(user.full_name, payment.amount, fund.name, payment.month_number),
        )
    return [(gm, payment) for gm, payment, _ in recorded]
