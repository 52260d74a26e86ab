"""
GST returns, cash-book summary and collection status. Read-only aggregation.
"""
import uuid
from collections import defaultdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from chitledger.core.config import settings
from chitledger.core.exceptions import BusinessRuleError
from chitledger.models.accounts import AccountsPayable
from chitledger.models.enums import (
    FinancialTransactionType, FundStatus, PayableType, PaymentMethod, PaymentType,
)
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.payment import Payment
from chitledger.models.transaction import FinancialTransaction
from chitledger.models.user import User
from chitledger.services.ledger import get_fund
from chitledger.utils.financials import add_months, current_month_number, unique_paid_months


def _percent_of(amount: int, rate: float) -> int:
    value = Decimal(amount) * Decimal(str(rate)) / Decimal(100)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    if not 1 <= month <= 12:
        raise BusinessRuleError("Month must be between 1 and 12")
    start = datetime(year, month, 1)
    return start, add_months(start, 1)


def invoice_number(year: int, month: int, index: int) -> str:
    return f"INV-{year}{month:02d}-{index + 1:03d}"


async def gstr1(session: AsyncSession, year: int, month: int) -> dict:
    """
    Outward supplies: commission earned on payouts made in the month, one
    invoice per (fund, member).
    """
    start, end = month_bounds(year, month)
    query = (
        select(AccountsPayable, ChitFund, User)
        .join(ChitFund, ChitFund.id == AccountsPayable.fund_id)
        .join(User, User.id == AccountsPayable.user_id)
        .where(
            AccountsPayable.payment_type == PayableType.WITHDRAWAL,
            AccountsPayable.paid_date >= start,
            AccountsPayable.paid_date < end,
        )
        .order_by(AccountsPayable.paid_date)
    )
    rows = (await session.execute(query)).all()

    grouped: dict[tuple[uuid.UUID, uuid.UUID], dict] = {}
    for payable, fund, user in rows:
        commission = payable.commission if payable.commission is not None else fund.base_commission
        key = (fund.id, user.id)
        if key in grouped:
            grouped[key]["commission"] += commission
        else:
            grouped[key] = {
                "date": payable.paid_date,
                "fund_id": fund.id,
                "fund_name": fund.name,
                "user_id": user.id,
                "customer_name": user.full_name,
                "commission": commission,
            }

    entries = []
    for index, item in enumerate(grouped.values()):
        gst_amount = _percent_of(item["commission"], settings.GST_RATE)
        entries.append({
            **item,
            "invoice_no": invoice_number(year, month, index),
            "gst_rate": settings.GST_RATE,
            "gst_amount": gst_amount,
            "total": item["commission"] + gst_amount,
        })

    return {
        "year": year,
        "month": month,
        "entries": entries,
        "total_commission": sum(e["commission"] for e in entries),
        "total_gst": sum(e["gst_amount"] for e in entries),
        "total": sum(e["total"] for e in entries),
    }


def transaction_gst(tx: FinancialTransaction) -> tuple[float, int]:
    rate = tx.gst_rate if tx.gst_rate is not None else settings.GST_RATE
    amount = tx.gst_amount if tx.gst_amount is not None else _percent_of(tx.amount, rate)
    return rate, amount


async def gstr2b(session: AsyncSession, year: int, month: int) -> dict:
    """Input tax credit: GST paid on eligible expenses in the month."""
    start, end = month_bounds(year, month)
    query = select(FinancialTransaction).where(
        FinancialTransaction.gst_eligible == True,  # noqa: E712
        FinancialTransaction.transaction_date >= start,
        FinancialTransaction.transaction_date < end,
    ).order_by(FinancialTransaction.transaction_date)
    transactions = (await session.execute(query)).scalars().all()

    entries = []
    for tx in transactions:
        rate, gst_amount = transaction_gst(tx)
        entries.append({
            "transaction_id": tx.id,
            "date": tx.transaction_date,
            "description": tx.description,
            "hsn": tx.hsn,
            "amount": tx.amount,
            "gst_rate": rate,
            "gst_amount": gst_amount,
        })

    return {
        "year": year,
        "month": month,
        "entries": entries,
        "total_amount": sum(e["amount"] for e in entries),
        "total_gst": sum(e["gst_amount"] for e in entries),
    }


async def gstr3b(session: AsyncSession, year: int, month: int) -> dict:
    outward = await gstr1(session, year, month)
    inward = await gstr2b(session, year, month)
    return {
        "year": year,
        "month": month,
        "gst_on_commission": outward["total_gst"],
        "input_tax_credit": inward["total_gst"],
        "net_gst_payable": max(0, outward["total_gst"] - inward["total_gst"]),
    }


async def financial_summary(session: AsyncSession) -> dict:
    transactions = (await session.execute(select(FinancialTransaction))).scalars().all()

    totals = defaultdict(int)
    gst_total = 0
    for tx in transactions:
        totals[tx.transaction_type] += tx.amount
        if tx.gst_eligible:
            gst_total += transaction_gst(tx)[1]

    borrowed = totals[FinancialTransactionType.ADMIN_BORROW]
    repaid = totals[FinancialTransactionType.ADMIN_REPAY]
    loans = totals[FinancialTransactionType.EXTERNAL_LOAN]
    loan_repaid = totals[FinancialTransactionType.LOAN_REPAYMENT]
    return {
        "admin_borrow_total": borrowed,
        "admin_repay_total": repaid,
        "admin_net_debt": borrowed - repaid,
        "external_loan_total": loans,
        "loan_repayment_total": loan_repaid,
        "external_net_debt": loans - loan_repaid,
        "agent_salary_total": totals[FinancialTransactionType.AGENT_SALARY],
        "expense_total": totals[FinancialTransactionType.EXPENSE],
        "other_income_total": totals[FinancialTransactionType.OTHER_INCOME],
        "gst_total": gst_total,
    }


async def payment_status(session: AsyncSession, fund_id: uuid.UUID, now: datetime | None = None) -> dict:
    """
    Whether each member has paid the current and the previous fund month.
    Members missing either are overdue. Nobody is overdue before the fund starts.
    """
    fund = await get_fund(session, fund_id)
    now = now or datetime.now()
    started = now >= fund.start_date
    current = min(fund.duration, current_month_number(fund.start_date, now))

    query = (
        select(FundMember, User)
        .join(User, User.id == FundMember.user_id)
        .where(FundMember.fund_id == fund_id)
        .order_by(User.full_name)
    )
    rows = (await session.execute(query)).all()

    payments = (await session.execute(
        select(Payment).where(Payment.fund_id == fund_id, Payment.payment_type == PaymentType.MONTHLY)
    )).scalars().all()
    by_user = defaultdict(list)
    for payment in payments:
        by_user[payment.user_id].append(payment)

    members = []
    for member, user in rows:
        months = unique_paid_months(by_user[member.user_id])
        members.append({
            "user_id": user.id,
            "full_name": user.full_name,
            "current_month": current,
            "current_month_paid": current in months,
            "previous_month_paid": current == 1 or (current - 1) in months,
            "months_paid": len(months),
        })

    return {
        "fund_id": fund.id,
        "current_month": current,
        "started": started,
        "members": members,
        "overdue": [
            m for m in members if started and not (m["current_month_paid"] and m["previous_month_paid"])
        ],
    }


async def collection_stats(session: AsyncSession) -> dict:
    total_funds = (await session.execute(select(func.count()).select_from(ChitFund))).scalar_one()
    active_funds = (await session.execute(
        select(func.count()).select_from(ChitFund).where(ChitFund.status == FundStatus.ACTIVE)
    )).scalar_one()
    total_members = (await session.execute(
        select(func.count(func.distinct(FundMember.user_id)))
    )).scalar_one()

    query = (
        select(Payment.payment_method, func.coalesce(func.sum(Payment.amount), 0))
        .where(Payment.payment_type == PaymentType.MONTHLY)
        .group_by(Payment.payment_method)
    )
    by_method = {method: int(total) for method, total in (await session.execute(query)).all()}
    cash = by_method.get(PaymentMethod.CASH, 0)
    total = sum(by_method.values())

    paid_out = (await session.execute(
        select(func.coalesce(func.sum(AccountsPayable.amount), 0))
        .where(AccountsPayable.payment_type == PayableType.WITHDRAWAL)
    )).scalar_one()

    return {
        "total_funds": total_funds,
        "active_funds": active_funds,
        "total_members": total_members,
        "total_collected": total,
        "cash_collected": cash,
        "digital_collected": total - cash,
        "total_paid_out": int(paid_out),
    }


async def monthly_revenue(session: AsyncSession, year: int, fund_id: uuid.UUID | None = None) -> dict:
    """
    Per calendar month of `year`: monthly instalments collected (revenue) and
    commission kept on payouts. Optionally limited to one fund.
    """
    if fund_id is not None:
        await get_fund(session, fund_id)
    start, end = datetime(year, 1, 1), datetime(year + 1, 1, 1)

    payment_query = select(Payment).where(
        Payment.payment_type == PaymentType.MONTHLY,
        Payment.payment_date >= start,
        Payment.payment_date < end,
    )
    payable_query = select(AccountsPayable).where(
        AccountsPayable.payment_type == PayableType.WITHDRAWAL,
        AccountsPayable.paid_date >= start,
        AccountsPayable.paid_date < end,
    )
    if fund_id is not None:
        payment_query = payment_query.where(Payment.fund_id == fund_id)
        payable_query = payable_query.where(AccountsPayable.fund_id == fund_id)

    revenue = defaultdict(int)
    for payment in (await session.execute(payment_query)).scalars().all():
        revenue[payment.payment_date.month] += payment.amount
    commission = defaultdict(int)
    for payable in (await session.execute(payable_query)).scalars().all():
        commission[payable.paid_date.month] += payable.commission or 0

    months = [
        {"month": month, "label": f"{year}-{month:02d}", "revenue": revenue[month], "commission": commission[month]}
        for month in range(1, 13)
    ]
    return {
        "year": year,
        "fund_id": fund_id,
        "months": months,
        "total_revenue": sum(revenue.values()),
        "total_commission": sum(commission.values()),
    }
