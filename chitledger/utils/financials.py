"""
Chit fund arithmetic.

All amounts are integer paise. Rates come from settings so every figure
(contribution, payout bonus, display bonus, commission, penalty) has a single
definition.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from chitledger.core.config import settings
from chitledger.models.enums import PaymentType


def _apply_rate(amount: int, rate: float) -> int:
    value = Decimal(amount) * Decimal(str(rate))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def effective_fund_amount(fund_amount: int, custom_fund_amount: int | None = None) -> int:
    """A member's custom fund amount replaces the fund principal when set."""
    return custom_fund_amount if custom_fund_amount else fund_amount


def monthly_payment(fund_amount: int) -> int:
    """Standard monthly instalment: 5% of the fund amount (5k per lakh)."""
    return _apply_rate(fund_amount, settings.CONTRIBUTION_RATE)


def contribution_bonus(monthly_contribution: int) -> int:
    return _apply_rate(monthly_contribution, settings.PAYOUT_BONUS_RATE)


def monthly_bonus(fund_amount: int) -> int:
    """Bonus earned for each paid month: 20% of the monthly instalment."""
    return contribution_bonus(monthly_payment(fund_amount))


def bonus_amount(fund_amount: int, months_paid: int) -> int:
    return months_paid * monthly_bonus(fund_amount)


def remaining_amount(fund_amount: int, paid_amount: int) -> int:
    return max(0, fund_amount - paid_amount)


def default_commission(fund_amount: int) -> int:
    return _apply_rate(fund_amount, settings.COMMISSION_RATE)


def late_withdrawal_penalty(withdrawal_month: int, months_paid: int) -> int:
    """
    Flat penalty for every month the withdrawal is later than the member's
    next due month (months_paid + 1).
    """
    delay = max(0, withdrawal_month - (months_paid + 1))
    return delay * settings.LATE_WITHDRAWAL_PENALTY


def expected_bonus(monthly_contribution: int) -> int:
    """Display-only bonus estimate shown next to a contribution override."""
    return _apply_rate(monthly_contribution, settings.EXPECTED_BONUS_RATE)


def effective_monthly_contribution(
    fund_amount: int,
    custom_fund_amount: int | None = None,
    increased_monthly_amount: int | None = None,
) -> int:
    if increased_monthly_amount:
        return increased_monthly_amount
    return monthly_payment(effective_fund_amount(fund_amount, custom_fund_amount))


def expected_receivable_amount(fund_amount: int, is_withdrawn: bool) -> int:
    """Instalment owed for a month; members who already took the fund owe more."""
    rate = settings.WITHDRAWN_CONTRIBUTION_RATE if is_withdrawn else settings.CONTRIBUTION_RATE
    return _apply_rate(fund_amount, rate)


def unique_paid_months(payments: Iterable) -> set[int]:
    """Month numbers that have at least one monthly payment, however many were recorded."""
    return {
        p.month_number
        for p in payments
        if p.payment_type == PaymentType.MONTHLY and p.month_number is not None
    }


def paid_total(payments: Iterable) -> int:
    return sum(p.amount for p in payments if p.payment_type == PaymentType.MONTHLY)


def current_month_number(start_date: datetime, now: datetime | None = None) -> int:
    """
    1-based month of a fund for the given date. The month rolls over on the
    same day of month as the start date.
    """
    now = now or datetime.now()
    months_passed = (now.year - start_date.year) * 12 + (now.month - start_date.month)
    if now.day < start_date.day:
        months_passed -= 1
    return max(1, months_passed + 1)


def add_months(start: datetime, months: int) -> datetime:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp to the last valid day (e.g. Jan 31 + 1 month -> Feb 28/29)
    for day in (start.day, 30, 29, 28):
        try:
            return start.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError(f"Cannot add {months} months to {start}")


def distribute_by_share(total: int, shares: Sequence[Decimal]) -> list[int]:
    """
    Split `total` by percentage shares. Each part is rounded down to the paisa
    and the remainder goes to the last share so the parts always add up.
    """
    if not shares:
        return []
    parts = [int(Decimal(total) * Decimal(share) / Decimal(100)) for share in shares]
    parts[-1] += total - sum(parts)
    return parts


@dataclass
class PayoutQuote:
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

    @property
    def is_payable(self) -> bool:
        return self.payout_amount > 0

    def as_dict(self) -> dict:
        data = asdict(self)
        data["is_payable"] = self.is_payable
        return data


def calculate_payout(
    fund_amount: int,
    months_paid: int,
    paid_amount: int,
    withdrawal_month: int,
    commission: int | None = None,
) -> PayoutQuote:
    """
    payout = paid + bonus + (remaining - commission) - penalty

    `commission` defaults to 5% of the fund amount when not given.
    """
    if commission is None:
        commission = default_commission(fund_amount)

    bonus = bonus_amount(fund_amount, months_paid)
    remaining = remaining_amount(fund_amount, paid_amount)
    penalty = late_withdrawal_penalty(withdrawal_month, months_paid)
    payout = paid_amount + bonus + (remaining - commission) - penalty

    return PayoutQuote(
        fund_amount=fund_amount,
        months_paid=months_paid,
        paid_amount=paid_amount,
        monthly_payment=monthly_payment(fund_amount),
        monthly_bonus=monthly_bonus(fund_amount),
        bonus_amount=bonus,
        remaining_amount=remaining,
        commission=commission,
        withdrawal_month=withdrawal_month,
        penalty=penalty,
        payout_amount=payout,
    )
