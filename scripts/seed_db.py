import asyncio
import logging
import random
from datetime import datetime, timedelta
from faker import Faker

from sqlalchemy import text
from chitledger.db.session import AsyncSessionLocal
from chitledger.models.user import User
from chitledger.models.fund import ChitFund, FundMember
from chitledger.models.group import MemberGroup, GroupMember
from chitledger.models.payment import Payment
from chitledger.models.transaction import FinancialTransaction
from chitledger.models.enums import (
    UserRole, PaymentType, PaymentMethod, FinancialTransactionType,
)
from chitledger.core.security import get_password_hash
from chitledger.services.ledger import sync_payments_to_accounts
from chitledger.utils.financials import (
    add_months, default_commission, monthly_bonus, monthly_payment,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Constants
PASSWORD = "password123"
hashed_password = get_password_hash(PASSWORD)
fake = Faker("en_IN")

def make_fund(name: str, amount: int, start_date: datetime) -> ChitFund:
    return ChitFund(
        name=name,
        amount=amount,
        duration=20,
        member_count=20,
        start_date=start_date,
        end_date=add_months(start_date, 19),
        base_commission=default_commission(amount),
        monthly_contribution=monthly_payment(amount),
        monthly_bonus=monthly_bonus(amount),
    )

async def seed_data():
    async with AsyncSessionLocal() as session:
        # 0. Clear Database
        logger.info("Clearing database...")
        await session.execute(text(
            'TRUNCATE TABLE "user", chitfund, fundmember, payment, accountsreceivable, accountspayable, '
            'membergroup, groupmember, financialtransaction, notification, adminlog RESTART IDENTITY CASCADE'
        ))
        await session.commit()

        # 1. Users
        logger.info("Creating users...")
        admin = User(
            username="admin",
            email="admin@example.com",
            full_name="Ledger Admin",
            phone="+919800000000",
            role=UserRole.ADMIN,
            hashed_password=hashed_password,
        )
        agent = User(
            username="agent",
            email="agent@example.com",
            full_name="Field Agent",
            phone="+919800000001",
            role=UserRole.AGENT,
            hashed_password=hashed_password,
        )
        session.add_all([admin, agent])
        await session.commit()

        members = []
        for i in range(30):
            profile = fake.simple_profile()
            member = User(
                username=f"{profile['username']}{i}",
                email=f"member{i}@example.com",
                full_name=profile["name"],
                phone=f"+91{random.randint(7000000000, 9999999999)}",
                role=UserRole.MEMBER,
                agent_id=agent.id,
                hashed_password=hashed_password,
            )
            session.add(member)
            members.append(member)
        await session.commit()
        logger.info(f"Created {len(members) + 2} users.")

        # 2. Funds and memberships
        logger.info("Creating funds...")
        today = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
        funds = [
            make_fund("Lakshmi 1 Lakh", 10_000_000, add_months(today, -6)),
            make_fund("Ganesh 2 Lakh", 20_000_000, add_months(today, -3)),
        ]
        session.add_all(funds)
        await session.commit()

        for fund, fund_members in ((funds[0], members[:15]), (funds[1], members[15:28])):
            for member in fund_members:
                session.add(FundMember(fund_id=fund.id, user_id=member.id, joined_at=fund.start_date))
        await session.commit()

        # A shared ticket: two members splitting one slot 60/40
        group = MemberGroup(name="Shared ticket A", created_by=admin.id)
        session.add(group)
        await session.commit()
        for user, share in ((members[28], 60), (members[29], 40)):
            session.add(GroupMember(group_id=group.id, user_id=user.id, share_percentage=share))
            session.add(FundMember(fund_id=funds[1].id, user_id=user.id, group_id=group.id, share_identifier=group.name))
        await session.commit()

        # 3. Monthly payments, with the odd missed month
        logger.info("Creating payments...")
        rows = (await session.execute(text("SELECT fund_id, user_id FROM fundmember"))).all()
        fund_by_id = {f.id: f for f in funds}
        payment_count = 0
        for fund_id, user_id in rows:
            fund = fund_by_id[fund_id]
            months_elapsed = (today.year - fund.start_date.year) * 12 + today.month - fund.start_date.month
            for month in range(1, months_elapsed + 1):
                if random.random() < 0.1:
                    continue
                session.add(Payment(
                    user_id=user_id,
                    fund_id=fund_id,
                    amount=fund.monthly_contribution,
                    payment_date=add_months(fund.start_date, month - 1) + timedelta(days=random.randint(0, 5)),
                    payment_type=PaymentType.MONTHLY,
                    month_number=month,
                    payment_method=random.choice(list(PaymentMethod)),
                    recorded_by=agent.id,
                ))
                payment_count += 1
        await session.commit()
        logger.info(f"Created {payment_count} payments.")

        # 4. Cash book
        logger.info("Creating financial transactions...")
        session.add_all([
            FinancialTransaction(
                transaction_date=add_months(today, -2),
                amount=5_000_000,
                transaction_type=FinancialTransactionType.ADMIN_BORROW,
                description="Float for early payouts",
                recorded_by=admin.id,
            ),
            FinancialTransaction(
                transaction_date=add_months(today, -1),
                amount=1_500_000,
                transaction_type=FinancialTransactionType.AGENT_SALARY,
                agent_id=agent.id,
                recorded_by=admin.id,
            ),
            FinancialTransaction(
                transaction_date=add_months(today, -1),
                amount=250_000,
                transaction_type=FinancialTransactionType.EXPENSE,
                description="Office stationery",
                gst_eligible=True,
                hsn="4820",
                recorded_by=admin.id,
            ),
        ])
        await session.commit()

        # 5. Receivables from the payment ledger
        result = await sync_payments_to_accounts(session)
        logger.info(f"Synced accounts: {result}")
        logger.info("SEEDING COMPLETE!")

if __name__ == "__main__":
    asyncio.run(seed_data())
