import uuid
from datetime import datetime
import pytest
from httpx import AsyncClient
from sqlmodel import select

from chitledger.models.accounts import AccountsReceivable
from chitledger.models.enums import PaymentType, PaymentMethod
from chitledger.models.payment import Payment
from tests.utils import (
    API, register_admin, create_user_and_get_headers, create_fund, add_member,
    fund_with_member, record_payment,
)

@pytest.mark.asyncio
async def test_sync_is_idempotent(client: AsyncClient, session):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    await record_payment(client, headers, fund["id"], member["id"], 1, amount=250_000)
    await record_payment(client, headers, fund["id"], member["id"], 1, amount=250_000)
    await record_payment(client, headers, fund["id"], member["id"], 2)

    for _ in range(2):
        resp = await client.post(f"{API}/accounts/sync", headers=headers)
        assert resp.status_code == 200
        assert resp.json()["data"] == {"synced_receivables": 2, "synced_payables": 0, "error_count": 0}

    result = await session.execute(
        select(AccountsReceivable).where(AccountsReceivable.fund_id == uuid.UUID(fund["id"]))
    )
    receivables = sorted(result.scalars().all(), key=lambda r: r.month_number)
    assert [(r.month_number, r.paid_amount, r.status) for r in receivables] == [(1, 500_000, "paid"), (2, 500_000, "paid")]

@pytest.mark.asyncio
async def test_sync_creates_missing_payables(client: AsyncClient, session):
    admin, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    # A withdrawal recorded before payables existed
    session.add(Payment(
        user_id=uuid.UUID(member["id"]),
        fund_id=uuid.UUID(fund["id"]),
        amount=9_000_000,
        payment_date=datetime(2025, 6, 1),
        payment_type=PaymentType.WITHDRAWAL,
        month_number=6,
        payment_method=PaymentMethod.BANK_TRANSFER,
        recorded_by=uuid.UUID(admin["id"]),
    ))
    await session.commit()

    resp = await client.post(f"{API}/accounts/sync", headers=headers)
    assert resp.json()["data"]["synced_payables"] == 1
    resp = await client.post(f"{API}/accounts/sync", headers=headers)
    assert resp.json()["data"]["synced_payables"] == 0

    [payable] = (await client.get(f"{API}/accounts/payables", headers=headers)).json()["data"]
    assert payable["payment_type"] == "withdrawal"
    assert payable["amount"] == 9_000_000

@pytest.mark.asyncio
async def test_sync_requires_admin(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    _, agent_headers = await create_user_and_get_headers(client, admin_headers, role="agent")

    resp = await client.post(f"{API}/accounts/sync", headers=agent_headers)
    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_receivable_filters(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    for month in (1, 2, 3):
        await record_payment(client, headers, fund["id"], member["id"], month)

    resp = await client.get(
        f"{API}/accounts/receivables",
        params={"fund_id": fund["id"], "month_number": 2, "user_id": member["id"]},
        headers=headers,
    )
    [receivable] = resp.json()["data"]
    assert receivable["month_number"] == 2

@pytest.mark.asyncio
async def test_member_sees_only_own_accounts(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    fund = await create_fund(client, admin_headers)
    member, member_headers = await create_user_and_get_headers(client, admin_headers)
    other, _ = await create_user_and_get_headers(client, admin_headers)
    for user in (member, other):
        await add_member(client, admin_headers, fund["id"], user["id"])
        await record_payment(client, admin_headers, fund["id"], user["id"], 1)

    resp = await client.get(f"{API}/accounts/receivables", headers=member_headers)
    assert [r["user_id"] for r in resp.json()["data"]] == [member["id"]]

    resp = await client.get(f"{API}/accounts/receivables", params={"user_id": other["id"]}, headers=member_headers)
    assert resp.status_code == 403

    resp = await client.get(f"{API}/accounts/payables", params={"user_id": other["id"]}, headers=member_headers)
    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_manual_receivable(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    receivable = {
        "user_id": member["id"],
        "fund_id": fund["id"],
        "month_number": 5,
        "expected_amount": 500_000,
        "due_date": "2025-05-05T00:00:00",
    }

    resp = await client.post(f"{API}/accounts/receivables", json=receivable, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "partial"
    assert resp.json()["data"]["paid_amount"] == 0

    resp = await client.post(f"{API}/accounts/receivables", json=receivable, headers=headers)
    assert resp.status_code == 400

@pytest.mark.asyncio
async def test_manual_payable(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    payable = {
        "user_id": member["id"],
        "fund_id": fund["id"],
        "payment_type": "commission",
        "amount": 50_000,
        "paid_date": "2025-05-05T00:00:00",
    }

    resp = await client.post(f"{API}/accounts/payables", json=payable, headers=headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["payment_id"] is None

    resp = await client.post(f"{API}/accounts/payables", json={**payable, "payment_type": "withdrawal"}, headers=headers)
    assert resp.status_code == 400

    resp = await client.get(f"{API}/accounts/payables", params={"payment_type": "commission"}, headers=headers)
    assert len(resp.json()["data"]) == 1
