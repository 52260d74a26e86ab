import uuid
import pytest
from httpx import AsyncClient
from sqlmodel import select

from chitledger.models.notification import Notification
from tests.utils import (
    API, register_admin, create_user, create_user_and_get_headers, create_fund, add_member,
    fund_with_member, record_payment,
)

@pytest.mark.asyncio
async def test_record_payment(client: AsyncClient):
    admin, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    resp = await record_payment(client, headers, fund["id"], member["id"], 1, payment_method="google_pay")
    assert resp.status_code == 201
    data = resp.json()
    assert data["message"] == "Payment recorded successfully"
    assert data["data"]["payment_type"] == "monthly"
    assert data["data"]["payment_method"] == "google_pay"
    assert data["data"]["recorded_by"] == admin["id"]

@pytest.mark.asyncio
async def test_agent_records_payment_member_cannot(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    fund = await create_fund(client, admin_headers)
    member, member_headers = await create_user_and_get_headers(client, admin_headers)
    _, agent_headers = await create_user_and_get_headers(client, admin_headers, role="agent")
    await add_member(client, admin_headers, fund["id"], member["id"])

    resp = await record_payment(client, agent_headers, fund["id"], member["id"], 1)
    assert resp.status_code == 201

    resp = await record_payment(client, member_headers, fund["id"], member["id"], 2)
    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_payment_requires_membership(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)
    outsider = await create_user(client, headers)

    resp = await record_payment(client, headers, fund["id"], outsider["id"], 1)
    assert resp.status_code == 404
    assert resp.json() == {"message": "Member not found in fund", "data": {}}

@pytest.mark.asyncio
async def test_payment_month_within_duration(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    resp = await record_payment(client, headers, fund["id"], member["id"], 21)
    assert resp.status_code == 400

    resp = await record_payment(client, headers, fund["id"], member["id"], 0)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation Error"

@pytest.mark.asyncio
async def test_split_payments_count_as_one_month(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    await record_payment(client, headers, fund["id"], member["id"], 1, amount=250_000)
    await record_payment(client, headers, fund["id"], member["id"], 1, amount=250_000)
    await record_payment(client, headers, fund["id"], member["id"], 2)

    resp = await client.get(f"{API}/payments/user/{member['id']}/fund/{fund['id']}", headers=headers)
    assert resp.status_code == 200
    history = resp.json()["data"]
    assert len(history["payments"]) == 3
    assert history["paid_months"] == [1, 2]
    assert history["months_paid"] == 2
    assert history["paid_amount"] == 1_000_000

@pytest.mark.asyncio
async def test_payment_updates_receivable(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    await record_payment(client, headers, fund["id"], member["id"], 1, amount=200_000)
    resp = await client.get(f"{API}/accounts/receivables", params={"fund_id": fund["id"]}, headers=headers)
    [receivable] = resp.json()["data"]
    assert receivable["expected_amount"] == 500_000
    assert receivable["paid_amount"] == 200_000
    assert receivable["status"] == "partial"

    await record_payment(client, headers, fund["id"], member["id"], 1, amount=300_000)
    resp = await client.get(f"{API}/accounts/receivables", params={"fund_id": fund["id"]}, headers=headers)
    [receivable] = resp.json()["data"]
    assert receivable["paid_amount"] == 500_000
    assert receivable["status"] == "paid"

@pytest.mark.asyncio
async def test_payment_notifies_member(client: AsyncClient, session):
    _, admin_headers = await register_admin(client)
    fund = await create_fund(client, admin_headers)
    member, member_headers = await create_user_and_get_headers(client, admin_headers)
    await add_member(client, admin_headers, fund["id"], member["id"])

    await record_payment(client, admin_headers, fund["id"], member["id"], 1)

    resp = await client.get(f"{API}/notifications/", headers=member_headers)
    [notification] = resp.json()["data"]
    assert notification["title"] == "Payment Received"
    assert notification["type"] == "payment"
    assert notification["is_read"] is False

    resp = await client.post(f"{API}/notifications/{notification['id']}/read", headers=member_headers)
    assert resp.status_code == 200

    result = await session.execute(select(Notification).where(Notification.user_id == uuid.UUID(member["id"])))
    assert result.scalars().one().is_read is True

    resp = await client.post(f"{API}/notifications/{notification['id']}/read", headers=admin_headers)
    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_user_payments_self_only(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    fund = await create_fund(client, admin_headers)
    member, member_headers = await create_user_and_get_headers(client, admin_headers)
    other, _ = await create_user_and_get_headers(client, admin_headers)
    await add_member(client, admin_headers, fund["id"], member["id"])
    await record_payment(client, admin_headers, fund["id"], member["id"], 1)

    resp = await client.get(f"{API}/payments/user/{member['id']}", headers=member_headers)
    assert resp.status_code == 200
    assert len(resp.json()["data"]) == 1

    resp = await client.get(f"{API}/payments/user/{other['id']}", headers=member_headers)
    assert resp.status_code == 403
