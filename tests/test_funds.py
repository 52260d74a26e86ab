import pytest
from httpx import AsyncClient
from tests.utils import (
    API, LAKH, register_admin, create_user, create_user_and_get_headers, create_fund, add_member,
    fund_with_member, record_payment,
)

@pytest.mark.asyncio
async def test_create_fund_derives_defaults(client: AsyncClient):
    _, headers = await register_admin(client)

    fund = await create_fund(client, headers, amount=LAKH, start_date="2025-01-31T00:00:00")

    assert fund["duration"] == 20
    assert fund["status"] == "active"
    assert fund["base_commission"] == 500_000
    assert fund["monthly_contribution"] == 500_000
    assert fund["monthly_bonus"] == 100_000
    # Twentieth instalment, day clamped to the end of August
    assert fund["end_date"] == "2026-08-31T00:00:00"

@pytest.mark.asyncio
async def test_create_fund_requires_positive_amount(client: AsyncClient):
    _, headers = await register_admin(client)

    resp = await client.post(
        f"{API}/funds/",
        json={"name": "Bad", "amount": 0, "member_count": 20, "start_date": "2025-01-05T00:00:00"},
        headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Validation Error"

@pytest.mark.asyncio
async def test_only_admin_creates_fund(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    _, agent_headers = await create_user_and_get_headers(client, admin_headers, role="agent")

    resp = await client.post(
        f"{API}/funds/",
        json={"name": "Agent fund", "amount": LAKH, "member_count": 20, "start_date": "2025-01-05T00:00:00"},
        headers=agent_headers,
    )
    assert resp.status_code == 403

@pytest.mark.asyncio
async def test_fund_amount_cannot_be_updated(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)

    resp = await client.patch(f"{API}/funds/{fund['id']}", json={"amount": 2 * LAKH}, headers=headers)
    assert resp.status_code == 400

    resp = await client.patch(f"{API}/funds/{fund['id']}", json={"name": "Renamed"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Renamed"
    assert resp.json()["data"]["amount"] == LAKH

@pytest.mark.asyncio
async def test_closed_fund_is_terminal(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    resp = await client.post(f"{API}/funds/{fund['id']}/close", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "closed"

    resp = await client.patch(f"{API}/funds/{fund['id']}", json={"name": "Again"}, headers=headers)
    assert resp.status_code == 409

    other = await create_user(client, headers)
    resp = await client.post(f"{API}/funds/{fund['id']}/members/{other['id']}", headers=headers)
    assert resp.status_code == 409

    resp = await record_payment(client, headers, fund["id"], member["id"], 1)
    assert resp.status_code == 409

    resp = await client.post(f"{API}/funds/{fund['id']}/close", headers=headers)
    assert resp.status_code == 409

@pytest.mark.asyncio
async def test_list_funds_for_member(client: AsyncClient):
    _, admin_headers = await register_admin(client)
    member, member_headers = await create_user_and_get_headers(client, admin_headers)
    mine = await create_fund(client, admin_headers)
    other = await create_fund(client, admin_headers)
    await add_member(client, admin_headers, mine["id"], member["id"])

    resp = await client.get(f"{API}/funds/", headers=member_headers)
    assert [f["id"] for f in resp.json()["data"]] == [mine["id"]]

    resp = await client.get(f"{API}/funds/{other['id']}", headers=member_headers)
    assert resp.status_code == 403

    resp = await client.get(f"{API}/funds/", headers=admin_headers)
    assert len(resp.json()["data"]) == 2

@pytest.mark.asyncio
async def test_add_member_twice(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)

    resp = await client.post(f"{API}/funds/{fund['id']}/members/{member['id']}", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "User is already a member of this fund"

    resp = await client.get(f"{API}/funds/{fund['id']}/members", headers=headers)
    members = resp.json()["data"]
    assert len(members) == 1
    assert members[0]["username"] == member["username"]
    assert members[0]["is_withdrawn"] is False

@pytest.mark.asyncio
async def test_remove_member(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    paying = await create_user(client, headers)
    await add_member(client, headers, fund["id"], paying["id"])
    await record_payment(client, headers, fund["id"], paying["id"], 1)

    resp = await client.delete(f"{API}/funds/{fund['id']}/members/{paying['id']}", headers=headers)
    assert resp.status_code == 409

    resp = await client.delete(f"{API}/funds/{fund['id']}/members/{member['id']}", headers=headers)
    assert resp.status_code == 200

    resp = await client.get(f"{API}/funds/{fund['id']}/members", headers=headers)
    assert [m["user_id"] for m in resp.json()["data"]] == [paying["id"]]

@pytest.mark.asyncio
async def test_delete_fund(client: AsyncClient):
    _, headers = await register_admin(client)
    empty, _ = await fund_with_member(client, headers)
    used, member = await fund_with_member(client, headers)
    await record_payment(client, headers, used["id"], member["id"], 1)

    resp = await client.delete(f"{API}/funds/{used['id']}", headers=headers)
    assert resp.status_code == 409

    resp = await client.delete(f"{API}/funds/{empty['id']}", headers=headers)
    assert resp.status_code == 200
    resp = await client.get(f"{API}/funds/{empty['id']}", headers=headers)
    assert resp.status_code == 404

@pytest.mark.asyncio
async def test_member_details(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    await record_payment(client, headers, fund["id"], member["id"], 1)
    await record_payment(client, headers, fund["id"], member["id"], 2)

    resp = await client.get(f"{API}/funds/{fund['id']}/members/{member['id']}/details", headers=headers)
    assert resp.status_code == 200
    details = resp.json()["data"]
    assert details["months_paid"] == 2
    assert details["paid_amount"] == 1_000_000
    assert details["has_payable"] is False
    assert details["effective_fund_amount"] == LAKH
    assert details["monthly_contribution"] == 500_000

@pytest.mark.asyncio
async def test_payment_sheet(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    idle = await create_user(client, headers)
    await add_member(client, headers, fund["id"], idle["id"])
    await record_payment(client, headers, fund["id"], member["id"], 1)
    await record_payment(client, headers, fund["id"], member["id"], 2, payment_date="2025-02-10T10:00:00")

    resp = await client.get(f"{API}/funds/{fund['id']}/payments", headers=headers)
    assert resp.status_code == 200
    rows = {m["id"]: m for m in resp.json()["data"]["members"]}
    assert [p["month"] for p in rows[member["id"]]["payments"]] == [1, 2]
    assert rows[idle["id"]]["payments"] == []

@pytest.mark.asyncio
async def test_withdrawal_toggle(client: AsyncClient):
    _, headers = await register_admin(client)
    fund, member = await fund_with_member(client, headers)
    url = f"{API}/funds/{fund['id']}/members/{member['id']}/withdrawal"

    resp = await client.patch(url, json={"is_withdrawn": True, "withdrawal_month": 3}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_withdrawn"] is True
    assert resp.json()["data"]["withdrawal_month"] == 3

    resp = await client.patch(url, json={"is_withdrawn": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["is_withdrawn"] is False
    assert resp.json()["data"]["withdrawal_month"] is None
