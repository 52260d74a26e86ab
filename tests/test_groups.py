from decimal import Decimal
import pytest
from httpx import AsyncClient
from tests.utils import API, register_admin, create_user, create_fund, add_member

async def create_group(client: AsyncClient, headers: dict, shares: list[int]) -> tuple[dict, list[dict]]:
    resp = await client.post(f"{API}/groups/", json={"name": "Shared ticket"}, headers=headers)
    assert resp.status_code == 201
    group = resp.json()["data"]

    users = []
    for share in shares:
        user = await create_user(client, headers)
        resp = await client.post(
            f"{API}/groups/{group['id']}/members",
            json={"user_id": user["id"], "share_percentage": share},
            headers=headers,
        )
        assert resp.status_code == 201
        users.append(user)
    return group, users

@pytest.mark.asyncio
async def test_group_shares_cannot_exceed_hundred(client: AsyncClient):
    _, headers = await register_admin(client)
    group, _ = await create_group(client, headers, [60])
    extra = await create_user(client, headers)

    resp = await client.post(
        f"{API}/groups/{group['id']}/members",
        json={"user_id": extra["id"], "share_percentage": 50},
        headers=headers,
    )
    assert resp.status_code == 400

    resp = await client.post(
        f"{API}/groups/{group['id']}/members",
        json={"user_id": extra["id"], "share_percentage": 40},
        headers=headers,
    )
    assert resp.status_code == 201

    resp = await client.get(f"{API}/groups/{group['id']}", headers=headers)
    data = resp.json()["data"]
    assert len(data["members"]) == 2
    assert Decimal(str(data["total_percentage"])) == 100

@pytest.mark.asyncio
async def test_share_percentage_bounds(client: AsyncClient):
    _, headers = await register_admin(client)
    group, _ = await create_group(client, headers, [])
    user = await create_user(client, headers)

    for share in (0, 101):
        resp = await client.post(
            f"{API}/groups/{group['id']}/members",
            json={"user_id": user["id"], "share_percentage": share},
            headers=headers,
        )
        assert resp.status_code == 400

@pytest.mark.asyncio
async def test_attach_group_to_fund(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)
    group, users = await create_group(client, headers, [60, 40])

    resp = await client.post(f"{API}/funds/{fund['id']}/groups/{group['id']}", headers=headers)
    assert resp.status_code == 201
    members = resp.json()["data"]
    assert {m["user_id"] for m in members} == {u["id"] for u in users}
    assert all(m["group_id"] == group["id"] for m in members)

    # Attaching again would duplicate members
    resp = await client.post(f"{API}/funds/{fund['id']}/groups/{group['id']}", headers=headers)
    assert resp.status_code == 400

@pytest.mark.asyncio
async def test_attach_incomplete_group_rejected(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)
    group, _ = await create_group(client, headers, [60])

    resp = await client.post(f"{API}/funds/{fund['id']}/groups/{group['id']}", headers=headers)
    assert resp.status_code == 400
    assert "100%" in resp.json()["message"]

    resp = await client.get(f"{API}/funds/{fund['id']}/members", headers=headers)
    assert resp.json()["data"] == []

@pytest.mark.asyncio
async def test_attach_group_with_existing_member_adds_nobody(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)
    group, users = await create_group(client, headers, [50, 50])
    await add_member(client, headers, fund["id"], users[1]["id"])

    resp = await client.post(f"{API}/funds/{fund['id']}/groups/{group['id']}", headers=headers)
    assert resp.status_code == 400

    resp = await client.get(f"{API}/funds/{fund['id']}/members", headers=headers)
    assert [m["user_id"] for m in resp.json()["data"]] == [users[1]["id"]]

@pytest.mark.asyncio
async def test_group_payment_split_by_share(client: AsyncClient):
    _, headers = await register_admin(client)
    fund = await create_fund(client, headers)
    group, users = await create_group(client, headers, [60, 40])
    await client.post(f"{API}/funds/{fund['id']}/groups/{group['id']}", headers=headers)

    resp = await client.post(
        f"{API}/groups/{group['id']}/payments",
        json={
            "fund_id": fund["id"],
            "amount": 500_001,
            "month_number": 1,
            "payment_date": "2025-01-10T10:00:00",
        },
        headers=headers,
    )
    assert resp.status_code == 201
    shares = {s["user_id"]: s["amount"] for s in resp.json()["data"]}
    assert shares == {users[0]["id"]: 300_000, users[1]["id"]: 200_001}

    resp = await client.get(f"{API}/accounts/receivables", params={"fund_id": fund["id"]}, headers=headers)
    paid = {r["user_id"]: r["paid_amount"] for r in resp.json()["data"]}
    assert paid == shares

@pytest.mark.asyncio
async def test_remove_group_member(client: AsyncClient):
    _, headers = await register_admin(client)
    group, users = await create_group(client, headers, [50, 50])

    resp = await client.delete(f"{API}/groups/{group['id']}/members/{users[0]['id']}", headers=headers)
    assert resp.status_code == 200

    data = (await client.get(f"{API}/groups/{group['id']}", headers=headers)).json()["data"]
    assert [m["user_id"] for m in data["members"]] == [users[1]["id"]]
    assert Decimal(str(data["total_percentage"])) == 50
