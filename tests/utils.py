import uuid
from httpx import AsyncClient
from chitledger.core.config import settings

API = settings.API_V1_STR
PASSWORD = "password123"
LAKH = 10_000_000  # 1 lakh rupees in paise

def user_payload(username: str | None = None, **extra) -> dict:
    username = username or f"user_{uuid.uuid4().hex[:8]}"
    return {
        "username": username,
        "password": PASSWORD,
        "email": f"{username}@example.com",
        "full_name": username.replace("_", " ").title(),
        "phone": f"+91{uuid.uuid4().int % 10000000000:010d}",
        **extra,
    }

async def get_auth_headers(client: AsyncClient, username: str, password: str = PASSWORD) -> dict:
    resp = await client.post(f"{API}/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}

async def register_admin(client: AsyncClient) -> tuple[dict, dict]:
    """The first account registered on an empty database is the admin."""
    resp = await client.post(f"{API}/auth/register", json=user_payload("admin"))
    assert resp.status_code == 201
    user = resp.json()["data"]
    assert user["role"] == "admin"
    return user, await get_auth_headers(client, "admin")

async def create_user(client: AsyncClient, headers: dict, role: str = "member", **extra) -> dict:
    resp = await client.post(f"{API}/users/", json=user_payload(role=role, **extra), headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]

async def create_user_and_get_headers(client: AsyncClient, headers: dict, role: str = "member") -> tuple[dict, dict]:
    user = await create_user(client, headers, role=role)
    return user, await get_auth_headers(client, user["username"])

async def create_fund(client: AsyncClient, headers: dict, amount: int = LAKH, **extra) -> dict:
    fund_data = {
        "name": f"Fund {uuid.uuid4().hex[:6]}",
        "amount": amount,
        "member_count": 20,
        "start_date": "2025-01-05T00:00:00",
        **extra,
    }
    resp = await client.post(f"{API}/funds/", json=fund_data, headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]

async def add_member(client: AsyncClient, headers: dict, fund_id: str, user_id: str) -> dict:
    resp = await client.post(f"{API}/funds/{fund_id}/members/{user_id}", headers=headers)
    assert resp.status_code == 201
    return resp.json()["data"]

async def record_payment(
    client: AsyncClient,
    headers: dict,
    fund_id: str,
    user_id: str,
    month_number: int,
    amount: int = 500_000,
    payment_date: str = "2025-01-10T10:00:00",
    payment_method: str = "cash",
):
    return await client.post(
        f"{API}/payments/",
        json={
            "user_id": user_id,
            "fund_id": fund_id,
            "amount": amount,
            "payment_date": payment_date,
            "month_number": month_number,
            "payment_method": payment_method,
        },
        headers=headers,
    )

async def fund_with_member(client: AsyncClient, headers: dict, amount: int = LAKH) -> tuple[dict, dict]:
    fund = await create_fund(client, headers, amount=amount)
    member = await create_user(client, headers)
    await add_member(client, headers, fund["id"], member["id"])
    return fund, member
