import asyncio
import re
from datetime import timedelta

from sqlalchemy import select

from app.core.security import REGISTRATION_TOKEN_TYPE, create_jwt_token, verify_password
from app.models.user import RegisteredUser

API = "/api/v1"
LEAD = "lead@example.com"
TOKEN_IN_LINK = re.compile(r"register\?token=([\w\-.]+)")


def latest_token(transport):
    return TOKEN_IN_LINK.findall(transport.to(LEAD)[-1]["html"])[-1]


async def approved_lead(client, transport, admin_headers, slots):
    response = await client.post(f"{API}/consultations", json={
        "full_name": "Lena Lead",
        "email": LEAD,
        "preferred_slots": slots,
    })
    request_id = response.json()["data"]["request_id"]
    response = await client.post(
        f"{API}/admin/consultations/{request_id}/approve", json={}, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    assert response.json()["data"]["pipeline_status"] == "approved"
    return request_id, latest_token(transport)


async def verify_payment(client, transport, admin_headers, request_id):
    response = await client.post(
        f"{API}/admin/consultations/{request_id}/verify-payment",
        json={"payment_amount": 1500, "payment_method": "interac", "package_tier": 2},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    return latest_token(transport)


async def validate(client, token):
    return await client.get(f"{API}/client-registration/validate-token", params={"token": token})


async def test_token_is_not_redeemable_before_payment(client, transport, admin_headers, slots):
    _, token = await approved_lead(client, transport, admin_headers, slots)

    response = await validate(client, token)
    assert response.status_code == 400
    assert response.json()["code"] == "PAYMENT_NOT_CONFIRMED"


async def test_payment_reissues_token_and_supersedes_old_one(client, transport, admin_headers, slots):
    request_id, approval_token = await approved_lead(client, transport, admin_headers, slots)
    payment_token = await verify_payment(client, transport, admin_headers, request_id)
    assert payment_token != approval_token
    assert transport.subjects(LEAD)[-1] == "Payment confirmed: create your account"

    response = await validate(client, approval_token)
    assert response.json()["code"] == "TOKEN_MISMATCH"

    response = await validate(client, payment_token)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["email"] == LEAD
    assert data["package_tier"] == 2
    assert data["consultation_id"] == request_id


async def test_register_activates_account_once(client, transport, admin_headers, slots, session_manager):
    request_id, _ = await approved_lead(client, transport, admin_headers, slots)
    token = await verify_payment(client, transport, admin_headers, request_id)

    mismatch = await client.post(f"{API}/client-registration/register", json={
        "token": token, "password": "password123", "confirm_password": "password124",
    })
    assert mismatch.status_code == 400

    response = await client.post(f"{API}/client-registration/register", json={
        "token": token,
        "password": "password123",
        "confirm_password": "password123",
        "phone": "+1 555 0199",
    })
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["data"]["user"]["is_active"] is True
    assert body["data"]["user"]["phone"] == "+1 555 0199"
    assert body["data"]["token_type"] == "bearer"
    assert body["data"]["redirect_to"] == "/onboarding"
    assert body["email_sent"] is True
    assert transport.subjects(LEAD)[-1] == "Welcome to your Apply Bureau client portal"

    again = await client.post(f"{API}/client-registration/register", json={
        "token": token, "password": "password123", "confirm_password": "password123",
    })
    assert again.status_code == 409
    assert again.json()["code"] == "TOKEN_ALREADY_USED"

    consultation = await client.get(f"{API}/admin/consultations/{request_id}", headers=admin_headers)
    assert consultation.json()["data"]["status"] == "registered"
    assert consultation.json()["data"]["pipeline_status"] == "client"
    assert consultation.json()["data"]["token_used"] is True

    me = await client.get(
        f"{API}/auth/me", headers={"Authorization": f"Bearer {body['data']['token']}"}
    )
    assert me.json()["data"]["email"] == LEAD

    login = await client.post(f"{API}/auth/login", json={"email": LEAD, "password": "password123"})
    assert login.status_code == 200
    assert login.json()["data"]["user"]["role"] == "client"

    async with session_manager.get_session() as session:
        stored = (
            await session.execute(select(RegisteredUser).where(RegisteredUser.email == LEAD))
        ).scalar_one()
    assert stored.passcode_hash != "password123"
    assert verify_password("password123", stored.passcode_hash)


async def test_concurrent_redemption_admits_one_account(client, transport, admin_headers, slots):
    request_id, _ = await approved_lead(client, transport, admin_headers, slots)
    token = await verify_payment(client, transport, admin_headers, request_id)
    payload = {"token": token, "password": "password123", "confirm_password": "password123"}

    responses = await asyncio.gather(
        client.post(f"{API}/client-registration/register", json=payload),
        client.post(f"{API}/client-registration/register", json=payload),
    )
    assert sorted(r.status_code for r in responses) == [201, 409]
    loser = next(r for r in responses if r.status_code == 409)
    assert loser.json()["code"] == "TOKEN_ALREADY_USED"
    assert transport.subjects(LEAD).count("Welcome to your Apply Bureau client portal") == 1


async def test_notifications_addressed_before_registration_are_visible_after(
    client, transport, admin_headers, slots
):
    request_id, _ = await approved_lead(client, transport, admin_headers, slots)
    token = await verify_payment(client, transport, admin_headers, request_id)
    response = await client.post(f"{API}/client-registration/register", json={
        "token": token, "password": "password123", "confirm_password": "password123",
    })
    headers = {"Authorization": f"Bearer {response.json()['data']['token']}"}

    notifications = await client.get(f"{API}/notifications", headers=headers)
    types = {n["type"] for n in notifications.json()["data"]}
    assert {"consultation_approved", "payment_confirmed", "registration_complete"} <= types


async def test_malformed_and_foreign_tokens(client, client_headers, settings):
    response = await validate(client, "not-a-jwt")
    assert response.json()["code"] == "INVALID_TOKEN"

    access_token = client_headers["Authorization"].split()[1]
    response = await validate(client, access_token)
    assert response.json()["code"] == "INVALID_TOKEN_TYPE"

    expired = create_jwt_token(
        {"email": LEAD, "type": REGISTRATION_TOKEN_TYPE}, settings, expires_delta=timedelta(minutes=-5)
    )
    response = await validate(client, expired)
    assert response.json()["code"] == "TOKEN_EXPIRED"

    unknown = create_jwt_token({"email": "nobody@example.com", "type": REGISTRATION_TOKEN_TYPE}, settings)
    response = await validate(client, unknown)
    assert response.status_code == 404


async def test_login_rejects_wrong_password(client, client_user):
    response = await client.post(
        f"{API}/auth/login", json={"email": client_user.email, "password": "wrong-password"}
    )
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_CREDENTIALS"
