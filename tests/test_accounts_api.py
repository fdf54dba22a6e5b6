from app.constants.constants import UserRole

API = "/api/v1"

NEW_ADMIN = {"full_name": "Ben Backup", "email": "ben@example.com", "password": "temporary-pass"}


async def login(client, email, password):
    return await client.post(f"{API}/auth/login", json={"email": email, "password": password})


async def test_change_password(client, client_user, client_headers):
    wrong = await client.post(
        f"{API}/auth/change-password",
        json={"current_password": "nope", "new_password": "brand-new-pass"},
        headers=client_headers,
    )
    assert wrong.status_code == 401
    assert wrong.json()["code"] == "INVALID_CREDENTIALS"

    short = await client.post(
        f"{API}/auth/change-password",
        json={"current_password": "password123", "new_password": "short"},
        headers=client_headers,
    )
    assert short.status_code == 400
    assert short.json()["details"][0]["field"] == "new_password"

    changed = await client.post(
        f"{API}/auth/change-password",
        json={"current_password": "password123", "new_password": "brand-new-pass"},
        headers=client_headers,
    )
    assert changed.status_code == 200
    assert changed.json()["notification_created"] is True

    assert (await login(client, "jane@example.com", "password123")).status_code == 401
    assert (await login(client, "jane@example.com", "brand-new-pass")).status_code == 200


async def test_super_admin_creates_admins(client, transport, admin, admin_headers):
    response = await client.post(f"{API}/admin/admins", json=NEW_ADMIN, headers=admin_headers)
    assert response.status_code == 201, response.text
    created = response.json()["data"]
    assert created["role"] == "admin"
    assert created["is_super_admin"] is False
    assert created["can_be_modified"] is True
    assert transport.subjects("ben@example.com") == ["Your Apply Bureau admin account"]
    assert (await login(client, "ben@example.com", "temporary-pass")).status_code == 200

    duplicate = await client.post(f"{API}/admin/admins", json=NEW_ADMIN, headers=admin_headers)
    assert duplicate.status_code == 409
    assert duplicate.json()["code"] == "ALREADY_EXISTS"

    listed = (await client.get(f"{API}/admin/admins", headers=admin_headers)).json()["data"]
    assert {a["email"]: a["is_super_admin"] for a in listed} == {
        "advisor@example.com": True,
        "ben@example.com": False,
    }


async def test_only_super_admin_manages_admins(client, make_user, auth_headers, admin):
    other = await make_user("deputy@example.com", role=UserRole.admin, full_name="Dee Deputy")
    headers = auth_headers(other)

    assert (await client.get(f"{API}/admin/admins", headers=headers)).status_code == 403
    assert (await client.post(f"{API}/admin/admins", json=NEW_ADMIN, headers=headers)).status_code == 403
    suspend = await client.post(f"{API}/admin/admins/{admin.id}/suspend", json={}, headers=headers)
    assert suspend.status_code == 403
    reset = await client.post(
        f"{API}/admin/admins/{admin.id}/reset-password", json={"new_password": "taken-over-1"}, headers=headers
    )
    assert reset.status_code == 403


async def test_suspend_and_reactivate(client, transport, make_user, auth_headers, admin, admin_headers):
    other = await make_user("deputy@example.com", role=UserRole.admin, full_name="Dee Deputy")
    other_headers = auth_headers(other)

    own = await client.post(f"{API}/admin/admins/{admin.id}/suspend", json={}, headers=admin_headers)
    assert own.status_code == 400

    suspended = await client.post(
        f"{API}/admin/admins/{other.id}/suspend", json={"reason": "Left the team"}, headers=admin_headers
    )
    assert suspended.status_code == 200
    assert suspended.json()["data"]["is_active"] is False
    assert suspended.json()["data"]["suspension_reason"] == "Left the team"
    assert transport.subjects("deputy@example.com") == ["Your Apply Bureau admin account is suspended"]
    assert (await client.get(f"{API}/auth/me", headers=other_headers)).status_code == 401

    again = await client.post(f"{API}/admin/admins/{other.id}/suspend", json={}, headers=admin_headers)
    assert again.status_code == 400

    reactivated = await client.post(f"{API}/admin/admins/{other.id}/reactivate", headers=admin_headers)
    assert reactivated.status_code == 200
    assert reactivated.json()["data"]["suspended_at"] is None
    assert transport.subjects("deputy@example.com")[-1] == "Your Apply Bureau admin account is active again"
    assert (await client.get(f"{API}/auth/me", headers=other_headers)).status_code == 200


async def test_password_resets(client, transport, make_user, auth_headers, admin, admin_headers):
    other = await make_user("deputy@example.com", role=UserRole.admin, full_name="Dee Deputy")

    own = await client.post(
        f"{API}/admin/admins/{other.id}/reset-password",
        json={"new_password": "my-own-choice"},
        headers=auth_headers(other),
    )
    assert own.status_code == 200
    assert transport.to("deputy@example.com") == []

    by_super = await client.post(
        f"{API}/admin/admins/{other.id}/reset-password",
        json={"new_password": "handed-over-1"},
        headers=admin_headers,
    )
    assert by_super.status_code == 200
    assert transport.subjects("deputy@example.com") == ["Your Apply Bureau admin password was reset"]
    assert (await login(client, "deputy@example.com", "handed-over-1")).status_code == 200
