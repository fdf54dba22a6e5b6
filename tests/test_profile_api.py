API = "/api/v1"


async def test_unlock_requires_completed_onboarding(client, client_user, admin_headers):
    response = await client.post(
        f"{API}/admin/clients/{client_user.id}/unlock", json={}, headers=admin_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "ONBOARDING_NOT_COMPLETED"


async def test_unlock_reports_email_failure_without_failing(client, transport, make_user, admin_headers):
    user = await make_user("sam@example.com", full_name="Sam Client", onboarding_completed=True)
    transport.fail = True

    response = await client.post(
        f"{API}/admin/clients/{user.id}/unlock", json={"admin_notes": "Go"}, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["profile_unlocked"] is True
    assert body["email_sent"] is False
    assert body["notification_created"] is True
    assert body["data"]["profile_unlocked_by"]

    client_view = await client.get(f"{API}/admin/clients/{user.id}", headers=admin_headers)
    assert client_view.json()["data"]["profile_unlocked"] is True

    again = await client.post(f"{API}/admin/clients/{user.id}/unlock", json={}, headers=admin_headers)
    assert again.status_code == 409
    assert again.json()["code"] == "PROFILE_ALREADY_UNLOCKED"


async def test_profile_update_and_completion(client, client_headers):
    response = await client.patch(
        f"{API}/client/profile", json={"current_job": "Analyst"}, headers=client_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["current_job"] == "Analyst"
    assert 0 < response.json()["data"]["profile_completion"] < 100

    incomplete = await client.post(f"{API}/client/profile/complete", json={}, headers=client_headers)
    assert incomplete.status_code == 400
    assert incomplete.json()["code"] == "MISSING_REQUIRED_FIELDS"

    complete = await client.post(
        f"{API}/client/profile/complete",
        json={"phone": "+1 555 0142", "target_job": "Product Manager", "country": "Canada"},
        headers=client_headers,
    )
    assert complete.status_code == 200
    assert complete.json()["data"]["profile_completed"] is True


async def test_dashboard_stats(client, client_user, admin_headers):
    response = await client.get(f"{API}/admin/dashboard/stats", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["data"]["clients"]["total"] == 1


async def test_client_search(client, client_user, admin_headers):
    response = await client.get(f"{API}/admin/clients", params={"search": "jane"}, headers=admin_headers)
    assert [c["email"] for c in response.json()["data"]] == ["jane@example.com"]
