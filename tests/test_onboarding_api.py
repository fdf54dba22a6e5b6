API = "/api/v1"


async def test_questionnaire_requires_approval_before_tracker(
    client, transport, settings, client_headers, admin_headers, questionnaire
):
    locked = await client.get(f"{API}/applications", headers=client_headers)
    assert locked.status_code == 403
    assert locked.json()["code"] == "PROFILE_LOCKED"

    response = await client.post(
        f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["data"]["execution_status"] == "pending_approval"
    assert body["data"]["target_job_titles"] == ["Product Manager", "Senior PM"]
    assert body["requires_admin_approval"] is True
    assert body["can_access_tracker"] is False
    assert transport.subjects("jane@example.com") == ["We received your onboarding questionnaire"]
    assert transport.subjects(settings.ADMIN_NOTIFICATION_EMAIL) == ["Onboarding ready for approval: Jane Doe"]

    status = await client.get(f"{API}/client/onboarding/status", headers=client_headers)
    assert status.json()["data"]["onboarding_completed"] is True
    assert status.json()["data"]["profile_unlocked"] is False

    queue = await client.get(f"{API}/admin/onboarding", headers=admin_headers)
    assert queue.json()["status_counts"] == {"pending_approval": 1, "active": 0}
    record = queue.json()["data"][0]
    assert record["client"]["email"] == "jane@example.com"

    approved = await client.post(
        f"{API}/admin/onboarding/{record['id']}/approve",
        json={"admin_notes": "Strong profile"},
        headers=admin_headers,
    )
    assert approved.status_code == 200, approved.text
    assert approved.json()["data"]["execution_status"] == "active"
    assert approved.json()["profile_unlocked"] is True
    assert transport.to("jane@example.com")[-1]["subject"] == "Your application tracker is now active"
    assert "Strong profile" in transport.to("jane@example.com")[-1]["html"]

    unlocked = await client.get(f"{API}/applications", headers=client_headers)
    assert unlocked.status_code == 200
    assert unlocked.json()["data"] == []

    notifications = await client.get(f"{API}/notifications", headers=client_headers)
    assert "profile_unlocked_by_admin" in [n["type"] for n in notifications.json()["data"]]


async def test_approval_is_not_repeatable(client, client_headers, admin_headers, questionnaire):
    await client.post(f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers)
    queue = await client.get(f"{API}/admin/onboarding", headers=admin_headers)
    record_id = queue.json()["data"][0]["id"]

    first = await client.post(f"{API}/admin/onboarding/{record_id}/approve", json={}, headers=admin_headers)
    assert first.status_code == 200
    second = await client.post(f"{API}/admin/onboarding/{record_id}/approve", json={}, headers=admin_headers)
    assert second.status_code == 409
    assert second.json()["code"] == "INVALID_STATUS"

    resubmit = await client.post(
        f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers
    )
    assert resubmit.status_code == 409


async def test_resubmission_updates_pending_record(client, client_headers, questionnaire):
    await client.post(f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers)
    questionnaire["job_search_timeline"] = "6 months"
    response = await client.post(
        f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers
    )
    assert response.status_code == 201

    stored = await client.get(f"{API}/client/onboarding/questionnaire", headers=client_headers)
    assert stored.json()["data"]["job_search_timeline"] == "6 months"


async def test_questionnaire_validation(client, client_headers, questionnaire):
    del questionnaire["target_salary_range"]
    response = await client.post(
        f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=client_headers
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_admin_cannot_submit_questionnaire(client, admin_headers, questionnaire):
    response = await client.post(
        f"{API}/client/onboarding/questionnaire", json=questionnaire, headers=admin_headers
    )
    assert response.status_code == 403
