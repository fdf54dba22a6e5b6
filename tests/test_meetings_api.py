API = "/api/v1"


async def test_strategy_call_requires_onboarding(client, client_headers, slots):
    response = await client.post(f"{API}/strategy-calls", json={"preferred_slots": slots}, headers=client_headers)
    assert response.status_code == 400
    assert response.json()["code"] == "ONBOARDING_NOT_COMPLETED"


async def test_strategy_call_lifecycle(client, transport, settings, make_user, auth_headers, admin_headers, slots):
    user = await make_user("cal@example.com", full_name="Cal Client", onboarding_completed=True)
    headers = auth_headers(user)

    short = await client.post(f"{API}/strategy-calls", json={"preferred_slots": slots[:2]}, headers=headers)
    assert short.status_code == 400

    response = await client.post(
        f"{API}/strategy-calls",
        json={"preferred_slots": slots, "timezone": "America/Toronto", "specific_topics": ["salary"]},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    call = response.json()["data"]
    assert call["status"] == "pending_confirmation"
    assert transport.subjects(settings.ADMIN_NOTIFICATION_EMAIL) == ["Strategy call requested by Cal Client"]

    confirmed = await client.post(
        f"{API}/admin/strategy-calls/{call['id']}/confirm",
        json={"selected_slot_index": 2},
        headers=admin_headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["data"]["confirmed_slot"] == slots[2]
    confirmation = transport.to("cal@example.com")[-1]
    assert confirmation["subject"] == "Your strategy call is confirmed"
    assert "Meeting details will be provided separately." in confirmation["html"]

    completed = await client.post(f"{API}/admin/strategy-calls/{call['id']}/complete", headers=admin_headers)
    assert completed.json()["data"]["status"] == "completed"

    cancelled = await client.post(
        f"{API}/admin/strategy-calls/{call['id']}/cancel", json={}, headers=admin_headers
    )
    assert cancelled.status_code == 409

    mine = await client.get(f"{API}/strategy-calls/my-calls", headers=headers)
    assert [c["status"] for c in mine.json()["data"]] == ["completed"]


async def test_strategy_call_new_availability(client, make_user, auth_headers, admin_headers, slots):
    user = await make_user("cal@example.com", full_name="Cal Client", onboarding_completed=True)
    headers = auth_headers(user)
    call = (await client.post(f"{API}/strategy-calls", json={"preferred_slots": slots}, headers=headers)).json()["data"]

    response = await client.post(
        f"{API}/admin/strategy-calls/{call['id']}/request-new-availability",
        json={"reason": "Advisor unavailable"},
        headers=admin_headers,
    )
    assert response.json()["data"]["status"] == "awaiting_new_times"

    new_slots = [{"date": "2026-12-0%d" % day, "time": "11:00"} for day in (1, 2, 3)]
    response = await client.post(
        f"{API}/strategy-calls/{call['id']}/new-times", json={"preferred_slots": new_slots}, headers=headers
    )
    assert response.json()["data"]["status"] == "pending_confirmation"
    assert response.json()["data"]["preferred_slots"] == new_slots


async def test_interview_scheduling_and_status_moves(client, transport, client_user, client_headers, admin_headers):
    response = await client.post(f"{API}/admin/interviews", json={
        "client_id": client_user.id,
        "interview_type": "video",
        "scheduled_date": "2026-11-25T16:00:00",
        "company": "Acme",
        "role": "Product Manager",
        "meeting_link": "https://meet.example.com/interview",
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    interview = response.json()["data"]
    assert interview["status"] == "confirmed"
    assert transport.subjects("jane@example.com") == ["Interview scheduled with Acme"]

    invalid = await client.patch(
        f"{API}/admin/interviews/{interview['id']}",
        json={"status": "pending_confirmation"},
        headers=admin_headers,
    )
    assert invalid.status_code == 409

    feedback = await client.post(
        f"{API}/admin/interviews/{interview['id']}/feedback",
        json={"outcome": "advanced", "feedback": "Strong answers"},
        headers=admin_headers,
    )
    assert feedback.status_code == 200
    assert feedback.json()["data"]["status"] == "completed"
    assert [h["event"] for h in feedback.json()["data"]["history"]] == ["scheduled", "feedback"]

    mine = await client.get(f"{API}/interviews/my", headers=client_headers)
    assert [i["outcome"] for i in mine.json()["data"]] == ["advanced"]
