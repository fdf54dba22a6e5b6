API = "/api/v1"

BOOKING = {
    "session_type": "Behavioral Interview",
    "preferred_date": "2026-11-20T15:00:00",
    "focus_areas": ["STAR answers", "Leadership stories"],
    "specific_company": "Acme",
}


async def test_booking_assigns_coach_and_meeting_link(client, transport, admin, admin_headers, client_headers):
    response = await client.post(f"{API}/mock-sessions", json=BOOKING, headers=client_headers)
    assert response.status_code == 201, response.text
    session = response.json()["data"]
    assert session["status"] == "scheduled"
    assert session["coach"]["name"] == "Sarah Chen"
    assert session["meeting_link"].startswith("https://meet.google.com/mock-session-")
    assert session["preparation_level"] == "intermediate"

    assert transport.subjects("jane@example.com") == ["Your Behavioral Interview mock session is booked"]
    assert "Leadership stories" in transport.to("jane@example.com")[0]["html"]

    notifications = (await client.get(f"{API}/notifications", headers=admin_headers)).json()["data"]
    assert [n["type"] for n in notifications] == ["mock_session_booked"]

    technical = await client.post(
        f"{API}/mock-sessions", json={**BOOKING, "session_type": "System Design"}, headers=client_headers
    )
    assert technical.json()["data"]["coach"]["name"] == "Alex Rodriguez"

    mine = await client.get(f"{API}/mock-sessions", params={"session_type": "System Design"}, headers=client_headers)
    assert [s["session_type"] for s in mine.json()["data"]] == ["System Design"]


async def test_booking_needs_focus_areas(client, client_headers):
    response = await client.post(f"{API}/mock-sessions", json={**BOOKING, "focus_areas": []}, headers=client_headers)
    assert response.status_code == 400


async def test_admins_cannot_book_for_themselves(client, admin_headers):
    response = await client.post(f"{API}/mock-sessions", json=BOOKING, headers=admin_headers)
    assert response.status_code == 403


async def test_feedback_completes_session_once(client, transport, admin_headers, client_headers):
    session = (await client.post(f"{API}/mock-sessions", json=BOOKING, headers=client_headers)).json()["data"]
    feedback = {
        "overall_rating": 4,
        "communication": 5,
        "strengths": "Clear structure",
        "areas_for_improvement": ["Quantify impact"],
    }

    response = await client.post(
        f"{API}/admin/mock-sessions/{session['id']}/feedback", json=feedback, headers=admin_headers
    )
    assert response.status_code == 200, response.text
    done = response.json()["data"]
    assert done["status"] == "completed"
    assert done["completed_at"] is not None
    assert done["feedback"]["strengths"] == ["Clear structure"]
    assert done["feedback"]["feedback_by"] == "Ada Advisor"
    assert transport.subjects("jane@example.com")[-1] == "Feedback from your Behavioral Interview mock session"

    again = await client.post(
        f"{API}/admin/mock-sessions/{session['id']}/feedback", json=feedback, headers=admin_headers
    )
    assert again.status_code == 409
    assert again.json()["code"] == "INVALID_TRANSITION"


async def test_feedback_rating_bounds(client, admin_headers, client_headers):
    session = (await client.post(f"{API}/mock-sessions", json=BOOKING, headers=client_headers)).json()["data"]
    response = await client.post(
        f"{API}/admin/mock-sessions/{session['id']}/feedback",
        json={"overall_rating": 6, "strengths": ["x"], "areas_for_improvement": ["y"]},
        headers=admin_headers,
    )
    assert response.status_code == 400


async def test_reschedule_mails_the_new_time(client, transport, make_user, auth_headers, admin_headers, client_headers):
    session = (await client.post(f"{API}/mock-sessions", json=BOOKING, headers=client_headers)).json()["data"]

    stranger = auth_headers(await make_user("other@example.com"))
    denied = await client.patch(
        f"{API}/mock-sessions/{session['id']}", json={"notes": "mine now"}, headers=stranger
    )
    assert denied.status_code == 403

    moved = await client.patch(
        f"{API}/mock-sessions/{session['id']}",
        json={"status": "rescheduled", "scheduled_date": "2026-11-22T10:30:00"},
        headers=admin_headers,
    )
    assert moved.status_code == 200, moved.text
    assert moved.json()["data"]["scheduled_date"] == "2026-11-22T10:30:00"
    rescheduled = transport.to("jane@example.com")[-1]
    assert rescheduled["subject"] == "Your Behavioral Interview mock session has moved"
    assert "10:30" in rescheduled["html"]

    cancelled = await client.patch(
        f"{API}/mock-sessions/{session['id']}", json={"status": "cancelled"}, headers=client_headers
    )
    assert cancelled.json()["data"]["status"] == "cancelled"

    revived = await client.patch(
        f"{API}/mock-sessions/{session['id']}", json={"status": "scheduled"}, headers=client_headers
    )
    assert revived.status_code == 409
