API = "/api/v1"


async def submit(client, slots, email="lead@example.com"):
    response = await client.post(f"{API}/consultations", json={
        "full_name": "Lena Lead",
        "email": email,
        "phone": "+1 555 0100",
        "message": "Looking for a PM role",
        "preferred_slots": slots,
    })
    assert response.status_code == 201, response.text
    return response.json()["data"]["request_id"]


async def test_submit_sends_both_emails_and_notifies_admins(client, transport, settings, admin_headers, slots):
    response = await client.post(f"{API}/consultations", json={
        "full_name": "Lena Lead",
        "email": "Lead@Example.com",
        "preferred_slots": slots,
    })
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["data"]["status"] == "pending"
    assert body["email_sent"] is True
    assert body["notification_created"] is True

    assert transport.subjects("lead@example.com") == ["We received your consultation request"]
    assert transport.subjects(settings.ADMIN_NOTIFICATION_EMAIL) == ["New consultation request from Lena Lead"]

    notifications = await client.get(f"{API}/notifications", headers=admin_headers)
    assert [n["type"] for n in notifications.json()["data"]] == ["new_consultation_request"]
    assert notifications.json()["unread_count"] == 1


async def test_submit_rejects_too_many_slots(client, slots):
    response = await client.post(f"{API}/consultations", json={
        "full_name": "Lena Lead",
        "email": "lead@example.com",
        "preferred_slots": slots + [slots[0]],
    })
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "VALIDATION_ERROR"
    assert body["path"] == "/api/v1/consultations"


async def test_submit_rejects_bad_email(client, slots):
    response = await client.post(f"{API}/consultations", json={
        "full_name": "Lena Lead",
        "email": "not-an-email",
        "preferred_slots": slots,
    })
    assert response.status_code == 400
    assert any(d["field"] == "email" for d in response.json()["details"])


async def test_confirm_selects_slot_and_emails_client(client, transport, admin_headers, slots):
    request_id = await submit(client, slots)

    response = await client.post(
        f"{API}/admin/consultations/{request_id}/confirm",
        json={"selected_slot_index": 1, "meeting_link": "https://meet.example.com/abc"},
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["status"] == "confirmed"
    assert data["admin_status"] == "confirmed"
    assert data["confirmed_slot"] == {"date": "2026-11-11", "time": "14:30"}
    assert data["confirmed_time"].startswith("2026-11-11T14:30")
    assert response.json()["email_sent"] is True

    confirmation = transport.to("lead@example.com")[-1]
    assert confirmation["subject"] == "Your consultation is confirmed"
    assert "https://meet.example.com/abc" in confirmation["html"]
    assert "Ada Advisor" in confirmation["html"]


async def test_confirm_out_of_range_index_changes_nothing(client, admin_headers, slots):
    request_id = await submit(client, slots)

    response = await client.post(
        f"{API}/admin/consultations/{request_id}/confirm",
        json={"selected_slot_index": 3},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert "between 0 and 2" in response.json()["error"]

    current = await client.get(f"{API}/admin/consultations/{request_id}", headers=admin_headers)
    assert current.json()["data"]["status"] == "pending"
    assert current.json()["data"]["confirmed_slot"] is None


async def test_reschedule_requires_reason(client, admin_headers, slots):
    request_id = await submit(client, slots)
    response = await client.post(
        f"{API}/admin/consultations/{request_id}/reschedule",
        json={},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["code"] == "MISSING_REQUIRED_FIELDS"


async def test_reschedule_then_client_submits_new_times(client, transport, admin_headers, slots):
    request_id = await submit(client, slots)

    response = await client.post(
        f"{API}/admin/consultations/{request_id}/reschedule",
        json={"reschedule_reason": "Advisor out that week"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "pending"
    assert response.json()["data"]["admin_status"] == "rescheduled"
    assert response.json()["data"]["confirmed_slot"] is None
    assert "Advisor out that week" in transport.to("lead@example.com")[-1]["html"]

    response = await client.post(
        f"{API}/consultations/{request_id}/new-times",
        json={"preferred_slots": [{"date": "2026-12-01", "time": "08:00"}]},
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "pending"

    current = await client.get(f"{API}/admin/consultations/{request_id}", headers=admin_headers)
    assert current.json()["data"]["admin_status"] == "pending"
    assert current.json()["data"]["preferred_slots"] == [{"date": "2026-12-01", "time": "08:00"}]
    assert "We received your new availability" in transport.subjects("lead@example.com")


async def test_new_times_rejected_until_admin_asks(client, admin_headers, slots):
    request_id = await submit(client, slots)

    response = await client.post(
        f"{API}/consultations/{request_id}/new-times",
        json={"preferred_slots": [{"date": "2026-12-01", "time": "08:00"}]},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"

    current = await client.get(f"{API}/admin/consultations/{request_id}", headers=admin_headers)
    assert current.json()["data"]["preferred_slots"] == slots


async def test_waitlist_and_list_counts(client, admin_headers, slots):
    first = await submit(client, slots, "one@example.com")
    await submit(client, slots, "two@example.com")

    response = await client.post(
        f"{API}/admin/consultations/{first}/waitlist",
        json={"waitlist_reason": "Calendar full"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["waitlist_reason"] == "Calendar full"

    listing = await client.get(f"{API}/admin/consultations", headers=admin_headers)
    body = listing.json()
    assert body["pagination"]["total"] == 2
    assert body["status_counts"]["waitlisted"] == 1
    assert body["status_counts"]["pending"] == 1
    assert body["gatekeeper_actions"] == ["confirm", "reschedule", "waitlist"]

    filtered = await client.get(
        f"{API}/admin/consultations", params={"admin_status": "waitlisted"}, headers=admin_headers
    )
    assert [c["id"] for c in filtered.json()["data"]] == [first]


async def test_rejected_request_cannot_be_confirmed(client, admin_headers, slots):
    request_id = await submit(client, slots)
    response = await client.post(
        f"{API}/admin/consultations/{request_id}/reject",
        json={"rejection_reason": "Outside our focus"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    response = await client.post(
        f"{API}/admin/consultations/{request_id}/confirm",
        json={"selected_slot_index": 0},
        headers=admin_headers,
    )
    assert response.status_code == 409
    assert response.json()["code"] == "INVALID_TRANSITION"


async def test_admin_routes_require_admin(client, client_headers):
    response = await client.get(f"{API}/admin/consultations")
    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHORIZED"

    response = await client.get(f"{API}/admin/consultations", headers=client_headers)
    assert response.status_code == 403

    response = await client.get(
        f"{API}/admin/consultations", headers={"Authorization": "Bearer nonsense"}
    )
    assert response.status_code == 401
    assert response.json()["code"] == "INVALID_TOKEN"


async def test_unknown_consultation_is_404(client, admin_headers):
    response = await client.get(f"{API}/admin/consultations/missing", headers=admin_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "NOT_FOUND"
