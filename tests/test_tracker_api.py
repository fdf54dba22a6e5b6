import pytest

API = "/api/v1"


@pytest.fixture
async def unlocked_client(make_user):
    return await make_user(
        "tracy@example.com",
        full_name="Tracy Tracker",
        package_tier=2,
        onboarding_completed=True,
        profile_unlocked=True,
    )


@pytest.fixture
async def unlocked_headers(unlocked_client, auth_headers):
    return auth_headers(unlocked_client)


async def create_application(client, admin_headers, client_id, **fields):
    payload = {"client_id": client_id, "company": "Acme", "role": "Product Manager", **fields}
    response = await client.post(f"{API}/admin/applications", json=payload, headers=admin_headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def test_status_change_emails_client_with_table_subject(
    client, transport, admin_headers, unlocked_client, unlocked_headers
):
    application = await create_application(client, admin_headers, unlocked_client.id)
    assert application["status"] == "applied"

    response = await client.patch(
        f"{API}/admin/applications/{application['id']}/status",
        json={
            "status": "interview",
            "interview_date": "2026-11-20T15:00:00Z",
            "meeting_link": "https://meet.example.com/acme",
        },
        headers=admin_headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["data"]["interview_date"].startswith("2026-11-20T15:00")
    assert response.json()["email_sent"] is True

    email = transport.to("tracy@example.com")[-1]
    assert email["subject"] == "Interview Scheduled - Application Update"
    assert "Acme wants to interview you for the Product Manager role" in email["html"]

    notifications = await client.get(f"{API}/notifications", headers=unlocked_headers)
    latest = notifications.json()["data"][0]
    assert latest["type"] == "application_status_updated"
    assert latest["priority"] == "high"
    assert latest["metadata"]["status"] == "interview"

    mine = await client.get(f"{API}/applications", headers=unlocked_headers)
    assert mine.json()["status_counts"]["interview"] == 1


async def test_unchanged_status_sends_nothing(client, transport, admin_headers, unlocked_client):
    application = await create_application(client, admin_headers, unlocked_client.id)
    sent_before = len(transport.sent)

    response = await client.patch(
        f"{API}/admin/applications/{application['id']}/status",
        json={"status": "applied", "notes": "Followed up"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert "email_sent" not in response.json()
    assert len(transport.sent) == sent_before


async def test_offer_email_celebrates(client, transport, admin_headers, unlocked_client):
    application = await create_application(client, admin_headers, unlocked_client.id)
    await client.patch(
        f"{API}/admin/applications/{application['id']}/status",
        json={"status": "offer"},
        headers=admin_headers,
    )
    email = transport.to("tracy@example.com")[-1]
    assert email["subject"] == "🎉 Great News About Your Application!"
    assert "Congratulations!" in email["html"]


async def test_application_for_unknown_client(client, admin_headers):
    response = await client.post(
        f"{API}/admin/applications",
        json={"client_id": "missing", "company": "Acme", "role": "PM"},
        headers=admin_headers,
    )
    assert response.status_code == 404


async def test_notification_read_state(client, admin_headers, unlocked_client, unlocked_headers):
    await create_application(client, admin_headers, unlocked_client.id, company="Beta")
    await create_application(client, admin_headers, unlocked_client.id, company="Gamma")

    count = await client.get(f"{API}/notifications/unread-count", headers=unlocked_headers)
    assert count.json()["data"]["unread_count"] == 2

    listing = await client.get(f"{API}/notifications", headers=unlocked_headers)
    first_id = listing.json()["data"][0]["id"]
    read = await client.post(f"{API}/notifications/{first_id}/read", headers=unlocked_headers)
    assert read.status_code == 200

    unread = await client.get(f"{API}/notifications", params={"unread_only": True}, headers=unlocked_headers)
    assert len(unread.json()["data"]) == 1

    read_all = await client.post(f"{API}/notifications/read-all", headers=unlocked_headers)
    assert read_all.json()["data"]["marked_count"] == 1

    count = await client.get(f"{API}/notifications/unread-count", headers=unlocked_headers)
    assert count.json()["data"]["unread_count"] == 0


async def test_cannot_read_someone_elses_notification(
    client, admin_headers, unlocked_client, unlocked_headers, client_headers
):
    await create_application(client, admin_headers, unlocked_client.id)
    listing = await client.get(f"{API}/notifications", headers=unlocked_headers)
    notification_id = listing.json()["data"][0]["id"]

    response = await client.post(f"{API}/notifications/{notification_id}/read", headers=client_headers)
    assert response.status_code == 404


async def test_resources_filtered_by_tier(client, admin_headers, client_user, client_headers):
    async def add(title, tier):
        response = await client.post(f"{API}/admin/resources", json={
            "title": title,
            "type": "guide",
            "category": "interviews",
            "download_url": f"https://files.example.com/{tier}.pdf",
            "tier_required": tier,
        }, headers=admin_headers)
        assert response.status_code == 201
        return response.json()["data"]["id"]

    basic = await add("Interview basics", 1)
    premium = await add("Executive negotiation", 3)

    listing = await client.get(f"{API}/resources", headers=client_headers)
    assert [r["title"] for r in listing.json()["data"]] == ["Interview basics"]
    assert listing.json()["package_tier"] == 2

    denied = await client.post(f"{API}/resources/{premium}/download", headers=client_headers)
    assert denied.status_code == 403

    download = await client.post(f"{API}/resources/{basic}/download", headers=client_headers)
    assert download.json()["data"]["download_count"] == 1

    history = await client.get(f"{API}/resources/downloads/history", headers=client_headers)
    assert [h["resource_id"] for h in history.json()["data"]] == [basic]

    await client.delete(f"{API}/admin/resources/{basic}", headers=admin_headers)
    listing = await client.get(f"{API}/resources", headers=client_headers)
    assert listing.json()["data"] == []
