API = "/api/v1"

CONTACT = {
    "first_name": "Sam",
    "last_name": "Seeker",
    "email": "Sam@Example.com",
    "phone": "+1 555 0100",
    "subject": "Pricing question",
    "message": "Which package fits a career switch?",
}


async def test_contact_form_reaches_client_and_admin(client, transport, settings, admin):
    response = await client.post(f"{API}/contact-requests", json=CONTACT)
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["data"]["status"] == "new"
    assert body["email_sent"] is True
    assert body["notification_created"] is True

    assert transport.subjects("sam@example.com") == ["We received your message"]
    assert transport.subjects(settings.ADMIN_NOTIFICATION_EMAIL) == ["New contact form message from Sam Seeker"]
    assert "Pricing question" in transport.to("sam@example.com")[0]["html"]


async def test_contact_form_rejects_bad_email(client):
    response = await client.post(f"{API}/contact-requests", json={**CONTACT, "email": "not-an-email"})
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


async def test_admin_works_through_contact_inbox(client, admin, admin_headers):
    first = (await client.post(f"{API}/contact-requests", json=CONTACT)).json()["data"]
    await client.post(f"{API}/contact-requests", json={
        **CONTACT, "first_name": "Lee", "email": "lee@example.com", "subject": "Partnership", "source": "referral",
    })

    listed = await client.get(f"{API}/admin/contact-requests", params={"search": "partner"}, headers=admin_headers)
    assert [c["subject"] for c in listed.json()["data"]] == ["Partnership"]

    patched = await client.patch(
        f"{API}/admin/contact-requests/{first['id']}",
        json={"status": "handled", "priority": "high", "admin_notes": "Sent package overview"},
        headers=admin_headers,
    )
    assert patched.status_code == 200
    contact = patched.json()["data"]
    assert contact["status"] == "handled"
    assert contact["handled_by"] == admin.id
    assert contact["admin_notes"] == "Sent package overview"

    stats = (await client.get(f"{API}/admin/contact-requests/stats", headers=admin_headers)).json()["data"]
    assert stats["total"] == 2
    assert stats["new"] == 1
    assert stats["handled"] == 1
    assert stats["high_priority"] == 1
    assert stats["this_week"] == 2
    assert stats["by_source"]["referral"] == 1

    deleted = await client.delete(f"{API}/admin/contact-requests/{first['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = await client.get(f"{API}/admin/contact-requests/{first['id']}", headers=admin_headers)
    assert missing.status_code == 404


async def test_contact_inbox_is_admin_only(client, client_headers):
    response = await client.get(f"{API}/admin/contact-requests", headers=client_headers)
    assert response.status_code == 403
